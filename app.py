"""
WeightPriceAdmin - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env + config classes)
2. Builds the ShopContext (immutable Shopify settings)
3. Creates the catalog, order, price update and price job services
4. Registers route blueprints, CORS and error handlers

ARCHITECTURE:
    Main Thread
    ├── Flask request handling (reads use a per-request client)
    └── Cleanup on shutdown (price job threads)

    Price update workers (ThreadPoolExecutor, one task per product)
    └── Each with OWN ShopifyGraphQLClient

    Price job threads (one per background job)
    └── Each running its own worker pool

Nothing but the frozen ShopContext is shared between threads.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from flask_cors import CORS

from logging_config import setup_logging, get_logger
from core.shop_context import ShopContext
from services.catalog_service import CatalogService
from services.order_service import OrderService
from services.price_update_service import PriceUpdateService
from services.price_job_service import PriceJobService
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


def _get_base_path() -> Path:
    """
    Get the base path for the application.

    In a frozen bundle: Returns the directory containing the executable
    In development: Returns the directory containing app.py
    """
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def _wants_json() -> bool:
    """API calls and /app actions get JSON errors, pages get plain text."""
    return request.path.startswith("/api") or (request.path == "/app" and request.method == "POST")


def create_app(config_object="config.Config") -> Flask:
    """
    Application factory - creates and configures Flask app.

    Missing Shopify credentials do not stop the app from starting; they
    are logged as a warning and every Shopify-backed request reports a
    configuration error.

    Args:
        config_object: Dotted path or class passed to app.config.from_object

    Returns:
        Configured Flask application
    """
    # Load .env from base path (next to executable in production)
    base_path = _get_base_path()
    env_file = base_path / '.env'
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    # Create Flask app
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        app_name="weight_price_admin",
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting WeightPriceAdmin in {app.config.get('ENVIRONMENT')} mode")

    # =========================================================================
    # SHOPIFY CONTEXT
    # =========================================================================

    shop_context = ShopContext.from_config(app.config)
    if not shop_context.is_configured:
        logger.warning(
            "SHOPIFY_SHOP_DOMAIN / SHOPIFY_ACCESS_TOKEN not set - "
            "Shopify requests will fail until they are configured"
        )
    else:
        logger.info(f"Using {shop_context!r}")
    app.config["SHOP_CONTEXT"] = shop_context

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    app.config["CATALOG_SERVICE"] = CatalogService.from_config(shop_context, app.config)
    app.config["ORDER_SERVICE"] = OrderService(
        shop_context,
        line_items_limit=app.config.get("ORDER_LINE_ITEMS_LIMIT", 50),
    )

    price_update_service = PriceUpdateService.from_config(shop_context, app.config)
    app.config["PRICE_UPDATE_SERVICE"] = price_update_service
    logger.info(
        f"Price updates: mode={price_update_service.mode}, "
        f"workers={price_update_service.max_workers}, "
        f"unit={price_update_service.required_unit or 'any'}"
    )

    price_job_service = PriceJobService(
        price_update_service,
        max_finished_jobs=app.config.get("PRICE_JOB_HISTORY_LIMIT", 100)
    )
    app.config["PRICE_JOB_SERVICE"] = price_job_service

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    def cleanup():
        """Cleanup on application shutdown."""
        logger.info("Shutting down...")
        price_job_service.shutdown()
        logger.info("Shutdown complete")

    atexit.register(cleanup)

    # =========================================================================
    # CORS (print pages are fetched from the Shopify admin)
    # =========================================================================

    CORS(
        app,
        resources={r"/print": {}, r"/appraisal": {}},
        origins=app.config.get("CORS_ALLOWED_ORIGINS") or ["https://admin.shopify.com"],
    )

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(404)
    def handle_not_found(e):
        if _wants_json():
            return jsonify({"errors": ["Not found"]}), 404
        return "Page not found.", 404

    @app.errorhandler(405)
    def handle_method_not_allowed(e):
        if _wants_json():
            return jsonify({"errors": ["Method not allowed"]}), 405
        return "Method not allowed.", 405

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"500 error: {e}", exc_info=True)
        if _wants_json():
            return jsonify({"errors": ["Unexpected server error"]}), 500
        return "An unexpected error occurred. Please try again.", 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
