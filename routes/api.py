"""
API routes (JSON endpoints).

Handles:
- /health                          - Health check endpoint
- /api/price-jobs                  - Start a background price update
- /api/price-jobs/<job_id>         - Poll a job
- /api/price-jobs/<job_id>/cancel  - Cancel a job
- /api/weight-multiplier           - Weight block "Apply" button
"""

import json

from flask import Blueprint, current_app, jsonify, request

from core.exceptions import MalformedResponseError, ValidationError
from models.catalog import Product
from modules.extensions import apply_weight_multiplier
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


def _request_values() -> dict:
    """JSON body or form fields, whichever the caller sent."""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form.to_dict()


@api_bp.route("/health", methods=["GET"])
def health():
    """
    Health check endpoint.

    Returns service status for monitoring.
    """
    shop_context = current_app.config.get("SHOP_CONTEXT")
    configured = bool(shop_context and shop_context.is_configured)

    return jsonify({
        "status": "healthy" if configured else "degraded",
        "shopify_configured": configured,
        "shop_domain": shop_context.shop_domain if shop_context else "",
        "price_update_mode": current_app.config.get("PRICE_UPDATE_MODE"),
    })


# =============================================================================
# PRICE JOBS
# =============================================================================

@api_bp.route("/api/price-jobs", methods=["POST"])
def create_price_job():
    """
    Start a background price update.

    Body: {"selectedProducts": [...], "multiplier": "2.5"}
    """
    price_job_service = current_app.config["PRICE_JOB_SERVICE"]
    values = _request_values()

    products = values.get("selectedProducts") or []
    if isinstance(products, str):
        try:
            products = json.loads(products)
        except ValueError:
            return jsonify({"errors": ["selectedProducts must be a JSON array"]}), 400
    if not isinstance(products, list):
        return jsonify({"errors": ["selectedProducts must be a JSON array"]}), 400

    try:
        parsed = [Product.from_dict(item) for item in products if isinstance(item, dict)]
        job_id = price_job_service.submit(parsed, values.get("multiplier"))
    except ValidationError as e:
        return jsonify({"errors": [e.message]}), 400
    except MalformedResponseError as e:
        return jsonify({"errors": [f"Invalid product in selectedProducts: {e.message}"]}), 400

    record = price_job_service.get_status(job_id)
    return jsonify(record.to_dict()), 202


@api_bp.route("/api/price-jobs/<job_id>", methods=["GET"])
def get_price_job(job_id: str):
    price_job_service = current_app.config["PRICE_JOB_SERVICE"]
    record = price_job_service.get_status(job_id)
    if record is None:
        return jsonify({"errors": [f"Unknown job: {job_id}"]}), 404
    return jsonify(record.to_dict())


@api_bp.route("/api/price-jobs/<job_id>/cancel", methods=["POST"])
def cancel_price_job(job_id: str):
    price_job_service = current_app.config["PRICE_JOB_SERVICE"]
    record = price_job_service.get_status(job_id)
    if record is None:
        return jsonify({"errors": [f"Unknown job: {job_id}"]}), 404

    cancelled = price_job_service.cancel(job_id)
    data = price_job_service.get_status(job_id).to_dict()
    data["cancelRequested"] = cancelled
    return jsonify(data), 202 if cancelled else 409


# =============================================================================
# WEIGHT MULTIPLIER BLOCK
# =============================================================================

@api_bp.route("/api/weight-multiplier", methods=["POST"])
def weight_multiplier():
    """
    Reprice one product's weighted variants.

    Body: {"productId": "gid://shopify/Product/1", "multiplier": "2.5"}
    Returns: {"ok": bool, "message": str, "variantsUpdated": int}
    """
    values = _request_values()
    result = apply_weight_multiplier(
        current_app.config["CATALOG_SERVICE"],
        current_app.config["PRICE_UPDATE_SERVICE"],
        (values.get("productId") or "").strip(),
        values.get("multiplier"),
    )
    return jsonify(result.to_dict()), 200 if result.ok else 400
