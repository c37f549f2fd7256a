"""
Flask route blueprints for WeightPriceAdmin.

This module contains all route handlers organized by functionality:
- main: Root redirect
- admin: Admin product table and price update actions
- print: Printable order documents
- extensions: Print-action and weight-multiplier panels
- api: JSON endpoints (health, price jobs, weight block)

Each blueprint is registered with the Flask app in create_app().
"""

from .main import main_bp
from .admin import admin_bp
from .print import print_bp
from .extensions import extensions_bp
from .api import api_bp

__all__ = [
    "main_bp",
    "admin_bp",
    "print_bp",
    "extensions_bp",
    "api_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(print_bp)
    app.register_blueprint(extensions_bp)
    app.register_blueprint(api_bp)
