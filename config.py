"""
Configuration for WeightPriceAdmin.

All values come from environment variables (a .env file next to the app is
loaded first). The Shopify Admin API is reached with an offline access
token; without SHOPIFY_SHOP_DOMAIN and SHOPIFY_ACCESS_TOKEN the app still
starts, but every Shopify-backed request fails with a configuration error.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env early so environment variables are available for the Config class
load_dotenv(override=True)

BASE_DIR = Path(__file__).resolve().parent


def _env_int(name: str, default: int) -> int:
    return int(os.environ.get(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.environ.get(name, str(default)))


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    SESSION_COOKIE_NAME = "weight_price_admin_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # ==========================================================================
    # Shopify Admin API
    # ==========================================================================
    SHOPIFY_SHOP_DOMAIN = os.environ.get("SHOPIFY_SHOP_DOMAIN", "")
    SHOPIFY_ACCESS_TOKEN = os.environ.get("SHOPIFY_ACCESS_TOKEN", "")
    SHOPIFY_API_VERSION = os.environ.get("SHOPIFY_API_VERSION", "2024-10")

    # Every outbound call is bounded; a timeout becomes a per-product error.
    SHOPIFY_REQUEST_TIMEOUT_SECONDS = _env_float("SHOPIFY_REQUEST_TIMEOUT_SECONDS", 15.0)

    # Backoff on HTTP 429 / THROTTLED:
    #   wait = SHOPIFY_RETRY_BACKOFF_SECONDS * 2^attempt, capped at 30s
    SHOPIFY_MAX_RETRIES = _env_int("SHOPIFY_MAX_RETRIES", 3)
    SHOPIFY_RETRY_BACKOFF_SECONDS = _env_float("SHOPIFY_RETRY_BACKOFF_SECONDS", 1.0)

    # ==========================================================================
    # Catalog fetch limits
    # ==========================================================================
    COLLECTIONS_PAGE_SIZE = _env_int("COLLECTIONS_PAGE_SIZE", 50)
    PRODUCTS_PAGE_SIZE = _env_int("PRODUCTS_PAGE_SIZE", 100)
    PRODUCTS_FETCH_LIMIT = _env_int("PRODUCTS_FETCH_LIMIT", 250)
    VARIANTS_PER_PRODUCT = _env_int("VARIANTS_PER_PRODUCT", 10)
    ORDER_LINE_ITEMS_LIMIT = _env_int("ORDER_LINE_ITEMS_LIMIT", 50)

    # Rows per page in the admin product table
    ADMIN_PAGE_SIZE = _env_int("ADMIN_PAGE_SIZE", 50)

    # ==========================================================================
    # Price updates
    # ==========================================================================
    # "bulk": one productVariantsBulkUpdate per product
    # "single": one productVariantUpdate per qualifying variant
    PRICE_UPDATE_MODE = os.environ.get("PRICE_UPDATE_MODE", "bulk")

    # 1 reproduces the sequential loop of the first release
    PRICE_UPDATE_MAX_WORKERS = _env_int("PRICE_UPDATE_MAX_WORKERS", 4)

    # Empty: any positive weight qualifies. Set e.g. "GRAMS" to require a unit.
    PRICE_UPDATE_REQUIRED_WEIGHT_UNIT = os.environ.get("PRICE_UPDATE_REQUIRED_WEIGHT_UNIT", "") or None

    # Finished price jobs kept for status polling; older ones are dropped
    PRICE_JOB_HISTORY_LIMIT = _env_int("PRICE_JOB_HISTORY_LIMIT", 100)

    # ==========================================================================
    # Print documents
    # ==========================================================================
    # Print pages are loaded inside the Shopify admin iframe
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get("CORS_ALLOWED_ORIGINS", "https://admin.shopify.com").split(",")
        if origin.strip()
    ]

    BUSINESS_NAME = os.environ.get("BUSINESS_NAME", "Dubai Jewellers")
    BUSINESS_ADDRESS = os.environ.get("BUSINESS_ADDRESS", "2700 N Park Dr, Unit #19")
    BUSINESS_CITY = os.environ.get("BUSINESS_CITY", "Brampton, ON L6S 0E9")
    BUSINESS_PHONE = os.environ.get("BUSINESS_PHONE", "416-465-1200")
    BUSINESS_LOGO_URL = os.environ.get("BUSINESS_LOGO_URL", "")


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "None"  # embedded in the Shopify admin iframe
    PERMANENT_SESSION_LIFETIME = 3600


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    SHOPIFY_SHOP_DOMAIN = "test-shop.myshopify.com"
    SHOPIFY_ACCESS_TOKEN = "shpat_test"
    SHOPIFY_MAX_RETRIES = 1
    SHOPIFY_RETRY_BACKOFF_SECONDS = 0.0
    PRICE_UPDATE_MAX_WORKERS = 2
