"""
Printable document routes.

Handles:
- /print     - One or more documents for an order (documents= or printType=)
- /appraisal - Appraisal page for an order

Both are loaded cross-origin by the admin print action, CORS is
configured for them in create_app().
"""

from flask import Blueprint, current_app, make_response, request
from markupsafe import escape

from core.exceptions import ConfigurationError, NotFoundError, ShopifyAPIError, ValidationError
from modules.documents import BusinessInfo, DocumentKind, parse_document_kinds, render_documents
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

print_bp = Blueprint("print", __name__)


def _html_response(body: str, status: int = 200):
    response = make_response(body, status)
    response.headers["Content-Type"] = "text/html; charset=utf-8"
    return response


def _error_page(message: str, status: int):
    return _html_response(f"<!DOCTYPE html><html><body><p>{escape(message)}</p></body></html>", status)


def _render_for_order(order_id: str, kinds, title=None):
    order_service = current_app.config["ORDER_SERVICE"]
    try:
        order = order_service.get_order(order_id)
    except NotFoundError as e:
        logger.warning(f"Print requested for unknown order: {e}")
        return _error_page("Order not found", 404)
    except (ShopifyAPIError, ConfigurationError) as e:
        logger.error(f"Failed to load order {order_id}: {e}")
        return _error_page(f"Could not load order: {e.message}", 502)

    business = BusinessInfo.from_config(current_app.config)
    html = render_documents(kinds, order, business, title=title)
    logger.info(f"Rendered {', '.join(k.value for k in kinds)} for order {order.name}")
    return _html_response(html)


@print_bp.route("/print", methods=["GET"])
def print_documents():
    """
    Render the requested documents for one order.

    Query:
        orderId: numeric id or gid://shopify/Order/<n>
        documents | printType: comma-separated kinds
    """
    order_id = (request.args.get("orderId") or "").strip()
    selector = request.args.get("documents") or request.args.get("printType")

    if not order_id:
        return _error_page("Missing orderId", 400)

    try:
        kinds = parse_document_kinds(selector)
    except ValidationError as e:
        return _error_page(e.message, 400)

    return _render_for_order(order_id, kinds)


@print_bp.route("/appraisal", methods=["GET"])
def appraisal():
    """Appraisal document for one order."""
    order_id = (request.args.get("orderId") or "").strip()
    if not order_id:
        return _error_page("Missing orderId", 400)
    return _render_for_order(order_id, [DocumentKind.APPRAISAL], title="Gold Appraisal")
