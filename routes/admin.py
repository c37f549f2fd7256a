"""
Admin page routes.

Handles:
- GET  /app        - Server-rendered collection/product table
- POST /app        - JSON actions (getProducts, updatePrices) for scripted clients
- POST /app/update - Form submission from the rendered table

The rendered page keeps no server-side state: collection, search, status
filter, page, mode and selection travel in the query string and are
replayed through the selection reducers on every request.
"""

import json
from typing import Optional

import bleach
from flask import (
    Blueprint,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from core.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    ShopifyAPIError,
    ValidationError,
)
from models.catalog import PRODUCT_STATUSES, Product
from models.selection import (
    MODE_COLLECTION,
    MODE_PAGE,
    SELECT_MODES,
    SelectionState,
    apply_update_result,
    go_to_page,
    load_products,
    select_all,
    selected_products,
    set_mode,
    set_status_filter,
    toggle_product,
)
from modules.pricing import price_per_unit
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

admin_bp = Blueprint("admin", __name__)

MAX_QUERY_LENGTH = 200


def _sanitize_text(text: Optional[str], max_length: Optional[int] = None) -> str:
    """Sanitize user input text."""
    if not text:
        return ""
    text = text.strip()
    text = bleach.clean(text, tags=[], strip=True)
    if max_length and len(text) > max_length:
        text = text[:max_length]
    return text


def _parse_page(value) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 1


def _build_state(args, products) -> SelectionState:
    """Replay the view arguments of a request onto a fresh state."""
    state = SelectionState(
        collection_id=_sanitize_text(args.get("collectionId"), MAX_QUERY_LENGTH),
        search_query=_sanitize_text(args.get("searchQuery"), MAX_QUERY_LENGTH),
        page_size=current_app.config.get("ADMIN_PAGE_SIZE", 50),
    )
    state = load_products(state, products)

    mode = args.get("mode")
    if mode in SELECT_MODES:
        state = set_mode(state, mode)
    state = set_status_filter(state, args.getlist("status"))
    # Pagination buttons come after the hidden page field, the last value wins
    pages = args.getlist("page")
    state = go_to_page(state, _parse_page(pages[-1] if pages else None))

    for product_id in args.getlist("selected"):
        state = toggle_product(state, product_id, True)

    op = args.get("op")
    if op == "select_all":
        state = select_all(state, True)
    elif op == "clear_all":
        state = select_all(state, False)
    return state


def _view_params(state: SelectionState) -> dict:
    """Query parameters that reproduce the current view (without selection)."""
    return {
        "collectionId": state.collection_id or None,
        "searchQuery": state.search_query or None,
        "status": sorted(state.status_filter) or None,
        "mode": state.mode,
        "page": state.current_page,
    }


def _get_services():
    return current_app.config["CATALOG_SERVICE"], current_app.config["PRICE_UPDATE_SERVICE"]


# =============================================================================
# RENDERED PAGE
# =============================================================================

@admin_bp.route("/app", methods=["GET"])
def index():
    """
    Admin page: collection selector, filters and the product table.

    Products are fetched fresh on every view.
    """
    catalog_service, _ = _get_services()
    errors = []

    collections = []
    try:
        collections = catalog_service.list_collections()
        logger.info(f"[Loader] Loaded {len(collections)} collections")
    except (ShopifyAPIError, ConfigurationError) as e:
        logger.error(f"[Loader] Error loading collections: {e}")
        errors.append(e.message)

    products = []
    collection_id = _sanitize_text(request.args.get("collectionId"), MAX_QUERY_LENGTH)
    if collection_id:
        try:
            products = catalog_service.list_collection_products(
                collection_id,
                _sanitize_text(request.args.get("searchQuery"), MAX_QUERY_LENGTH),
            )
        except (ShopifyAPIError, ConfigurationError) as e:
            logger.error(f"[Action:getProducts] Error fetching products: {e}")
            errors.append(e.message)

    state = _build_state(request.args, products)

    return render_template(
        "app_index.html",
        collections=collections,
        state=state,
        errors=errors,
        statuses=PRODUCT_STATUSES,
        modes=(MODE_PAGE, MODE_COLLECTION),
        view_params=_view_params(state),
        price_per_unit=price_per_unit,
    )


@admin_bp.route("/app/update", methods=["POST"])
def update():
    """
    Update prices of the products ticked in the rendered table.

    The collection is refetched so prices are computed from current
    weights, then the browser is redirected back to the table, which
    shows the refreshed prices.
    """
    catalog_service, price_update_service = _get_services()
    form = request.form

    collection_id = _sanitize_text(form.get("collectionId"), MAX_QUERY_LENGTH)
    search_query = _sanitize_text(form.get("searchQuery"), MAX_QUERY_LENGTH)
    params = {"collectionId": collection_id or None, "searchQuery": search_query or None}

    try:
        products = []
        if collection_id:
            products = catalog_service.list_collection_products(collection_id, search_query)
        state = _build_state(form, products)
        params = _view_params(state)

        result = price_update_service.run(selected_products(state), form.get("multiplier"))
        message, needs_refresh = apply_update_result(state, result)
        flash(message, "error" if result.errors else "success")
        logger.info(f"[Action:updatePrices] {message} (refresh={needs_refresh})")

    except ValidationError as e:
        flash(e.message, "error")
    except (ShopifyAPIError, ConfigurationError) as e:
        logger.error(f"[Action:updatePrices] Failed: {e}")
        flash(e.message, "error")

    # The selection is not carried over; the reloaded table starts unselected
    return redirect(url_for("admin.index", **params))


# =============================================================================
# JSON ACTIONS
# =============================================================================

@admin_bp.route("/app", methods=["POST"])
def action():
    """
    Form-encoded action endpoint.

    actionType=getProducts  (collectionId, searchQuery)
        -> {products, action}
    actionType=updatePrices (selectedProducts JSON, multiplier)
        -> {results, errors, action}
    """
    action_type = request.form.get("actionType")
    logger.info(f"[Action] Received actionType={action_type}")

    try:
        if action_type == "getProducts":
            return _get_products()
        if action_type == "updatePrices":
            return _update_prices()

        return jsonify({"errors": ["Unknown actionType"]}), 400

    except Exception as e:
        logger.error(f"[Action] Unhandled error: {e}", exc_info=True)
        return jsonify({"errors": ["Unexpected server error"]}), 500


def _get_products():
    catalog_service, _ = _get_services()
    collection_id = _sanitize_text(request.form.get("collectionId"), MAX_QUERY_LENGTH)
    search_query = _sanitize_text(request.form.get("searchQuery"), MAX_QUERY_LENGTH)

    if not collection_id:
        logger.error("[Action:getProducts] Missing collectionId")
        return jsonify({"products": [], "errors": ["Missing collectionId"], "action": "getProducts"}), 400

    try:
        products = catalog_service.list_collection_products(collection_id, search_query)
    except (ShopifyAPIError, ConfigurationError) as e:
        logger.error(f"[Action:getProducts] Error fetching products: {e}")
        return jsonify({"products": [], "errors": [e.message], "action": "getProducts"}), 502

    logger.info(f"[Action:getProducts] searchQuery='{search_query}', products={len(products)}")
    return jsonify({"products": [p.to_dict() for p in products], "action": "getProducts"})


def _parse_selected_products(raw: str):
    """Decode the posted selectedProducts JSON array."""
    try:
        items = json.loads(raw or "[]")
    except ValueError:
        raise ValidationError("selectedProducts must be a JSON array", field="selectedProducts")
    if not isinstance(items, list):
        raise ValidationError("selectedProducts must be a JSON array", field="selectedProducts")

    try:
        return [Product.from_dict(item) for item in items if isinstance(item, dict)]
    except MalformedResponseError as e:
        raise ValidationError(f"Invalid product in selectedProducts: {e.message}", field="selectedProducts")


def _update_prices():
    _, price_update_service = _get_services()
    try:
        products = _parse_selected_products(request.form.get("selectedProducts"))
        logger.info(
            f"[Action:updatePrices] products={len(products)}, "
            f"multiplier={request.form.get('multiplier')}"
        )
        result = price_update_service.run(products, request.form.get("multiplier"))
    except ValidationError as e:
        return jsonify({"results": [], "errors": [e.message], "action": "updatePrices"}), 400

    message, _ = apply_update_result(SelectionState(), result)
    payload = result.to_dict()
    payload.update({"action": "updatePrices", "message": message, "needsRefresh": result.has_successes})
    return jsonify(payload)
