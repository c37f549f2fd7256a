"""
Extension panel routes.

Handles:
- /extensions/print-action      - Document checkboxes for an order
- /extensions/weight-multiplier - Multiplier form for a product

The panels are small server-rendered pages; the print action's iframe
source is the ``/print`` URL built from the ticked boxes.
"""

from flask import Blueprint, current_app, render_template, request

from modules.extensions import PrintActionState, apply_weight_multiplier
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

extensions_bp = Blueprint("extensions", __name__, url_prefix="/extensions")


@extensions_bp.route("/print-action", methods=["GET"])
def print_action():
    """Print-action panel; re-rendered each time a checkbox changes."""
    state = PrintActionState.from_args(request.args)
    return render_template("extensions/print_action.html", state=state)


@extensions_bp.route("/weight-multiplier", methods=["GET", "POST"])
def weight_multiplier():
    """
    Weight multiplier block.

    GET: Display the form for ?productId=
    POST: Apply the multiplier and show the outcome
    """
    product_id = (request.values.get("productId") or "").strip()
    multiplier = (request.form.get("multiplier") or "").strip()
    result = None

    if request.method == "POST":
        result = apply_weight_multiplier(
            current_app.config["CATALOG_SERVICE"],
            current_app.config["PRICE_UPDATE_SERVICE"],
            product_id,
            multiplier,
        )

    return render_template(
        "extensions/weight_block.html",
        product_id=product_id,
        multiplier=multiplier,
        result=result,
    )
