"""
Weight-based price computation.

    new_price = round(weight_value * multiplier, 2)

Rounding is half-up on Decimal values, matching what staff see when they
work the numbers out by hand. Only variants with a positive weight
qualify; a configured unit (e.g. "GRAMS") narrows that further.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, List, Optional

from core.exceptions import ValidationError
from models.catalog import Product, Variant
from models.price_update import ProductUpdatePlan, VariantPriceUpdate


CENTS = Decimal("0.01")
INVALID_MULTIPLIER_MESSAGE = "Please enter a valid multiplier"


def parse_multiplier(raw: Optional[str]) -> Decimal:
    """
    Parse the multiplier typed by the user.

    Raises:
        ValidationError: If the value is empty, not a number, NaN or infinite
    """
    text = (str(raw) if raw is not None else "").strip()
    if not text:
        raise ValidationError(INVALID_MULTIPLIER_MESSAGE, field="multiplier")
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValidationError(INVALID_MULTIPLIER_MESSAGE, field="multiplier")
    if not value.is_finite():
        raise ValidationError(INVALID_MULTIPLIER_MESSAGE, field="multiplier")
    return value


def compute_price(weight_value: Decimal, multiplier: Decimal) -> str:
    """Return the new price as a two-decimal string."""
    return str((Decimal(weight_value) * multiplier).quantize(CENTS, rounding=ROUND_HALF_UP))


def variant_qualifies(variant: Variant, required_unit: Optional[str] = None) -> bool:
    """A variant qualifies iff it has a positive weight (in the required unit, if any)."""
    if variant.weight is None or not variant.weight.is_positive:
        return False
    if required_unit and variant.weight.unit.upper() != required_unit.upper():
        return False
    return True


def plan_product_update(
    product: Product,
    multiplier: Decimal,
    required_unit: Optional[str] = None
) -> ProductUpdatePlan:
    """Compute new prices for the qualifying variants of one product."""
    updates = tuple(
        VariantPriceUpdate(id=v.id, price=compute_price(v.weight.value, multiplier))
        for v in product.variants
        if variant_qualifies(v, required_unit)
    )
    return ProductUpdatePlan(product_id=product.id, product_title=product.title, variants=updates)


def plan_updates(
    products: Iterable[Product],
    multiplier: Decimal,
    required_unit: Optional[str] = None
) -> List[ProductUpdatePlan]:
    """Plans for every product, including empty ones (callers skip those)."""
    return [plan_product_update(p, multiplier, required_unit) for p in products]


def price_per_unit(variant: Optional[Variant]) -> Optional[str]:
    """
    Current price divided by weight, i.e. the multiplier in effect today.

    Shown in the admin table as "Current Modifier".
    """
    if variant is None or variant.weight is None or not variant.weight.is_positive:
        return None
    try:
        price = Decimal(variant.price)
    except InvalidOperation:
        return None
    return str((price / variant.weight.value).quantize(CENTS, rounding=ROUND_HALF_UP))
