"""
Printable order documents.

One Jinja2 page template renders every document kind; a DocumentLayout
per kind decides which blocks, columns and money rows appear. Rendering
is a pure function of (kind, order, business info) and needs no Flask
application context, so the print routes and the tests call it directly.

    html = render_documents([DocumentKind.INVOICE, DocumentKind.DELIVERY], order, business)

Each page is wrapped in ``<section class="page ...">``; the print
stylesheet breaks pages after every section so the browser's print dialog
treats each document as its own page set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from core.exceptions import ValidationError
from models.catalog import Weight
from models.order import Order


TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
CENTS = Decimal("0.01")


class DocumentKind(Enum):
    """Printable document types, in the spelling used by query strings."""

    INVOICE = "invoice"
    APPRAISAL = "appraisal"
    DELIVERY = "delivery"
    PACKING_SLIP = "packing-slip"
    RECEIPT = "receipt"


# Labels used by the first print extension ("Invoice,Packing Slip") normalize
# onto these keys as well.
_KIND_ALIASES = {
    "invoice": DocumentKind.INVOICE,
    "appraisal": DocumentKind.APPRAISAL,
    "gold-appraisal": DocumentKind.APPRAISAL,
    "delivery": DocumentKind.DELIVERY,
    "delivery-receipt": DocumentKind.DELIVERY,
    "packing-slip": DocumentKind.PACKING_SLIP,
    "packingslip": DocumentKind.PACKING_SLIP,
    "receipt": DocumentKind.RECEIPT,
}


def parse_document_kinds(raw: Optional[str]) -> List[DocumentKind]:
    """
    Parse a comma-separated document selector.

    Matching is case-insensitive and treats spaces and underscores as
    hyphens. Duplicates are dropped; request order is kept.

    Raises:
        ValidationError: If the selector is empty or names an unknown kind
    """
    kinds: List[DocumentKind] = []
    for part in (raw or "").split(","):
        key = "-".join(part.strip().lower().replace("_", " ").split())
        if not key:
            continue
        kind = _KIND_ALIASES.get(key)
        if kind is None:
            raise ValidationError(f"Unknown document type: {part.strip()}", field="documents")
        if kind not in kinds:
            kinds.append(kind)

    if not kinds:
        raise ValidationError("Please select at least one document to print", field="documents")
    return kinds


@dataclass(frozen=True)
class BusinessInfo:
    """Identity printed in the appraisal header."""

    name: str = ""
    address: str = ""
    city: str = ""
    phone: str = ""
    logo_url: str = ""

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "BusinessInfo":
        return cls(
            name=config.get("BUSINESS_NAME", ""),
            address=config.get("BUSINESS_ADDRESS", ""),
            city=config.get("BUSINESS_CITY", ""),
            phone=config.get("BUSINESS_PHONE", ""),
            logo_url=config.get("BUSINESS_LOGO_URL", ""),
        )


@dataclass(frozen=True)
class DocumentLayout:
    """What one document kind shows."""

    kind: DocumentKind
    title: str
    columns: Tuple[Tuple[str, str], ...]
    """(cell key, header label) pairs, see page.html's ``cell`` macro."""

    show_shipping: bool = True
    show_subtotal: bool = True
    show_adjustments: bool = True
    """Discount / shipping / tax rows, each only when > 0."""
    show_tax: bool = True
    show_total: bool = True
    total_label: str = "Total"
    business_header: bool = False
    address_in_customer_block: bool = False
    signature_block: bool = False
    disclaimers_top: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    disclaimers_bottom: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
    footer: str = "Thank you for your business!"

    def totals(self, order: Order) -> List[Tuple[str, str, bool]]:
        """
        Money rows as (label, formatted amount, is_grand_total).

        Discount, shipping and tax rows only appear when the amount is
        greater than zero.
        """
        rows: List[Tuple[str, str, bool]] = []
        if self.show_subtotal:
            rows.append(("Subtotal", format_money(order.subtotal), False))
        if self.show_adjustments:
            if order.discount > 0:
                rows.append(("Total Discounts", f"- {format_money(order.discount)}", False))
            if order.shipping > 0:
                rows.append(("Total Shipping", format_money(order.shipping), False))
            if self.show_tax and order.tax > 0:
                rows.append(("Tax", format_money(order.tax), False))
        if self.show_total:
            rows.append((self.total_label, format_money(order.total), True))
        return rows

    @property
    def shows_money(self) -> bool:
        return self.show_total


APPRAISAL_DISCLAIMERS_TOP = (
    ("Valuation Basis",
     "This appraisal represents estimated value based on current market conditions and our "
     "professional assessment. Values are dependent on current gold prices and market fluctuations."),
    ("No Liability",
     "We assume no liability for actions taken based on this appraisal. This document is for "
     "informational purposes only and not a guarantee of value or purchase commitment."),
)

APPRAISAL_DISCLAIMERS_BOTTOM = (
    ("Purchase Policy",
     "We do not guarantee to purchase items at appraised value. Purchase decisions are at our "
     "sole discretion and subject to verification and market conditions."),
    ("Professional Opinion",
     "This represents our professional opinion based on visual inspection. Not certified for "
     "insurance, legal, or tax purposes without additional verification."),
)

LAYOUTS = {
    DocumentKind.INVOICE: DocumentLayout(
        kind=DocumentKind.INVOICE,
        title="Invoice",
        columns=(
            ("item", "Item"),
            ("quantity", "Quantity"),
            ("unit_price", "Unit Price"),
            ("line_total", "Total"),
            ("description", "Description"),
        ),
    ),
    DocumentKind.APPRAISAL: DocumentLayout(
        kind=DocumentKind.APPRAISAL,
        title="Appraisal",
        columns=(
            ("image", "Image"),
            ("item", "Item Name"),
            ("weight", "Weight"),
            ("quantity", "Quantity"),
            ("unit_price", "Unit Price"),
            ("line_total", "Total Value"),
        ),
        show_shipping=False,
        show_tax=False,
        total_label="Total Appraised Value",
        business_header=True,
        address_in_customer_block=True,
        disclaimers_top=APPRAISAL_DISCLAIMERS_TOP,
        disclaimers_bottom=APPRAISAL_DISCLAIMERS_BOTTOM,
    ),
    DocumentKind.DELIVERY: DocumentLayout(
        kind=DocumentKind.DELIVERY,
        title="Delivery Receipt",
        columns=(
            ("item", "Item"),
            ("weight", "Weight"),
            ("quantity", "Quantity"),
        ),
        show_subtotal=False,
        show_adjustments=False,
        signature_block=True,
        footer="Please retain this receipt for your records.",
    ),
    DocumentKind.PACKING_SLIP: DocumentLayout(
        kind=DocumentKind.PACKING_SLIP,
        title="Packing Slip",
        columns=(
            ("item", "Item"),
            ("weight", "Weight"),
            ("quantity", "Quantity"),
            ("description", "Description"),
        ),
        show_subtotal=False,
        show_adjustments=False,
        show_total=False,
    ),
    DocumentKind.RECEIPT: DocumentLayout(
        kind=DocumentKind.RECEIPT,
        title="Receipt",
        columns=(
            ("item", "Item"),
            ("quantity", "Quantity"),
            ("unit_price", "Unit Price"),
            ("line_total", "Total"),
        ),
        show_shipping=False,
    ),
}


# =============================================================================
# FORMATTING
# =============================================================================

def format_money(value: Decimal) -> str:
    """"$1234.50" - always exactly two decimals."""
    return f"${Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)}"


def format_weight(weight: Optional[Weight]) -> str:
    if weight is None or not weight.is_positive:
        return "N/A"
    return weight.display()


# =============================================================================
# RENDERING
# =============================================================================

_environment: Optional[Environment] = None


def get_environment() -> Environment:
    """Jinja environment for the document templates (created once)."""
    global _environment
    if _environment is None:
        env = Environment(
            loader=FileSystemLoader(str(TEMPLATES_DIR)),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters["money"] = format_money
        env.filters["weight"] = format_weight
        _environment = env
    return _environment


def render_document(kind: DocumentKind, order: Order, business: Optional[BusinessInfo] = None) -> Markup:
    """Render one document page (a ``<section class="page">`` fragment)."""
    layout = LAYOUTS[kind]
    template = get_environment().get_template("documents/page.html")
    return Markup(template.render(
        layout=layout,
        order=order,
        business=business or BusinessInfo(),
        totals=layout.totals(order),
    ))


def render_documents(
    kinds: Iterable[DocumentKind],
    order: Order,
    business: Optional[BusinessInfo] = None,
    title: Optional[str] = None
) -> str:
    """
    Render the requested documents into one printable HTML page.

    Pages are rendered independently and concatenated in the given order.
    """
    kinds = list(kinds)
    pages = [render_document(kind, order, business) for kind in kinds]
    if title is None:
        title = LAYOUTS[kinds[0]].title if len(kinds) == 1 else "Print Documents"
    template = get_environment().get_template("documents/print.html")
    return template.render(title=f"{title} - {order.name}", pages=pages)
