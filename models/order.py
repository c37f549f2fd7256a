"""
Order data models for printable documents.

An Order is a read-only snapshot fetched for one print request. Money
amounts are parsed into Decimal at the boundary so the templates never do
arithmetic on strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from core.exceptions import MalformedResponseError
from .catalog import Weight, edge_nodes, require


ORDER_GID_PREFIX = "gid://shopify/Order/"


def order_gid(order_id: str) -> str:
    """
    Normalize an order identifier to a Shopify GID.

    The print action passes a full GID; links pasted by staff often carry
    only the numeric id.
    """
    order_id = (order_id or "").strip()
    if order_id.isdigit():
        return f"{ORDER_GID_PREFIX}{order_id}"
    return order_id


def parse_money(money_set: Optional[Dict[str, Any]], path: str) -> Decimal:
    """
    Parse ``{shopMoney: {amount}}`` into a Decimal.

    An absent money set means zero (Shopify omits e.g. discounts on some
    API versions); a present but non-numeric amount is malformed.
    """
    if not money_set:
        return Decimal("0")
    amount = (money_set.get("shopMoney") or {}).get("amount")
    if amount is None:
        return Decimal("0")
    try:
        return Decimal(str(amount))
    except InvalidOperation:
        raise MalformedResponseError(f"Invalid money amount at '{path}': {amount!r}", path=path)


@dataclass(frozen=True)
class Customer:
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @classmethod
    def from_node(cls, node: Optional[Dict[str, Any]]) -> "Customer":
        node = node or {}
        return cls(
            first_name=node.get("firstName") or "",
            last_name=node.get("lastName") or "",
            email=node.get("email") or "",
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Address:
    first_name: str = ""
    last_name: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    province: str = ""
    country: str = ""
    zip: str = ""

    @classmethod
    def from_node(cls, node: Optional[Dict[str, Any]]) -> "Address":
        node = node or {}
        return cls(
            first_name=node.get("firstName") or "",
            last_name=node.get("lastName") or "",
            address1=node.get("address1") or "",
            address2=node.get("address2") or "",
            city=node.get("city") or "",
            province=node.get("province") or "",
            country=node.get("country") or "",
            zip=node.get("zip") or "",
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def city_line(self) -> str:
        """"City, Province Zip" without dangling separators."""
        region = f"{self.province} {self.zip}".strip()
        return ", ".join(part for part in (self.city, region) if part)

    @property
    def one_line(self) -> str:
        """Single-line address for the appraisal customer block."""
        parts = (self.address1, self.address2, self.city_line, self.country)
        return ", ".join(part for part in parts if part.strip())

    @property
    def is_empty(self) -> bool:
        return not self.one_line


@dataclass(frozen=True)
class LineItem:
    title: str
    quantity: int
    unit_price: Decimal
    discounted_unit_price: Decimal
    description: str = ""
    image_url: str = ""
    image_alt: str = ""
    weight: Optional[Weight] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any], path: str = "lineItem") -> "LineItem":
        product = node.get("product") or {}
        image = product.get("featuredImage") or {}
        variant = node.get("variant") or {}
        unit_price = parse_money(node.get("originalUnitPriceSet"), f"{path}.originalUnitPriceSet")
        discounted = node.get("discountedUnitPriceSet")
        return cls(
            title=require(node, "title", path),
            quantity=int(require(node, "quantity", path)),
            unit_price=unit_price,
            discounted_unit_price=(
                parse_money(discounted, f"{path}.discountedUnitPriceSet") if discounted else unit_price
            ),
            description=product.get("description") or "",
            image_url=image.get("url") or "",
            image_alt=image.get("altText") or "",
            weight=Weight.from_measurement(variant.get("inventoryItem")),
        )

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Order:
    """Snapshot of an order as needed by the document templates."""

    id: str
    name: str
    created_at: datetime
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    discount: Decimal
    total: Decimal
    currency_code: str = "USD"
    customer: Customer = field(default_factory=Customer)
    shipping_address: Address = field(default_factory=Address)
    line_items: Tuple[LineItem, ...] = field(default_factory=tuple)

    @classmethod
    def from_node(cls, node: Dict[str, Any], path: str = "order") -> "Order":
        created_raw = require(node, "createdAt", path)
        try:
            created_at = datetime.fromisoformat(str(created_raw).replace("Z", "+00:00"))
        except ValueError:
            raise MalformedResponseError(f"Invalid createdAt at '{path}': {created_raw!r}", path=f"{path}.createdAt")

        total_set = require(node, "totalPriceSet", path)
        currency = (total_set.get("shopMoney") or {}).get("currencyCode") or "USD"
        items = edge_nodes(require(node, "lineItems", path), f"{path}.lineItems")

        return cls(
            id=node.get("id") or "",
            name=require(node, "name", path),
            created_at=created_at,
            subtotal=parse_money(node.get("subtotalPriceSet"), f"{path}.subtotalPriceSet"),
            tax=parse_money(node.get("totalTaxSet"), f"{path}.totalTaxSet"),
            shipping=parse_money(node.get("totalShippingPriceSet"), f"{path}.totalShippingPriceSet"),
            discount=parse_money(node.get("totalDiscountsSet"), f"{path}.totalDiscountsSet"),
            total=parse_money(total_set, f"{path}.totalPriceSet"),
            currency_code=currency,
            customer=Customer.from_node(node.get("customer")),
            shipping_address=Address.from_node(node.get("shippingAddress")),
            line_items=tuple(
                LineItem.from_node(item, f"{path}.lineItems[{i}]") for i, item in enumerate(items)
            ),
        )

    @property
    def display_date(self) -> str:
        """Date as M/D/YYYY, the format printed on the original documents."""
        return f"{self.created_at.month}/{self.created_at.day}/{self.created_at.year}"

    @property
    def total_weight(self) -> Optional[str]:
        """Sum of line weights when every weighted line shares one unit."""
        weights: List[Tuple[Decimal, str]] = [
            (item.weight.value * item.quantity, item.weight.unit)
            for item in self.line_items
            if item.weight is not None and item.weight.is_positive
        ]
        if not weights or len({unit for _, unit in weights}) != 1:
            return None
        return Weight(value=sum(value for value, _ in weights), unit=weights[0][1]).display()
