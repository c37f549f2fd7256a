"""
Catalog data models (collections, products, variants).

These are read-only snapshots of Shopify data, fetched per request and
discarded. Each model is built from a GraphQL node with ``from_node()``,
which validates the fields the app depends on and raises
MalformedResponseError when they are missing. Optional fields (a variant's
weight, a collection's product count) default instead of failing.

``from_dict()`` accepts both the GraphQL node shape and the flattened
shape produced by ``to_dict()``, because the admin page posts products
back in the form it received them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from core.exceptions import MalformedResponseError


PRODUCT_STATUSES = ("active", "draft", "archived")


def edge_nodes(connection: Any, path: str) -> List[Dict[str, Any]]:
    """
    Return the ``node`` objects of a GraphQL connection.

    Args:
        connection: Object with an ``edges`` list
        path: Dotted path used in error messages

    Raises:
        MalformedResponseError: If the connection or an edge is malformed
    """
    if not isinstance(connection, dict) or not isinstance(connection.get("edges"), list):
        raise MalformedResponseError(f"Expected a connection with edges at '{path}'", path=path)

    nodes = []
    for index, edge in enumerate(connection["edges"]):
        node = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(node, dict):
            raise MalformedResponseError(f"Edge {index} at '{path}' has no node", path=f"{path}.edges[{index}]")
        nodes.append(node)
    return nodes


def require(node: Dict[str, Any], key: str, path: str) -> Any:
    """Return ``node[key]`` or raise MalformedResponseError."""
    value = node.get(key) if isinstance(node, dict) else None
    if value is None:
        raise MalformedResponseError(f"Missing '{key}' at '{path}'", path=f"{path}.{key}")
    return value


@dataclass(frozen=True)
class Weight:
    """Weight of a variant's inventory item."""

    value: Decimal
    unit: str

    @classmethod
    def from_measurement(cls, inventory_item: Optional[Dict[str, Any]]) -> Optional["Weight"]:
        """
        Extract ``inventoryItem.measurement.weight``.

        Returns None when any level is absent or the value is not numeric;
        a variant without a weight is legal, it just never qualifies for a
        price update.
        """
        measurement = inventory_item.get("measurement") if isinstance(inventory_item, dict) else None
        weight = measurement.get("weight") if isinstance(measurement, dict) else None
        if not isinstance(weight, dict) or weight.get("value") is None:
            return None
        try:
            value = Decimal(str(weight["value"]))
        except InvalidOperation:
            return None
        if not value.is_finite():
            return None
        return cls(value=value, unit=str(weight.get("unit") or ""))

    @property
    def is_positive(self) -> bool:
        return self.value > 0

    def display(self) -> str:
        """Render as "<value> <unit>", e.g. "10 GRAMS"."""
        return f"{self.value.normalize():f} {self.unit}".strip()

    def to_dict(self) -> Dict[str, Any]:
        return {"value": float(self.value), "unit": self.unit}


@dataclass(frozen=True)
class Variant:
    """A sellable configuration of a product."""

    id: str
    price: str
    weight: Optional[Weight] = None

    @classmethod
    def from_node(cls, node: Dict[str, Any], path: str = "variant") -> "Variant":
        return cls(
            id=require(node, "id", path),
            price=str(require(node, "price", path)),
            weight=Weight.from_measurement(node.get("inventoryItem")),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: str = "variant") -> "Variant":
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected an object at '{path}'", path=path)
        if "inventoryItem" in data:
            return cls.from_node(data, path)

        weight = None
        if isinstance(data.get("weight"), dict):
            weight = Weight.from_measurement({"measurement": {"weight": data["weight"]}})
        return cls(
            id=require(data, "id", path),
            price=str(data.get("price") or "0.00"),
            weight=weight,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "price": self.price,
            "weight": self.weight.to_dict() if self.weight else None,
        }


@dataclass(frozen=True)
class Product:
    """A product with its (capped) list of variants."""

    id: str
    title: str
    handle: str = ""
    status: str = "active"
    variants: Tuple[Variant, ...] = field(default_factory=tuple)

    @classmethod
    def from_node(cls, node: Dict[str, Any], path: str = "product") -> "Product":
        variant_nodes = edge_nodes(require(node, "variants", path), f"{path}.variants")
        return cls(
            id=require(node, "id", path),
            title=require(node, "title", path),
            handle=str(node.get("handle") or ""),
            status=str(node.get("status") or "active").lower(),
            variants=tuple(
                Variant.from_node(v, f"{path}.variants[{i}]") for i, v in enumerate(variant_nodes)
            ),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        """
        Build from a posted product.

        Accepts a GraphQL edge (``{"node": ...}``), a GraphQL node (variants
        as a connection) or the ``to_dict()`` shape (variants as a list).
        """
        if not isinstance(data, dict):
            raise MalformedResponseError("Expected an object at 'product'", path="product")
        if "node" in data and isinstance(data["node"], dict):
            data = data["node"]

        variants = data.get("variants") or []
        if isinstance(variants, dict):
            return cls.from_node(data)
        if not isinstance(variants, list):
            raise MalformedResponseError("Expected a list at 'product.variants'", path="product.variants")

        return cls(
            id=require(data, "id", "product"),
            title=str(data.get("title") or ""),
            handle=str(data.get("handle") or ""),
            status=str(data.get("status") or "active").lower(),
            variants=tuple(
                Variant.from_dict(v, f"product.variants[{i}]") for i, v in enumerate(variants)
            ),
        )

    @property
    def has_weight(self) -> bool:
        """True if at least one variant has a positive weight."""
        return any(v.weight is not None and v.weight.is_positive for v in self.variants)

    @property
    def first_variant(self) -> Optional[Variant]:
        return self.variants[0] if self.variants else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "handle": self.handle,
            "status": self.status,
            "hasWeight": self.has_weight,
            "variants": [v.to_dict() for v in self.variants],
        }


@dataclass(frozen=True)
class Collection:
    """A curated group of products, as listed in the selector."""

    id: str
    title: str
    handle: str = ""
    product_count: int = 0

    @classmethod
    def from_node(cls, node: Dict[str, Any], path: str = "collection") -> "Collection":
        count = (node.get("productsCount") or {}).get("count", 0)
        return cls(
            id=require(node, "id", path),
            title=require(node, "title", path),
            handle=str(node.get("handle") or ""),
            product_count=int(count or 0),
        )

    @property
    def label(self) -> str:
        return f"{self.title} ({self.product_count} products)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "handle": self.handle,
            "productCount": self.product_count,
            "label": self.label,
        }
