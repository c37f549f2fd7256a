"""
Unit tests for catalog, order and price update models.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from core.exceptions import MalformedResponseError
from models.catalog import Collection, Product, Variant, Weight, edge_nodes
from models.order import Address, Order, order_gid
from models.price_update import (
    PriceJobRecord,
    PriceJobStatus,
    PriceUpdateBatchResult,
    ProductUpdateOutcome,
)


# Fixtures

def variant_node(variant_id, price, weight=None, unit="GRAMS"):
    node = {"id": variant_id, "price": price, "inventoryItem": {"measurement": {"weight": None}}}
    if weight is not None:
        node["inventoryItem"]["measurement"]["weight"] = {"unit": unit, "value": weight}
    return node


@pytest.fixture
def product_node():
    return {
        "id": "gid://shopify/Product/1",
        "title": "Gold Ring",
        "handle": "gold-ring",
        "status": "ACTIVE",
        "variants": {"edges": [
            {"node": variant_node("v1", "5.00", 10)},
            {"node": variant_node("v2", "3.00", 0)},
        ]},
    }


@pytest.fixture
def order_node():
    return {
        "id": "gid://shopify/Order/1001",
        "name": "#1001",
        "createdAt": "2024-03-05T14:30:00Z",
        "subtotalPriceSet": {"shopMoney": {"amount": "100.00", "currencyCode": "CAD"}},
        "totalTaxSet": {"shopMoney": {"amount": "13.00", "currencyCode": "CAD"}},
        "totalPriceSet": {"shopMoney": {"amount": "108.00", "currencyCode": "CAD"}},
        "totalDiscountsSet": {"shopMoney": {"amount": "5.00", "currencyCode": "CAD"}},
        "totalShippingPriceSet": {"shopMoney": {"amount": "0.00", "currencyCode": "CAD"}},
        "customer": {"firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com"},
        "shippingAddress": {
            "firstName": "Ada", "lastName": "Lovelace", "address1": "1 Main St", "address2": None,
            "city": "Toronto", "province": "ON", "country": "Canada", "zip": "M5V 1A1",
        },
        "lineItems": {"edges": [
            {"node": {
                "title": "Gold Ring",
                "quantity": 2,
                "originalUnitPriceSet": {"shopMoney": {"amount": "50.00"}},
                "discountedUnitPriceSet": {"shopMoney": {"amount": "47.50"}},
                "variant": {"inventoryItem": {"measurement": {"weight": {"unit": "GRAMS", "value": 4.5}}}},
                "product": {"description": "18k", "featuredImage": {"url": "https://cdn/ring.jpg", "altText": "Ring"}},
            }},
        ]},
    }


class TestCatalogModels:
    """Test parsing of collections, products and variants."""

    def test_product_from_node(self, product_node):
        product = Product.from_node(product_node)

        assert product.status == "active"
        assert product.handle == "gold-ring"
        assert [v.id for v in product.variants] == ["v1", "v2"]
        assert product.variants[0].weight == Weight(Decimal("10"), "GRAMS")
        assert product.has_weight is True

    def test_product_without_weight(self, product_node):
        product_node["variants"]["edges"] = [{"node": variant_node("v1", "5.00")}]
        product = Product.from_node(product_node)

        assert product.variants[0].weight is None
        assert product.has_weight is False

    def test_missing_variants_connection_is_malformed(self, product_node):
        del product_node["variants"]
        with pytest.raises(MalformedResponseError):
            Product.from_node(product_node)

    def test_edge_without_node_is_malformed(self):
        with pytest.raises(MalformedResponseError) as exc_info:
            edge_nodes({"edges": [{"cursor": "x"}]}, "products")
        assert exc_info.value.details["path"] == "products.edges[0]"

    def test_from_dict_accepts_to_dict_shape(self, product_node):
        product = Product.from_node(product_node)
        assert Product.from_dict(product.to_dict()) == product

    def test_from_dict_accepts_graphql_edge(self, product_node):
        assert Product.from_dict({"node": product_node}) == Product.from_node(product_node)

    @pytest.mark.parametrize("variants", ["abc", 5, ["v1"], [None]])
    def test_from_dict_rejects_malformed_variants(self, variants):
        with pytest.raises(MalformedResponseError):
            Product.from_dict({"id": "p1", "title": "Ring", "variants": variants})

    def test_from_dict_ignores_malformed_inventory_item(self):
        variant = Variant.from_dict({"id": "v1", "price": "1.00", "inventoryItem": "abc"})
        assert variant.weight is None

    def test_non_numeric_weight_is_ignored(self):
        variant = Variant.from_node(variant_node("v1", "1.00", "heavy"))
        assert variant.weight is None

    def test_collection_label(self):
        collection = Collection.from_node({
            "id": "gid://shopify/Collection/1",
            "title": "Rings",
            "productsCount": {"count": 12},
        })
        assert collection.label == "Rings (12 products)"
        assert collection.to_dict()["productCount"] == 12


class TestOrderModel:
    """Test order parsing for documents."""

    def test_from_node(self, order_node):
        order = Order.from_node(order_node)

        assert order.name == "#1001"
        assert order.subtotal == Decimal("100.00")
        assert order.discount == Decimal("5.00")
        assert order.currency_code == "CAD"
        assert order.customer.full_name == "Ada Lovelace"
        assert order.created_at == datetime.fromisoformat("2024-03-05T14:30:00+00:00")
        assert order.display_date == "3/5/2024"

    def test_line_items(self, order_node):
        item = Order.from_node(order_node).line_items[0]

        assert item.quantity == 2
        assert item.unit_price == Decimal("50.00")
        assert item.discounted_unit_price == Decimal("47.50")
        assert item.line_total == Decimal("100.00")
        assert item.image_url == "https://cdn/ring.jpg"
        assert item.weight.display() == "4.5 GRAMS"

    def test_total_weight(self, order_node):
        assert Order.from_node(order_node).total_weight == "9 GRAMS"

    def test_absent_money_set_is_zero(self, order_node):
        del order_node["totalDiscountsSet"]
        assert Order.from_node(order_node).discount == Decimal("0")

    def test_invalid_money_is_malformed(self, order_node):
        order_node["totalTaxSet"]["shopMoney"]["amount"] = "lots"
        with pytest.raises(MalformedResponseError):
            Order.from_node(order_node)

    def test_missing_name_is_malformed(self, order_node):
        del order_node["name"]
        with pytest.raises(MalformedResponseError):
            Order.from_node(order_node)

    def test_address_lines(self):
        address = Address(address1="1 Main St", city="Toronto", province="ON", zip="M5V", country="Canada")
        assert address.city_line == "Toronto, ON M5V"
        assert address.one_line == "1 Main St, Toronto, ON M5V, Canada"
        assert Address().is_empty is True

    @pytest.mark.parametrize("raw, expected", [
        ("1001", "gid://shopify/Order/1001"),
        (" 1001 ", "gid://shopify/Order/1001"),
        ("gid://shopify/Order/1001", "gid://shopify/Order/1001"),
    ])
    def test_order_gid(self, raw, expected):
        assert order_gid(raw) == expected


class TestPriceUpdateModels:
    """Test batch results and job records."""

    def test_batch_result_from_outcomes(self):
        result = PriceUpdateBatchResult.from_outcomes([
            ProductUpdateOutcome.success("A", 2),
            ProductUpdateOutcome.failure("B", "Price is invalid"),
            ProductUpdateOutcome.success("C", 1),
        ])

        assert result.to_dict() == {
            "results": [
                {"productTitle": "A", "variantsUpdated": 2},
                {"productTitle": "C", "variantsUpdated": 1},
            ],
            "errors": ["B: Price is invalid"],
        }
        assert result.variants_updated == 3
        assert result.has_successes is True

    def test_job_record_to_dict(self):
        record = PriceJobRecord(job_id="abc", product_count=2, multiplier="2.5")
        data = record.to_dict()

        assert data["status"] == "running"
        assert data["finishedAt"] is None
        assert "results" not in data
        assert record.is_finished is False

        record.status = PriceJobStatus.COMPLETED
        record.result = PriceUpdateBatchResult()
        assert record.to_dict()["results"] == []
        assert record.is_finished is True
