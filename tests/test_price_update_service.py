"""
Unit tests for the price update service.

The ShopContext is mocked so each task receives a Mock client.
"""

import threading
from decimal import Decimal
from unittest.mock import Mock

import pytest

from core.exceptions import (
    PriceUpdateError,
    RateLimitedError,
    UpstreamTimeoutError,
    ValidationError,
)
from core.queries import BULK_UPDATE_VARIANTS, UPDATE_VARIANT
from models.catalog import Product, Variant, Weight
from modules.pricing import plan_product_update
from services.price_update_service import CancellationToken, PriceUpdateService


# Fixtures

def make_product(title, *weights):
    return Product(
        id=f"gid://shopify/Product/{title}",
        title=title,
        variants=tuple(
            Variant(
                id=f"{title}-v{i}",
                price="1.00",
                weight=Weight(Decimal(str(w)), "GRAMS") if w is not None else None,
            )
            for i, w in enumerate(weights)
        ),
    )


def bulk_ok(product_id):
    return {"productVariantsBulkUpdate": {"product": {"id": product_id}, "userErrors": []}}


def bulk_error(*messages):
    return {"productVariantsBulkUpdate": {
        "product": None,
        "userErrors": [{"field": ["price"], "message": m} for m in messages],
    }}


@pytest.fixture
def client():
    client = Mock()
    client.execute.side_effect = lambda query, variables: bulk_ok(variables.get("productId"))
    return client


@pytest.fixture
def shop_context(client):
    context = Mock()
    context.create_client.return_value = client
    return context


@pytest.fixture
def service(shop_context):
    return PriceUpdateService(shop_context, mode="bulk", max_workers=1)


class TestValidation:
    """Test input validation before any network call."""

    def test_invalid_multiplier(self, service, shop_context):
        with pytest.raises(ValidationError) as exc_info:
            service.run([make_product("A", 10)], "abc")
        assert exc_info.value.message == "Please enter a valid multiplier"
        shop_context.create_client.assert_not_called()

    def test_empty_selection(self, service, shop_context):
        with pytest.raises(ValidationError) as exc_info:
            service.run([], "2.5")
        assert exc_info.value.message == "Please select at least one product"
        shop_context.create_client.assert_not_called()

    def test_unknown_mode(self, shop_context):
        with pytest.raises(ValueError):
            PriceUpdateService(shop_context, mode="turbo")


class TestBulkMode:
    """Test one bulk mutation per product."""

    def test_example_update(self, service, client):
        result = service.run([make_product("P", 10, 0)], "2.5")

        client.execute.assert_called_once_with(BULK_UPDATE_VARIANTS, {
            "productId": "gid://shopify/Product/P",
            "variants": [{"id": "P-v0", "price": "25.00"}],
        })
        assert result.to_dict() == {
            "results": [{"productTitle": "P", "variantsUpdated": 1}],
            "errors": [],
        }

    def test_products_without_weight_are_skipped(self, service, client):
        products = [make_product("A", 1), make_product("B", None, 0), make_product("C", 2, 3)]
        result = service.run(products, "2")

        assert client.execute.call_count == 2
        assert result.skipped == 1
        assert [r["productTitle"] for r in result.results] == ["A", "C"]

    def test_user_errors_do_not_abort_siblings(self, service, client):
        def execute(query, variables):
            if variables["productId"].endswith("/B"):
                return bulk_error("Price must be positive", "Too many variants")
            return bulk_ok(variables["productId"])
        client.execute.side_effect = execute

        result = service.run([make_product("A", 1), make_product("B", 1), make_product("C", 1)], "3")

        assert result.to_dict() == {
            "results": [
                {"productTitle": "A", "variantsUpdated": 1},
                {"productTitle": "C", "variantsUpdated": 1},
            ],
            "errors": ["B: Price must be positive, Too many variants"],
        }
        assert result.has_successes is True

    def test_timeout_is_reported_per_product(self, service, client):
        client.execute.side_effect = UpstreamTimeoutError(15)

        result = service.run([make_product("A", 1)], "2")

        assert result.errors == ["A: Shopify request timed out after 15s"]
        assert result.results == []

    def test_malformed_user_errors_do_not_abort_siblings(self, service, client):
        def execute(query, variables):
            if variables["productId"].endswith("/B"):
                return {"productVariantsBulkUpdate": {"userErrors": ["bad shape"]}}
            return bulk_ok(variables["productId"])
        client.execute.side_effect = execute

        result = service.run([make_product("A", 1), make_product("B", 1)], "2")

        assert result.to_dict() == {
            "results": [{"productTitle": "A", "variantsUpdated": 1}],
            "errors": ["B: bad shape"],
        }

    def test_missing_payload_is_reported_per_product(self, service, client):
        def execute(query, variables):
            if variables["productId"].endswith("/A"):
                return {}
            return bulk_ok(variables["productId"])
        client.execute.side_effect = execute

        result = service.run([make_product("A", 1), make_product("B", 1)], "2")

        assert result.results == [{"productTitle": "B", "variantsUpdated": 1}]
        assert result.errors == ["A: Missing 'productVariantsBulkUpdate' in mutation response"]

    def test_unexpected_error_is_reported_per_product(self, service, client):
        def execute(query, variables):
            if variables["productId"].endswith("/A"):
                raise AttributeError("'NoneType' object has no attribute 'get'")
            return bulk_ok(variables["productId"])
        client.execute.side_effect = execute

        result = service.run([make_product("A", 1), make_product("B", 1)], "2")

        assert result.results == [{"productTitle": "B", "variantsUpdated": 1}]
        assert result.errors == ["A: Unexpected error"]
        assert client.close.call_count == 2

        assert result.results == []

    def test_rate_limit_exhaustion_is_reported(self, service, client):
        client.execute.side_effect = RateLimitedError()
        result = service.run([make_product("A", 1)], "2")
        assert result.errors == ["A: Shopify API rate limit exceeded"]

    def test_client_closed_after_each_task(self, service, client):
        service.run([make_product("A", 1), make_product("B", 1)], "2")
        assert client.close.call_count == 2


class TestSingleMode:
    """Test one mutation per variant."""

    def test_one_call_per_qualifying_variant(self, shop_context, client):
        client.execute.side_effect = lambda query, variables: {
            "productVariantUpdate": {"productVariant": variables["input"], "userErrors": []}
        }
        service = PriceUpdateService(shop_context, mode="single", max_workers=1)

        result = service.run([make_product("A", 1, 0, 2)], "10")

        assert client.execute.call_count == 2
        client.execute.assert_any_call(UPDATE_VARIANT, {"input": {"id": "A-v0", "price": "10.00"}})
        client.execute.assert_any_call(UPDATE_VARIANT, {"input": {"id": "A-v2", "price": "20.00"}})
        assert result.results == [{"productTitle": "A", "variantsUpdated": 2}]

    def test_any_variant_error_fails_the_product(self, shop_context, client):
        def execute(query, variables):
            errors = [{"message": "Invalid price"}] if variables["input"]["id"] == "A-v1" else []
            return {"productVariantUpdate": {"productVariant": None, "userErrors": errors}}
        client.execute.side_effect = execute
        service = PriceUpdateService(shop_context, mode="single", max_workers=1)

        result = service.run([make_product("A", 1, 2)], "1")

        assert result.errors == ["A: Invalid price"]


class TestConcurrency:
    """Test the worker pool and cancellation."""

    def test_outcomes_keep_input_order(self, shop_context, client):
        threads = set()

        def execute(query, variables):
            threads.add(threading.current_thread().name)
            return bulk_ok(variables["productId"])
        client.execute.side_effect = execute
        service = PriceUpdateService(shop_context, max_workers=4)

        titles = [f"P{i}" for i in range(8)]
        result = service.run([make_product(t, 1) for t in titles], "2")

        assert [r["productTitle"] for r in result.results] == titles
        assert all(name.startswith("PriceUpdate") for name in threads)
        assert shop_context.create_client.call_count == 8

    def test_cancelled_token_skips_submission(self, service, client):
        token = CancellationToken()
        token.cancel()

        result = service.run([make_product("A", 1), make_product("B", 1)], "2", token=token)

        client.execute.assert_not_called()
        assert result.errors == ["A: update cancelled", "B: update cancelled"]
        assert result.cancelled == 2

    def test_update_product_raises_user_errors(self, service, client):
        client.execute.side_effect = None
        client.execute.return_value = bulk_error("Nope")
        plan = plan_product_update(make_product("A", 1), Decimal("2"))

        with pytest.raises(PriceUpdateError) as exc_info:
            service.update_product(plan)
        assert exc_info.value.messages == ["Nope"]
