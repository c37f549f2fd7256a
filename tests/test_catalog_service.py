"""
Unit tests for the catalog and order services.
"""

from unittest.mock import Mock

import pytest

from core.exceptions import MalformedResponseError, NotFoundError
from core.queries import GET_COLLECTION_PRODUCTS, GET_COLLECTIONS, GET_ORDER
from services.catalog_service import CatalogService
from services.order_service import OrderService


# Fixtures

def product_edge(index, title=None):
    return {"node": {
        "id": f"gid://shopify/Product/{index}",
        "title": title or f"Product {index}",
        "handle": f"product-{index}",
        "status": "ACTIVE",
        "variants": {"edges": []},
    }}


def products_page(edges, has_next=False, cursor=None):
    return {"collection": {
        "id": "gid://shopify/Collection/1",
        "title": "Rings",
        "products": {
            "pageInfo": {"hasNextPage": has_next, "endCursor": cursor},
            "edges": edges,
        },
    }}


@pytest.fixture
def client():
    return Mock()


@pytest.fixture
def shop_context(client):
    context = Mock()
    context.create_client.return_value = client
    return context


@pytest.fixture
def catalog_service(shop_context):
    return CatalogService(shop_context, products_page_size=2, products_fetch_limit=5)


class TestCatalogService:
    """Test collection and product fetching."""

    def test_list_collections(self, catalog_service, client):
        client.execute.return_value = {"collections": {"edges": [
            {"node": {"id": "c1", "title": "Rings", "productsCount": {"count": 3}}},
        ]}}

        collections = catalog_service.list_collections()

        client.execute.assert_called_once_with(GET_COLLECTIONS, {"first": 50})
        assert [c.label for c in collections] == ["Rings (3 products)"]
        client.close.assert_called_once()

    def test_products_follow_cursors(self, catalog_service, client):
        client.execute.side_effect = [
            products_page([product_edge(1), product_edge(2)], has_next=True, cursor="c2"),
            products_page([product_edge(3)], has_next=False),
        ]

        products = catalog_service.list_collection_products("gid://shopify/Collection/1")

        assert [p.id for p in products] == [f"gid://shopify/Product/{i}" for i in (1, 2, 3)]
        first, second = client.execute.call_args_list
        assert first[0][0] == GET_COLLECTION_PRODUCTS
        assert first[0][1]["after"] is None
        assert second[0][1]["after"] == "c2"
        assert first[0][1]["variantsFirst"] == 10

    def test_products_stop_at_fetch_limit(self, catalog_service, client):
        client.execute.side_effect = [
            products_page([product_edge(1), product_edge(2)], has_next=True, cursor="a"),
            products_page([product_edge(3), product_edge(4)], has_next=True, cursor="b"),
            products_page([product_edge(5)], has_next=True, cursor="c"),
        ]

        products = catalog_service.list_collection_products("c1")

        assert len(products) == 5
        assert client.execute.call_count == 3
        assert client.execute.call_args_list[2][0][1]["first"] == 1

    def test_search_filters_after_fetch(self, catalog_service, client):
        client.execute.return_value = products_page([product_edge(1, "Gold Ring"), product_edge(2, "Chain")])

        products = catalog_service.list_collection_products("c1", search_query="ring")

        assert [p.title for p in products] == ["Gold Ring"]

    def test_missing_collection(self, catalog_service, client):
        client.execute.return_value = {"collection": None}
        with pytest.raises(NotFoundError):
            catalog_service.list_collection_products("c1")
        client.close.assert_called_once()

    def test_malformed_products(self, catalog_service, client):
        client.execute.return_value = {"collection": {"products": None}}
        with pytest.raises(MalformedResponseError):
            catalog_service.list_collection_products("c1")

    def test_product_variants_not_found(self, catalog_service, client):
        client.execute.return_value = {"product": None}
        with pytest.raises(NotFoundError):
            catalog_service.get_product_variants("gid://shopify/Product/9")


class TestOrderService:
    """Test order lookups."""

    def test_numeric_id_is_normalized(self, shop_context, client):
        client.execute.return_value = {"order": None}
        service = OrderService(shop_context, line_items_limit=25)

        with pytest.raises(NotFoundError) as exc_info:
            service.get_order("1001")

        client.execute.assert_called_once_with(GET_ORDER, {
            "orderId": "gid://shopify/Order/1001",
            "lineItemsFirst": 25,
        })
        assert exc_info.value.resource_id == "gid://shopify/Order/1001"
