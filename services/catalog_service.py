"""
Catalog service (collections and products).

Reads are made on the request thread with a short-lived client; nothing
is cached, every page view fetches fresh data from Shopify.

Usage:
    catalog_service = CatalogService(shop_context)

    collections = catalog_service.list_collections()
    products = catalog_service.list_collection_products(collection_id, search_query="ring")
    product = catalog_service.get_product_variants(product_id)
"""

from __future__ import annotations

from typing import Any, List, Mapping

from core.exceptions import MalformedResponseError, NotFoundError
from core.queries import GET_COLLECTIONS, GET_COLLECTION_PRODUCTS, GET_PRODUCT_VARIANTS
from core.shop_context import ShopContext
from models.catalog import Collection, Product, edge_nodes
from models.selection import search_products
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class CatalogService:
    """
    Fetches collections and products through the GraphQL Admin API.

    Attributes:
        collections_page_size: Collections shown in the selector
        products_page_size: Products requested per GraphQL page
        products_fetch_limit: Stop paging once this many products are loaded
        variants_per_product: Variants requested per product
    """

    def __init__(
        self,
        shop_context: ShopContext,
        collections_page_size: int = 50,
        products_page_size: int = 100,
        products_fetch_limit: int = 250,
        variants_per_product: int = 10
    ):
        self._shop_context = shop_context
        self.collections_page_size = collections_page_size
        self.products_page_size = products_page_size
        self.products_fetch_limit = products_fetch_limit
        self.variants_per_product = variants_per_product

    @classmethod
    def from_config(cls, shop_context: ShopContext, config: Mapping[str, Any]) -> "CatalogService":
        return cls(
            shop_context,
            collections_page_size=config.get("COLLECTIONS_PAGE_SIZE", 50),
            products_page_size=config.get("PRODUCTS_PAGE_SIZE", 100),
            products_fetch_limit=config.get("PRODUCTS_FETCH_LIMIT", 250),
            variants_per_product=config.get("VARIANTS_PER_PRODUCT", 10),
        )

    def list_collections(self) -> List[Collection]:
        """First page of collections for the selector."""
        client = self._shop_context.create_client(logger=logger)
        try:
            data = client.execute(GET_COLLECTIONS, {"first": self.collections_page_size})
        finally:
            client.close()

        nodes = edge_nodes(data.get("collections"), "collections")
        collections = [Collection.from_node(node, f"collections[{i}]") for i, node in enumerate(nodes)]
        logger.debug(f"[Loader] Loaded {len(collections)} collections")
        return collections

    def list_collection_products(self, collection_id: str, search_query: str = "") -> List[Product]:
        """
        Products of a collection, following cursors up to the fetch limit.

        Args:
            collection_id: Collection GID
            search_query: Optional case-insensitive title/handle filter

        Raises:
            NotFoundError: If the collection does not exist
            MalformedResponseError: If the response is missing expected fields
        """
        products: List[Product] = []
        cursor = None

        client = self._shop_context.create_client(logger=logger)
        try:
            while len(products) < self.products_fetch_limit:
                page_size = min(self.products_page_size, self.products_fetch_limit - len(products))
                data = client.execute(GET_COLLECTION_PRODUCTS, {
                    "collectionId": collection_id,
                    "first": page_size,
                    "after": cursor,
                    "variantsFirst": self.variants_per_product,
                })

                collection = data.get("collection")
                if collection is None:
                    raise NotFoundError("Collection", collection_id)

                connection = collection.get("products")
                offset = len(products)
                for i, node in enumerate(edge_nodes(connection, "collection.products")):
                    products.append(Product.from_node(node, f"collection.products[{offset + i}]"))

                page_info = connection.get("pageInfo") or {}
                if not page_info.get("hasNextPage"):
                    break
                cursor = page_info.get("endCursor")
                if not cursor:
                    raise MalformedResponseError(
                        "hasNextPage is true but endCursor is missing",
                        path="collection.products.pageInfo.endCursor",
                    )
        finally:
            client.close()

        matched = search_products(products, search_query)
        logger.info(
            f"[Action:getProducts] Loaded {len(products)} products for {collection_id}"
            + (f", {len(matched)} match '{search_query}'" if search_query else "")
        )
        return matched

    def get_product_variants(self, product_id: str) -> Product:
        """
        One product with its variants.

        Raises:
            NotFoundError: If the product does not exist
        """
        client = self._shop_context.create_client(logger=logger)
        try:
            data = client.execute(GET_PRODUCT_VARIANTS, {
                "id": product_id,
                "variantsFirst": self.variants_per_product,
            })
        finally:
            client.close()

        node = data.get("product")
        if node is None:
            raise NotFoundError("Product", product_id)
        return Product.from_node(node)
