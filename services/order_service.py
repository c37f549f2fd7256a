"""Order lookups for the printable documents."""

from __future__ import annotations

from core.exceptions import NotFoundError
from core.queries import GET_ORDER
from core.shop_context import ShopContext
from models.order import Order, order_gid
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class OrderService:
    """Fetches one order snapshot per print request."""

    def __init__(self, shop_context: ShopContext, line_items_limit: int = 50):
        self._shop_context = shop_context
        self.line_items_limit = line_items_limit

    def get_order(self, order_id: str) -> Order:
        """
        Fetch an order by numeric id or GID.

        Raises:
            NotFoundError: If Shopify returns no order for the id
            MalformedResponseError: If the order is missing required fields
        """
        gid = order_gid(order_id)
        client = self._shop_context.create_client(logger=logger)
        try:
            data = client.execute(GET_ORDER, {"orderId": gid, "lineItemsFirst": self.line_items_limit})
        finally:
            client.close()

        node = data.get("order")
        if node is None:
            raise NotFoundError("Order", gid)

        order = Order.from_node(node)
        logger.info(f"Loaded order {order.name} with {len(order.line_items)} line items")
        return order
