"""
Order and Product Caches

Hold the in-memory copy of the hosted tables that the landing page and the
admin table read from. Each cache:

    - loads the full table on ``start()`` (``loading`` is true until the
      first load finishes),
    - subscribes once to the change feed and reloads the full table on every
      insert/update/delete notification,
    - unsubscribes on ``stop()``.

Repository failures never escape a cache: they are logged, reported as an
error ``Notice`` and the cache keeps its last good contents. Reloads carry a
generation number; a reload that finishes after a newer one is discarded.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from storefront.core.constants import OrderStatus
from storefront.core.exceptions import (
    OrderNotFoundError,
    OrderValidationError,
    RepositoryError,
)
from storefront.schemas import Order, OrderCreate, Product
from storefront.services.realtime import (
    BaseChangeFeed,
    ChangeEvent,
    Subscription,
    ORDERS_TABLE,
    PRODUCTS_TABLE,
)
from storefront.services.repository import BaseOrderRepository, BaseProductRepository

logger = logging.getLogger(__name__)


@dataclass
class Notice:
    """A transient user-facing notification (toast)."""
    level: str
    title: str
    description: Optional[str] = None

    @classmethod
    def success(cls, title: str, description: Optional[str] = None) -> "Notice":
        return cls("success", title, description)

    @classmethod
    def error(cls, title: str, description: Optional[str] = None) -> "Notice":
        return cls("error", title, description)


@dataclass
class StatusChangeResult:
    """Outcome of an admin status change."""
    success: bool
    notice: Notice
    order: Optional[Order] = None
    not_found: bool = False


class _TableCache:
    """Subscription and reload bookkeeping shared by both caches."""

    table: str = ""

    def __init__(self, change_feed: Optional[BaseChangeFeed]):
        self.change_feed = change_feed
        self.loading = True
        self.last_notice: Optional[Notice] = None
        self._subscription: Optional[Subscription] = None
        self._generation = 0
        self._applied_generation = 0

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    async def start(self) -> None:
        """Initial load plus change-feed subscription. Idempotent."""
        await self.refetch()
        if self.change_feed is not None and self._subscription is None:
            self._subscription = await self.change_feed.subscribe(self.table, self._on_change)
            logger.info(f"{type(self).__name__} subscribed to {self.table} changes")

    async def stop(self) -> None:
        if self.change_feed is not None and self._subscription is not None:
            await self.change_feed.unsubscribe(self._subscription)
            logger.info(f"{type(self).__name__} unsubscribed from {self.table} changes")
        self._subscription = None

    async def _on_change(self, event: ChangeEvent) -> None:
        logger.debug(f"{event.event_type.value} detected on {event.table} ({event.record_id})")
        await self.refetch()

    async def refetch(self) -> bool:
        """Reload the full table. Returns False when the load failed or was stale."""
        self._generation += 1
        generation = self._generation

        try:
            rows = await self._load()
        except RepositoryError as e:
            logger.error(f"Error fetching {self.table}: {e.message}")
            self.last_notice = self._load_failed_notice()
            return False
        finally:
            self.loading = False

        if generation < self._applied_generation:
            logger.debug(f"Discarding stale {self.table} reload #{generation}")
            return False

        self._applied_generation = generation
        self._apply(rows)
        return True

    async def _load(self) -> list:
        raise NotImplementedError

    def _apply(self, rows: list) -> None:
        raise NotImplementedError

    def _load_failed_notice(self) -> Notice:
        raise NotImplementedError


class OrderStore(_TableCache):
    """Cached ``orders`` table used by the order form and the admin table."""

    table = ORDERS_TABLE

    def __init__(self, repository: BaseOrderRepository, change_feed: Optional[BaseChangeFeed] = None):
        super().__init__(change_feed)
        self.repository = repository
        self.orders: list[Order] = []

    async def _load(self) -> list[Order]:
        return await self.repository.list_orders()

    def _apply(self, rows: list[Order]) -> None:
        self.orders = rows

    def _load_failed_notice(self) -> Notice:
        return Notice.error(
            "خطأ في تحميل الطلبات",
            "حدث خطأ أثناء تحميل الطلبات. يرجى المحاولة مرة أخرى.",
        )

    def get(self, order_id: str) -> Optional[Order]:
        for order in self.orders:
            if order.id == order_id:
                return order
        return None

    async def add_order(self, data: OrderCreate) -> Optional[Order]:
        """Insert an order; on success it is prepended to the cached list."""
        try:
            order = await self.repository.create_order(data)
        except RepositoryError as e:
            logger.error(f"Error adding order: {e.message}")
            self.last_notice = Notice.error(
                "خطأ في إضافة الطلب",
                "حدث خطأ أثناء إضافة الطلب. يرجى المحاولة مرة أخرى.",
            )
            return None

        # The change feed may already have reloaded a list containing the new row
        if self.get(order.id) is None:
            self.orders = [order, *self.orders]
        return order

    async def update_order_status(
        self,
        order_id: str,
        status: Union[OrderStatus, str],
    ) -> StatusChangeResult:
        """
        Change one order's status.

        The cached row is patched only after the store accepted the write;
        on failure the cache is left untouched.
        """
        try:
            updated = await self.repository.update_status(order_id, status)
        except OrderValidationError as e:
            notice = Notice.error("خطأ في التحديث", e.message)
            self.last_notice = notice
            return StatusChangeResult(success=False, notice=notice)
        except OrderNotFoundError as e:
            logger.warning(f"Status change for unknown order {order_id}")
            notice = Notice.error("خطأ في التحديث", e.message)
            self.last_notice = notice
            return StatusChangeResult(success=False, notice=notice, not_found=True)
        except RepositoryError as e:
            logger.error(f"Error updating order status: {e.message}")
            notice = Notice.error(
                "خطأ في التحديث",
                "حدث خطأ أثناء تحديث حالة الطلب. يرجى المحاولة مرة أخرى.",
            )
            self.last_notice = notice
            return StatusChangeResult(success=False, notice=notice)

        self.orders = [
            order.model_copy(update={"status": updated.status}) if order.id == order_id else order
            for order in self.orders
        ]
        notice = Notice.success(
            "تم تحديث الحالة",
            f"تم تغيير حالة الطلب إلى: {updated.status.value}",
        )
        self.last_notice = notice
        return StatusChangeResult(success=True, notice=notice, order=self.get(order_id) or updated)


class ProductStore(_TableCache):
    """Cached ``products`` table used by the landing page."""

    table = PRODUCTS_TABLE

    def __init__(self, repository: BaseProductRepository, change_feed: Optional[BaseChangeFeed] = None):
        super().__init__(change_feed)
        self.repository = repository
        self.products: list[Product] = []

    async def _load(self) -> list[Product]:
        return await self.repository.list_products()

    def _apply(self, rows: list[Product]) -> None:
        self.products = rows

    def _load_failed_notice(self) -> Notice:
        return Notice.error(
            "خطأ في تحميل المنتجات",
            "حدث خطأ أثناء تحميل المنتجات. يرجى المحاولة مرة أخرى.",
        )

    @property
    def featured_product(self) -> Optional[Product]:
        """Newest active product, or None for the placeholder state."""
        for product in self.products:
            if product.is_active:
                return product
        return None
