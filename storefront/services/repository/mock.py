"""
In-Memory Repositories

Simulate the hosted tables for development and tests. No network calls
are made; latency and random failures are configurable so the error paths
of the caches and the order form can be exercised locally.
"""

import asyncio
import random
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from storefront.core.constants import OrderStatus, DEMO_PRODUCT
from storefront.core.exceptions import OrderNotFoundError, RepositoryError
from storefront.schemas import Order, OrderCreate, Product
from storefront.services.realtime import BaseChangeFeed, ChangeEventType
from storefront.services.repository.base import (
    BaseOrderRepository,
    BaseProductRepository,
    coerce_status,
    parse_order_row,
    parse_product_row,
)

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class _SimulatedStore:
    """Latency and failure simulation shared by the in-memory tables."""

    def __init__(self, failure_rate: float, min_latency: float, max_latency: float):
        self.failure_rate = failure_rate
        self.min_latency = min_latency
        self.max_latency = max(min_latency, max_latency)

    async def _simulate_latency(self) -> None:
        if self.max_latency > 0:
            await asyncio.sleep(random.uniform(self.min_latency, self.max_latency))

    def _should_fail(self) -> bool:
        return self.failure_rate > 0 and random.random() < self.failure_rate

    async def _round_trip(self, operation: str) -> None:
        await self._simulate_latency()
        if self._should_fail():
            logger.warning(f"Simulated store failure during {operation}")
            raise RepositoryError(f"Simulated store failure during {operation}")


class InMemoryOrderRepository(_SimulatedStore, BaseOrderRepository):
    """Dict-backed ``orders`` table."""

    def __init__(
        self,
        change_feed: Optional[BaseChangeFeed] = None,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        _SimulatedStore.__init__(self, failure_rate, min_latency, max_latency)
        BaseOrderRepository.__init__(self, change_feed)
        self._rows: list[dict] = []
        logger.info(f"InMemoryOrderRepository initialized (failure_rate={failure_rate:.0%})")

    @property
    def provider_name(self) -> str:
        return "memory"

    def load_rows(self, rows: Iterable[dict]) -> None:
        """Replace the table contents with raw rows (fixtures, imports)."""
        self._rows = [dict(row) for row in rows]

    def _find(self, order_id: str) -> dict:
        for row in self._rows:
            if row.get("id") == order_id:
                return row
        raise OrderNotFoundError(order_id)

    async def list_orders(self) -> list[Order]:
        await self._round_trip("list_orders")
        orders = [order for order in map(parse_order_row, self._rows) if order is not None]
        # Stable sort: rows inserted later come first on equal timestamps
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    async def get_order(self, order_id: str) -> Order:
        await self._round_trip("get_order")
        order = parse_order_row(self._find(order_id))
        if order is None:
            raise RepositoryError(f"Order {order_id} is malformed")
        return order

    async def create_order(self, data: OrderCreate) -> Order:
        await self._round_trip("create_order")

        now = _now()
        row = data.model_dump()
        row.update(id=str(uuid.uuid4()), status=data.status.value, created_at=now, updated_at=now)
        self._rows.insert(0, row)

        order = Order.model_validate(row)
        logger.info(f"Order {order.id} created for {order.customer_name}")
        await self._notify(ChangeEventType.INSERT, order.id)
        return order

    async def update_status(self, order_id: str, status: Union[OrderStatus, str]) -> Order:
        new_status = coerce_status(status)
        await self._round_trip("update_status")

        row = self._find(order_id)
        row["status"] = new_status.value
        row["updated_at"] = _now()

        logger.info(f"Order {order_id} status -> {new_status.value}")
        await self._notify(ChangeEventType.UPDATE, order_id)
        return Order.model_validate(row)

    async def health_check(self) -> bool:
        return True


class InMemoryProductRepository(_SimulatedStore, BaseProductRepository):
    """List-backed, read-only ``products`` table."""

    def __init__(
        self,
        change_feed: Optional[BaseChangeFeed] = None,
        rows: Optional[Iterable[dict]] = None,
        seed_demo_product: bool = False,
        failure_rate: float = 0.0,
        min_latency: float = 0.0,
        max_latency: float = 0.0,
    ):
        _SimulatedStore.__init__(self, failure_rate, min_latency, max_latency)
        BaseProductRepository.__init__(self, change_feed)
        self._rows: list[dict] = [dict(row) for row in rows or ()]

        if seed_demo_product and not self._rows:
            now = _now()
            self._rows.append({
                **DEMO_PRODUCT,
                "id": str(uuid.uuid4()),
                "created_at": now,
                "updated_at": now,
            })

        logger.info(f"InMemoryProductRepository initialized with {len(self._rows)} row(s)")

    @property
    def provider_name(self) -> str:
        return "memory"

    async def replace_rows(self, rows: Iterable[dict]) -> None:
        """Swap the table contents and notify subscribers, as an external editor would."""
        self._rows = [dict(row) for row in rows]
        await self._notify(ChangeEventType.UPDATE, None)

    async def list_products(self) -> list[Product]:
        await self._round_trip("list_products")
        products = [p for p in map(parse_product_row, self._rows) if p is not None]
        return sorted(products, key=lambda p: p.created_at, reverse=True)

    async def health_check(self) -> bool:
        return True
