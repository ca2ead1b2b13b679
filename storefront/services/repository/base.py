"""
Repository Abstract Base Classes

Defines the contract of the hosted ``orders`` and ``products`` tables.
Both the in-memory (development) and SQLAlchemy (production)
implementations raise ``RepositoryError`` on storage failures and
publish a change event on the change feed after every successful write.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from pydantic import ValidationError

from storefront.core.constants import OrderStatus
from storefront.core.exceptions import OrderValidationError, StorefrontError
from storefront.schemas import INVALID_STATUS_ERROR, Order, OrderCreate, Product, ProductData
from storefront.services.realtime import (
    BaseChangeFeed,
    ChangeEvent,
    ChangeEventType,
)

logger = logging.getLogger(__name__)


def coerce_status(value: Union[OrderStatus, str]) -> OrderStatus:
    """Map a raw value onto ``OrderStatus``; anything outside the set is rejected."""
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(value)
    except ValueError:
        raise OrderValidationError("status", INVALID_STATUS_ERROR)


def parse_order_row(row: Any) -> Optional[Order]:
    """Validate a raw order row; malformed rows are logged and dropped."""
    try:
        return Order.model_validate(row, from_attributes=not isinstance(row, dict))
    except ValidationError as e:
        logger.warning(f"Skipping malformed order row: {e.error_count()} error(s)")
        return None


def parse_product_row(row: Any) -> Optional[Product]:
    """Validate a raw product row against the record shape and the product limits."""
    try:
        product = Product.model_validate(row, from_attributes=not isinstance(row, dict))
        ProductData.model_validate(product.model_dump(include=set(ProductData.model_fields)))
    except ValidationError as e:
        logger.warning(f"Skipping malformed product row: {e.error_count()} error(s)")
        return None
    return product


class ChangeNotifyingRepository:
    """Mixin publishing row changes after successful writes."""

    table: str = ""

    def __init__(self, change_feed: Optional[BaseChangeFeed] = None):
        self.change_feed = change_feed

    async def _notify(self, event_type: ChangeEventType, record_id: Optional[str]) -> None:
        if self.change_feed is None:
            return
        try:
            await self.change_feed.publish(
                ChangeEvent(table=self.table, event_type=event_type, record_id=record_id)
            )
        except StorefrontError as e:
            # The row is already committed; subscribers catch up on their next reload
            logger.error(f"Change notification for {self.table}/{record_id} failed: {e.message}")


class BaseOrderRepository(ChangeNotifyingRepository, ABC):
    """Abstract access to the ``orders`` table."""

    table = "orders"

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backing store name."""
        pass

    @abstractmethod
    async def list_orders(self) -> list[Order]:
        """All orders, newest ``created_at`` first."""
        pass

    @abstractmethod
    async def get_order(self, order_id: str) -> Order:
        """One order by id; raises ``OrderNotFoundError``."""
        pass

    @abstractmethod
    async def create_order(self, data: OrderCreate) -> Order:
        """Insert a new row and return it as stored."""
        pass

    @abstractmethod
    async def update_status(self, order_id: str, status: Union[OrderStatus, str]) -> Order:
        """
        Change only the status of an order.

        Raises:
            OrderValidationError: status outside ``OrderStatus``
            OrderNotFoundError: unknown id
            RepositoryError: storage failure
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass


class BaseProductRepository(ChangeNotifyingRepository, ABC):
    """Read-only access to the ``products`` table."""

    table = "products"

    @property
    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    async def list_products(self) -> list[Product]:
        """Valid products, newest first. Malformed rows are skipped."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass
