"""
SQLAlchemy Repositories

Production access to the hosted ``orders`` and ``products`` tables through
the async engine. Storage errors are wrapped in ``RepositoryError``; a
change event is published after every committed write.
"""

import logging
from typing import Optional, Union

from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from storefront.core.constants import OrderStatus
from storefront.core.exceptions import OrderNotFoundError, RepositoryError
from storefront.database import get_session_maker
from storefront.models import OrderRecord, ProductRecord
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


class SqlOrderRepository(BaseOrderRepository):
    """``orders`` table over SQLAlchemy."""

    def __init__(
        self,
        change_feed: Optional[BaseChangeFeed] = None,
        session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        super().__init__(change_feed)
        self.session_maker = session_maker or get_session_maker()

    @property
    def provider_name(self) -> str:
        return "sqlalchemy"

    async def list_orders(self) -> list[Order]:
        try:
            async with self.session_maker() as session:
                result = await session.execute(
                    select(OrderRecord).order_by(OrderRecord.created_at.desc())
                )
                records = result.scalars().all()
        except SQLAlchemyError as e:
            logger.exception("Error fetching orders")
            raise RepositoryError("Failed to fetch orders") from e

        return [order for order in map(parse_order_row, records) if order is not None]

    async def get_order(self, order_id: str) -> Order:
        try:
            async with self.session_maker() as session:
                record = await session.get(OrderRecord, order_id)
        except SQLAlchemyError as e:
            logger.exception(f"Error fetching order {order_id}")
            raise RepositoryError(f"Failed to fetch order {order_id}") from e

        if record is None:
            raise OrderNotFoundError(order_id)
        order = parse_order_row(record)
        if order is None:
            raise RepositoryError(f"Order {order_id} is malformed")
        return order

    async def create_order(self, data: OrderCreate) -> Order:
        values = data.model_dump()
        values["status"] = data.status.value

        try:
            async with self.session_maker() as session:
                record = OrderRecord(**values)
                session.add(record)
                await session.commit()
                await session.refresh(record)
        except SQLAlchemyError as e:
            logger.exception(f"Error adding order for {data.customer_name}")
            raise RepositoryError("Failed to add order") from e

        order = Order.model_validate(record)
        logger.info(f"Order {order.id} created for {order.customer_name}")
        await self._notify(ChangeEventType.INSERT, order.id)
        return order

    async def update_status(self, order_id: str, status: Union[OrderStatus, str]) -> Order:
        new_status = coerce_status(status)

        try:
            async with self.session_maker() as session:
                record = await session.get(OrderRecord, order_id)
                if record is None:
                    raise OrderNotFoundError(order_id)
                record.status = new_status.value
                await session.commit()
                await session.refresh(record)
        except SQLAlchemyError as e:
            logger.exception(f"Error updating order {order_id} status")
            raise RepositoryError(f"Failed to update order {order_id}") from e

        logger.info(f"Order {order_id} status -> {new_status.value}")
        await self._notify(ChangeEventType.UPDATE, order_id)
        return Order.model_validate(record)

    async def health_check(self) -> bool:
        try:
            async with self.session_maker() as session:
                await session.execute(select(func.now()))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False


class SqlProductRepository(BaseProductRepository):
    """Read-only ``products`` table over SQLAlchemy."""

    def __init__(
        self,
        change_feed: Optional[BaseChangeFeed] = None,
        session_maker: Optional[async_sessionmaker[AsyncSession]] = None,
    ):
        super().__init__(change_feed)
        self.session_maker = session_maker or get_session_maker()

    @property
    def provider_name(self) -> str:
        return "sqlalchemy"

    async def list_products(self) -> list[Product]:
        try:
            async with self.session_maker() as session:
                result = await session.execute(
                    select(ProductRecord).order_by(ProductRecord.created_at.desc())
                )
                records = result.scalars().all()
        except SQLAlchemyError as e:
            logger.exception("Error fetching products")
            raise RepositoryError("Failed to fetch products") from e

        return [p for p in map(parse_product_row, records) if p is not None]

    async def health_check(self) -> bool:
        try:
            async with self.session_maker() as session:
                await session.execute(select(func.now()))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Database health check failed: {e}")
            return False
