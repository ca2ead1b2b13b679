import asyncio
from datetime import date, datetime, timedelta

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from storefront.core.constants import DEMO_PRODUCT, OrderStatus
from storefront.core.exceptions import OrderNotFoundError, OrderValidationError, RepositoryError
from storefront.database import get_session_maker, init_db
from storefront.models import OrderRecord, ProductRecord
from storefront.services.realtime import ChangeEventType, InMemoryChangeFeed, ORDERS_TABLE
from storefront.services.repository.sql import SqlOrderRepository, SqlProductRepository

from tests.test_repository import new_order

BASE = datetime(2026, 10, 17, 10, 0)


def run_with_database(tmp_path, scenario):
    """Run ``scenario(session_maker, change_feed)`` against a fresh SQLite file."""

    async def main():
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
        try:
            await init_db(engine)
            return await scenario(get_session_maker(engine), InMemoryChangeFeed())
        finally:
            await engine.dispose()

    return asyncio.run(main())


def order_record(index: int, **overrides) -> OrderRecord:
    values = {
        "id": f"order-{index}",
        "customer_name": "سارة أحمد",
        "phone": "01012345678",
        "address": "15 شارع التحرير، الدقي",
        "governorate": "القاهرة",
        "total_amount": 280.0,
        "status": OrderStatus.NEW.value,
        "order_date": date(2026, 10, 17),
        "created_at": BASE + timedelta(minutes=index),
        "updated_at": BASE + timedelta(minutes=index),
    }
    values.update(overrides)
    return OrderRecord(**values)


async def seed(session_maker, *records) -> None:
    async with session_maker() as session:
        session.add_all(records)
        await session.commit()


def test_list_orders_newest_first_and_skips_malformed(tmp_path):
    async def scenario(session_maker, change_feed):
        await seed(
            session_maker,
            order_record(1),
            order_record(3),
            order_record(2, status="مفقود"),
            order_record(4, customer_name="منى"),
        )
        return await SqlOrderRepository(change_feed, session_maker).list_orders()

    orders = run_with_database(tmp_path, scenario)

    assert [o.id for o in orders] == ["order-4", "order-3", "order-1"]


def test_create_order_persists_and_notifies(tmp_path):
    async def scenario(session_maker, change_feed):
        events = []

        async def on_change(event):
            events.append(event)

        await change_feed.subscribe(ORDERS_TABLE, on_change)
        repository = SqlOrderRepository(change_feed, session_maker)
        created = await repository.create_order(new_order())
        return created, await repository.get_order(created.id), events

    created, stored, events = run_with_database(tmp_path, scenario)

    assert created.status == OrderStatus.NEW
    assert created.created_at is not None
    assert stored.model_dump(exclude={"updated_at"}) == created.model_dump(exclude={"updated_at"})
    assert [(e.event_type, e.record_id) for e in events] == [(ChangeEventType.INSERT, created.id)]


def test_update_status_changes_only_status(tmp_path):
    async def scenario(session_maker, change_feed):
        await seed(session_maker, order_record(1), order_record(2))
        repository = SqlOrderRepository(change_feed, session_maker)
        before = await repository.get_order("order-1")
        updated = await repository.update_status("order-1", "تم الشحن")
        other = await repository.get_order("order-2")
        return before, updated, other

    before, updated, other = run_with_database(tmp_path, scenario)

    assert updated.status == OrderStatus.SHIPPED
    assert updated.model_dump(exclude={"status", "updated_at"}) == before.model_dump(
        exclude={"status", "updated_at"}
    )
    assert other.status == OrderStatus.NEW


def test_update_status_errors(tmp_path):
    async def scenario(session_maker, change_feed):
        await seed(session_maker, order_record(1))
        repository = SqlOrderRepository(change_feed, session_maker)

        with pytest.raises(OrderValidationError):
            await repository.update_status("order-1", "مفقود")
        with pytest.raises(OrderNotFoundError):
            await repository.update_status("missing", OrderStatus.CANCELLED)
        with pytest.raises(OrderNotFoundError):
            await repository.get_order("missing")
        return await repository.get_order("order-1")

    assert run_with_database(tmp_path, scenario).status == OrderStatus.NEW


def test_storage_errors_become_repository_errors(tmp_path):
    async def scenario(session_maker, change_feed):
        repository = SqlOrderRepository(change_feed, session_maker)
        async with session_maker() as session:
            await session.execute(text("DROP TABLE orders"))
            await session.commit()

        with pytest.raises(RepositoryError):
            await repository.list_orders()
        with pytest.raises(RepositoryError):
            await repository.create_order(new_order())
        with pytest.raises(RepositoryError):
            await repository.update_status("order-1", OrderStatus.SHIPPED)
        return await repository.health_check()

    assert run_with_database(tmp_path, scenario) is True


def test_list_products_skips_invalid_rows(tmp_path):
    async def scenario(session_maker, change_feed):
        await seed(
            session_maker,
            ProductRecord(**DEMO_PRODUCT, id="product-1", created_at=BASE),
            ProductRecord(**{**DEMO_PRODUCT, "benefits": ["فائدة"] * 11}, id="product-2", created_at=BASE),
            ProductRecord(**{**DEMO_PRODUCT, "name": "كريم الليل"}, id="product-3", created_at=BASE + timedelta(hours=1)),
        )
        repository = SqlProductRepository(change_feed, session_maker)
        return await repository.list_products(), await repository.health_check()

    products, healthy = run_with_database(tmp_path, scenario)

    assert [p.id for p in products] == ["product-3", "product-1"]
    assert healthy
