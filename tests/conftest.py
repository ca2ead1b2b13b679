import os

# In-memory services, no simulated latency or failures
os.environ["ENV_MODE"] = "development"
os.environ["MOCK_FAILURE_RATE"] = "0"
os.environ["MOCK_MIN_LATENCY"] = "0"
os.environ["MOCK_MAX_LATENCY"] = "0"
os.environ["SEED_DEMO_PRODUCT"] = "true"

from datetime import date, datetime, timedelta, timezone

import pytest

from storefront.core.config import get_settings
from storefront.core.constants import DEMO_PRODUCT, OrderStatus
from storefront.services.realtime import InMemoryChangeFeed, reset_change_feed
from storefront.services.repository import (
    InMemoryOrderRepository,
    InMemoryProductRepository,
    reset_repositories,
)

BASE_TIME = datetime(2026, 10, 17, 10, 0, tzinfo=timezone.utc)


def make_order_row(index: int, **overrides) -> dict:
    row = {
        "id": f"order-{index}",
        "customer_name": "سارة أحمد",
        "phone": "01012345678",
        "address": "15 شارع التحرير، الدقي",
        "governorate": "القاهرة",
        "notes": None,
        "total_amount": 280.0,
        "status": OrderStatus.NEW.value,
        "order_date": date(2026, 10, 17),
        "created_at": BASE_TIME + timedelta(minutes=index),
        "updated_at": None,
    }
    row.update(overrides)
    return row


def make_product_row(index: int = 1, **overrides) -> dict:
    row = {
        **DEMO_PRODUCT,
        "id": f"product-{index}",
        "created_at": BASE_TIME + timedelta(minutes=index),
        "updated_at": None,
    }
    row.update(overrides)
    return row


SAMPLE_ORDERS = [
    make_order_row(1),
    make_order_row(
        2,
        customer_name="منى علي",
        phone="01298765432",
        address="شارع البحر، سموحة",
        governorate="الإسكندرية",
        total_amount=285.0,
        status=OrderStatus.SHIPPED.value,
    ),
    make_order_row(
        3,
        customer_name="Hoda Hassan",
        phone="01511112222",
        address="Nasr City, block 7",
        governorate="القاهرة",
        status=OrderStatus.DELIVERED.value,
    ),
]


@pytest.fixture(autouse=True)
def reset_services():
    get_settings.cache_clear()
    reset_change_feed()
    reset_repositories()
    yield
    reset_repositories()
    reset_change_feed()


@pytest.fixture
def change_feed():
    return InMemoryChangeFeed()


@pytest.fixture
def order_repository(change_feed):
    repository = InMemoryOrderRepository(change_feed=change_feed)
    repository.load_rows(SAMPLE_ORDERS)
    return repository


@pytest.fixture
def product_repository(change_feed):
    return InMemoryProductRepository(change_feed=change_feed, rows=[make_product_row()])
