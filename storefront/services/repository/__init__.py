"""
Repository Factory

Returns the in-memory or SQLAlchemy repositories based on ENV_MODE.
Both share the configured change feed so writes reach every subscribed
cache.

Usage:
    from storefront.services.repository import get_order_repository

    repository = get_order_repository()
    orders = await repository.list_orders()
"""

import logging
from functools import lru_cache

from storefront.core.config import get_settings
from storefront.services.realtime import get_change_feed
from storefront.services.repository.base import (
    BaseOrderRepository,
    BaseProductRepository,
    coerce_status,
)
from storefront.services.repository.mock import (
    InMemoryOrderRepository,
    InMemoryProductRepository,
)

logger = logging.getLogger(__name__)


@lru_cache()
def get_order_repository() -> BaseOrderRepository:
    """Get the configured orders repository."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Order Repository: Using InMemoryOrderRepository (development mode)")
        return InMemoryOrderRepository(
            change_feed=get_change_feed(),
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    from storefront.services.repository.sql import SqlOrderRepository

    logger.info(f"Order Repository: Using SqlOrderRepository ({settings.env_mode.value} mode)")
    return SqlOrderRepository(change_feed=get_change_feed())


@lru_cache()
def get_product_repository() -> BaseProductRepository:
    """Get the configured products repository."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Product Repository: Using InMemoryProductRepository (development mode)")
        return InMemoryProductRepository(
            change_feed=get_change_feed(),
            seed_demo_product=settings.seed_demo_product,
            failure_rate=settings.mock_failure_rate,
            min_latency=settings.mock_min_latency,
            max_latency=settings.mock_max_latency,
        )

    from storefront.services.repository.sql import SqlProductRepository

    logger.info(f"Product Repository: Using SqlProductRepository ({settings.env_mode.value} mode)")
    return SqlProductRepository(change_feed=get_change_feed())


def reset_repositories() -> None:
    """Clear the cached repository instances."""
    get_order_repository.cache_clear()
    get_product_repository.cache_clear()


__all__ = [
    "get_order_repository",
    "get_product_repository",
    "reset_repositories",
    "coerce_status",
    "BaseOrderRepository",
    "BaseProductRepository",
    "InMemoryOrderRepository",
    "InMemoryProductRepository",
]
