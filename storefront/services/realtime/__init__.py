"""
Change Feed Factory

Returns the in-process or Redis change feed based on ENV_MODE.
"""

import logging
from functools import lru_cache

from storefront.core.config import get_settings
from storefront.services.realtime.base import (
    BaseChangeFeed,
    ChangeEvent,
    ChangeEventType,
    Subscription,
)
from storefront.services.realtime.mock import InMemoryChangeFeed

logger = logging.getLogger(__name__)

ORDERS_TABLE = "orders"
PRODUCTS_TABLE = "products"


@lru_cache()
def get_change_feed() -> BaseChangeFeed:
    """Get the configured change feed."""
    settings = get_settings()

    if settings.is_development:
        logger.info("Change Feed: Using InMemoryChangeFeed (development mode)")
        return InMemoryChangeFeed()

    from storefront.services.realtime.redis_feed import RedisChangeFeed

    logger.info(f"Change Feed: Using RedisChangeFeed ({settings.env_mode.value} mode)")
    return RedisChangeFeed()


def reset_change_feed() -> None:
    """Clear the cached change feed instance."""
    get_change_feed.cache_clear()


__all__ = [
    "get_change_feed",
    "reset_change_feed",
    "BaseChangeFeed",
    "ChangeEvent",
    "ChangeEventType",
    "Subscription",
    "InMemoryChangeFeed",
    "ORDERS_TABLE",
    "PRODUCTS_TABLE",
]
