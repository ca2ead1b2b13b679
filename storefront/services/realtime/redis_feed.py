"""
Redis Change Feed

Production change feed over Redis pub/sub. Every table has its own
channel (``<prefix>:<table>``); each subscription owns a pub/sub
connection and a listener task that forwards decoded events to the
subscriber callback.
"""

import asyncio
import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from storefront.core.config import get_settings
from storefront.core.exceptions import ChangeFeedError
from storefront.services.realtime.base import (
    BaseChangeFeed,
    ChangeCallback,
    ChangeEvent,
    Subscription,
)

logger = logging.getLogger(__name__)


class RedisChangeFeed(BaseChangeFeed):
    """Change feed backed by Redis pub/sub channels."""

    def __init__(self, redis_url: Optional[str] = None, channel_prefix: Optional[str] = None):
        settings = get_settings()
        self.redis_url = redis_url or settings.redis_url
        self.channel_prefix = channel_prefix or settings.changes_channel_prefix
        self.client = aioredis.from_url(self.redis_url, decode_responses=True)
        self._listeners: dict[str, tuple] = {}
        logger.info(f"RedisChangeFeed initialized (prefix={self.channel_prefix})")

    @property
    def provider_name(self) -> str:
        return "redis"

    def channel_for(self, table: str) -> str:
        return f"{self.channel_prefix}:{table}"

    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        subscription = Subscription(table=table)
        pubsub = self.client.pubsub(ignore_subscribe_messages=True)

        try:
            await pubsub.subscribe(self.channel_for(table))
        except RedisError as e:
            logger.error(f"Redis subscribe failed for {table}: {e}")
            raise ChangeFeedError(f"Failed to subscribe to {table}") from e

        task = asyncio.create_task(self._listen(pubsub, callback, table))
        self._listeners[subscription.subscription_id] = (pubsub, task)
        logger.info(f"Subscribed to {self.channel_for(table)}")
        return subscription

    async def _listen(self, pubsub, callback: ChangeCallback, table: str) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    event = ChangeEvent.from_json(message["data"])
                except (ValueError, KeyError, TypeError):
                    logger.warning(f"Discarding malformed change event on {table}: {message['data']!r}")
                    continue
                try:
                    await callback(event)
                except Exception:
                    logger.exception(f"Change callback failed for {table}")
        except RedisError:
            logger.exception(f"Change listener for {table} stopped")

    async def unsubscribe(self, subscription: Subscription) -> None:
        listener = self._listeners.pop(subscription.subscription_id, None)
        if listener is None:
            return

        pubsub, task = listener
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.exception(f"Change listener for {subscription.table} had failed")

        try:
            await pubsub.unsubscribe()
            await pubsub.aclose()
        except RedisError as e:
            logger.warning(f"Redis unsubscribe failed for {subscription.table}: {e}")

        logger.info(f"Unsubscribed from {self.channel_for(subscription.table)}")

    async def publish(self, event: ChangeEvent) -> None:
        try:
            await self.client.publish(self.channel_for(event.table), event.to_json())
        except RedisError as e:
            logger.error(f"Redis publish failed for {event.table}: {e}")
            raise ChangeFeedError(f"Failed to publish change on {event.table}") from e

    async def health_check(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self) -> None:
        for subscription_id in list(self._listeners):
            await self.unsubscribe(Subscription(table="", subscription_id=subscription_id))
        await self.client.aclose()
