"""
In-Process Change Feed

Delivers change events to subscribers of the same process. Used in
development mode together with the in-memory repositories.
"""

import logging

from storefront.services.realtime.base import (
    BaseChangeFeed,
    ChangeCallback,
    ChangeEvent,
    Subscription,
)

logger = logging.getLogger(__name__)


class InMemoryChangeFeed(BaseChangeFeed):
    """Change feed that calls subscriber callbacks directly on publish."""

    def __init__(self):
        self._subscribers: dict[str, dict[str, ChangeCallback]] = {}
        logger.info("InMemoryChangeFeed initialized")

    @property
    def provider_name(self) -> str:
        return "memory"

    def subscriber_count(self, table: str) -> int:
        return len(self._subscribers.get(table, {}))

    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        subscription = Subscription(table=table)
        self._subscribers.setdefault(table, {})[subscription.subscription_id] = callback
        logger.debug(f"Subscribed {subscription.subscription_id} to {table}")
        return subscription

    async def unsubscribe(self, subscription: Subscription) -> None:
        callbacks = self._subscribers.get(subscription.table, {})
        if callbacks.pop(subscription.subscription_id, None) is not None:
            logger.debug(f"Unsubscribed {subscription.subscription_id} from {subscription.table}")

    async def publish(self, event: ChangeEvent) -> None:
        callbacks = list(self._subscribers.get(event.table, {}).values())
        logger.debug(f"{event.event_type.value} on {event.table} -> {len(callbacks)} subscriber(s)")

        for callback in callbacks:
            try:
                await callback(event)
            except Exception:
                # A failing subscriber must not fail the writer
                logger.exception(f"Change callback failed for {event.table}")

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self._subscribers.clear()
