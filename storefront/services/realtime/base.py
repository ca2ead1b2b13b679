"""
Change Feed Abstract Base Class

Defines the interface for the server-pushed change notifications of the
hosted store. Consumers subscribe once per table and receive an event for
every insert, update or delete on that table.
"""

import json
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable, Optional


class ChangeEventType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass
class ChangeEvent:
    """A single row change on a hosted table."""
    table: str
    event_type: ChangeEventType
    record_id: Optional[str] = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_json(self) -> str:
        return json.dumps({
            "table": self.table,
            "event_type": self.event_type.value,
            "record_id": self.record_id,
            "occurred_at": self.occurred_at.isoformat(),
        })

    @classmethod
    def from_json(cls, raw: str) -> "ChangeEvent":
        data = json.loads(raw)
        return cls(
            table=data["table"],
            event_type=ChangeEventType(data["event_type"]),
            record_id=data.get("record_id"),
            occurred_at=datetime.fromisoformat(data["occurred_at"]),
        )


ChangeCallback = Callable[[ChangeEvent], Awaitable[None]]


@dataclass
class Subscription:
    """Handle returned by ``subscribe``; pass it back to ``unsubscribe``."""
    table: str
    subscription_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class BaseChangeFeed(ABC):
    """Abstract base class for change feed transports."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the transport name."""
        pass

    @abstractmethod
    async def subscribe(self, table: str, callback: ChangeCallback) -> Subscription:
        """Register ``callback`` for every change on ``table``."""
        pass

    @abstractmethod
    async def unsubscribe(self, subscription: Subscription) -> None:
        """Tear down a subscription. Unknown handles are ignored."""
        pass

    @abstractmethod
    async def publish(self, event: ChangeEvent) -> None:
        """Notify every subscriber of ``event.table``."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check transport connectivity."""
        pass

    async def close(self) -> None:
        """Release transport resources."""
        return None
