"""
Storefront error types.

Validation failures are recoverable and carry the Arabic message shown to
the customer. Repository failures wrap any network/storage error raised by
the hosted store.
"""

from typing import Optional


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    def __init__(self, message: str, description: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.description = description


class OrderValidationError(StorefrontError):
    """A form field failed validation."""

    def __init__(self, field: str, message: str, description: Optional[str] = None):
        super().__init__(message, description)
        self.field = field


class RepositoryError(StorefrontError):
    """Reading from or writing to the hosted store failed."""


class OrderNotFoundError(RepositoryError):
    """No order row with the requested id."""

    def __init__(self, order_id: str):
        super().__init__(f"الطلب غير موجود: {order_id}")
        self.order_id = order_id


class ProductUnavailableError(StorefrontError):
    """No active product row is available to order."""

    def __init__(self):
        super().__init__("المنتج غير متوفر حالياً")


class ChangeFeedError(StorefrontError):
    """Subscribing to or publishing on the change feed failed."""
