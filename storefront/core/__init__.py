"""
Core module initialization.
Exports configuration, constants and error types.
"""

from storefront.core.config import get_settings, Settings, EnvironmentMode
from storefront.core.constants import OrderStatus, GOVERNORATES, SHIPPING_FEES

__all__ = [
    "get_settings",
    "Settings",
    "EnvironmentMode",
    "OrderStatus",
    "GOVERNORATES",
    "SHIPPING_FEES",
]
