"""
Pricing, Phone Validation and Display Formatting

Pure functions over the static business tables:
    - Egyptian mobile number validation
    - Shipping fee lookup by governorate
    - Order total calculation
    - WhatsApp order message and deep link
    - Price, phone and date formatting for display and export

Formatting helpers are memoized with bounded LRU caches keyed by the raw
input value.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import lru_cache
from typing import Optional, Union
from urllib.parse import quote, urlparse
from zoneinfo import ZoneInfo
import re

from storefront.core.constants import (
    PHONE_REGEX,
    SHIPPING_FEES,
    DEFAULT_SHIPPING_FEE,
)

CURRENCY_LABEL = "ج.م"
DEFAULT_TIMEZONE = "Africa/Cairo"

ARABIC_MONTHS = (
    "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
    "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
)
_ARABIC_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")
_WHITESPACE = re.compile(r"\s+")

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass(frozen=True)
class OrderTotals:
    """Price breakdown of a single order."""
    subtotal: float
    shipping: float
    total: float

    def to_dict(self) -> dict:
        return {"subtotal": self.subtotal, "shipping": self.shipping, "total": self.total}


# =============================================================================
# PHONE
# =============================================================================

def normalize_phone(phone: str) -> str:
    """Remove every whitespace character from a phone number."""
    return _WHITESPACE.sub("", phone or "")


def validate_phone(phone: Optional[str]) -> bool:
    """
    Validate an Egyptian mobile number.

    Whitespace is ignored; the remaining characters must be exactly
    ``01`` + one of ``0/1/2/5`` + 8 ASCII digits.

    Example:
        >>> validate_phone("010 1234 5678")
        True
        >>> validate_phone("01312345678")
        False
    """
    if phone is None:
        return False
    return PHONE_REGEX.fullmatch(normalize_phone(phone)) is not None


# =============================================================================
# PRICING
# =============================================================================

def get_shipping_fee(governorate: Optional[str] = None) -> int:
    """Shipping fee for a governorate; unknown or missing values get the default fee."""
    if not governorate:
        return DEFAULT_SHIPPING_FEE
    return SHIPPING_FEES.get(governorate.strip(), DEFAULT_SHIPPING_FEE)


def calculate_order_total(
    price: float,
    quantity: int = 1,
    governorate: Optional[str] = None,
) -> OrderTotals:
    """
    Calculate subtotal, shipping and total for an order.

    Args:
        price: Unit price of the product
        quantity: Number of units (the storefront always orders one)
        governorate: Delivery governorate used for the shipping fee

    Returns:
        OrderTotals with ``total = price * quantity + shipping``
    """
    subtotal = price * quantity
    shipping = get_shipping_fee(governorate)
    return OrderTotals(subtotal=subtotal, shipping=shipping, total=subtotal + shipping)


# =============================================================================
# FORMATTING
# =============================================================================

@lru_cache(maxsize=512)
def format_price(price: float, currency: str = CURRENCY_LABEL) -> str:
    """
    Format a price with thousands separators and the currency label.

    Up to three fraction digits are kept, trailing zeros dropped:
    ``1250 -> "1,250 ج.م"``, ``99.5 -> "99.5 ج.م"``.
    """
    text = f"{price:,.3f}".rstrip("0").rstrip(".")
    return f"{text} {currency}"


@lru_cache(maxsize=512)
def format_phone_number(phone: str) -> str:
    """Group an 11-character phone number as ``0101 234 5678``."""
    if len(phone) == 11:
        return f"{phone[:4]} {phone[4:7]} {phone[7:]}"
    return phone


def to_arabic_digits(text: str) -> str:
    return text.translate(_ARABIC_DIGITS)


def _localize(
    value: Union[str, date, datetime],
    tz_name: str = DEFAULT_TIMEZONE,
) -> Union[date, datetime]:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        # Store timestamps without tzinfo are UTC
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(ZoneInfo(tz_name))
    return value


def format_date(value: Union[str, date, datetime], tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Long Arabic date, e.g. ``١٧ أكتوبر ٢٠٢٦``."""
    d = _localize(value, tz_name)
    return to_arabic_digits(f"{d.day} {ARABIC_MONTHS[d.month - 1]} {d.year}")


def format_short_date(value: Union[str, date, datetime], tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Numeric Arabic date, e.g. ``١٧/١٠/٢٠٢٦``."""
    d = _localize(value, tz_name)
    return to_arabic_digits(f"{d.day}/{d.month}/{d.year}")


def format_datetime(value: Union[str, datetime], tz_name: str = DEFAULT_TIMEZONE) -> str:
    """Arabic date and 12-hour time, e.g. ``١٧ أكتوبر ٢٠٢٦، ٠٣:٣٠ م``."""
    d = _localize(value, tz_name)
    if not isinstance(d, datetime):
        return format_date(d, tz_name)
    hour = d.hour % 12 or 12
    period = "ص" if d.hour < 12 else "م"
    return to_arabic_digits(
        f"{d.day} {ARABIC_MONTHS[d.month - 1]} {d.year}، {hour:02d}:{d.minute:02d} {period}"
    )


def validate_image_url(url: str) -> bool:
    """Accept only absolute http/https URLs."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# =============================================================================
# WHATSAPP
# =============================================================================

def generate_whatsapp_message(
    customer_name: str,
    product_name: str,
    price: float,
    governorate: str,
    currency: str = CURRENCY_LABEL,
) -> str:
    """Build the plain-text WhatsApp order message."""
    totals = calculate_order_total(price, 1, governorate)

    return (
        "مرحباً، أريد طلب:\n\n"
        f"📦 المنتج: {product_name}\n"
        f"👤 الاسم: {customer_name}\n"
        f"📍 المحافظة: {governorate}\n\n"
        f"💰 السعر: {format_price(totals.subtotal, currency)}\n"
        f"🚚 الشحن: {format_price(totals.shipping, currency)}\n"
        f"💳 الإجمالي: {format_price(totals.total, currency)}\n\n"
        "يرجى التأكيد والتواصل لإتمام الطلب."
    )


def build_whatsapp_url(phone: str, message: str, base_url: str = "https://wa.me") -> str:
    """Deep link ``<base>/<phone>?text=<encoded message>``."""
    return f"{base_url.rstrip('/')}/{phone}?text={quote(message, safe=_URI_COMPONENT_SAFE)}"
