from datetime import date, datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from storefront.core.constants import GOVERNORATES
from storefront.services.pricing import (
    OrderTotals,
    build_whatsapp_url,
    calculate_order_total,
    format_date,
    format_datetime,
    format_phone_number,
    format_price,
    format_short_date,
    get_shipping_fee,
    validate_image_url,
    validate_phone,
)


@pytest.mark.parametrize("phone", ["01012345678", "01112345678", "01212345678", "01512345678", "010 1234 5678"])
def test_validate_phone_accepts_egyptian_mobiles(phone):
    assert validate_phone(phone)


@pytest.mark.parametrize(
    "phone",
    ["01312345678", "0101234567", "010123456789", "0101234567a", "01,12345678", "+201012345678", "", None],
)
def test_validate_phone_rejects_everything_else(phone):
    assert not validate_phone(phone)


def test_validate_phone_rejects_non_ascii_digits():
    assert not validate_phone("٠١٠١٢٣٤٥٦٧٨")


def test_shipping_fee_table():
    assert get_shipping_fee("القاهرة") == 30
    assert get_shipping_fee("الجيزة") == 30
    assert get_shipping_fee("الإسكندرية") == 35
    assert get_shipping_fee("أسوان") == 40
    assert get_shipping_fee(None) == 40
    assert get_shipping_fee("") == 40


def test_shipping_fee_ignores_surrounding_whitespace():
    assert get_shipping_fee(" القاهرة ") == 30


def test_shipping_fee_is_defined_for_every_governorate():
    assert all(get_shipping_fee(g) in (30, 35, 40) for g in GOVERNORATES)


def test_calculate_order_total():
    assert calculate_order_total(100, 1, "القاهرة") == OrderTotals(100, 30, 130)
    assert calculate_order_total(250, 2, "الإسكندرية") == OrderTotals(500, 35, 535)
    assert calculate_order_total(250).total == 290


def test_order_totals_to_dict():
    assert OrderTotals(100, 30, 130).to_dict() == {"subtotal": 100, "shipping": 30, "total": 130}


def test_format_price():
    assert format_price(250) == "250 ج.م"
    assert format_price(1250) == "1,250 ج.م"
    assert format_price(99.5) == "99.5 ج.م"
    assert format_price(10.1234) == "10.123 ج.م"
    assert format_price(250, "EGP") == "250 EGP"


def test_format_price_is_stable():
    assert format_price(1999.99) == format_price(1999.99)


def test_format_phone_number():
    assert format_phone_number("01012345678") == "0101 234 5678"
    assert format_phone_number("0101234") == "0101234"


def test_date_formatting_uses_cairo_time_and_arabic_digits():
    # 23:30 UTC is already the next day in Cairo
    value = datetime(2026, 10, 16, 23, 30, tzinfo=timezone.utc)
    assert format_date(value) == "١٧ أكتوبر ٢٠٢٦"
    assert format_short_date(value) == "١٧/١٠/٢٠٢٦"


def test_naive_timestamps_are_treated_as_utc():
    assert format_short_date(datetime(2026, 10, 16, 23, 30)) == "١٧/١٠/٢٠٢٦"
    assert format_short_date("2026-10-16T23:30:00Z") == "١٧/١٠/٢٠٢٦"


def test_format_date_accepts_plain_dates():
    assert format_date(date(2026, 1, 5)) == "٥ يناير ٢٠٢٦"


def test_format_datetime_uses_twelve_hour_clock():
    assert format_datetime(datetime(2026, 10, 17, 12, 5, tzinfo=timezone.utc)) == "١٧ أكتوبر ٢٠٢٦، ٠٣:٠٥ م"
    assert format_datetime(datetime(2026, 10, 17, 6, 0, tzinfo=timezone.utc)) == "١٧ أكتوبر ٢٠٢٦، ٠٩:٠٠ ص"


def test_validate_image_url():
    assert validate_image_url("https://cdn.example.com/a.jpg")
    assert validate_image_url("http://example.com/a.png")
    assert not validate_image_url("ftp://example.com/a.png")
    assert not validate_image_url("/images/a.png")
    assert not validate_image_url("not a url")


def test_build_whatsapp_url_encodes_message():
    url = build_whatsapp_url("201556133633", "مرحباً، أريد طلب:\n1 & 2")
    parsed = urlparse(url)

    assert parsed.scheme == "https"
    assert parsed.netloc == "wa.me"
    assert parsed.path == "/201556133633"
    assert " " not in url and "\n" not in url
    assert parse_qs(parsed.query)["text"] == ["مرحباً، أريد طلب:\n1 & 2"]
