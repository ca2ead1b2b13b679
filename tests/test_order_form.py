import asyncio
from datetime import date
from urllib.parse import parse_qs, urlparse

import pytest

from storefront.core.constants import OrderStatus
from storefront.services.order_form import OrderForm, OrderFormFields
from storefront.services.store import OrderStore

PRICE = 250.0


@pytest.fixture
def store(order_repository, change_feed):
    store = OrderStore(order_repository, change_feed)
    asyncio.run(store.start())
    return store


@pytest.fixture
def form(store):
    return OrderForm(
        store,
        product_price=PRICE,
        product_name="كيكه +Vit E - سندرين بيوتي",
        whatsapp_number="201556133633",
        today=lambda: date(2026, 10, 17),
    )


def fill_valid(form: OrderForm) -> OrderForm:
    return form.fill(
        customer_name="سارة",
        phone="01012345678",
        address="10 characters minimum address text",
        governorate="القاهرة",
    )


def test_successful_submission(form, store):
    created = []
    form.on_success = created.append
    fill_valid(form)

    result = asyncio.run(form.submit())

    assert result.success
    assert result.notice.title == "تم إرسال طلبك بنجاح! 🎉"
    assert result.order.total_amount == PRICE + 30
    assert result.order.status == OrderStatus.NEW
    assert result.order.order_date == date(2026, 10, 17)
    assert form.fields == OrderFormFields()
    assert created == [result.order]
    assert store.orders[0].id == result.order.id
    assert not form.loading


def test_phone_whitespace_is_removed_before_saving(form):
    fill_valid(form).set_field("phone", "010 1234 5678")
    result = asyncio.run(form.submit())
    assert result.order.phone == "01012345678"


def test_empty_notes_are_saved_as_null(form):
    result = asyncio.run(fill_valid(form).submit())
    assert result.order.notes is None


@pytest.mark.parametrize(
    "field,value,message",
    [
        ("customer_name", "  ", "يرجى إدخال الاسم"),
        ("phone", "01312345678", "رقم الهاتف غير صحيح"),
        ("address", "", "يرجى إدخال العنوان"),
        ("governorate", "", "يرجى اختيار المحافظة"),
        ("customer_name", "Sara", "الاسم يجب أن يحتوي على أحرف عربية فقط"),
        ("address", "قصير", "العنوان يجب أن يحتوي على 10 أحرف على الأقل"),
    ],
)
def test_invalid_submission_is_rejected(form, store, field, value, message):
    fill_valid(form).set_field(field, value)
    count = len(store.orders)

    result = asyncio.run(form.submit())

    assert not result.success
    assert result.field == field
    assert result.notice.title == message
    assert len(store.orders) == count
    assert getattr(form.fields, field) == value


def test_first_failing_check_wins(form):
    form.fill(phone="123")
    result = asyncio.run(form.submit())
    assert result.field == "customer_name"


def test_store_failure_keeps_fields(form, order_repository):
    fill_valid(form)
    order_repository.failure_rate = 1.0

    result = asyncio.run(form.submit())

    assert not result.success
    assert result.field is None
    assert result.notice.title == "حدث خطأ أثناء إرسال الطلب"
    assert form.fields.customer_name == "سارة"


def test_unknown_field_name(form):
    with pytest.raises(KeyError):
        form.set_field("email", "x@example.com")


def test_summary(form):
    assert form.summary().to_dict() == {"subtotal": PRICE, "shipping": 0, "total": PRICE}
    form.set_field("governorate", "الإسكندرية")
    assert form.summary().to_dict() == {"subtotal": PRICE, "shipping": 35, "total": PRICE + 35}


def test_whatsapp_order(form, store):
    form.fill(customer_name="سارة", governorate="الجيزة")
    count = len(store.orders)

    result = form.whatsapp_order()

    assert result.success
    assert result.message == (
        "مرحباً، أريد طلب:\n\n"
        "📦 المنتج: كيكه +Vit E - سندرين بيوتي\n"
        "👤 الاسم: سارة\n"
        "📍 المحافظة: الجيزة\n\n"
        "💰 السعر: 250 ج.م\n"
        "🚚 الشحن: 30 ج.م\n"
        "💳 الإجمالي: 280 ج.م\n\n"
        "يرجى التأكيد والتواصل لإتمام الطلب."
    )
    parsed = urlparse(result.url)
    assert parsed.path == "/201556133633"
    assert parse_qs(parsed.query)["text"] == [result.message]
    assert len(store.orders) == count


def test_whatsapp_order_uses_configured_currency(form):
    form.currency_label = "EGP"
    form.fill(customer_name="سارة", governorate="الجيزة")

    message = form.whatsapp_order().message

    assert "💰 السعر: 250 EGP" in message
    assert "💳 الإجمالي: 280 EGP" in message
    assert "ج.م" not in message


def test_whatsapp_order_requires_name_and_governorate(form):
    form.set_field("customer_name", "سارة")
    result = form.whatsapp_order()
    assert not result.success
    assert result.notice.title == "يرجى إدخال الاسم واختيار المحافظة أولاً"
    assert result.url is None
