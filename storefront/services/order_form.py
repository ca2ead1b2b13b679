"""
Landing-Page Order Form

Two submission paths:
    - ``submit()``: validate, price and persist the order through the
      order cache (repository ``create``)
    - ``whatsapp_order()``: compose a pre-filled WhatsApp message and deep
      link; nothing is persisted

The first failing check wins and its Arabic message is surfaced. On a
successful submission the fields are reset and the success callback fires;
on failure the fields are kept so the customer can retry.
"""

import logging
from dataclasses import dataclass, fields, replace
from datetime import date
from typing import Callable, Optional

from storefront.core.constants import OrderStatus
from storefront.core.exceptions import OrderValidationError
from storefront.schemas import Order, OrderCreate, OrderFormData, validate_field
from storefront.services.pricing import (
    CURRENCY_LABEL,
    OrderTotals,
    build_whatsapp_url,
    calculate_order_total,
    generate_whatsapp_message,
    normalize_phone,
    validate_phone,
)
from storefront.services.store import Notice, OrderStore

logger = logging.getLogger(__name__)


@dataclass
class OrderFormFields:
    customer_name: str = ""
    phone: str = ""
    address: str = ""
    governorate: str = ""
    notes: str = ""


@dataclass
class FormSubmitResult:
    success: bool
    notice: Notice
    order: Optional[Order] = None
    field: Optional[str] = None


@dataclass
class WhatsAppOrderResult:
    success: bool
    notice: Optional[Notice] = None
    message: Optional[str] = None
    url: Optional[str] = None


class OrderForm:
    """
    State and actions of the order form for a single product.

    Example:
        >>> form = OrderForm(store, product_price=250, product_name="كريم")
        >>> form.set_field("customer_name", "سارة")
        >>> result = await form.submit()
    """

    def __init__(
        self,
        store: OrderStore,
        product_price: float,
        product_name: str = "",
        whatsapp_number: str = "",
        whatsapp_base_url: str = "https://wa.me",
        currency_label: str = CURRENCY_LABEL,
        on_success: Optional[Callable[[Order], None]] = None,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.product_price = product_price
        self.product_name = product_name
        self.whatsapp_number = whatsapp_number
        self.whatsapp_base_url = whatsapp_base_url
        self.currency_label = currency_label
        self.on_success = on_success
        self.today = today
        self.fields = OrderFormFields()
        self.loading = False

    def set_field(self, name: str, value: str) -> None:
        if name not in {f.name for f in fields(OrderFormFields)}:
            raise KeyError(name)
        self.fields = replace(self.fields, **{name: value})

    def fill(self, **values: str) -> "OrderForm":
        for name, value in values.items():
            self.set_field(name, value)
        return self

    def reset(self) -> None:
        self.fields = OrderFormFields()

    def summary(self) -> OrderTotals:
        """Price breakdown shown under the form; no shipping until a governorate is chosen."""
        if self.fields.governorate:
            return calculate_order_total(self.product_price, 1, self.fields.governorate)
        return OrderTotals(subtotal=self.product_price, shipping=0, total=self.product_price)

    def validate(self) -> None:
        """Raise ``OrderValidationError`` for the first failing field."""
        f = self.fields

        if not f.customer_name.strip():
            raise OrderValidationError("customer_name", "يرجى إدخال الاسم")
        if not validate_phone(f.phone):
            raise OrderValidationError(
                "phone",
                "رقم الهاتف غير صحيح",
                "يرجى إدخال رقم هاتف مصري صحيح (يبدأ بـ 01)",
            )
        if not f.address.strip():
            raise OrderValidationError("address", "يرجى إدخال العنوان")
        if not f.governorate:
            raise OrderValidationError("governorate", "يرجى اختيار المحافظة")

        result = validate_field(OrderFormData, {
            "customer_name": f.customer_name,
            "phone": normalize_phone(f.phone),
            "address": f.address,
            "governorate": f.governorate,
            "notes": f.notes or None,
        })
        if not result["success"]:
            raise OrderValidationError(result["field"] or "general", result["error"])

    async def submit(self) -> FormSubmitResult:
        try:
            self.validate()
        except OrderValidationError as e:
            logger.info(f"Order form rejected ({e.field}): {e.message}")
            return FormSubmitResult(
                success=False,
                notice=Notice.error(e.message, e.description),
                field=e.field,
            )

        self.loading = True
        try:
            totals = calculate_order_total(self.product_price, 1, self.fields.governorate)
            payload = OrderCreate(
                customer_name=self.fields.customer_name,
                phone=normalize_phone(self.fields.phone),
                address=self.fields.address,
                governorate=self.fields.governorate,
                notes=self.fields.notes or None,
                total_amount=totals.total,
                status=OrderStatus.NEW,
                order_date=self.today(),
            )
            order = await self.store.add_order(payload)
        finally:
            self.loading = False

        if order is None:
            return FormSubmitResult(
                success=False,
                notice=Notice.error(
                    "حدث خطأ أثناء إرسال الطلب",
                    "يرجى المحاولة مرة أخرى أو التواصل معنا",
                ),
            )

        self.reset()
        if self.on_success is not None:
            self.on_success(order)

        return FormSubmitResult(
            success=True,
            notice=Notice.success(
                "تم إرسال طلبك بنجاح! 🎉",
                "سنتواصل معك قريباً لتأكيد الطلب",
            ),
            order=order,
        )

    def whatsapp_order(self) -> WhatsAppOrderResult:
        """Build the WhatsApp order link; only name and governorate are required."""
        if not self.fields.customer_name.strip() or not self.fields.governorate:
            return WhatsAppOrderResult(
                success=False,
                notice=Notice.error("يرجى إدخال الاسم واختيار المحافظة أولاً"),
            )

        message = generate_whatsapp_message(
            self.fields.customer_name,
            self.product_name,
            self.product_price,
            self.fields.governorate,
            self.currency_label,
        )
        url = build_whatsapp_url(self.whatsapp_number, message, self.whatsapp_base_url)
        logger.info(f"WhatsApp order link built for {self.fields.customer_name}")
        return WhatsAppOrderResult(success=True, message=message, url=url)
