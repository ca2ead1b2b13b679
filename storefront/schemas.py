"""
Pydantic Schemas for Validation and Request/Response Bodies

- Declarative form validation with Arabic error messages
  (``OrderFormData``, ``ProductData``)
- Domain records read from the hosted store (``Order``, ``Product``)
- API request/response bodies
"""

from datetime import date, datetime
from typing import Any, Optional, List, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_core import PydanticCustomError

from storefront.core.constants import (
    ARABIC_NAME_REGEX,
    GOVERNORATES,
    PHONE_REGEX,
    OrderStatus,
    ProductLimits,
)
from storefront.services.pricing import validate_image_url


GENERIC_VALIDATION_ERROR = "خطأ في التحقق من البيانات"
INVALID_TYPE_ERROR = "نوع البيانات غير صحيح"
REQUIRED_FIELD_ERROR = "هذا الحقل مطلوب"
INVALID_CHOICE_ERROR = "القيمة المختارة غير صحيحة"
INVALID_STATUS_ERROR = "حالة الطلب غير صحيحة"


def _fail(code: str, message: str) -> PydanticCustomError:
    return PydanticCustomError(code, message)


def _check_phone(v: str) -> str:
    if len(v) < 11:
        raise _fail("phone_too_short", "رقم الهاتف يجب أن يحتوي على 11 رقم")
    if not PHONE_REGEX.fullmatch(v):
        raise _fail("phone_invalid", "رقم الهاتف غير صحيح (يجب أن يبدأ بـ 01)")
    return v


# =============================================================================
# FORM VALIDATION SCHEMAS
# =============================================================================

class OrderFormData(BaseModel):
    """Declarative constraints of the landing-page order form."""

    customer_name: str
    phone: str
    address: str
    governorate: str
    notes: Optional[str] = None

    @field_validator("customer_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if len(v) < 2:
            raise _fail("name_too_short", "الاسم يجب أن يحتوي على حرفين على الأقل")
        if len(v) > 50:
            raise _fail("name_too_long", "الاسم طويل جداً")
        if not ARABIC_NAME_REGEX.match(v):
            raise _fail("name_not_arabic", "الاسم يجب أن يحتوي على أحرف عربية فقط")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return _check_phone(v)

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        if len(v) < 10:
            raise _fail("address_too_short", "العنوان يجب أن يحتوي على 10 أحرف على الأقل")
        if len(v) > 200:
            raise _fail("address_too_long", "العنوان طويل جداً")
        return v

    @field_validator("governorate")
    @classmethod
    def validate_governorate(cls, v: str) -> str:
        if len(v) < 1:
            raise _fail("governorate_missing", "يرجى اختيار المحافظة")
        if v not in GOVERNORATES:
            raise _fail("governorate_invalid", "المحافظة غير صحيحة")
        return v

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > 500:
            raise _fail("notes_too_long", "الملاحظات طويلة جداً")
        return v


class ProductData(BaseModel):
    """Declarative constraints of a product row."""

    name: str
    brand: str
    price: float
    description: Optional[str] = None
    whatsapp_number: Optional[str] = None
    benefits: List[str] = Field(default_factory=list)
    usage_instructions: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if len(v) < 2:
            raise _fail("name_too_short", "اسم المنتج قصير جداً")
        if len(v) > ProductLimits.MAX_NAME_LENGTH:
            raise _fail(
                "name_too_long",
                f"اسم المنتج طويل جداً (حد أقصى {ProductLimits.MAX_NAME_LENGTH} حرف)",
            )
        return v

    @field_validator("brand")
    @classmethod
    def validate_brand(cls, v: str) -> str:
        if len(v) < 2:
            raise _fail("brand_too_short", "اسم العلامة التجارية قصير جداً")
        if len(v) > ProductLimits.MAX_BRAND_LENGTH:
            raise _fail(
                "brand_too_long",
                f"اسم العلامة التجارية طويل جداً (حد أقصى {ProductLimits.MAX_BRAND_LENGTH} حرف)",
            )
        return v

    @field_validator("price")
    @classmethod
    def validate_price(cls, v: float) -> float:
        if v < 1:
            raise _fail("price_too_small", "السعر يجب أن يكون أكبر من صفر")
        if v > 999999:
            raise _fail("price_too_big", "السعر كبير جداً")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and len(v) > ProductLimits.MAX_DESCRIPTION_LENGTH:
            raise _fail(
                "description_too_long",
                f"الوصف طويل جداً (حد أقصى {ProductLimits.MAX_DESCRIPTION_LENGTH} حرف)",
            )
        return v

    @field_validator("whatsapp_number")
    @classmethod
    def validate_whatsapp(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check_phone(v)

    @field_validator("benefits")
    @classmethod
    def validate_benefits(cls, v: List[str]) -> List[str]:
        if len(v) > ProductLimits.MAX_BENEFITS:
            raise _fail(
                "benefits_too_many",
                f"عدد الفوائد كبير جداً (حد أقصى {ProductLimits.MAX_BENEFITS})",
            )
        if any(len(item) > ProductLimits.MAX_BENEFIT_LENGTH for item in v):
            raise _fail(
                "benefit_too_long",
                f"يجب أن لا يتجاوز {ProductLimits.MAX_BENEFIT_LENGTH} حرف",
            )
        return v

    @field_validator("usage_instructions")
    @classmethod
    def validate_instructions(cls, v: List[str]) -> List[str]:
        if len(v) > ProductLimits.MAX_USAGE_INSTRUCTIONS:
            raise _fail(
                "instructions_too_many",
                f"عدد الخطوات كبير جداً (حد أقصى {ProductLimits.MAX_USAGE_INSTRUCTIONS})",
            )
        if any(len(item) > ProductLimits.MAX_INSTRUCTION_LENGTH for item in v):
            raise _fail(
                "instruction_too_long",
                f"يجب أن لا يتجاوز {ProductLimits.MAX_INSTRUCTION_LENGTH} حرف",
            )
        return v

    @field_validator("images")
    @classmethod
    def validate_images(cls, v: List[str]) -> List[str]:
        if len(v) > ProductLimits.MAX_IMAGES:
            raise _fail(
                "images_too_many",
                f"عدد الصور كبير جداً (حد أقصى {ProductLimits.MAX_IMAGES})",
            )
        if not all(validate_image_url(url) for url in v):
            raise _fail("image_url_invalid", "رابط الصورة غير صحيح")
        return v


# =============================================================================
# VALIDATION HELPERS
# =============================================================================

def error_message(error: dict) -> str:
    """Arabic message for one pydantic error entry."""
    kind = error.get("type", "")
    if kind == "enum":
        return INVALID_CHOICE_ERROR
    if kind == "json_invalid":
        return GENERIC_VALIDATION_ERROR
    if kind == "missing":
        return REQUIRED_FIELD_ERROR
    if kind.endswith("_type") or kind.endswith("_parsing"):
        return INVALID_TYPE_ERROR
    return error.get("msg") or GENERIC_VALIDATION_ERROR


def validate_field(schema: Type[BaseModel], value: Any) -> dict[str, Any]:
    """
    Validate ``value`` and report only the first failure.

    Returns:
        ``{"success": True, "data": model}`` or
        ``{"success": False, "error": message, "field": path}``
    """
    try:
        return {"success": True, "data": schema.model_validate(value)}
    except ValidationError as exc:
        errors = exc.errors()
        if not errors:
            return {"success": False, "error": GENERIC_VALIDATION_ERROR, "field": None}
        first = errors[0]
        return {
            "success": False,
            "error": error_message(first),
            "field": ".".join(str(p) for p in first.get("loc", ())) or None,
        }


def validate_partial(schema: Type[BaseModel], value: Any) -> dict[str, Any]:
    """
    Validate ``value`` and collect every failure keyed by field path.

    Returns:
        ``{"success": bool, "errors": {path: message}}``
    """
    try:
        schema.model_validate(value)
        return {"success": True, "errors": {}}
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for error in exc.errors():
            path = ".".join(str(p) for p in error.get("loc", ())) or "general"
            errors.setdefault(path, error_message(error))
        return {"success": False, "errors": errors or {"general": GENERIC_VALIDATION_ERROR}}


# =============================================================================
# DOMAIN RECORDS
# =============================================================================

class Order(BaseModel):
    """An order row as stored in the hosted ``orders`` table."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_name: str
    phone: str
    address: str
    governorate: Optional[str] = None
    notes: Optional[str] = None
    total_amount: float
    status: OrderStatus
    order_date: date
    created_at: datetime
    updated_at: Optional[datetime] = None


class OrderCreate(BaseModel):
    """Insert payload for a new order row."""
    customer_name: str
    phone: str
    address: str
    governorate: Optional[str] = None
    notes: Optional[str] = None
    total_amount: float
    status: OrderStatus = OrderStatus.NEW
    order_date: date


class Product(BaseModel):
    """A product row as stored in the hosted ``products`` table."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    brand: str
    price: float
    description: Optional[str] = None
    whatsapp_number: Optional[str] = None
    benefits: List[str] = Field(default_factory=list)
    usage_instructions: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class OrderFormRequest(BaseModel):
    """Raw landing-page form fields, validated by the order form."""
    customer_name: str = Field(default="", examples=["سارة أحمد"])
    phone: str = Field(default="", examples=["01012345678"])
    address: str = Field(default="", examples=["15 شارع التحرير، الدقي"])
    governorate: str = Field(default="", examples=["القاهرة"])
    notes: str = Field(default="")


class WhatsAppOrderRequest(BaseModel):
    customer_name: str = Field(default="", examples=["سارة"])
    governorate: str = Field(default="", examples=["الجيزة"])


class StatusUpdateRequest(BaseModel):
    status: OrderStatus = Field(..., examples=["تم الشحن"])


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class OrderCreateResponse(BaseModel):
    success: bool
    message: str
    description: Optional[str] = None
    order: Optional[Order] = None


class OrderListResponse(BaseModel):
    total: int
    loading: bool
    orders: List[Order]


class OrderSummaryResponse(BaseModel):
    subtotal: float
    shipping: float
    total: float
    subtotal_label: str
    shipping_label: str
    total_label: str


class WhatsAppLinkResponse(BaseModel):
    success: bool
    url: str
    message: str


class StatusUpdateResponse(BaseModel):
    success: bool
    message: str
    order: Optional[Order] = None


class LandingProductResponse(BaseModel):
    loading: bool
    product: Optional[Product] = None
    price_label: Optional[str] = None


class ArchiveResponse(BaseModel):
    success: bool
    message: str
    path: Optional[str] = None
    rows: int = 0


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Optional[str] = None
    field: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    order_repository: str
    product_repository: str
    change_feed: str
    timestamp: datetime
