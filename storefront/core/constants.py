"""
Static business tables: order statuses, governorates, shipping fees,
phone pattern and product limits.
"""

import enum
import re


class OrderStatus(str, enum.Enum):
    """Order status workflow. Values are the Arabic labels stored in the table."""
    NEW = "جديد"
    PREPARING = "قيد التجهيز"
    SHIPPED = "تم الشحن"
    DELIVERED = "تم التوصيل"
    CANCELLED = "ملغي"


# Pseudo-status accepted by the admin status filter
ALL_STATUSES = "all"


GOVERNORATES: tuple[str, ...] = (
    "القاهرة",
    "الجيزة",
    "الإسكندرية",
    "القليوبية",
    "الدقهلية",
    "الشرقية",
    "المنوفية",
    "الغربية",
    "البحيرة",
    "كفر الشيخ",
    "دمياط",
    "بورسعيد",
    "الإسماعيلية",
    "السويس",
    "شمال سيناء",
    "جنوب سيناء",
    "الفيوم",
    "بني سويف",
    "المنيا",
    "أسيوط",
    "سوهاج",
    "قنا",
    "الأقصر",
    "أسوان",
    "البحر الأحمر",
    "الوادي الجديد",
    "مطروح",
)

CAIRO = "القاهرة"
GIZA = "الجيزة"
ALEXANDRIA = "الإسكندرية"

# Shipping fees (EGP)
SHIPPING_FEES = {
    CAIRO: 30,
    GIZA: 30,
    ALEXANDRIA: 35,
}
DEFAULT_SHIPPING_FEE = 40

# Egyptian mobile: 010 / 011 / 012 / 015 followed by 8 digits
PHONE_REGEX = re.compile(r"^01[0125][0-9]{8}$")

# Arabic letters and whitespace
ARABIC_NAME_REGEX = re.compile(r"^[\u0600-\u06FF\s]+$")


class ProductLimits:
    MAX_BENEFITS = 10
    MAX_USAGE_INSTRUCTIONS = 8
    MAX_IMAGES = 10
    MAX_BENEFIT_LENGTH = 100
    MAX_INSTRUCTION_LENGTH = 150
    MAX_NAME_LENGTH = 100
    MAX_BRAND_LENGTH = 50
    MAX_DESCRIPTION_LENGTH = 500


# Product shown when the in-memory store is seeded for development
DEMO_PRODUCT = {
    "name": "كيكه +Vit E",
    "brand": "سندرين بيوتي",
    "price": 250.0,
    "description": "كريم مرطب غني بفيتامين E لبشرة ناعمة ومشرقة",
    "whatsapp_number": None,
    "benefits": [
        "ترطيب عميق يدوم طوال اليوم",
        "يقلل من ظهور البقع الداكنة",
        "مناسب لجميع أنواع البشرة",
    ],
    "usage_instructions": [
        "نظفي البشرة جيداً",
        "ضعي كمية مناسبة على الوجه",
        "دلكي بحركات دائرية حتى يمتص",
    ],
    "images": [],
    "is_active": True,
}
