"""
SQLAlchemy Database Models

Mirror the hosted ``orders`` and ``products`` tables.
"""

import uuid

from sqlalchemy import Column, String, Float, Date, DateTime, Text, Boolean, JSON
from sqlalchemy.sql import func

from storefront.core.constants import OrderStatus
from storefront.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class OrderRecord(Base):
    """
    Orders placed from the landing-page form.

    ``status`` holds the Arabic label of an ``OrderStatus``; ``total_amount``
    is computed once at creation and never recomputed.
    """
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=_new_id)

    # Customer
    customer_name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False, index=True)
    address = Column(Text, nullable=False)
    governorate = Column(String(50), nullable=True)
    notes = Column(Text, nullable=True)

    # Pricing & workflow
    total_amount = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default=OrderStatus.NEW.value, index=True)
    order_date = Column(Date, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Order {self.id} - {self.customer_name} - {self.status}>"


class ProductRecord(Base):
    """The storefront product catalogue (one featured product in practice)."""
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(100), nullable=False)
    brand = Column(String(50), nullable=False)
    price = Column(Float, nullable=False)
    description = Column(Text, nullable=True)
    whatsapp_number = Column(String(20), nullable=True)

    benefits = Column(JSON, nullable=False, default=list)
    usage_instructions = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<Product {self.id} - {self.name}>"
