"""
Order Module - Models
======================
Order with a price snapshot per item. Totals are computed once at creation
and never recomputed.
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Numeric, Text,
    ForeignKey, DateTime,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from common.helpers import new_id


class OrderStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class OrderSequence(Base):
    """One row per issued order number; the autoincrement id is the sequence value."""
    __tablename__ = "order_sequences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    issued_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = {"sqlite_autoincrement": True}


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    order_number = Column(String(50), unique=True, nullable=False)
    cart_id = Column(String(36), ForeignKey("carts.id", ondelete="RESTRICT"), nullable=False, index=True)
    customer_id = Column(String(36), nullable=True, index=True)

    # Customer
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(50), nullable=False)

    # Shipping
    shipping_street_address = Column(String(255), nullable=False)
    shipping_city = Column(String(100), nullable=True)
    shipping_province = Column(String(100), nullable=True)
    shipping_district = Column(String(100), nullable=True)
    shipping_postal_code = Column(String(20), nullable=True)
    shipping_country = Column(String(100), nullable=True)
    shipping_courier = Column(String(100), nullable=True)
    shipping_service = Column(String(100), nullable=True)

    # Totals (frozen at creation)
    subtotal = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), default=0, nullable=False)
    discount_code_applied = Column(String(50), nullable=True)
    shipping_cost = Column(Numeric(12, 2), default=0, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), default="IDR", nullable=False)

    order_status = Column(String(20), default=OrderStatus.PENDING.value, nullable=False)
    source_channel = Column(String(50), default="web", nullable=False)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)   # soft delete only

    # Relationships
    items = relationship(
        "OrderItem", back_populates="order",
        cascade="all, delete-orphan", order_by="OrderItem.id",
    )
    payment = relationship("Payment", back_populates="order", uselist=False)

    @property
    def shipping_address_line(self) -> str:
        """Street, district, city, province, postal code, country; blanks skipped."""
        parts = [
            self.shipping_street_address,
            self.shipping_district,
            self.shipping_city,
            self.shipping_province,
            self.shipping_postal_code,
            self.shipping_country,
        ]
        return ", ".join(p for p in parts if p)

    def __repr__(self):
        return f"<Order {self.order_number} {self.order_status} total={self.total_amount}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    variant_id = Column(String(36), ForeignKey("product_variants.id", ondelete="RESTRICT"), nullable=False)
    quantity = Column(Integer, nullable=False)

    # Price snapshot at time of purchase
    price_at_purchase = Column(Numeric(12, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    variant = relationship("ProductVariant")

    @property
    def line_total(self):
        return self.price_at_purchase * self.quantity
