"""
Discount Module - Models
=========================
Code-based cart discounts.

Features:
  - Percentage or fixed amount
  - Date range (starts_at / expires_at, open-ended when expires_at is NULL)
  - Total usage limit (0 = unlimited)
  - Minimum order subtotal
"""

import enum
from sqlalchemy import (
    Column, Integer, String, Numeric, Boolean, DateTime, Index,
)
from sqlalchemy.sql import func
from config.database import Base
from common.helpers import new_id


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(String(36), primary_key=True, default=new_id)
    code = Column(String(50), unique=True, nullable=False, index=True)
    discount_type = Column(String(20), default=DiscountType.PERCENTAGE.value, nullable=False)
    value = Column(Numeric(12, 2), nullable=False)  # percent (e.g. 10) or fixed amount

    # Constraints
    minimum_order_amount = Column(Numeric(12, 2), default=0, nullable=False)

    # Date range
    starts_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)

    # Usage limits
    usage_limit = Column(Integer, default=0, nullable=False)
    uses_count = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index("ix_discount_code_active", "code", "is_active"),
    )

    @property
    def is_percentage(self) -> bool:
        return self.discount_type == DiscountType.PERCENTAGE.value

    def __repr__(self):
        return f"<Discount {self.code} {self.discount_type}={self.value}>"
