"""
Payment Module - Models
========================
Gateway-facing transaction record: at most one Payment per Order, created
once and afterwards only updated by gateway notifications.
"""

import enum
from sqlalchemy import (
    Column, String, Numeric, JSON, ForeignKey, DateTime,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from config.database import Base
from common.helpers import new_id


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    E_WALLET = "e_wallet"
    QRIS = "qris"
    RETAIL_OUTLET = "retail_outlet"


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="RESTRICT"), unique=True, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False)
    payment_method = Column(String(50), nullable=True)

    # Gateway transaction
    transaction_id = Column(String(100), nullable=True, index=True)
    transaction_time = Column(DateTime(timezone=True), nullable=True)
    payment_token = Column(String, nullable=True)
    payment_url = Column(String, nullable=True)
    expiry_time = Column(DateTime(timezone=True), nullable=True)
    payment_details = Column(JSON, nullable=True)    # raw last notification, for audit

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="payment")

    def __repr__(self):
        return f"<Payment {self.id} order={self.order_id} {self.status}>"
