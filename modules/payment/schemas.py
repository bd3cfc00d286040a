"""
Payment Module - Schemas
=========================
Gateway webhook payload and payment responses.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PaymentNotification(BaseModel):
    """Midtrans HTTP notification body. Every field is a string; missing means empty."""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    transaction_time: str = ""
    transaction_status: str = ""
    transaction_id: str = ""
    status_code: str = ""
    signature_key: str = ""
    payment_type: str = ""
    order_id: str = ""
    merchant_id: str = ""
    gross_amount: str = ""
    fraud_status: str = ""
    currency: str = ""


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    amount: Decimal
    status: str
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_token: Optional[str] = None
    payment_url: Optional[str] = None
    expiry_time: Optional[datetime] = None
    created_at: Optional[datetime] = None


class PaymentStatusResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    order_id: str
    status: str
    transaction_id: Optional[str] = None
    transaction_time: Optional[datetime] = None
    payment_method: Optional[str] = None
    amount: Decimal
    updated_at: Optional[datetime] = None
