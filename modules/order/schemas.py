"""
Order Module - Schemas
=======================
Checkout request, order-created summary and the order detail view.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CreateOrderRequest(BaseModel):
    cart_id: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_email: str = Field(..., min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    customer_phone: str = Field(..., min_length=1)

    shipping_address: str = Field(..., min_length=1)
    shipping_city_name: str = ""
    shipping_province_name: str = ""
    shipping_district_name: str = ""
    shipping_postal_code: str = ""
    shipping_courier: str = ""
    shipping_service: str = ""
    shipping_cost: Decimal = Field(Decimal("0"), ge=0)
    total_weight: int = Field(0, ge=0)

    notes: Optional[str] = None


class OrderCreatedResponse(BaseModel):
    order_id: str
    order_number: str
    total_amount: Decimal


class OrderItemView(BaseModel):
    id: str
    product_variant_id: str
    variant_name: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal
    image_url: Optional[str] = None
    attributes: Optional[Dict[str, Any]] = None


class OrderPaymentView(BaseModel):
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


class OrderView(BaseModel):
    id: str
    order_number: str
    cart_id: str
    customer_name: str
    customer_email: str
    customer_phone: str
    shipping_address: str
    subtotal: Decimal
    discount_amount: Decimal
    discount_code: Optional[str] = None
    shipping_cost: Decimal
    total_amount: Decimal
    currency: str
    order_status: str
    notes: Optional[str] = None
    items: List[OrderItemView] = []
    payment: Optional[OrderPaymentView] = None
    created_at: Optional[datetime] = None
