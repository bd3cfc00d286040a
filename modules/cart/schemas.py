"""
Cart Module - Schemas
======================
Request bodies and the priced cart view.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ==========================================
# Requests
# ==========================================

class AddItemRequest(BaseModel):
    cart_id: Optional[str] = None
    variant_id: str = Field(..., min_length=1)
    quantity: int


class UpdateItemRequest(BaseModel):
    cart_id: str = Field(..., min_length=1)
    variant_id: str = Field(..., min_length=1)
    quantity: int


class RemoveItemRequest(BaseModel):
    cart_id: str = Field(..., min_length=1)
    variant_id: str = Field(..., min_length=1)


class ApplyDiscountRequest(BaseModel):
    cart_id: str = Field(..., min_length=1)
    discount_code: str = Field(..., min_length=1)


# ==========================================
# Priced view
# ==========================================

class CartLineView(BaseModel):
    id: int
    variant_id: str
    variant_name: Optional[str] = None
    variant_price: Decimal
    quantity: int
    line_total: Decimal
    image_url: Optional[str] = None
    product_attributes: Optional[Dict[str, Any]] = None


class CartView(BaseModel):
    cart_id: str
    total_items: int
    subtotal_amount: Decimal
    discount_amount: Optional[Decimal] = None
    discount_code_applied: Optional[str] = None
    items: List[CartLineView] = []
