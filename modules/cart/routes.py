"""
Cart Module - API Routes
==========================
JSON API over the cart aggregator.

Endpoints:
  POST   /api/v1/cart/items        - Add item (creates the cart when cart_id is empty)
  PUT    /api/v1/cart/items        - Set item quantity (0 removes)
  DELETE /api/v1/cart/items        - Remove item
  GET    /api/v1/cart/{cart_id}    - Priced cart
  POST   /api/v1/cart/discount     - Priced cart with a discount code applied
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from modules.cart.schemas import (
    AddItemRequest, UpdateItemRequest, RemoveItemRequest, ApplyDiscountRequest, CartView,
)
from modules.cart.service import cart_service

router = APIRouter(prefix="/api/v1/cart", tags=["cart"])


# ==========================================
# 🛒 Items
# ==========================================

@router.post("/items", response_model=CartView)
def add_item(body: AddItemRequest, db: Session = Depends(get_db)):
    return cart_service.add_item(db, body.variant_id, body.quantity, cart_id=body.cart_id)


@router.put("/items", response_model=CartView)
def update_item(body: UpdateItemRequest, db: Session = Depends(get_db)):
    return cart_service.update_item_quantity(db, body.cart_id, body.variant_id, body.quantity)


@router.delete("/items", response_model=CartView)
def remove_item(body: RemoveItemRequest, db: Session = Depends(get_db)):
    return cart_service.remove_item(db, body.cart_id, body.variant_id)


# ==========================================
# 🏷️ Discount
# ==========================================

@router.post("/discount", response_model=CartView)
def apply_discount(body: ApplyDiscountRequest, db: Session = Depends(get_db)):
    return cart_service.apply_discount(db, body.cart_id, body.discount_code)


# ==========================================
# 👀 View
# ==========================================

@router.get("/{cart_id}", response_model=CartView)
def get_cart(cart_id: str, db: Session = Depends(get_db)):
    return cart_service.get_cart(db, cart_id)
