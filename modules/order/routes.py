"""
Order Module - API Routes
===========================
  POST /api/v1/orders             - Checkout a cart into an order
  GET  /api/v1/orders/{order_id}  - Order with items and payment
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from modules.order.schemas import CreateOrderRequest, OrderCreatedResponse, OrderView
from modules.order.service import order_service

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.post("", response_model=OrderCreatedResponse, status_code=201)
def create_order(body: CreateOrderRequest, db: Session = Depends(get_db)):
    return order_service.create_order(db, body)


@router.get("/{order_id}", response_model=OrderView)
def get_order(order_id: str, db: Session = Depends(get_db)):
    return order_service.get_order(db, order_id)
