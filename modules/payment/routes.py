"""
Payment Routes
================
Hosted-payment creation, status lookup, and the gateway webhook.

  POST /api/v1/payments/notification           - Gateway notification (webhook)
  GET  /api/v1/payments/status/{payment_id}    - Payment status
  POST /api/v1/payments/{order_id}             - Create (or return) the order's payment
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from modules.payment.schemas import PaymentNotification, PaymentResponse, PaymentStatusResponse
from modules.payment.service import payment_service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


# ==========================================
# 🔔 Gateway Webhook
# ==========================================

@router.post("/notification")
def payment_notification(body: PaymentNotification, db: Session = Depends(get_db)):
    """
    Errors map to non-2xx responses so the gateway redelivers:
    400 invalid payload, 404 unknown order, 422 unknown status, 500 storage failure.
    """
    payment_service.handle_payment_notification(db, body)
    return {"status": "ok"}


# ==========================================
# 🔍 Status
# ==========================================

@router.get("/status/{payment_id}", response_model=PaymentStatusResponse)
def payment_status(payment_id: str, db: Session = Depends(get_db)):
    return payment_service.get_payment_status(db, payment_id)


# ==========================================
# 🏦 Create Payment
# ==========================================

@router.post("/{order_id}", response_model=PaymentResponse)
def create_payment(order_id: str, db: Session = Depends(get_db)):
    return payment_service.create_payment(db, order_id)
