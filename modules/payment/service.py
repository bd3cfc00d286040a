"""
Payment Service
=================
Hosted-payment session creation and the webhook-driven payment state machine.

Gateway transaction_status -> (Payment.status, Order.order_status):
    capture, settlement  -> success,  processing
    pending              -> pending,  pending
    deny, cancel, expire -> failed,   cancelled
    refund               -> refunded, refunded

Notifications are delivered at least once; applying the same payload twice
leaves the same end state.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config.database import unit_of_work
from config.settings import BASE_URL, PAYMENT_GATEWAY, PAYMENT_EXPIRY_HOURS, TRANSACTION_TIME_FORMAT
from common.exceptions import (
    GatewaySessionError, InvalidNotification, OrderNotFound, PaymentNotFound,
    PersistenceError, UnknownTransactionStatus,
)
from common.helpers import now_utc, to_money
from modules.order.models import Order, OrderStatus
from modules.payment.models import Payment, PaymentMethod, PaymentStatus
from modules.payment.schemas import PaymentNotification, PaymentResponse, PaymentStatusResponse

# Import gateway modules to trigger register_gateway() calls
from modules.payment.gateways import BaseGateway, GatewaySessionRequest, get_gateway
import modules.payment.gateways.midtrans  # noqa: F401

logger = logging.getLogger("storefront.payment")

NOTIFICATION_PATH = "/api/v1/payments/notification"

# Midtrans reports transaction_time in Western Indonesia Time (WIB), not UTC
GATEWAY_TZ = timezone(timedelta(hours=7))

STATUS_TRANSITIONS = {
    "capture": (PaymentStatus.SUCCESS, OrderStatus.PROCESSING),
    "settlement": (PaymentStatus.SUCCESS, OrderStatus.PROCESSING),
    "pending": (PaymentStatus.PENDING, OrderStatus.PENDING),
    "deny": (PaymentStatus.FAILED, OrderStatus.CANCELLED),
    "cancel": (PaymentStatus.FAILED, OrderStatus.CANCELLED),
    "expire": (PaymentStatus.FAILED, OrderStatus.CANCELLED),
    "refund": (PaymentStatus.REFUNDED, OrderStatus.REFUNDED),
}

PAYMENT_TYPE_METHODS = {
    "credit_card": PaymentMethod.CREDIT_CARD,
    "bank_transfer": PaymentMethod.BANK_TRANSFER,
    "gopay": PaymentMethod.E_WALLET,
    "shopeepay": PaymentMethod.E_WALLET,
    "qris": PaymentMethod.QRIS,
    "cstore": PaymentMethod.RETAIL_OUTLET,
}

REQUIRED_NOTIFICATION_FIELDS = ("transaction_id", "order_id", "transaction_status", "payment_type")


@dataclass
class NotificationOutcome:
    """What a webhook delivery changed."""
    payment_id: str
    order_id: str
    payment_status: str
    order_status: str
    transaction_time: Optional[datetime] = None
    transaction_time_parse_failed: bool = False


def parse_transaction_time(value: str) -> Optional[datetime]:
    """Gateway wall-clock time -> aware datetime. Raises ValueError on bad format."""
    if not value:
        return None
    return datetime.strptime(value, TRANSACTION_TIME_FORMAT).replace(tzinfo=GATEWAY_TZ)


class PaymentService:

    def __init__(self, gateway: Optional[BaseGateway] = None):
        self._gateway = gateway

    @property
    def gateway(self) -> BaseGateway:
        gw = self._gateway or get_gateway(PAYMENT_GATEWAY)
        if not gw:
            raise GatewaySessionError(
                GatewaySessionError.GATEWAY_ERROR, f"payment gateway {PAYMENT_GATEWAY} is not available",
            )
        return gw

    # ==========================================
    # 🏦 Create Payment (idempotent per order)
    # ==========================================

    def create_payment(self, db: Session, order_id: str) -> PaymentResponse:
        """
        Return the order's Payment, creating it through the gateway on first call.
        An existing Payment is returned unchanged without contacting the gateway.
        """
        order = db.query(Order).filter(Order.id == order_id, Order.deleted_at.is_(None)).first()
        if not order:
            raise OrderNotFound(order_id)

        existing = self._find_by_order(db, order_id)
        if existing:
            return PaymentResponse.model_validate(existing)

        session = self._create_session(order)

        payment = Payment(
            order_id=order.id,
            amount=to_money(order.total_amount),
            status=PaymentStatus.PENDING.value,
            payment_token=session.token,
            payment_url=session.redirect_url,
            expiry_time=now_utc() + timedelta(hours=PAYMENT_EXPIRY_HOURS),
            payment_details={},
        )
        db.add(payment)
        try:
            db.commit()
        except IntegrityError:
            # Concurrent create for the same order won the unique index
            db.rollback()
            existing = self._find_by_order(db, order_id)
            if existing:
                logger.warning(f"Payment for order {order_id} created concurrently; returning existing")
                return PaymentResponse.model_validate(existing)
            raise PersistenceError(f"failed to create payment for order {order_id}")
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create payment for order {order_id}: {e}")
            raise PersistenceError(f"failed to create payment: {e}") from e

        db.refresh(payment)
        logger.info(f"Payment {payment.id} created for order {order.order_number}, amount {payment.amount}")
        return PaymentResponse.model_validate(payment)

    # ==========================================
    # 🔍 Status
    # ==========================================

    def get_payment_status(self, db: Session, payment_id: str) -> PaymentStatusResponse:
        payment = db.query(Payment).filter(Payment.id == payment_id).first()
        if not payment:
            raise PaymentNotFound(payment_id)
        return PaymentStatusResponse.model_validate(payment)

    # ==========================================
    # 🔔 Gateway Notification (webhook)
    # ==========================================

    def handle_payment_notification(self, db: Session, notification: PaymentNotification) -> NotificationOutcome:
        """
        Apply a gateway notification to the Payment and its Order.
        1. Reject payloads missing a required field
        2. Lock the Payment row for the notified order
        3. Map transaction_status (unknown statuses change nothing)
        4. Backfill transaction_id, map payment_type, parse transaction_time
        5. Store the raw payload and commit Payment + Order together
        """
        for field in REQUIRED_NOTIFICATION_FIELDS:
            if not getattr(notification, field):
                raise InvalidNotification(field)

        with unit_of_work(db, "update payment status"):
            payment = (
                db.query(Payment)
                .filter(Payment.order_id == notification.order_id)
                .with_for_update()
                .first()
            )
            if not payment:
                raise PaymentNotFound(notification.order_id)

            transition = STATUS_TRANSITIONS.get(notification.transaction_status)
            if transition is None:
                raise UnknownTransactionStatus(notification.transaction_status)
            payment_status, order_status = transition

            if not payment.transaction_id:
                payment.transaction_id = notification.transaction_id

            method = PAYMENT_TYPE_METHODS.get(notification.payment_type)
            if method:
                payment.payment_method = method.value

            parse_failed = False
            try:
                transaction_time = parse_transaction_time(notification.transaction_time)
            except ValueError:
                transaction_time = None
                parse_failed = True
                logger.warning(
                    f"Unparseable transaction_time {notification.transaction_time!r} "
                    f"for order {notification.order_id}"
                )
            if transaction_time:
                payment.transaction_time = transaction_time

            payment.status = payment_status.value
            details = notification.model_dump()
            if parse_failed:
                details["_transaction_time_parse_failed"] = True
            payment.payment_details = details
            payment.updated_at = now_utc()

            order = db.query(Order).filter(Order.id == payment.order_id).with_for_update().first()
            if order:
                order.order_status = order_status.value

            outcome = NotificationOutcome(
                payment_id=payment.id,
                order_id=payment.order_id,
                payment_status=payment_status.value,
                order_status=order_status.value,
                transaction_time=transaction_time,
                transaction_time_parse_failed=parse_failed,
            )

        logger.info(
            f"Notification {notification.transaction_status} for order {outcome.order_id}: "
            f"payment={outcome.payment_status} order={outcome.order_status}"
        )
        return outcome

    # ==========================================
    # Private Helpers
    # ==========================================

    def _find_by_order(self, db: Session, order_id: str) -> Optional[Payment]:
        return db.query(Payment).filter(Payment.order_id == order_id).first()

    def _create_session(self, order: Order):
        req = GatewaySessionRequest(
            order_id=order.id,
            gross_amount=to_money(order.total_amount),
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            shipping_address=order.shipping_street_address,
            finish_url=f"{BASE_URL}{NOTIFICATION_PATH}",
        )
        gateway = self.gateway
        try:
            result = gateway.create_session(req)
        except Exception as e:
            logger.error(f"Gateway {gateway.name} raised for order {order.id}: {e}")
            raise GatewaySessionError(
                GatewaySessionError.GATEWAY_ERROR, f"failed to create gateway transaction: {e}",
            ) from e

        if result is None:
            raise GatewaySessionError(GatewaySessionError.NO_SESSION, "gateway returned no session")
        if not result.success:
            logger.error(f"Gateway session for order {order.id} failed: {result.error_message}")
            raise GatewaySessionError(
                GatewaySessionError.GATEWAY_ERROR,
                f"failed to create gateway transaction: {result.error_message}",
            )
        if not result.token:
            raise GatewaySessionError(GatewaySessionError.EMPTY_TOKEN, "gateway session token is empty")
        if not result.redirect_url:
            raise GatewaySessionError(GatewaySessionError.EMPTY_REDIRECT_URL, "gateway redirect URL is empty")
        return result


# Singleton
payment_service = PaymentService()
