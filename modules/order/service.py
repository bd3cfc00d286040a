"""
Order Module - Service Layer
===============================
Checkout: turn an active cart into an Order with a frozen price snapshot.
"""

import logging
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from config.database import unit_of_work
from config.settings import ORDER_NUMBER_PREFIX, CURRENCY, SHIPPING_COUNTRY, SOURCE_CHANNEL
from common.exceptions import CartLoadError, CartNotFound, EmptyCart, OrderNotFound
from common.helpers import now_utc, to_money
from modules.cart.service import cart_service, price_cart
from modules.notification.service import notification_dispatcher
from modules.order.models import Order, OrderItem, OrderSequence, OrderStatus
from modules.order.schemas import (
    CreateOrderRequest, OrderCreatedResponse, OrderItemView, OrderPaymentView, OrderView,
)
import modules.payment.models  # noqa: F401  (registers Payment for Order.payment)

logger = logging.getLogger("storefront.order")


def format_order_number(year: int, seq: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}-{year}-{seq:05d}"


class OrderService:

    def __init__(self, notifier=None):
        self.notifier = notifier or notification_dispatcher

    # ==========================================
    # Sequence
    # ==========================================

    def next_order_sequence(self, db: Session) -> int:
        """
        Issue the next order sequence value. Runs inside the caller's
        transaction; a rolled-back checkout may leave a gap.
        """
        seq = OrderSequence()
        db.add(seq)
        db.flush()
        return seq.id

    # ==========================================
    # Checkout
    # ==========================================

    def create_order(self, db: Session, request: CreateOrderRequest) -> OrderCreatedResponse:
        """
        Create an order from the cart:
        1. Load the active cart with items
        2. Refuse an empty cart
        3. Price the cart at current variant prices (no discount)
        4. Issue the order number
        5. Persist Order + OrderItems and deactivate the cart in one transaction
        6. Send confirmations (best effort, after commit)
        """
        try:
            cart = cart_service.load_cart(db, request.cart_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to load cart {request.cart_id}: {e}")
            raise CartLoadError(f"failed to get cart: {e}") from e

        if not cart:
            raise CartNotFound(request.cart_id)
        if not cart.items:
            raise EmptyCart()

        view = price_cart(cart)
        subtotal = view.subtotal_amount
        discount_amount = Decimal("0.00")
        shipping_cost = to_money(request.shipping_cost)

        with unit_of_work(db, "create order with items"):
            order_number = format_order_number(now_utc().year, self.next_order_sequence(db))

            order = Order(
                order_number=order_number,
                cart_id=cart.id,
                customer_id=cart.customer_id,
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                customer_phone=request.customer_phone,
                shipping_street_address=request.shipping_address,
                shipping_city=request.shipping_city_name,
                shipping_province=request.shipping_province_name,
                shipping_district=request.shipping_district_name,
                shipping_postal_code=request.shipping_postal_code,
                shipping_country=SHIPPING_COUNTRY,
                shipping_courier=request.shipping_courier,
                shipping_service=request.shipping_service,
                subtotal=subtotal,
                discount_amount=discount_amount,
                shipping_cost=shipping_cost,
                total_amount=to_money(subtotal - discount_amount + shipping_cost),
                currency=CURRENCY,
                order_status=OrderStatus.PENDING.value,
                source_channel=SOURCE_CHANNEL,
                notes=request.notes,
            )
            for item in cart.items:
                order.items.append(OrderItem(
                    variant_id=item.variant_id,
                    variant=item.variant,
                    quantity=item.quantity,
                    price_at_purchase=to_money(item.variant.price),
                ))
            db.add(order)

            cart.is_active = False

        logger.info(f"Order {order_number} created from cart {cart.id}, total {order.total_amount}")

        self._send_confirmation(order)

        return OrderCreatedResponse(
            order_id=order.id,
            order_number=order.order_number,
            total_amount=order.total_amount,
        )

    # ==========================================
    # Query
    # ==========================================

    def find_order(self, db: Session, order_id: str):
        return (
            db.query(Order)
            .options(
                selectinload(Order.items).selectinload(OrderItem.variant),
                joinedload(Order.payment),
            )
            .filter(Order.id == order_id, Order.deleted_at.is_(None))
            .first()
        )

    def get_order(self, db: Session, order_id: str) -> OrderView:
        """Order with its items and payment (if any). Soft-deleted orders are not found."""
        order = self.find_order(db, order_id)
        if not order:
            raise OrderNotFound(order_id)

        items = []
        for item in order.items:
            variant = item.variant
            items.append(OrderItemView(
                id=item.id,
                product_variant_id=item.variant_id,
                variant_name=variant.name if variant else None,
                quantity=item.quantity,
                unit_price=to_money(item.price_at_purchase),
                subtotal=to_money(item.line_total),
                image_url=variant.image_url if variant else None,
                attributes=variant.attribute_values if variant else None,
            ))

        return OrderView(
            id=order.id,
            order_number=order.order_number,
            cart_id=order.cart_id,
            customer_name=order.customer_name,
            customer_email=order.customer_email,
            customer_phone=order.customer_phone,
            shipping_address=order.shipping_address_line,
            subtotal=to_money(order.subtotal),
            discount_amount=to_money(order.discount_amount),
            discount_code=order.discount_code_applied,
            shipping_cost=to_money(order.shipping_cost),
            total_amount=to_money(order.total_amount),
            currency=order.currency,
            order_status=order.order_status,
            notes=order.notes,
            items=items,
            payment=OrderPaymentView.model_validate(order.payment) if order.payment else None,
            created_at=order.created_at,
        )

    # ==========================================
    # Private Helpers
    # ==========================================

    def _send_confirmation(self, order: Order):
        """Order is already committed; a notification failure must not surface."""
        try:
            self.notifier.send_order_confirmation(order)
        except Exception as e:
            logger.error(f"Order confirmation for {order.order_number} failed: {e}")


# Singleton
order_service = OrderService()
