"""
Cart Module - Service Layer
==============================
Cart management: create, add/update/remove items, priced views, discounts.

Stock is checked against the variant on every mutation but never reserved,
so two concurrent carts can both pass the check for the last units.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session, selectinload

from config.database import unit_of_work
from common.exceptions import (
    CartNotFound, CartItemNotFound, InsufficientStock, InvalidQuantity, VariantNotLoaded,
)
from common.helpers import to_money
from modules.cart.models import Cart, CartItem
from modules.cart.schemas import CartLineView, CartView
from modules.catalog.service import catalog_service
from modules.discount.models import Discount
from modules.discount.service import discount_service

logger = logging.getLogger("storefront.cart")


def price_cart(cart: Cart, discount: Optional[Discount] = None) -> CartView:
    """
    Build the priced view of a cart: one line per item, total item count,
    subtotal at current variant prices, and the discount overlay if given.
    """
    if cart is None:
        raise CartNotFound()

    total_items = 0
    subtotal = Decimal("0.00")
    lines = []

    for item in cart.items:
        variant = item.variant
        if variant is None:
            raise VariantNotLoaded()

        price = to_money(variant.price)
        line_total = to_money(price * item.quantity)
        total_items += item.quantity
        subtotal += line_total

        lines.append(CartLineView(
            id=item.id,
            variant_id=variant.id,
            variant_name=variant.name,
            variant_price=price,
            quantity=item.quantity,
            line_total=line_total,
            image_url=variant.image_url,
            product_attributes=variant.attribute_values,
        ))

    view = CartView(
        cart_id=cart.id,
        total_items=total_items,
        subtotal_amount=to_money(subtotal),
        items=lines,
    )

    if discount is not None:
        view.discount_amount = discount_service.calculate(discount, view.subtotal_amount)
        view.discount_code_applied = discount.code

    return view


class CartService:

    # ==========================================
    # Query
    # ==========================================

    def load_cart(self, db: Session, cart_id: str) -> Optional[Cart]:
        """Active cart with items and their variants eagerly loaded."""
        if not cart_id:
            return None
        return (
            db.query(Cart)
            .options(selectinload(Cart.items).selectinload(CartItem.variant))
            .filter(Cart.id == cart_id, Cart.is_active.is_(True))
            .first()
        )

    def get_cart(self, db: Session, cart_id: str) -> CartView:
        cart = self.load_cart(db, cart_id)
        if not cart:
            raise CartNotFound(cart_id)
        return price_cart(cart)

    # ==========================================
    # Mutations
    # ==========================================

    def add_item(self, db: Session, variant_id: str, quantity: int, cart_id: Optional[str] = None) -> CartView:
        """
        Add `quantity` of a variant, creating the cart first when `cart_id`
        is empty. An existing line for the same variant is merged and the
        combined quantity is checked against stock.
        """
        if quantity is None or quantity <= 0:
            raise InvalidQuantity("quantity must be greater than zero")

        with unit_of_work(db, "add cart item"):
            if cart_id:
                cart = self.load_cart(db, cart_id)
                if not cart:
                    raise CartNotFound(cart_id)
            else:
                cart = Cart()
                db.add(cart)
                db.flush()
                logger.info(f"Created cart {cart.id}")

            variant = catalog_service.get_variant(db, variant_id)
            if variant.stock_quantity < quantity:
                raise InsufficientStock(variant.stock_quantity, quantity)

            item = self._find_item(db, cart.id, variant_id)
            if item:
                new_qty = item.quantity + quantity
                if variant.stock_quantity < new_qty:
                    raise InsufficientStock(variant.stock_quantity, new_qty)
                item.quantity = new_qty
            else:
                db.add(CartItem(cart_id=cart.id, variant_id=variant_id, quantity=quantity))

            cart_id = cart.id

        return self.get_cart(db, cart_id)

    def update_item_quantity(self, db: Session, cart_id: str, variant_id: str, quantity: int) -> CartView:
        """Overwrite a line's quantity; 0 removes the line."""
        if quantity is None or quantity < 0:
            raise InvalidQuantity("quantity must not be negative")

        with unit_of_work(db, "update cart item"):
            item = self._find_item(db, cart_id, variant_id)
            if not item:
                raise CartItemNotFound(cart_id, variant_id)

            if quantity == 0:
                db.delete(item)
            else:
                variant = catalog_service.get_variant(db, variant_id)
                if variant.stock_quantity < quantity:
                    raise InsufficientStock(variant.stock_quantity, quantity)
                item.quantity = quantity

        return self.get_cart(db, cart_id)

    def remove_item(self, db: Session, cart_id: str, variant_id: str) -> CartView:
        with unit_of_work(db, "remove cart item"):
            item = self._find_item(db, cart_id, variant_id)
            if not item:
                raise CartItemNotFound(cart_id, variant_id)
            db.delete(item)

        return self.get_cart(db, cart_id)

    # ==========================================
    # Discount overlay
    # ==========================================

    def apply_discount(self, db: Session, cart_id: str, code: str, now: Optional[datetime] = None) -> CartView:
        """
        Priced view with a validated discount applied. Nothing is written:
        the discount must be re-applied on every view that needs it.
        """
        cart = self.load_cart(db, cart_id)
        if not cart:
            raise CartNotFound(cart_id)

        discount = discount_service.get_by_code(db, code)
        view = price_cart(cart)
        discount_service.validate(discount, view.subtotal_amount, now=now)
        return price_cart(cart, discount)

    # ==========================================
    # Private helpers
    # ==========================================

    def _find_item(self, db: Session, cart_id: str, variant_id: str) -> Optional[CartItem]:
        return db.query(CartItem).join(Cart).filter(
            CartItem.cart_id == cart_id,
            CartItem.variant_id == variant_id,
            Cart.is_active.is_(True),
        ).first()


# Singleton
cart_service = CartService()
