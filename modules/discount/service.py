"""
Discount Service
=================
Look up, validate and calculate code-based cart discounts.

Validation chain:
  1. Code exists
  2. is_active
  3. Date range check (starts_at / expires_at)
  4. Total usage limit (0 = unlimited)
  5. Min order amount

The uses_count counter is read here but never incremented on checkout.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from common.exceptions import (
    DiscountNotFound, DiscountInactive, DiscountNotStarted, DiscountExpired,
    DiscountLimitReached, MinimumNotMet,
)
from common.helpers import now_utc, as_utc, to_money
from modules.discount.models import Discount


class DiscountService:

    def get_by_code(self, db: Session, code: str) -> Discount:
        discount = db.query(Discount).filter(Discount.code == (code or "").strip()).first()
        if not discount:
            raise DiscountNotFound(code)
        return discount

    # ------------------------------------------
    # Validate (raises a BusinessRuleError subclass)
    # ------------------------------------------

    def validate(self, discount: Discount, subtotal: Decimal, now: Optional[datetime] = None) -> None:
        now = as_utc(now) or now_utc()

        if not discount.is_active:
            raise DiscountInactive()

        if now < as_utc(discount.starts_at):
            raise DiscountNotStarted()
        if discount.expires_at and now > as_utc(discount.expires_at):
            raise DiscountExpired()

        if discount.usage_limit and discount.uses_count >= discount.usage_limit:
            raise DiscountLimitReached()

        minimum = to_money(discount.minimum_order_amount)
        if minimum and to_money(subtotal) < minimum:
            raise MinimumNotMet(minimum)

    # ------------------------------------------
    # Calculate discount amount
    # ------------------------------------------

    def calculate(self, discount: Discount, subtotal: Decimal) -> Decimal:
        """Percentage of the subtotal, or the flat value for fixed_amount."""
        if discount.is_percentage:
            return to_money(to_money(subtotal) * Decimal(discount.value) / Decimal(100))
        return to_money(discount.value)


discount_service = DiscountService()
