"""
Storefront - Shared Helpers
============================
Pure utility functions with NO database or module dependencies.
"""

import re
import uuid
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

CENT = Decimal("0.01")


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def new_id() -> str:
    return str(uuid.uuid4())


def to_money(value) -> Decimal:
    """Coerce a number to a 2-place Decimal (half-up)."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_rupiah(value) -> str:
    """
    Format an amount with dot thousand separators and a comma decimal part.
    1000 -> "1.000", 1234.56 -> "1.234,56", 1234.50 -> "1.234,5"
    """
    if value is None:
        return "0"
    amount = to_money(value)
    integer_part, _, decimal_part = f"{amount:f}".partition(".")
    negative = integer_part.startswith("-")
    integer_part = integer_part.lstrip("-")
    formatted = "{:,}".format(int(integer_part)).replace(",", ".")
    if negative:
        formatted = "-" + formatted
    decimal_part = decimal_part.rstrip("0")
    if decimal_part:
        return f"{formatted},{decimal_part}"
    return formatted


def format_whatsapp_phone(phone: str) -> str:
    """
    Normalize a local phone number to a WhatsApp JID.
    "0812-3456" -> "628123456@s.whatsapp.net"
    """
    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("0"):
        digits = "62" + digits[1:]
    if not digits.startswith("62"):
        digits = "62" + digits
    return digits + "@s.whatsapp.net"
