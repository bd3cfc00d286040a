"""
Storefront - Custom Exceptions
===============================
Business-level exceptions that can be caught and converted to HTTP responses.

Every error carries a `kind` (what class of failure it is) and a stable
`code` so callers switch on type, never on message text.
"""

import enum


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"          # malformed input, no side effects
    NOT_FOUND = "not_found"            # cart / item / variant / order / payment / discount
    BUSINESS_RULE = "business_rule"    # stock, discount rules, empty cart, unknown status
    UPSTREAM = "upstream"              # persistence or gateway failure, retryable


class StoreError(Exception):
    """Base exception for all business logic errors."""
    kind: ErrorKind = ErrorKind.UPSTREAM
    code: str = "store_error"

    def __init__(self, message: str = "An internal error occurred."):
        self.message = message
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.kind == ErrorKind.UPSTREAM


# ==========================================
# Validation
# ==========================================

class InvalidQuantity(StoreError):
    kind = ErrorKind.VALIDATION
    code = "invalid_quantity"


class InvalidNotification(StoreError):
    """A webhook payload is missing one of its required fields."""
    kind = ErrorKind.VALIDATION
    code = "invalid_notification"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"invalid {field}")


# ==========================================
# Not found
# ==========================================

class NotFoundError(StoreError):
    """Raised when a requested resource doesn't exist."""
    kind = ErrorKind.NOT_FOUND
    code = "not_found"


class CartNotFound(NotFoundError):
    code = "cart_not_found"

    def __init__(self, cart_id: str = ""):
        super().__init__(f"cart not found: {cart_id}")


class CartItemNotFound(NotFoundError):
    code = "cart_item_not_found"

    def __init__(self, cart_id: str = "", variant_id: str = ""):
        super().__init__(f"cart item not found: cart={cart_id} variant={variant_id}")


class VariantNotFound(NotFoundError):
    code = "variant_not_found"

    def __init__(self, variant_id: str = ""):
        super().__init__(f"product variant not found: {variant_id}")


class DiscountNotFound(NotFoundError):
    code = "discount_not_found"

    def __init__(self, code: str = ""):
        super().__init__(f"discount not found: {code}")


class OrderNotFound(NotFoundError):
    code = "order_not_found"

    def __init__(self, order_id: str = ""):
        super().__init__(f"order not found: {order_id}")


class PaymentNotFound(NotFoundError):
    code = "payment_not_found"

    def __init__(self, ref: str = ""):
        super().__init__(f"payment not found: {ref}")


# ==========================================
# Business rules
# ==========================================

class BusinessRuleError(StoreError):
    kind = ErrorKind.BUSINESS_RULE
    code = "business_rule"


class InsufficientStock(BusinessRuleError):
    """Raised when variant stock is not enough for the requested quantity."""
    code = "insufficient_stock"

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(f"insufficient stock: available {available}, requested {requested}")


class DiscountInactive(BusinessRuleError):
    code = "discount_inactive"

    def __init__(self):
        super().__init__("discount is not active")


class DiscountNotStarted(BusinessRuleError):
    code = "discount_not_started"

    def __init__(self):
        super().__init__("discount has not started yet")


class DiscountExpired(BusinessRuleError):
    code = "discount_expired"

    def __init__(self):
        super().__init__("discount has expired")


class DiscountLimitReached(BusinessRuleError):
    code = "discount_limit_reached"

    def __init__(self):
        super().__init__("discount usage limit reached")


class MinimumNotMet(BusinessRuleError):
    code = "minimum_not_met"

    def __init__(self, minimum=None):
        self.minimum = minimum
        super().__init__("cart subtotal does not meet minimum order amount for discount")


class EmptyCart(BusinessRuleError):
    code = "empty_cart"

    def __init__(self):
        super().__init__("cart is empty")


class UnknownTransactionStatus(BusinessRuleError):
    code = "unknown_transaction_status"

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"unknown transaction status: {status}")


# ==========================================
# Upstream / infrastructure
# ==========================================

class VariantNotLoaded(StoreError):
    """A cart item reached pricing without its variant (internal consistency guard)."""
    code = "variant_not_loaded"

    def __init__(self):
        super().__init__("product variant not loaded for cart item")


class CartLoadError(StoreError):
    code = "cart_load_error"


class PersistenceError(StoreError):
    code = "persistence_error"


class GatewaySessionError(StoreError):
    """Raised when the payment gateway cannot provide a usable hosted-payment session."""
    code = "gateway_session_error"

    GATEWAY_ERROR = "gateway_error"
    NO_SESSION = "no_session"
    EMPTY_TOKEN = "empty_token"
    EMPTY_REDIRECT_URL = "empty_redirect_url"

    def __init__(self, reason: str, message: str = ""):
        self.reason = reason
        super().__init__(message or f"failed to create gateway session: {reason}")


class NotificationError(StoreError):
    """A notification channel is unconfigured or its provider refused the message."""
    code = "notification_error"

    def __init__(self, channel: str, message: str):
        self.channel = channel
        super().__init__(f"{channel}: {message}")


# ==========================================
# HTTP mapping
# ==========================================

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BUSINESS_RULE: 422,
    ErrorKind.UPSTREAM: 500,
}


def http_status_for(error: StoreError) -> int:
    if isinstance(error, GatewaySessionError):
        return 502
    return STATUS_BY_KIND.get(error.kind, 500)

