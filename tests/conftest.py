import os

# In-memory database and no outbound config before any app module is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("MIDTRANS_SERVER_KEY", "SB-Mid-server-test")
os.environ["BASE_URL"] = "http://shop.test"

from datetime import timedelta
from decimal import Decimal
from typing import Generator, List, Optional

import pytest
from fastapi.testclient import TestClient

import main
from config.database import Base, SessionLocal, engine, get_db
from common.helpers import now_utc
from modules.catalog.models import Product, ProductVariant
from modules.discount.models import Discount, DiscountType
from modules.cart.service import CartService
from modules.order.schemas import CreateOrderRequest
from modules.order.service import OrderService, order_service
from modules.payment.gateways import BaseGateway, GatewayCreateResult, GatewaySessionRequest
from modules.payment.service import PaymentService, payment_service


# Mark tests by folder
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)


# ==========================================
# Test doubles
# ==========================================

class FakeGateway(BaseGateway):
    """Hosted-payment gateway that records every session request."""
    name = "fake"

    def __init__(self, result: Optional[GatewayCreateResult] = None):
        self.result = result if result is not None else GatewayCreateResult(
            success=True, token="snap-token-123", redirect_url="https://pay.test/snap/snap-token-123",
        )
        self.requests: List[GatewaySessionRequest] = []
        self.return_none = False

    @property
    def calls(self) -> int:
        return len(self.requests)

    def create_session(self, req: GatewaySessionRequest):
        self.requests.append(req)
        if self.return_none:
            return None
        return self.result


class RecordingNotifier:
    """Stands in for NotificationDispatcher; keeps the order numbers it was asked to confirm."""

    def __init__(self, fail: bool = False):
        self.sent: List[str] = []
        self.fail = fail

    def send_order_confirmation(self, order):
        self.sent.append(order.order_number)
        if self.fail:
            raise RuntimeError("smtp down")
        return {}


# ==========================================
# Database
# ==========================================

@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def make_variant(db):
    counter = {"n": 0}

    def _make(price="100.00", stock=10, name=None, is_active=True, attributes=None) -> ProductVariant:
        counter["n"] += 1
        product = Product(name=f"Product {counter['n']}", category="prayer-mat")
        variant = ProductVariant(
            product=product,
            sku=f"SKU-{counter['n']:03d}",
            name=name or f"Variant {counter['n']}",
            price=Decimal(price),
            stock_quantity=stock,
            image_url=f"https://cdn.test/{counter['n']}.jpg",
            attribute_values=attributes if attributes is not None else {"color": "black"},
            is_active=is_active,
        )
        db.add(product)
        db.commit()
        return variant

    return _make


@pytest.fixture()
def make_discount(db):
    def _make(code="SAVE10", discount_type=DiscountType.PERCENTAGE.value, value="10",
              minimum="0", usage_limit=0, uses_count=0, is_active=True,
              starts_at=None, expires_at=None) -> Discount:
        now = now_utc()
        discount = Discount(
            code=code,
            discount_type=discount_type,
            value=Decimal(value),
            minimum_order_amount=Decimal(minimum),
            starts_at=starts_at or now - timedelta(days=1),
            expires_at=expires_at,
            usage_limit=usage_limit,
            uses_count=uses_count,
            is_active=is_active,
        )
        db.add(discount)
        db.commit()
        return discount

    return _make


# ==========================================
# Services with test doubles
# ==========================================

@pytest.fixture()
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)


@pytest.fixture()
def carts() -> CartService:
    return CartService()


@pytest.fixture()
def orders(notifier) -> OrderService:
    return OrderService(notifier=notifier)


@pytest.fixture()
def payments(fake_gateway) -> PaymentService:
    return PaymentService(gateway=fake_gateway)


def build_checkout_request(cart_id: str, **overrides) -> CreateOrderRequest:
    data = {
        "cart_id": cart_id,
        "customer_name": "Siti Aminah",
        "customer_email": "siti@example.com",
        "customer_phone": "0812-3456-789",
        "shipping_address": "Jl. Merdeka No. 1",
        "shipping_city_name": "Bandung",
        "shipping_province_name": "Jawa Barat",
        "shipping_district_name": "Coblong",
        "shipping_postal_code": "40132",
        "shipping_courier": "jne",
        "shipping_service": "REG",
        "shipping_cost": Decimal("10.00"),
        "total_weight": 1200,
    }
    data.update(overrides)
    return CreateOrderRequest(**data)


@pytest.fixture()
def checkout_request():
    return build_checkout_request


@pytest.fixture()
def place_order(db, make_variant, carts, orders):
    """Cart with 2 x 100.00 checked out with 10.00 shipping -> order total 210.00."""
    def _place(price="100.00", quantity=2, shipping="10.00"):
        variant = make_variant(price=price, stock=50)
        view = carts.add_item(db, variant.id, quantity)
        return orders.create_order(db, build_checkout_request(view.cart_id, shipping_cost=Decimal(shipping)))

    return _place


# ==========================================
# HTTP
# ==========================================

@pytest.fixture()
def app():
    return main.app


@pytest.fixture()
def client(app, db, fake_gateway, notifier, monkeypatch) -> Generator[TestClient, None, None]:
    def _get_test_db():
        yield db

    app.dependency_overrides[get_db] = _get_test_db
    monkeypatch.setattr(payment_service, "_gateway", fake_gateway)
    monkeypatch.setattr(order_service, "notifier", notifier)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
