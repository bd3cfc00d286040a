"""
End-to-end checkout over HTTP: cart -> order -> payment -> webhook.
"""

from decimal import Decimal

from modules.discount.models import DiscountType
from modules.order.models import Order
from modules.payment.models import Payment


def _add(client, variant_id, quantity, cart_id=None):
    body = {"variant_id": variant_id, "quantity": quantity}
    if cart_id:
        body["cart_id"] = cart_id
    return client.post("/api/v1/cart/items", json=body)


def _checkout(client, cart_id, **overrides):
    body = {
        "cart_id": cart_id,
        "customer_name": "Siti Aminah",
        "customer_email": "siti@example.com",
        "customer_phone": "0812-3456-789",
        "shipping_address": "Jl. Merdeka No. 1",
        "shipping_city_name": "Bandung",
        "shipping_province_name": "Jawa Barat",
        "shipping_postal_code": "40132",
        "shipping_courier": "jne",
        "shipping_service": "REG",
        "shipping_cost": "10.00",
    }
    body.update(overrides)
    return client.post("/api/v1/orders", json=body)


def _webhook(order_id, status="settlement", **kw):
    body = {
        "transaction_time": "2025-03-01 10:15:30",
        "transaction_status": status,
        "transaction_id": "tx-777",
        "status_code": "200",
        "payment_type": "bank_transfer",
        "order_id": order_id,
        "gross_amount": "210.00",
        "currency": "IDR",
    }
    body.update(kw)
    return body


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "version": "1.0.0"}


# ==========================================
# Cart
# ==========================================

def test_cart_lifecycle(client, make_variant):
    a = make_variant(price="100.00", stock=5)
    b = make_variant(price="20.00", stock=5)

    resp = _add(client, a.id, 2)
    assert resp.status_code == 200
    cart_id = resp.json()["cart_id"]

    resp = _add(client, b.id, 1, cart_id=cart_id)
    assert Decimal(resp.json()["subtotal_amount"]) == Decimal("220.00")
    assert resp.json()["total_items"] == 3

    resp = client.put("/api/v1/cart/items", json={"cart_id": cart_id, "variant_id": a.id, "quantity": 1})
    assert resp.status_code == 200
    assert Decimal(resp.json()["subtotal_amount"]) == Decimal("120.00")

    resp = client.request("DELETE", "/api/v1/cart/items", json={"cart_id": cart_id, "variant_id": b.id})
    assert resp.status_code == 200
    assert len(resp.json()["items"]) == 1

    resp = client.get(f"/api/v1/cart/{cart_id}")
    assert resp.status_code == 200
    line = resp.json()["items"][0]
    assert line["variant_id"] == a.id
    assert line["quantity"] == 1
    assert Decimal(line["line_total"]) == Decimal("100.00")


def test_cart_error_statuses(client, make_variant):
    variant = make_variant(stock=1)

    resp = _add(client, variant.id, 0)
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_quantity"

    resp = _add(client, "missing", 1)
    assert resp.status_code == 404
    assert resp.json()["error"] == "variant_not_found"

    resp = _add(client, variant.id, 2)
    assert resp.status_code == 422
    assert resp.json() == {
        "error": "insufficient_stock",
        "detail": "insufficient stock: available 1, requested 2",
    }

    resp = client.get("/api/v1/cart/missing")
    assert resp.status_code == 404


def test_malformed_body_is_a_validation_error(client):
    resp = client.post("/api/v1/cart/items", json={"quantity": "many"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"
    assert resp.json()["detail"]


def test_apply_discount(client, make_variant, make_discount):
    variant = make_variant(price="100.00")
    make_discount(code="HEMAT20", discount_type=DiscountType.FIXED_AMOUNT.value, value="20")
    cart_id = _add(client, variant.id, 2).json()["cart_id"]

    resp = client.post("/api/v1/cart/discount", json={"cart_id": cart_id, "discount_code": "HEMAT20"})

    assert resp.status_code == 200
    body = resp.json()
    assert Decimal(body["subtotal_amount"]) == Decimal("200.00")
    assert Decimal(body["discount_amount"]) == Decimal("20.00")
    assert body["discount_code_applied"] == "HEMAT20"

    resp = client.post("/api/v1/cart/discount", json={"cart_id": cart_id, "discount_code": "NOPE"})
    assert resp.status_code == 404


# ==========================================
# Full flow
# ==========================================

def test_checkout_pay_and_settle(client, db, make_variant, make_discount, fake_gateway, notifier):
    variant = make_variant(price="100.00", stock=10)
    make_discount(code="HEMAT20", discount_type=DiscountType.FIXED_AMOUNT.value, value="20")
    cart_id = _add(client, variant.id, 2).json()["cart_id"]

    # The discount is a preview only; the order is priced without it
    preview = client.post("/api/v1/cart/discount", json={"cart_id": cart_id, "discount_code": "HEMAT20"})
    assert Decimal(preview.json()["discount_amount"]) == Decimal("20.00")

    resp = _checkout(client, cart_id)
    assert resp.status_code == 201
    created = resp.json()
    order_id = created["order_id"]
    assert Decimal(created["total_amount"]) == Decimal("210.00")
    assert notifier.sent == [created["order_number"]]

    # Cart is closed once ordered
    assert client.get(f"/api/v1/cart/{cart_id}").status_code == 404

    resp = client.post(f"/api/v1/payments/{order_id}")
    assert resp.status_code == 200
    payment = resp.json()
    assert payment["status"] == "pending"
    assert payment["payment_token"] == "snap-token-123"
    assert Decimal(payment["amount"]) == Decimal("210.00")
    assert fake_gateway.requests[0].gross_amount == Decimal("210.00")

    again = client.post(f"/api/v1/payments/{order_id}")
    assert again.json()["id"] == payment["id"]
    assert fake_gateway.calls == 1

    resp = client.post("/api/v1/payments/notification", json=_webhook(order_id))
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}

    status = client.get(f"/api/v1/payments/status/{payment['id']}").json()
    assert status["status"] == "success"
    assert status["transaction_id"] == "tx-777"
    assert status["payment_method"] == "bank_transfer"

    order = client.get(f"/api/v1/orders/{order_id}").json()
    assert order["order_status"] == "processing"
    assert order["payment"]["status"] == "success"
    assert order["items"][0]["quantity"] == 2


def test_duplicate_webhook_is_acknowledged_twice(client, db, place_order):
    created = place_order()
    client.post(f"/api/v1/payments/{created.order_id}")

    first = client.post("/api/v1/payments/notification", json=_webhook(created.order_id))
    second = client.post("/api/v1/payments/notification", json=_webhook(created.order_id))

    assert first.status_code == second.status_code == 200
    db.expire_all()
    assert db.query(Payment).count() == 1
    assert db.query(Order).filter(Order.id == created.order_id).one().order_status == "processing"


def test_webhook_numbers_are_coerced_to_strings(client, place_order):
    created = place_order()
    client.post(f"/api/v1/payments/{created.order_id}")

    resp = client.post(
        "/api/v1/payments/notification",
        json=_webhook(created.order_id, status_code=200, gross_amount=210),
    )

    assert resp.status_code == 200


# ==========================================
# Error mapping
# ==========================================

def test_checkout_errors(client, make_variant):
    assert _checkout(client, "missing").status_code == 404

    variant = make_variant()
    cart_id = _add(client, variant.id, 1).json()["cart_id"]
    client.request("DELETE", "/api/v1/cart/items", json={"cart_id": cart_id, "variant_id": variant.id})
    resp = _checkout(client, cart_id)
    assert resp.status_code == 422
    assert resp.json()["error"] == "empty_cart"

    resp = _checkout(client, cart_id, customer_email="not-an-email")
    assert resp.status_code == 400


def test_order_and_payment_not_found(client):
    assert client.get("/api/v1/orders/missing").status_code == 404
    assert client.get("/api/v1/payments/status/missing").status_code == 404
    resp = client.post("/api/v1/payments/missing")
    assert resp.status_code == 404
    assert resp.json()["error"] == "order_not_found"


def test_gateway_failure_is_bad_gateway(client, fake_gateway, place_order):
    from modules.payment.gateways import GatewayCreateResult

    fake_gateway.result = GatewayCreateResult(success=False, error_message="HTTP 503")
    created = place_order()

    resp = client.post(f"/api/v1/payments/{created.order_id}")

    assert resp.status_code == 502
    assert resp.json()["error"] == "gateway_session_error"


def test_webhook_error_statuses(client, place_order):
    created = place_order()
    client.post(f"/api/v1/payments/{created.order_id}")

    resp = client.post("/api/v1/payments/notification", json=_webhook(created.order_id, transaction_id=""))
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_notification"

    resp = client.post("/api/v1/payments/notification", json=_webhook("unknown-order"))
    assert resp.status_code == 404

    resp = client.post("/api/v1/payments/notification", json=_webhook(created.order_id, status="authorize"))
    assert resp.status_code == 422
    assert resp.json()["error"] == "unknown_transaction_status"
