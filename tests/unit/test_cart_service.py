from decimal import Decimal

import pytest

from common.exceptions import (
    CartItemNotFound, CartNotFound, InsufficientStock, InvalidQuantity,
    VariantNotFound, VariantNotLoaded,
)
from modules.cart.models import Cart, CartItem
from modules.cart.service import price_cart


def test_add_item_creates_cart_and_prices_it(db, carts, make_variant):
    variant = make_variant(price="100.00", stock=5, name="Sajadah Hitam")

    view = carts.add_item(db, variant.id, 2)

    assert view.cart_id
    assert view.total_items == 2
    assert view.subtotal_amount == Decimal("200.00")
    assert view.discount_amount is None
    assert len(view.items) == 1
    line = view.items[0]
    assert line.variant_id == variant.id
    assert line.variant_name == "Sajadah Hitam"
    assert line.variant_price == Decimal("100.00")
    assert line.line_total == Decimal("200.00")
    assert line.product_attributes == {"color": "black"}
    assert db.query(Cart).count() == 1


def test_subtotal_is_sum_of_quantity_times_price(db, carts, make_variant):
    a = make_variant(price="12.50", stock=10)
    b = make_variant(price="3.99", stock=10)
    c = make_variant(price="100.00", stock=10)

    view = carts.add_item(db, a.id, 3)
    carts.add_item(db, b.id, 7, cart_id=view.cart_id)
    view = carts.add_item(db, c.id, 1, cart_id=view.cart_id)

    expected = sum(line.variant_price * line.quantity for line in view.items)
    assert view.subtotal_amount == expected == Decimal("165.43")
    assert view.total_items == 11


@pytest.mark.parametrize("quantity", [0, -1])
def test_add_item_rejects_non_positive_quantity(db, carts, make_variant, quantity):
    variant = make_variant()
    with pytest.raises(InvalidQuantity):
        carts.add_item(db, variant.id, quantity)
    assert db.query(Cart).count() == 0


def test_add_item_unknown_cart(db, carts, make_variant):
    variant = make_variant()
    with pytest.raises(CartNotFound):
        carts.add_item(db, variant.id, 1, cart_id="does-not-exist")


def test_add_item_unknown_or_inactive_variant(db, carts, make_variant):
    hidden = make_variant(is_active=False)
    with pytest.raises(VariantNotFound):
        carts.add_item(db, "missing-variant", 1)
    with pytest.raises(VariantNotFound):
        carts.add_item(db, hidden.id, 1)
    assert db.query(Cart).count() == 0


def test_failed_add_on_new_cart_writes_nothing(db, carts, make_variant):
    variant = make_variant(stock=1)
    with pytest.raises(InsufficientStock) as exc:
        carts.add_item(db, variant.id, 2)
    assert exc.value.available == 1
    assert exc.value.requested == 2
    assert db.query(Cart).count() == 0
    assert db.query(CartItem).count() == 0


def test_add_same_variant_merges_quantities(db, carts, make_variant):
    variant = make_variant(stock=5)
    view = carts.add_item(db, variant.id, 2)
    view = carts.add_item(db, variant.id, 3, cart_id=view.cart_id)

    assert len(view.items) == 1
    assert view.items[0].quantity == 5
    assert db.query(CartItem).count() == 1


def test_merge_checks_combined_quantity_and_keeps_existing_item(db, carts, make_variant):
    variant = make_variant(stock=5)
    view = carts.add_item(db, variant.id, 3)

    with pytest.raises(InsufficientStock) as exc:
        carts.add_item(db, variant.id, 3, cart_id=view.cart_id)
    assert exc.value.requested == 6

    after = carts.get_cart(db, view.cart_id)
    assert after.items[0].quantity == 3
    assert after.subtotal_amount == view.subtotal_amount


def test_update_quantity_overwrites(db, carts, make_variant):
    variant = make_variant(stock=10)
    view = carts.add_item(db, variant.id, 2)

    view = carts.update_item_quantity(db, view.cart_id, variant.id, 7)

    assert view.items[0].quantity == 7
    assert view.total_items == 7


def test_update_quantity_rechecks_stock(db, carts, make_variant):
    variant = make_variant(stock=4)
    view = carts.add_item(db, variant.id, 2)

    with pytest.raises(InsufficientStock):
        carts.update_item_quantity(db, view.cart_id, variant.id, 5)
    assert carts.get_cart(db, view.cart_id).items[0].quantity == 2


def test_update_to_zero_is_the_same_as_remove(db, carts, make_variant):
    keep = make_variant(price="5.00")
    drop = make_variant(price="7.00")

    first = carts.add_item(db, keep.id, 1)
    carts.add_item(db, drop.id, 2, cart_id=first.cart_id)
    second = carts.add_item(db, keep.id, 1)
    carts.add_item(db, drop.id, 2, cart_id=second.cart_id)

    updated = carts.update_item_quantity(db, first.cart_id, drop.id, 0)
    removed = carts.remove_item(db, second.cart_id, drop.id)

    assert updated.total_items == removed.total_items == 1
    assert updated.subtotal_amount == removed.subtotal_amount == Decimal("5.00")
    assert [i.variant_id for i in updated.items] == [i.variant_id for i in removed.items] == [keep.id]


def test_update_rejects_negative_quantity(db, carts, make_variant):
    variant = make_variant()
    view = carts.add_item(db, variant.id, 1)
    with pytest.raises(InvalidQuantity):
        carts.update_item_quantity(db, view.cart_id, variant.id, -1)


def test_update_and_remove_missing_item(db, carts, make_variant):
    variant = make_variant()
    other = make_variant()
    view = carts.add_item(db, variant.id, 1)

    with pytest.raises(CartItemNotFound):
        carts.update_item_quantity(db, view.cart_id, other.id, 1)
    with pytest.raises(CartItemNotFound):
        carts.remove_item(db, view.cart_id, other.id)


def test_get_cart_unknown(db, carts):
    with pytest.raises(CartNotFound):
        carts.get_cart(db, "nope")


def test_get_cart_empty(db, carts, make_variant):
    variant = make_variant()
    view = carts.add_item(db, variant.id, 1)
    view = carts.remove_item(db, view.cart_id, variant.id)

    assert view.items == []
    assert view.total_items == 0
    assert view.subtotal_amount == Decimal("0.00")


def test_inactive_cart_is_not_found(db, carts, make_variant):
    variant = make_variant()
    view = carts.add_item(db, variant.id, 1)
    db.query(Cart).filter(Cart.id == view.cart_id).update({"is_active": False})
    db.commit()

    with pytest.raises(CartNotFound):
        carts.get_cart(db, view.cart_id)
    with pytest.raises(CartNotFound):
        carts.add_item(db, variant.id, 1, cart_id=view.cart_id)


def test_price_cart_requires_loaded_variants():
    cart = Cart(id="c1")
    cart.items.append(CartItem(id=1, variant_id="v1", quantity=1))

    with pytest.raises(VariantNotLoaded):
        price_cart(cart)
