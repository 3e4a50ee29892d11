import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import logging

import pytest
from shopcore.cart import derive_state
from shopcore.domain import CartItem, Price, Reference
from shopcore.pricing import sum_line_totals
from shopcore.reconcile import merge_items, reconcile


def item(item_id, price=100000, qty=1, **kw):
    return CartItem(id=item_id, product=Reference(f"p-{item_id}"), quantity=qty, price=Price(price), **kw)


@pytest.fixture
def local_state():
    return derive_state(
        (
            item("a", price=10, selected=True, variant_label="Color: Red"),
            item("b", price=20, selected=False),
        )
    )


def test_merge_preserves_selection(local_state):
    server = (item("a", price=30000, qty=2), item("b", price=40000), item("c", price=50000))
    result = reconcile(local_state, server)
    by_id = {i.id: i for i in result.state.items}

    assert [i.id for i in result.state.items] == ["a", "b", "c"]
    assert by_id["a"].selected is True
    assert by_id["b"].selected is False
    assert by_id["c"].selected is False
    assert result.state.checkout_total == 30000 * 2
    assert result.dropped == ()


def test_server_fields_win_client_fields_inherited(local_state):
    server = (item("a", price=999, qty=7, model_id="m9"),)
    merged = reconcile(local_state, server).state.items[0]

    assert merged.price == Price(999)
    assert merged.quantity == 7
    assert merged.model_id == "m9"
    assert merged.variant_label == "Color: Red"


def test_server_cannot_set_client_fields():
    server = (item("z", selected=True, variant_label="bogus"),)
    merged = reconcile(derive_state(()), server).state.items[0]
    assert merged.selected is False
    assert merged.variant_label is None


def test_missing_local_items_are_dropped_and_reported(local_state, caplog):
    with caplog.at_level(logging.INFO, logger="shopcore.reconcile"):
        result = reconcile(local_state, (item("b"),))

    assert [i.id for i in result.state.items] == ["b"]
    assert [i.id for i in result.dropped] == ["a"]
    assert result.state.selected_items == ()
    assert result.state.checkout_total == 0
    assert "dropped 1 cart item" in caplog.text


def test_duplicate_server_ids_appear_once():
    merged, dropped = merge_items((), (item("a", price=1), item("a", price=2)))
    assert len(merged) == 1
    assert merged[0].price == Price(1)
    assert dropped == ()


def test_none_snapshot_clears_cart(local_state):
    result = reconcile(local_state, None)
    assert result.state.items == ()
    assert result.state.checkout_total == 0
    assert len(result.dropped) == 2


def test_totals_recomputed_after_price_change(local_state):
    server = (item("a", price=5000, qty=3), item("b", price=20))
    state = reconcile(local_state, server).state
    assert state.checkout_total == sum_line_totals(state.selected_items) == 15000
    assert state.total_amount == 15020
