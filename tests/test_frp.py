import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from shopcore import cart
from shopcore.cart import derive_state
from shopcore.domain import CartItem, Price, Reference
from shopcore.frp import (
    ADD_TO_CART,
    CART_FETCHED,
    CLEAR,
    REMOVE,
    SELECT_ALL,
    TOGGLE_SELECT,
    UNSELECT_ALL,
    UPDATE_QUANTITY,
    EventBus,
    apply_events,
    create_cart_event_bus,
    create_event,
)


def item(item_id, price=1000, qty=1):
    return CartItem(id=item_id, product=Reference(f"p-{item_id}"), quantity=qty, price=Price(price))


def test_eventbus_immutability():
    """subscribe возвращает новую шину"""
    bus1 = EventBus()
    bus2 = bus1.subscribe("TEST", lambda e, s: s)

    assert bus1.subscribers == ()
    assert len(bus2.subscribers) == 1


def test_unknown_event_leaves_state():
    state = derive_state((item("a"),))
    assert create_cart_event_bus().publish(create_event("NOPE"), state) is state


def test_event_without_payload_has_empty_dict():
    assert create_event(CLEAR).payload == {}
    assert create_event(CLEAR, None).payload == {}


def test_event_sequence_matches_direct_calls():
    bus = create_cart_event_bus()
    events = (
        create_event(ADD_TO_CART, {"item": item("a", 1000, 2)}),
        create_event(ADD_TO_CART, {"item": item("b", 500)}),
        create_event(TOGGLE_SELECT, {"item_id": "a"}),
        create_event(UPDATE_QUANTITY, {"item_id": "a", "quantity": 3}),
        create_event(SELECT_ALL),
        create_event(UNSELECT_ALL),
        create_event(TOGGLE_SELECT, {"item_id": "b"}),
        create_event(REMOVE, {"item_id": "a"}),
    )
    via_bus = apply_events(bus, events, derive_state(()))

    direct = derive_state(())
    direct = cart.add_item(direct, item("a", 1000, 2))
    direct = cart.add_item(direct, item("b", 500))
    direct = cart.toggle_select(direct, "a")
    direct = cart.update_quantity(direct, "a", 3)
    direct = cart.select_all(direct)
    direct = cart.unselect_all(direct)
    direct = cart.toggle_select(direct, "b")
    direct = cart.remove_item(direct, "a")

    assert via_bus == direct
    assert via_bus.checkout_total == 500


def test_cart_fetched_goes_through_reconcile():
    bus = create_cart_event_bus()
    state = apply_events(
        bus,
        (
            create_event(ADD_TO_CART, {"item": item("a")}),
            create_event(TOGGLE_SELECT, {"item_id": "a"}),
            create_event(CART_FETCHED, {"items": (item("a", 2000), item("c", 10))}),
        ),
        derive_state(()),
    )
    assert [i.selected for i in state.items] == [True, False]
    assert state.checkout_total == 2000


def test_clear_event():
    bus = create_cart_event_bus()
    state = bus.publish(create_event(CLEAR), derive_state((item("a"),)))
    assert state.items == ()
    assert state.checkout_total == 0
