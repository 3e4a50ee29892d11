import uuid
from dataclasses import dataclass
from datetime import datetime
from functools import reduce
from typing import Callable, Iterable, Optional, Tuple

from . import cart
from .domain import CartState, Event
from .reconcile import reconcile

ADD_TO_CART = "ADD_TO_CART"
REMOVE = "REMOVE"
UPDATE_QUANTITY = "UPDATE_QUANTITY"
TOGGLE_SELECT = "TOGGLE_SELECT"
SELECT_ALL = "SELECT_ALL"
UNSELECT_ALL = "UNSELECT_ALL"
CLEAR = "CLEAR"
CART_FETCHED = "CART_FETCHED"

Handler = Callable[[Event, CartState], CartState]


@dataclass(frozen=True)
class EventBus:
    """
    Иммутабельная шина событий корзины.
    Подписчики: чистые функции (Event, CartState) -> CartState.
    """

    subscribers: Tuple[Tuple[str, Handler], ...] = ()

    def subscribe(self, event_name: str, handler: Handler) -> "EventBus":
        """Возвращает новую шину с добавленным подписчиком"""
        return EventBus(subscribers=self.subscribers + ((event_name, handler),))

    def publish(self, event: Event, state: CartState) -> CartState:
        """Применяет все подписчики события по очереди (fold)"""
        handlers = tuple(h for name, h in self.subscribers if name == event.name)
        return reduce(lambda s, handler: handler(event, s), handlers, state)


def create_event(name: str, payload: Optional[dict] = None) -> Event:
    """Создаёт событие с меткой времени"""
    return Event(
        id=str(uuid.uuid4()),
        ts=datetime.now().isoformat(),
        name=name,
        payload=payload or {},
    )


# ============ Обработчики ============


def handle_add_to_cart(event: Event, state: CartState) -> CartState:
    return cart.add_item(state, event.payload["item"])


def handle_remove(event: Event, state: CartState) -> CartState:
    return cart.remove_item(state, event.payload["item_id"])


def handle_update_quantity(event: Event, state: CartState) -> CartState:
    return cart.update_quantity(
        state, event.payload["item_id"], event.payload["quantity"]
    )


def handle_toggle_select(event: Event, state: CartState) -> CartState:
    return cart.toggle_select(state, event.payload["item_id"])


def handle_select_all(event: Event, state: CartState) -> CartState:
    return cart.select_all(state)


def handle_unselect_all(event: Event, state: CartState) -> CartState:
    return cart.unselect_all(state)


def handle_clear(event: Event, state: CartState) -> CartState:
    return cart.clear(state)


def handle_cart_fetched(event: Event, state: CartState) -> CartState:
    """Снимок сервера всегда идёт через reconcile, а не заменяет items"""
    return reconcile(state, event.payload.get("items")).state


def create_cart_event_bus() -> EventBus:
    bus = EventBus()
    bus = bus.subscribe(ADD_TO_CART, handle_add_to_cart)
    bus = bus.subscribe(REMOVE, handle_remove)
    bus = bus.subscribe(UPDATE_QUANTITY, handle_update_quantity)
    bus = bus.subscribe(TOGGLE_SELECT, handle_toggle_select)
    bus = bus.subscribe(SELECT_ALL, handle_select_all)
    bus = bus.subscribe(UNSELECT_ALL, handle_unselect_all)
    bus = bus.subscribe(CLEAR, handle_clear)
    bus = bus.subscribe(CART_FETCHED, handle_cart_fetched)
    return bus


def apply_events(bus: EventBus, events: Iterable[Event], state: CartState) -> CartState:
    """(events, state) -> final_state"""
    return reduce(lambda s, e: bus.publish(e, s), events, state)
