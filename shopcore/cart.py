from dataclasses import replace
from functools import reduce
from typing import Iterable, Optional, Tuple

from .domain import (
    CartItem,
    CartState,
    CheckoutIntent,
    Embedded,
    ShopGroup,
    ref_id,
)
from .ftypes import Maybe
from .pricing import line_total, sum_line_totals

DEFAULT_SHOP_ID = "default-shop"


# ============ Производные представления ============


def derive_state(items: Iterable[CartItem]) -> CartState:
    """
    Единственный способ построить CartState: выбранные позиции и суммы
    всегда пересчитываются с нуля из items.
    """
    items = tuple(items)
    selected = tuple(filter(lambda item: item.selected, items))
    return CartState(
        items=items,
        selected_items=selected,
        checkout_total=sum_line_totals(selected),
        total_amount=sum_line_totals(items),
    )


def find_item(state: CartState, item_id: str) -> Maybe[CartItem]:
    return Maybe.from_optional(next((i for i in state.items if i.id == item_id), None))


def _same_line(existing: CartItem, new: CartItem) -> bool:
    if existing.id and existing.id == new.id:
        return True
    return (
        ref_id(existing.product) == ref_id(new.product)
        and existing.model_id == new.model_id
    )


def _update(state: CartState, item_id: str, fn) -> CartState:
    """Применяет fn к позиции item_id; неизвестный id: состояние без изменений"""
    if find_item(state, item_id).is_none():
        return state
    return derive_state(fn(item) if item.id == item_id else item for item in state.items)


# ============ Операции над корзиной (чистые функции) ============


def add_item(state: CartState, new_item: CartItem) -> CartState:
    """
    Добавляет позицию. Та же позиция (тот же id или тот же товар + модель)
    увеличивает количество; новая добавляется невыбранной:
    добавить в корзину не значит купить сейчас.
    """
    if new_item.quantity < 1:
        return state

    existing = next((i for i in state.items if _same_line(i, new_item)), None)

    if existing is not None:
        updated_items = tuple(
            replace(i, quantity=i.quantity + new_item.quantity) if i is existing else i
            for i in state.items
        )
    else:
        updated_items = state.items + (replace(new_item, selected=False),)

    return derive_state(updated_items)


def remove_item(state: CartState, item_id: str) -> CartState:
    if find_item(state, item_id).is_none():
        return state
    return derive_state(filter(lambda item: item.id != item_id, state.items))


def update_quantity(state: CartState, item_id: str, quantity: int) -> CartState:
    """Количество меньше 1 отклоняется (no-op)"""
    if quantity < 1:
        return state
    return _update(state, item_id, lambda item: replace(item, quantity=quantity))


def toggle_select(state: CartState, item_id: str) -> CartState:
    return _update(state, item_id, lambda item: replace(item, selected=not item.selected))


def _select_every(state: CartState, selected: bool) -> CartState:
    return derive_state(replace(item, selected=selected) for item in state.items)


def select_all(state: CartState) -> CartState:
    return _select_every(state, True)


def unselect_all(state: CartState) -> CartState:
    return _select_every(state, False)


def clear(state: Optional[CartState] = None) -> CartState:
    return derive_state(())


def prepare_for_checkout(state: CartState) -> CheckoutIntent:
    """
    Снимок выбранных позиций для оформления. Корзина не меняется:
    если оформление брошено, невыбранные позиции остаются на месте.
    """
    selected = tuple(filter(lambda item: item.selected, state.items))
    return CheckoutIntent(items=selected, checkout_total=sum_line_totals(selected))


# ============ Группировка по магазинам ============


def _shop_of(item: CartItem) -> Tuple[str, str]:
    """(shop_id, shop_name): сначала магазин товара, потом магазин позиции"""
    candidates = []
    if isinstance(item.product, Embedded):
        candidates.append(getattr(item.product.value, "shop", None))
    candidates.append(item.shop)

    for ref in candidates:
        if isinstance(ref, Embedded):
            return ref.id, getattr(ref.value, "name", "Shop")
        if ref is not None:
            return ref.id, "Shop"
    return DEFAULT_SHOP_ID, "Shop"


def group_by_shop(items: Iterable[CartItem]) -> Tuple[ShopGroup, ...]:
    """Группирует позиции по магазинам, сохраняя порядок первого появления"""

    def accumulate(groups: dict, item: CartItem) -> dict:
        shop_id, shop_name = _shop_of(item)
        current = groups.get(shop_id, ShopGroup(shop_id, shop_name, (), 0, 0))
        return {
            **groups,
            shop_id: ShopGroup(
                shop_id=shop_id,
                shop_name=current.shop_name,
                items=current.items + (item,),
                subtotal=current.subtotal + line_total(item),
                item_count=current.item_count + item.quantity,
            ),
        }

    return tuple(reduce(accumulate, items, {}).values())
