"""
Слияние снимка корзины с сервера с локальным состоянием.

Сервер авторитетен по составу, цене, количеству и товару; клиент: по
флагу selected и отображаемому варианту. Простая замена items при
каждом обновлении снимала бы все отметки покупателя.
"""

import logging
from dataclasses import replace
from typing import Iterable, Optional, Tuple

from .cart import derive_state
from .domain import CartItem, CartState, MergeResult

logger = logging.getLogger(__name__)


def _unique_by_id(items: Iterable[CartItem]) -> Tuple[CartItem, ...]:
    seen = set()
    unique = []
    for item in items:
        if item.id in seen:
            logger.warning("Duplicate cart item %r in server snapshot, keeping first", item.id)
            continue
        seen.add(item.id)
        unique.append(item)
    return tuple(unique)


def merge_items(
    local: Iterable[CartItem], server: Iterable[CartItem]
) -> Tuple[Tuple[CartItem, ...], Tuple[CartItem, ...]]:
    """
    Возвращает (merged, dropped).
    merged: позиции сервера в его порядке, с унаследованными
    клиентскими полями; dropped: локальные позиции, которых на
    сервере больше нет.
    """
    local = tuple(local)
    server = _unique_by_id(server)
    local_by_id = {item.id: item for item in local}
    server_ids = {item.id for item in server}

    def inherit(server_item: CartItem) -> CartItem:
        previous = local_by_id.get(server_item.id)
        if previous is None:
            return replace(server_item, selected=False, variant_label=None)
        return replace(
            server_item,
            selected=previous.selected,
            variant_label=previous.variant_label,
        )

    merged = tuple(map(inherit, server))
    dropped = tuple(item for item in local if item.id not in server_ids)
    return merged, dropped


def reconcile(
    state: CartState, server_items: Optional[Iterable[CartItem]]
) -> MergeResult:
    """
    Сливает снимок сервера в текущее состояние.
    None означает, что корзины на сервере нет: все локальные позиции уходят.
    Производные поля пересчитываются с нуля.
    """
    merged, dropped = merge_items(state.items, server_items if server_items is not None else ())

    if dropped:
        logger.info(
            "Server snapshot dropped %d cart item(s): %s",
            len(dropped),
            ", ".join(item.id for item in dropped),
        )

    return MergeResult(state=derive_state(merged), dropped=dropped)
