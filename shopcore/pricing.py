from functools import reduce
from typing import Iterable, Optional

from .domain import CartItem, Model, Price


def is_discount_active(price: Price) -> bool:
    """Скидка действует, только если 0 < discount_price < current_price"""
    return (
        price.discount_price is not None
        and price.discount_price > 0
        and price.discount_price < price.current_price
    )


def effective_unit_price(price: Price) -> int:
    """Цена за единицу с учётом действующей скидки"""
    return price.discount_price if is_discount_active(price) else price.current_price


def line_total(item: CartItem) -> int:
    return effective_unit_price(item.price) * item.quantity


def sum_line_totals(items: Iterable[CartItem]) -> int:
    """Сумма строк через reduce, 0 для пустого списка"""
    return reduce(lambda acc, item: acc + line_total(item), items, 0)


def discount_percent(price: Price) -> int:
    """Процент скидки для бейджа (-25%), 0 если скидка не действует"""
    if not is_discount_active(price):
        return 0
    return round((price.current_price - price.discount_price) * 100 / price.current_price)


def model_price(model: Model, currency: Optional[str] = None) -> Price:
    # у модели цена плоская, без отдельного поля скидки
    if currency is None:
        return Price(current_price=model.price)
    return Price(current_price=model.price, currency=currency)
