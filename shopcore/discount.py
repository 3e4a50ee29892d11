import logging
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Callable, Iterable, Optional, Protocol, Tuple

from .domain import CheckoutIntent, ref_id
from .ftypes import Either

logger = logging.getLogger(__name__)


class DiscountRejection(Enum):
    CODE_NOT_FOUND = "code not found"
    CODE_EXPIRED = "code expired"
    MINIMUM_ORDER_NOT_MET = "minimum order not met"
    NOT_APPLICABLE = "not applicable to selected items"


@dataclass(frozen=True)
class DiscountRequest:
    code: str
    selected_item_ids: Tuple[str, ...]
    product_ids: Tuple[str, ...]
    order_total: int


@dataclass(frozen=True)
class DiscountQuote:
    discount_amount: int
    final_total: int


class DiscountCollaborator(Protocol):
    """Внешний сервис скидок: код + выбранные позиции + сумма -> скидка или отказ"""

    def evaluate(self, request: DiscountRequest) -> Either[DiscountRejection, DiscountQuote]:
        ...


def apply_discount(
    intent: CheckoutIntent, collaborator: DiscountCollaborator, code: str
) -> Either[DiscountRejection, CheckoutIntent]:
    """
    Запрашивает скидку для снимка оформления.
    Right: новый снимок со скидкой, Left: причина отказа;
    исходный снимок при отказе не меняется и повторов нет.
    """
    request = DiscountRequest(
        code=code,
        selected_item_ids=tuple(item.id for item in intent.items),
        product_ids=tuple(ref_id(item.product) for item in intent.items),
        order_total=intent.checkout_total,
    )
    result = collaborator.evaluate(request)

    if result.is_left:
        logger.info("Discount %r rejected: %s", code, result.value.value)

    return result.map(
        lambda quote: replace(
            intent,
            discount_code=code,
            discount_amount=min(quote.discount_amount, intent.checkout_total),
        )
    )


# ============ Справочная реализация (демо и тесты) ============


@dataclass(frozen=True)
class Voucher:
    code: str
    type: str  # "percentage" | "fixed_amount"
    value: int  # 10 для процентов, 10000 для фиксированной суммы
    max_value: Optional[int] = None  # потолок для процентной скидки
    min_order_value: int = 0
    end_date: Optional[str] = None  # ГГГГ-ММ-ДД, включительно
    applicable_product_ids: Tuple[str, ...] = ()  # пусто = на всё
    is_active: bool = True


def voucher_amount(voucher: Voucher, order_total: int) -> int:
    """Размер скидки по ваучеру, не больше суммы заказа"""
    if voucher.type == "percentage":
        amount = order_total * voucher.value // 100
        if voucher.max_value is not None:
            amount = min(amount, voucher.max_value)
    else:
        amount = voucher.value
    return max(0, min(amount, order_total))


class InMemoryDiscounts:
    """Книга ваучеров в памяти, реализует DiscountCollaborator"""

    def __init__(self, vouchers: Iterable[Voucher], today: Callable[[], date] = date.today):
        self._vouchers = {v.code.upper(): v for v in vouchers}
        self._today = today

    def evaluate(self, request: DiscountRequest) -> Either[DiscountRejection, DiscountQuote]:
        voucher = self._vouchers.get(request.code.strip().upper())

        if voucher is None or not voucher.is_active:
            return Either.left(DiscountRejection.CODE_NOT_FOUND)
        if voucher.end_date and date.fromisoformat(voucher.end_date) < self._today():
            return Either.left(DiscountRejection.CODE_EXPIRED)
        if request.order_total < voucher.min_order_value:
            return Either.left(DiscountRejection.MINIMUM_ORDER_NOT_MET)
        if not request.selected_item_ids or (
            voucher.applicable_product_ids
            and not set(request.product_ids) & set(voucher.applicable_product_ids)
        ):
            return Either.left(DiscountRejection.NOT_APPLICABLE)

        amount = voucher_amount(voucher, request.order_total)
        return Either.right(
            DiscountQuote(discount_amount=amount, final_total=request.order_total - amount)
        )
