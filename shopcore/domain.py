from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from .config import config


# ============ Ссылки: id или встроенный объект ============


@dataclass(frozen=True)
class Reference:
    """Ссылка только по id (объект не подгружен)"""

    id: str


@dataclass(frozen=True)
class Embedded:
    """Встроенный (populated) объект с полем id"""

    value: Any

    @property
    def id(self) -> str:
        return self.value.id


Ref = Union[Reference, Embedded]


def ref_id(ref: Optional[Ref]) -> Optional[str]:
    """id для обоих вариантов ссылки, None если ссылки нет"""
    return ref.id if ref is not None else None


# ============ Каталог ============


@dataclass(frozen=True)
class Price:
    current_price: int
    discount_price: Optional[int] = None
    currency: str = config.DEFAULT_CURRENCY


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    slug: str = ""


@dataclass(frozen=True)
class Shop:
    id: str
    name: str


@dataclass(frozen=True)
class TierVariation:
    name: str  # "Color"
    options: Tuple[str, ...]  # ("Red", "Blue")
    images: Tuple[str, ...] = ()  # только у первого уровня, по индексу options


@dataclass(frozen=True)
class Model:
    id: str
    tier_index: Tuple[int, ...]
    price: int
    stock: int = 0
    sold_count: int = 0
    sku: Optional[str] = None


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    price: Price
    slug: str = ""
    category: Optional[Ref] = None
    shop: Optional[Ref] = None
    tier_variations: Tuple[TierVariation, ...] = ()
    models: Tuple[Model, ...] = ()
    images: Tuple[str, ...] = ()
    stock: int = 0
    sold_count: int = 0


@dataclass(frozen=True)
class PriceRange:
    min: int
    max: int


# ============ Корзина ============


@dataclass(frozen=True)
class CartItem:
    id: str
    product: Ref
    quantity: int
    price: Price
    model_id: Optional[str] = None
    shop: Optional[Ref] = None
    variant_label: Optional[str] = None  # клиентское поле, сервер его не знает
    selected: bool = False  # клиентское поле


@dataclass(frozen=True)
class CartState:
    """
    Рабочая копия корзины.
    selected_items, checkout_total и total_amount: производные от items,
    строятся только через cart.derive_state.
    """

    items: Tuple[CartItem, ...] = ()
    selected_items: Tuple[CartItem, ...] = ()
    checkout_total: int = 0
    total_amount: int = 0

    @property
    def cart_count(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ShopGroup:
    shop_id: str
    shop_name: str
    items: Tuple[CartItem, ...]
    subtotal: int
    item_count: int


@dataclass(frozen=True)
class CheckoutIntent:
    """Снимок выбранных позиций для сервиса оформления заказа"""

    items: Tuple[CartItem, ...]
    checkout_total: int
    discount_code: Optional[str] = None
    discount_amount: int = 0

    @property
    def final_total(self) -> int:
        return self.checkout_total - self.discount_amount

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class MergeResult:
    state: CartState
    dropped: Tuple[CartItem, ...] = ()


# ============ События ============


@dataclass(frozen=True)
class Event:
    id: str
    ts: str
    name: str
    payload: Dict
