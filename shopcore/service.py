import uuid
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from . import frp
from .cart import derive_state, group_by_shop, prepare_for_checkout
from .config import config
from .discount import DiscountCollaborator, DiscountRejection, apply_discount
from .domain import (
    CartItem,
    CartState,
    CheckoutIntent,
    Embedded,
    MergeResult,
    Model,
    PriceRange,
    Product,
    ShopGroup,
)
from .ftypes import Either, Maybe
from .pricing import effective_unit_price, model_price
from .variants import (
    describe_selection,
    is_complete_selection,
    model_index,
    option_availability,
    price_range,
    resolve_display_image,
    resolve_model,
)


@dataclass(frozen=True)
class SelectionView:
    """Что показывает карточка товара для текущего выбора"""

    model: Maybe[Model]
    unit_price: Maybe[int]
    description: str
    image: Maybe[str]
    stock: int
    availability: Tuple[Tuple[bool, ...], ...]

    @property
    def purchasable(self) -> bool:
        return self.unit_price.is_some() and self.stock > 0


class CatalogService:
    """Фасад каталога: матрица вариантов по id товара"""

    def __init__(self, products: Iterable[Product]):
        self.products = tuple(products)
        self._by_id = {p.id: p for p in self.products}
        # индекс моделей строится один раз, только для больших матриц
        self._indexes = {
            p.id: model_index(p.models)
            for p in self.products
            if len(p.models) > config.MODEL_INDEX_THRESHOLD
        }

    def get_product(self, product_id: str) -> Maybe[Product]:
        return Maybe.from_optional(self._by_id.get(product_id))

    def _resolve(self, product: Product, selection: Sequence[int]) -> Maybe[Model]:
        return resolve_model(
            product.tier_variations,
            product.models,
            selection,
            self._indexes.get(product.id),
        )

    def resolve(self, product_id: str, selection: Sequence[int]) -> Maybe[Model]:
        return self.get_product(product_id).bind(lambda p: self._resolve(p, selection))

    def price_range(self, product_id: str) -> Maybe[PriceRange]:
        return self.get_product(product_id).map(price_range)

    def selection_view(self, product_id: str, selection: Sequence[int]) -> Maybe[SelectionView]:
        """
        Состояние карточки товара для выбора покупателя.
        У товара без уровней вариантов цена и остаток берутся с самого товара.
        """

        def view(product: Product) -> SelectionView:
            tiers = product.tier_variations
            model = self._resolve(product, selection)

            if not tiers:
                unit_price = Maybe.some(effective_unit_price(product.price))
                stock = product.stock
            else:
                unit_price = model.map(lambda m: effective_unit_price(model_price(m)))
                stock = model.map(lambda m: m.stock).get_or_else(0)

            return SelectionView(
                model=model,
                unit_price=unit_price,
                description=describe_selection(tiers, selection),
                image=resolve_display_image(tiers, selection),
                stock=stock,
                availability=tuple(
                    option_availability(tiers, product.models, selection, i)
                    for i in range(len(tiers))
                ),
            )

        return self.get_product(product_id).map(view)

    def build_cart_item(
        self,
        product_id: str,
        selection: Sequence[int],
        quantity: int = 1,
        item_id: Optional[str] = None,
    ) -> Either[str, CartItem]:
        """
        Позиция для «добавить в корзину».
        Left: товар не найден, выбор неполный или некорректное количество.
        """
        if quantity < 1:
            return Either.left("quantity must be at least 1")

        def build(product: Product) -> Either[str, CartItem]:
            tiers = product.tier_variations
            if tiers and not is_complete_selection(tiers, selection):
                return Either.left("selection incomplete")

            model = self._resolve(product, selection)
            if tiers and model.is_none():
                return Either.left("no model for selection")

            price = model.map(
                lambda m: model_price(m, product.price.currency)
            ).get_or_else(product.price)
            return Either.right(
                CartItem(
                    id=item_id or str(uuid.uuid4()),
                    product=Embedded(product),
                    quantity=quantity,
                    price=price,
                    model_id=model.map(lambda m: m.id).get_or_else(None),
                    shop=product.shop,
                    variant_label=describe_selection(tiers, selection) or None,
                )
            )

        return self.get_product(product_id).to_either("product not found").bind(build)


class CartSession:
    """
    Рабочая копия корзины одной сессии.
    Создаётся вызывающим кодом (на сессию/запрос), глобального экземпляра нет.
    """

    def __init__(self, state: Optional[CartState] = None, bus: Optional[frp.EventBus] = None):
        self._state = state if state is not None else derive_state(())
        self._bus = bus if bus is not None else frp.create_cart_event_bus()

    @property
    def state(self) -> CartState:
        return self._state

    def _publish(self, name: str, **payload) -> CartState:
        self._state = self._bus.publish(frp.create_event(name, payload), self._state)
        return self._state

    def add_item(self, item: CartItem) -> CartState:
        return self._publish(frp.ADD_TO_CART, item=item)

    def remove_item(self, item_id: str) -> CartState:
        return self._publish(frp.REMOVE, item_id=item_id)

    def update_quantity(self, item_id: str, quantity: int) -> CartState:
        return self._publish(frp.UPDATE_QUANTITY, item_id=item_id, quantity=quantity)

    def toggle_select(self, item_id: str) -> CartState:
        return self._publish(frp.TOGGLE_SELECT, item_id=item_id)

    def select_all(self) -> CartState:
        return self._publish(frp.SELECT_ALL)

    def unselect_all(self) -> CartState:
        return self._publish(frp.UNSELECT_ALL)

    def clear(self) -> CartState:
        return self._publish(frp.CLEAR)

    def apply_server_snapshot(self, server_items: Optional[Iterable[CartItem]]) -> MergeResult:
        """
        Снимок сервера публикуется как CART_FETCHED.
        dropped: локальные позиции, которых нет в новом состоянии.
        """
        before = self._state.items
        state = self._publish(frp.CART_FETCHED, items=server_items)
        kept = {item.id for item in state.items}
        return MergeResult(
            state=state, dropped=tuple(item for item in before if item.id not in kept)
        )

    def items_by_shop(self) -> Tuple[ShopGroup, ...]:
        return group_by_shop(self._state.items)

    def checkout(
        self,
        code: Optional[str] = None,
        discounts: Optional[DiscountCollaborator] = None,
    ) -> Tuple[CheckoutIntent, Maybe[DiscountRejection]]:
        """
        Снимок для оформления и, если передан код, попытка применить скидку.
        При отказе возвращается снимок без скидки и причина.
        """
        intent = prepare_for_checkout(self._state)
        if not code or discounts is None:
            return intent, Maybe.nothing()

        return apply_discount(intent, discounts, code).fold(
            lambda reason: (intent, Maybe.some(reason)),
            lambda discounted: (discounted, Maybe.nothing()),
        )
