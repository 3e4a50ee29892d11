"""
Матрица вариантов товара.

Выбор покупателя: это вектор индексов, по одному на уровень (tier):
(0, 1) = "Color: Red, Size: M". Набор моделей разреженный: не у каждой
комбинации есть SKU. Все функции здесь тотальны: неполный или
некорректный выбор даёт Nothing / частичный результат, а не исключение,
потому что UI вызывает их на каждом клике.
"""

from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from .config import config
from .domain import Model, PriceRange, Product, TierVariation
from .ftypes import Maybe
from .pricing import effective_unit_price, model_price


def _is_valid_option(tier: TierVariation, index) -> bool:
    # bool: подкласс int, но индексом не является
    if not isinstance(index, int) or isinstance(index, bool):
        return False
    return 0 <= index < len(tier.options)


def is_complete_selection(
    tiers: Sequence[TierVariation], selection: Sequence[int]
) -> bool:
    """Выбор полный: по одному корректному индексу на каждый уровень"""
    return len(selection) == len(tiers) and all(
        _is_valid_option(tier, index) for tier, index in zip(tiers, selection)
    )


def model_index(models: Iterable[Model]) -> Mapping[Tuple[int, ...], Model]:
    """
    Индекс tier_index -> Model. Строится один раз на товар и передаётся
    в resolve_model. При нарушении уникальности побеждает первая модель,
    как и при линейном поиске.
    """
    index = {}
    for model in models:
        index.setdefault(tuple(model.tier_index), model)
    return MappingProxyType(index)


def resolve_model(
    tiers: Sequence[TierVariation],
    models: Sequence[Model],
    selection: Sequence[int],
    index: Optional[Mapping[Tuple[int, ...], Model]] = None,
) -> Maybe[Model]:
    """
    Находит модель (SKU) по вектору индексов.
    Nothing, если выбор неполный, вне диапазона или такой комбинации нет.
    С готовым индексом (model_index) поиск не проходит по всем моделям.
    """
    if not is_complete_selection(tiers, selection):
        return Maybe.nothing()

    key = tuple(selection)
    if index is not None:
        return Maybe.from_optional(index.get(key))

    found = next((m for m in models if tuple(m.tier_index) == key), None)
    return Maybe.from_optional(found)


def price_range(product: Product) -> PriceRange:
    """
    Диапазон цен по всем моделям товара.
    Без моделей диапазон схлопывается в цену самого товара.
    """
    prices = tuple(effective_unit_price(model_price(m)) for m in product.models)
    if not prices:
        single = effective_unit_price(product.price)
        return PriceRange(min=single, max=single)
    return PriceRange(min=min(prices), max=max(prices))


def describe_selection(
    tiers: Sequence[TierVariation], selection: Sequence[int]
) -> str:
    """'Color: Red, Size: M': только по уровням с корректным индексом"""
    fragments = (
        f"{tier.name}: {tier.options[index]}"
        for tier, index in zip(tiers, selection)
        if _is_valid_option(tier, index)
    )
    return config.DESCRIPTION_SEPARATOR.join(fragments)


def resolve_display_image(
    tiers: Sequence[TierVariation], selection: Sequence[int]
) -> Maybe[str]:
    """Картинка опции первого уровня; Nothing: показываем галерею товара"""
    if not tiers or not selection:
        return Maybe.nothing()

    first, index = tiers[0], selection[0]
    if not _is_valid_option(first, index) or index >= len(first.images):
        return Maybe.nothing()
    return Maybe.some(first.images[index]).filter(bool)


def option_availability(
    tiers: Sequence[TierVariation],
    models: Sequence[Model],
    selection: Sequence[int],
    tier: int,
) -> Tuple[bool, ...]:
    """
    Для каждой опции уровня `tier`: есть ли модель в наличии, совместимая
    с этой опцией и с уже выбранными опциями остальных уровней.
    Некорректные выборы на других уровнях не ограничивают результат.
    """
    if not 0 <= tier < len(tiers):
        return ()

    constraints = tuple(
        (j, index)
        for j, (t, index) in enumerate(zip(tiers, selection))
        if j != tier and _is_valid_option(t, index)
    )
    in_stock = tuple(
        m for m in models if m.stock > 0 and len(m.tier_index) == len(tiers)
    )

    def available(option: int) -> bool:
        return any(
            m.tier_index[tier] == option
            and all(m.tier_index[j] == index for j, index in constraints)
            for m in in_stock
        )

    return tuple(available(option) for option in range(len(tiers[tier].options)))
