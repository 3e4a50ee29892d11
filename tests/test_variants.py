import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
import random

import pytest
from shopcore import variants
from shopcore.domain import Model, Price, Product, TierVariation
from shopcore.variants import (
    describe_selection,
    is_complete_selection,
    model_index,
    option_availability,
    price_range,
    resolve_display_image,
    resolve_model,
)


@pytest.fixture
def tiers():
    return (
        TierVariation(name="Color", options=("Red", "Blue"), images=("red.jpg", "blue.jpg")),
        TierVariation(name="Size", options=("S", "M")),
    )


@pytest.fixture
def models():
    return (
        Model(id="m1", tier_index=(0, 0), price=100000, stock=3),
        Model(id="m2", tier_index=(1, 1), price=120000, stock=0),
    )


@pytest.fixture
def product(tiers, models):
    return Product(
        id="p1",
        name="Shirt",
        price=Price(150000, 130000),
        tier_variations=tiers,
        models=models,
    )


# ============ resolve_model ============


def test_scenario_sparse_matrix(tiers, models, product):
    """Color=[Red,Blue] × Size=[S,M], модели только (0,0) и (1,1)"""
    assert resolve_model(tiers, models, [0, 1]).is_none()
    assert resolve_model(tiers, models, [0, 0]).get_or_else(None).id == "m1"
    assert price_range(product) == variants.PriceRange(min=100000, max=120000)


@pytest.mark.parametrize(
    "selection",
    [[], [0], [0, 0, 0], [2, 0], [0, 2], [-1, 0], [0, -1], [True, 0]],
)
def test_incomplete_or_invalid_selection_is_nothing(tiers, models, selection):
    assert resolve_model(tiers, models, selection).is_none()


def test_resolution_never_raises_on_random_input(tiers, models):
    rng = random.Random(7)
    for _ in range(300):
        selection = [rng.randint(-3, 4) for _ in range(rng.randint(0, 4))]
        result = resolve_model(tiers, models, selection)
        if len(selection) != 2 or not all(0 <= i < 2 for i in selection):
            assert result.is_none()
        else:
            assert result.get_or_else(None) in (None, *models)


def test_resolved_model_matches_selection_exactly(tiers, models):
    for a in range(2):
        for b in range(2):
            result = resolve_model(tiers, models, (a, b))
            if result.is_some():
                assert result.value.tier_index == (a, b)


def test_index_and_scan_agree(tiers, models):
    index = model_index(models)
    for a in range(-1, 3):
        for b in range(-1, 3):
            scanned = resolve_model(tiers, models, [a, b]).get_or_else(None)
            assert resolve_model(tiers, models, [a, b], index).get_or_else(None) == scanned


def test_index_keeps_first_on_duplicate_tuple(tiers):
    dup = (
        Model(id="first", tier_index=(0, 0), price=1),
        Model(id="second", tier_index=(0, 0), price=2),
    )
    assert resolve_model(tiers, dup, [0, 0]).value.id == "first"
    assert resolve_model(tiers, dup, [0, 0], model_index(dup)).value.id == "first"


def test_index_accepts_list_tier_index():
    """tier_index из JSON может прийти списком: индекс ведёт себя как поиск"""
    tier = TierVariation(name="T", options=tuple(str(i) for i in range(40)))
    models = tuple(Model(id=f"m{i}", tier_index=[i], price=i) for i in range(40))
    index = model_index(models)

    for i in (0, 17, 39):
        assert resolve_model((tier,), models, [i]).value.id == f"m{i}"
        assert resolve_model((tier,), models, [i], index).value.id == f"m{i}"
    assert resolve_model((tier,), models, [40], index).is_none()


def test_large_matrix_through_index():
    tiers = tuple(TierVariation(name=f"T{i}", options=tuple("abcde")) for i in range(3))
    models = tuple(
        Model(id=f"{a}{b}{c}", tier_index=(a, b, c), price=a * 100 + b * 10 + c)
        for a in range(5)
        for b in range(5)
        for c in range(5)
        if (a + b + c) % 2 == 0
    )
    index = model_index(models)
    assert len(index) == len(models)
    assert resolve_model(tiers, models, [1, 2, 3], index).value.id == "123"
    assert resolve_model(tiers, models, [1, 2, 4], index).is_none()


def test_zero_tiers_resolves_empty_selection():
    model = Model(id="only", tier_index=(), price=10)
    assert resolve_model((), (model,), []).value is model
    assert resolve_model((), (model,), [0]).is_none()


def test_is_complete_selection(tiers):
    assert is_complete_selection(tiers, [1, 0])
    assert not is_complete_selection(tiers, [1])


# ============ price_range ============


def test_price_range_single_model_collapses(tiers):
    product = Product(
        id="p",
        name="x",
        price=Price(1),
        tier_variations=tiers,
        models=(Model(id="m", tier_index=(0, 0), price=5000),),
    )
    assert price_range(product) == variants.PriceRange(5000, 5000)


def test_price_range_without_models_uses_product_discount():
    product = Product(id="p", name="x", price=Price(200000, 150000))
    rng = price_range(product)
    assert rng.min == rng.max == 150000


def test_price_range_ordering_random():
    rng = random.Random(11)
    for _ in range(100):
        count = rng.randint(1, 8)
        models = tuple(
            Model(id=str(i), tier_index=(i,), price=rng.randint(1000, 900000))
            for i in range(count)
        )
        tier = TierVariation(name="T", options=tuple(str(i) for i in range(count)))
        result = price_range(Product(id="p", name="x", price=Price(1), tier_variations=(tier,), models=models))
        assert result.min <= result.max
        assert result.min == min(m.price for m in models)
        if count == 1:
            assert result.min == result.max


# ============ describe / image / availability ============


def test_describe_selection_full_and_partial(tiers):
    assert describe_selection(tiers, [1, 0]) == "Color: Blue, Size: S"
    assert describe_selection(tiers, [1]) == "Color: Blue"
    assert describe_selection(tiers, [5, 1]) == "Size: M"
    assert describe_selection(tiers, []) == ""
    assert describe_selection((), [0, 1]) == ""


def test_resolve_display_image(tiers):
    assert resolve_display_image(tiers, [1, 0]).get_or_else(None) == "blue.jpg"
    assert resolve_display_image(tiers, [1]).get_or_else(None) == "blue.jpg"
    assert resolve_display_image(tiers, []).is_none()
    assert resolve_display_image(tiers, [2, 0]).is_none()
    assert resolve_display_image((), [0]).is_none()


def test_display_image_only_from_first_tier():
    tiers = (
        TierVariation(name="Size", options=("S", "M")),
        TierVariation(name="Color", options=("Red",), images=("red.jpg",)),
    )
    assert resolve_display_image(tiers, [0, 0]).is_none()


def test_option_availability(tiers, models):
    # m2 (Blue, M) нет в наличии, так что Blue недоступен ни в каком размере
    assert option_availability(tiers, models, [], 0) == (True, False)
    assert option_availability(tiers, models, [None, 0], 0) == (True, False)
    assert option_availability(tiers, models, [0], 1) == (True, False)
    assert option_availability(tiers, models, [1], 1) == (False, False)
    assert option_availability(tiers, models, [], 5) == ()
