import json
import logging
import uuid
from typing import Callable, Optional, Tuple, Union

from .compose import pipe, tap
from .config import config
from .discount import Voucher
from .domain import (
    CartItem,
    Category,
    Embedded,
    Model,
    Price,
    Product,
    Reference,
    Ref,
    Shop,
    TierVariation,
)

logger = logging.getLogger(__name__)


# ============ Нормализация на границе ввода ============


def _id(raw: dict) -> str:
    """Сервер отдаёт _id, сид: id"""
    return str(raw.get("_id", raw.get("id", "")))


def parse_price(raw: Union[int, float, dict, None]) -> Price:
    """
    Цена позиции бывает числом (старый формат) или объектом.
    Оба варианта приводятся к Price; отсутствие цены: 0.
    """
    if raw is None:
        logger.warning("Missing price in record, defaulting to 0")
        return Price(current_price=0)
    if isinstance(raw, (int, float)):
        return Price(current_price=int(raw))

    discount = raw.get("discountPrice")
    return Price(
        current_price=int(raw.get("currentPrice", 0)),
        discount_price=int(discount) if discount is not None else None,
        currency=str(raw.get("currency", config.DEFAULT_CURRENCY)),
    )


def parse_ref(raw, embed: Callable[[dict], object]) -> Optional[Ref]:
    """Строка id -> Reference, объект -> Embedded(embed(obj)), пусто -> None"""
    if raw is None or raw == "":
        return None
    if isinstance(raw, dict):
        return Embedded(embed(raw))
    return Reference(str(raw))


def parse_category(raw: dict) -> Category:
    return Category(id=_id(raw), name=str(raw.get("name", "")), slug=str(raw.get("slug", "")))


def parse_shop(raw: dict) -> Shop:
    return Shop(id=_id(raw), name=str(raw.get("name", "Shop")))


def parse_tier(raw: dict) -> TierVariation:
    return TierVariation(
        name=str(raw["name"]),
        options=tuple(map(str, raw.get("options", []))),
        images=tuple(map(str, raw.get("images") or [])),
    )


def parse_model(raw: dict) -> Model:
    return Model(
        id=_id(raw),
        tier_index=tuple(int(i) for i in raw.get("tierIndex", [])),
        price=int(raw.get("price", 0)),
        stock=int(raw.get("stock", 0)),
        sold_count=int(raw.get("soldCount", raw.get("sold", 0))),
        sku=raw.get("sku"),
    )


def parse_product(raw: dict) -> Product:
    return Product(
        id=_id(raw),
        name=str(raw.get("name", "")),
        slug=str(raw.get("slug", "")),
        price=parse_price(raw.get("price")),
        category=parse_ref(raw.get("category"), parse_category),
        shop=parse_ref(raw.get("shop"), parse_shop),
        tier_variations=tuple(map(parse_tier, raw.get("tierVariations", []))),
        models=tuple(map(parse_model, raw.get("models", []))),
        images=tuple(raw.get("images", [])),
        stock=int(raw.get("stock", 0)),
        sold_count=int(raw.get("soldCount", 0)),
    )


def parse_cart_item(raw: dict) -> CartItem:
    """
    Запись позиции корзины от сервера.
    Клиентских полей (selected, вариант) у сервера нет: selected всегда False.
    """
    item_id = _id(raw) or str(uuid.uuid4())
    return CartItem(
        id=item_id,
        product=parse_ref(raw.get("productId"), parse_product) or Reference(""),
        quantity=max(1, int(raw.get("quantity", 1))),
        price=parse_price(raw.get("price")),
        model_id=raw.get("modelId") or raw.get("variantId"),
        shop=parse_ref(raw.get("shopId"), parse_shop),
    )


def parse_cart(raw: Optional[dict]) -> Optional[Tuple[CartItem, ...]]:
    """Ответ сервера на GET /cart; None: корзины нет"""
    if raw is None:
        return None
    return tuple(map(parse_cart_item, raw.get("items") or []))


def parse_voucher(raw: dict) -> Voucher:
    return Voucher(
        code=str(raw["code"]).upper(),
        type=str(raw.get("type", "fixed_amount")),
        value=int(raw.get("value", 0)),
        max_value=raw.get("maxValue"),
        min_order_value=int(raw.get("minOrderValue", 0)),
        end_date=raw.get("endDate"),
        applicable_product_ids=tuple(raw.get("applicableProducts", [])),
        is_active=bool(raw.get("isActive", True)),
    )


def load_seed(
    path: str = config.SEED_PATH,
) -> Tuple[Tuple[Product, ...], Optional[Tuple[CartItem, ...]], Tuple[Voucher, ...]]:
    """Загружает seed.json: (товары, снимок корзины с сервера, ваучеры)"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    products = pipe(
        lambda d: d.get("products", []),
        lambda raw: tuple(map(parse_product, raw)),
        tap(lambda ps: logger.debug("Loaded %d products from %s", len(ps), path)),
    )(data)
    cart = parse_cart(data.get("cart"))
    vouchers = tuple(map(parse_voucher, data.get("vouchers", [])))
    return products, cart, vouchers
