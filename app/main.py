import sys
import os
import asyncio
import logging
from dataclasses import replace

import streamlit as st

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from shopcore.config import config
from shopcore.transforms import load_seed
from shopcore.service import CatalogService, CartSession
from shopcore.async_ops import CartSync, run_refresh
from shopcore.discount import InMemoryDiscounts
from shopcore.pricing import discount_percent, effective_unit_price, line_total
from shopcore.variants import price_range

logging.basicConfig(level=config.LOG_LEVEL)


# ============ Кэширование данных ============
@st.cache_data
def get_data():
    return load_seed(config.SEED_PATH)


@st.cache_resource
def get_discounts():
    _, _, vouchers = get_data()
    return InMemoryDiscounts(vouchers)


st.set_page_config(
    page_title="Shop Cart",
    page_icon="🛒",
    layout="wide",
    initial_sidebar_state="expanded",
)

products, server_cart, vouchers = get_data()
catalog = CatalogService(products)

# Корзина на сессию браузера; "сервер" это упрощённая копия в session_state
if "server_items" not in st.session_state:
    st.session_state.server_items = tuple(server_cart or ())

if "cart" not in st.session_state:
    st.session_state.cart = CartSession()
    st.session_state.sync = CartSync(st.session_state.cart)
    st.session_state.sync.apply(
        st.session_state.sync.next_ticket(), st.session_state.server_items
    )

session: CartSession = st.session_state.cart
sync: CartSync = st.session_state.sync


def format_price(amount: int) -> str:
    return f"₫{amount:,}".replace(",", ".")


# ============ "Сервер" корзины ============
async def fetch_server_cart():
    await asyncio.sleep(0.05)
    return st.session_state.server_items


def server_put(item):
    st.session_state.server_items = tuple(
        i for i in st.session_state.server_items if i.id != item.id
    ) + (replace(item, selected=False, variant_label=None),)


def server_update(item_id, quantity):
    st.session_state.server_items = tuple(
        replace(i, quantity=quantity) if i.id == item_id else i
        for i in st.session_state.server_items
    )


def server_remove(item_id):
    st.session_state.server_items = tuple(
        i for i in st.session_state.server_items if i.id != item_id
    )


# ============ Обработчики виджетов ============
def on_quantity_change(item_id):
    quantity = int(st.session_state[f"qty_{item_id}"])
    session.update_quantity(item_id, quantity)
    server_update(item_id, quantity)


def on_remove(item_id):
    session.remove_item(item_id)
    server_remove(item_id)


# ============ SIDEBAR ============
with st.sidebar:
    st.header("📂 Навигация")
    page = st.radio(
        "Раздел:",
        ["🏪 Товар", "🛒 Корзина"],
        label_visibility="collapsed",
    )
    st.divider()
    st.metric("🛒 В корзине", session.state.cart_count)
    st.metric("✅ К оформлению", format_price(session.state.checkout_total))


# ============ PAGE: ТОВАР ============
if page == "🏪 Товар":
    product = st.selectbox("Товар", products, format_func=lambda p: p.name)
    tiers = product.tier_variations

    rng = price_range(product)
    if rng.min == rng.max:
        st.subheader(format_price(rng.min))
    else:
        st.subheader(f"{format_price(rng.min)} – {format_price(rng.max)}")
    percent = discount_percent(product.price)
    if not product.models and percent:
        st.caption(f"~~{format_price(product.price.current_price)}~~ -{percent}%")

    selection = []
    for i, tier in enumerate(tiers):
        labels = ["—"] + list(tier.options)
        picked = st.radio(tier.name, labels, horizontal=True, key=f"tier_{product.id}_{i}")
        selection.append(labels.index(picked) - 1)

    view = catalog.selection_view(product.id, selection).get_or_else(None)

    cols = st.columns([2, 3])
    with cols[0]:
        image = view.image.get_or_else(product.images[0] if product.images else None)
        if image:
            st.image(image, width=240)
    with cols[1]:
        if view.description:
            st.write(f"Выбрано: **{view.description}**")
        for tier, flags in zip(tiers, view.availability):
            sold_out = [opt for opt, ok in zip(tier.options, flags) if not ok]
            if sold_out:
                st.caption(f"{tier.name}: нет в наличии — {', '.join(sold_out)}")

        if view.unit_price.is_some():
            st.markdown(f"### {format_price(view.unit_price.value)}")
        st.write(f"Склад: **{view.stock}**")

        qty = st.number_input("Количество", min_value=1, value=1, key=f"add_qty_{product.id}")
        if st.button("➕ В корзину", type="primary", disabled=not view.purchasable):
            result = catalog.build_cart_item(product.id, selection, int(qty))
            if result.is_right:
                session.add_item(result.value)
                server_put(
                    next(i for i in session.state.items if i.model_id == result.value.model_id
                         and i.product.id == product.id)
                )
                st.success(f"✅ {product.name} × {qty}")
            else:
                st.warning(f"Не добавлено: {result.value}")


# ============ PAGE: КОРЗИНА ============
elif page == "🛒 Корзина":
    st.header("🛒 Ваша корзина")

    top = st.columns(3)
    with top[0]:
        if st.button("☑️ Выбрать всё"):
            session.select_all()
            st.rerun()
    with top[1]:
        if st.button("⬜ Снять выбор"):
            session.unselect_all()
            st.rerun()
    with top[2]:
        if st.button("🔄 Обновить с сервера"):
            result = run_refresh(sync, fetch_server_cart)
            dropped = result.map(lambda r: r.dropped).get_or_else(())
            if dropped:
                st.warning(f"Удалены на сервере: {', '.join(i.id for i in dropped)}")

    state = session.state
    if not state.items:
        st.info("🛍️ Корзина пуста. Перейдите к товару!")

    for group in session.items_by_shop():
        st.subheader(f"🏬 {group.shop_name}")
        for item in group.items:
            cols = st.columns([1, 5, 2, 2, 1])
            with cols[0]:
                st.checkbox(
                    "выбрать",
                    value=item.selected,
                    key=f"sel_{item.id}_{item.selected}",
                    on_change=session.toggle_select,
                    args=(item.id,),
                    label_visibility="collapsed",
                )
            with cols[1]:
                name = getattr(getattr(item.product, "value", None), "name", item.product.id)
                st.write(f"**{name}**")
                if item.variant_label:
                    st.caption(item.variant_label)
            with cols[2]:
                st.number_input(
                    "Кол-во",
                    min_value=1,
                    value=item.quantity,
                    key=f"qty_{item.id}",
                    on_change=on_quantity_change,
                    args=(item.id,),
                    label_visibility="collapsed",
                )
            with cols[3]:
                st.write(format_price(effective_unit_price(item.price)))
                st.caption(format_price(line_total(item)))
            with cols[4]:
                st.button("🗑️", key=f"remove_{item.id}", on_click=on_remove, args=(item.id,))
        st.caption(f"Итого по магазину: {format_price(group.subtotal)} ({group.item_count} шт.)")

    st.divider()
    st.markdown(f"### 💰 К оформлению: **{format_price(state.checkout_total)}**")
    st.caption(f"Всего в корзине: {format_price(state.total_amount)}")

    code = st.text_input("Промокод", key="voucher_code")
    if st.button("✅ Оформить заказ", type="primary", use_container_width=True):
        intent, rejection = session.checkout(code.strip() or None, get_discounts())
        if intent.is_empty:
            st.warning("Выберите хотя бы один товар")
        else:
            if rejection.is_some():
                st.error(f"❌ Промокод не применён: {rejection.value.value}")
            if intent.discount_amount:
                st.write(f"Скидка: -{format_price(intent.discount_amount)}")
            st.success(f"🎉 К оплате: {format_price(intent.final_total)}")
