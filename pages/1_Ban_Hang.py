import logging

import streamlit as st
import pandas as pd

import data_integrator
from domain.errors import ApiError, ValidationError
from domain.models import OrderDraft
from element_component import auth_gate
from services.cart_service import (
    SINGLE_ADD_MIN_WEIGHT,
    SelectionSet,
    clear_cart,
    compute_totals,
    edit_line,
    filter_products,
    materialize,
    quick_add,
    remove_line,
)
from services.order_service import PAYMENT_METHODS, PAYMENT_STATUSES, submit_order
from utils.formatting import (
    PAYMENT_METHOD_LABELS,
    PAYMENT_STATUS_LABELS,
    format_vnd,
    format_weight,
    unit_label,
)

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Bán hàng", page_icon="🛒", layout="wide")
session = auth_gate()
st.sidebar.header("🛒 Bán hàng")

# -----------------------------------------------------------------------------
# Session state
# -----------------------------------------------------------------------------
if "pos_draft" not in st.session_state:
    st.session_state["pos_draft"] = OrderDraft()

if "pos_selection" not in st.session_state:
    st.session_state["pos_selection"] = SelectionSet()

# bumped whenever lines are added/removed so per-line widget keys never point
# at a line that moved
st.session_state.setdefault("pos_cart_version", 0)
st.session_state.setdefault("pos_last_order", None)

draft: OrderDraft = st.session_state["pos_draft"]
selection: SelectionSet = st.session_state["pos_selection"]


def load_catalog():
    try:
        st.session_state["pos_products"] = data_integrator.list_products(status="active")
        st.session_state["pos_categories"] = data_integrator.list_categories()
    except ApiError as e:
        logger.error("Failed to load catalog: %s", e)
        st.session_state.setdefault("pos_products", [])
        st.session_state.setdefault("pos_categories", [])
        st.error(f"Không thể tải dữ liệu. Vui lòng thử lại! ({e})")


def bump_cart_version():
    st.session_state["pos_cart_version"] += 1


def _request_submit():
    st.session_state["pos_submitting"] = True


if "pos_products" not in st.session_state:
    load_catalog()

products = st.session_state["pos_products"]
categories = st.session_state["pos_categories"]
category_name_by_id = {c.id: c.name for c in categories}

# -----------------------------------------------------------------------------
# Multi-select picker
# -----------------------------------------------------------------------------
def _on_selection_edit(product_id: str, field: str, widget_key: str):
    entry = selection.edit(product_id, field, st.session_state[widget_key])
    if entry is not None and field == "quantity":
        st.session_state[f"sel_weight_{product_id}"] = float(entry.weight)


def _on_pick(product):
    selection.toggle(product)
    entry = selection.get(product.id)
    if entry is not None:
        st.session_state[f"sel_qty_{product.id}"] = float(entry.quantity or 0)
        st.session_state[f"sel_weight_{product.id}"] = float(entry.weight)
        st.session_state[f"sel_notes_{product.id}"] = entry.notes


def _forget_picker_widgets():
    for key in list(st.session_state.keys()):
        if key.startswith(("pick_", "sel_qty_", "sel_weight_", "sel_notes_")):
            del st.session_state[key]


@st.dialog("Chọn sản phẩm", width="large")
def product_picker():
    col_search, col_cat = st.columns([2, 1])
    with col_search:
        search = st.text_input("Tìm theo tên hoặc mã", key="picker_search")
    with col_cat:
        cat_id = st.selectbox(
            "Danh mục",
            options=[""] + [c.id for c in categories],
            format_func=lambda cid: category_name_by_id.get(cid, "Tất cả"),
            key="picker_category",
        )

    for product in filter_products(products, search, cat_id or None):
        label = (
            f"{product.code} - {product.name} | {format_vnd(product.current_price)}/kg | "
            f"Tồn: {format_weight(product.stock_quantity)}"
        )
        st.session_state.setdefault(f"pick_{product.id}", product.id in selection)
        st.checkbox(label, key=f"pick_{product.id}", on_change=_on_pick, args=(product,))

        entry = selection.get(product.id)
        if entry is None:
            continue

        cols = st.columns([1, 1, 2])
        if not product.is_weight_based:
            with cols[0]:
                key = f"sel_qty_{product.id}"
                st.number_input(
                    f"Số {unit_label(product.unit_type)}",
                    min_value=0.0,
                    step=1.0,
                    key=key,
                    on_change=_on_selection_edit,
                    args=(product.id, "quantity", key),
                )
        with cols[1]:
            key = f"sel_weight_{product.id}"
            st.number_input(
                "Cân nặng (kg)",
                min_value=0.0,
                step=0.1,
                key=key,
                on_change=_on_selection_edit,
                args=(product.id, "weight", key),
            )
        with cols[2]:
            key = f"sel_notes_{product.id}"
            st.text_input(
                "Ghi chú",
                key=key,
                on_change=_on_selection_edit,
                args=(product.id, "notes", key),
            )

    st.divider()
    col_add, col_cancel = st.columns(2)
    with col_add:
        if st.button(f"Thêm {len(selection)} sản phẩm vào giỏ", type="primary"):
            try:
                materialize(selection, draft.lines)
            except ValidationError as e:
                for msg in e.messages:
                    st.error(msg)
            else:
                _forget_picker_widgets()
                bump_cart_version()
                st.rerun()
    with col_cancel:
        if st.button("Hủy"):
            selection.clear()
            _forget_picker_widgets()
            st.rerun()


# -----------------------------------------------------------------------------
# Header
# -----------------------------------------------------------------------------
st.title("🛒 Point of Sale")

col_pick, col_reload = st.columns([1, 1])
with col_pick:
    if st.button("➕ Chọn sản phẩm", type="primary"):
        product_picker()
with col_reload:
    if st.button("🔄 Tải lại sản phẩm"):
        load_catalog()
        st.rerun()

last_order = st.session_state["pos_last_order"]
if last_order:
    st.success(f"Tạo đơn hàng {last_order} thành công!")
    st.session_state["pos_last_order"] = None

# -----------------------------------------------------------------------------
# Quick add: one tap per product
# -----------------------------------------------------------------------------
with st.expander("⚡ Thêm nhanh"):
    quick_search = st.text_input("Tìm sản phẩm", key="quick_search")
    quick_products = filter_products(products, quick_search)[:12]
    grid = st.columns(4)
    for i, product in enumerate(quick_products):
        with grid[i % 4]:
            if st.button(
                f"{product.name}\n{format_vnd(product.current_price)}/kg",
                key=f"quick_{product.id}",
                use_container_width=True,
            ):
                before = len(draft.lines)
                line = quick_add(draft.lines, product)
                if len(draft.lines) != before:
                    bump_cart_version()
                else:
                    # refresh the widgets of the line that just grew
                    idx = draft.lines.index(line)
                    version = st.session_state["pos_cart_version"]
                    st.session_state[f"line_weight_{version}_{idx}"] = float(line.weight)
                    if line.quantity is not None:
                        st.session_state[f"line_qty_{version}_{idx}"] = float(line.quantity)
                st.rerun()

st.divider()

# -----------------------------------------------------------------------------
# Cart
# -----------------------------------------------------------------------------
def _on_line_edit(index: int, field: str, widget_key: str, min_weight: float):
    line = draft.lines[index]
    edit_line(line, field, st.session_state[widget_key], min_weight=min_weight)
    version = st.session_state["pos_cart_version"]
    if field == "quantity":
        st.session_state[f"line_weight_{version}_{index}"] = float(line.weight)


col_cart, col_checkout = st.columns([2, 1])

with col_cart:
    st.subheader(f"Giỏ hàng ({len(draft.lines)})")

    if not draft.lines:
        st.info("Giỏ hàng trống. Nhấn \"Chọn sản phẩm\" để thêm.")

    version = st.session_state["pos_cart_version"]
    for idx, line in enumerate(draft.lines):
        product = line.product
        with st.container(border=True):
            col_name, col_remove = st.columns([5, 1])
            with col_name:
                st.markdown(f"**{product.name}** `{product.code}`")
                st.caption(f"{format_vnd(line.unit_price)}/kg")
            with col_remove:
                if st.button("✖", key=f"remove_{version}_{idx}"):
                    remove_line(draft.lines, idx)
                    bump_cart_version()
                    st.rerun()

            cols = st.columns(3)
            if not product.is_weight_based:
                with cols[0]:
                    key = f"line_qty_{version}_{idx}"
                    st.session_state.setdefault(key, float(line.quantity or 0))
                    st.number_input(
                        f"Số {unit_label(product.unit_type)}",
                        min_value=0.0,
                        step=1.0,
                        key=key,
                        on_change=_on_line_edit,
                        args=(idx, "quantity", key, 0.0),
                    )
            with cols[1]:
                key = f"line_weight_{version}_{idx}"
                st.session_state.setdefault(key, float(line.weight))
                st.number_input(
                    "Cân nặng (kg)",
                    min_value=0.0,
                    step=0.1,
                    key=key,
                    on_change=_on_line_edit,
                    args=(idx, "weight", key, SINGLE_ADD_MIN_WEIGHT if product.is_weight_based else 0.0),
                )
            with cols[2]:
                key = f"line_notes_{version}_{idx}"
                st.session_state.setdefault(key, line.notes)
                st.text_input(
                    "Ghi chú",
                    key=key,
                    on_change=_on_line_edit,
                    args=(idx, "notes", key, 0.0),
                )

            st.markdown(f"Thành tiền: **{format_vnd(line.subtotal)}**")

    if draft.lines and st.button("🗑️ Xóa giỏ hàng"):
        clear_cart(draft.lines)
        bump_cart_version()
        st.rerun()

# -----------------------------------------------------------------------------
# Customer, payment, totals, submit
# -----------------------------------------------------------------------------
with col_checkout:
    st.subheader("Khách hàng")
    draft.customer_phone = st.text_input("Số điện thoại *", value=draft.customer_phone)
    draft.customer_name = st.text_input("Tên khách hàng", value=draft.customer_name)
    draft.customer_address = st.text_area("Địa chỉ", value=draft.customer_address)

    st.subheader("Thanh toán")
    draft.payment_method = st.selectbox(
        "Phương thức",
        options=PAYMENT_METHODS,
        index=PAYMENT_METHODS.index(draft.payment_method) if draft.payment_method in PAYMENT_METHODS else 0,
        format_func=lambda m: PAYMENT_METHOD_LABELS.get(m, m),
    )
    draft.payment_status = st.selectbox(
        "Trạng thái",
        options=PAYMENT_STATUSES,
        index=PAYMENT_STATUSES.index(draft.payment_status) if draft.payment_status in PAYMENT_STATUSES else 0,
        format_func=lambda s: PAYMENT_STATUS_LABELS.get(s, s),
    )
    draft.discount_amount = st.number_input(
        "Giảm giá (₫)",
        min_value=0.0,
        step=1000.0,
        value=float(draft.discount_amount),
    )
    draft.notes = st.text_area("Ghi chú đơn hàng", value=draft.notes)

    totals = compute_totals(draft.lines, draft.discount_amount)

    df_totals = pd.DataFrame(
        [
            {"Mục": "Tạm tính", "Số tiền": format_vnd(totals.subtotal)},
            {"Mục": "Giảm giá", "Số tiền": f"-{format_vnd(totals.discount)}"},
            {"Mục": "Tổng cộng", "Số tiền": format_vnd(totals.total)},
        ]
    )
    st.dataframe(df_totals, hide_index=True, use_container_width=True)

    if totals.total < 0:
        st.warning("Giảm giá lớn hơn tạm tính.")

    # the click is recorded in a callback so the button renders disabled
    # while the request of this run is in flight
    submitting = st.session_state.pop("pos_submitting", False)
    st.button(
        "💾 Tạo đơn hàng",
        type="primary",
        key="pos_submit",
        disabled=submitting,
        on_click=_request_submit,
        use_container_width=True,
    )
    if submitting:
        try:
            with st.spinner("Đang xử lý..."):
                order = submit_order(draft, token=session.token)
        except ValidationError as e:
            for msg in e.messages:
                st.error(msg)
        except ApiError as e:
            st.error(f"Tạo đơn hàng thất bại! {e}")
        else:
            st.session_state["pos_last_order"] = order.order_code or order.id
            bump_cart_version()
            # stock was decremented server-side
            load_catalog()
            st.rerun()
