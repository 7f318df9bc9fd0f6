import logging

import streamlit as st
import pandas as pd

import data_integrator
from domain.errors import ApiError
from element_component import auth_gate, confirmation_dialog, show_result
from services import order_service
from services.listing_service import ALL, PAGE_SIZES, filter_orders, paginate
from utils.formatting import (
    ORDER_STATUS_LABELS,
    PAYMENT_METHOD_LABELS,
    PAYMENT_STATUS_LABELS,
    format_vnd,
    format_weight,
    payment_status_label,
    status_label,
)

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Đơn hàng", page_icon="📋", layout="wide")
session = auth_gate()
st.sidebar.header("📋 Quản lý đơn hàng")

st.session_state.setdefault("orders_page", 1)


def reload_orders():
    # refetched on the next run
    st.session_state.pop("orders_list", None)


st.title("📋 Quản lý Đơn hàng")

if st.button("🔄 Tải lại", key="orders_reload"):
    reload_orders()

if "orders_list" not in st.session_state:
    try:
        st.session_state["orders_list"] = data_integrator.list_orders(limit=1000)
    except ApiError as e:
        logger.error("Failed to load orders: %s", e)
        st.error(f"Không thể tải đơn hàng: {e}")
        st.stop()

orders = st.session_state["orders_list"]

show_result("order_cancel_state", "Đã hủy đơn hàng")

# -----------------------------------------------------------------------------
# Filters
# -----------------------------------------------------------------------------
col_search, col_status, col_payment, col_size = st.columns([2, 1, 1, 1])
with col_search:
    search = st.text_input("Tìm mã đơn, SĐT, tên khách")
with col_status:
    status_filter = st.selectbox(
        "Trạng thái",
        options=[ALL] + list(ORDER_STATUS_LABELS.keys()),
        format_func=lambda s: "Tất cả" if s == ALL else status_label(s),
    )
with col_payment:
    payment_filter = st.selectbox(
        "Thanh toán",
        options=[ALL] + list(PAYMENT_STATUS_LABELS.keys()),
        format_func=lambda s: "Tất cả" if s == ALL else payment_status_label(s),
    )
with col_size:
    per_page = st.selectbox("Số dòng", options=PAGE_SIZES)

filtered = filter_orders(orders, search, status_filter, payment_filter)

# a new filter starts from page 1
filter_key = (search, status_filter, payment_filter, per_page)
if st.session_state.get("orders_filter_key") != filter_key:
    st.session_state["orders_filter_key"] = filter_key
    st.session_state["orders_page"] = 1

page = paginate(filtered, st.session_state["orders_page"], per_page)

df_orders = pd.DataFrame(
    [
        {
            "Mã đơn": o.order_code,
            "Khách hàng": o.customer_name or "-",
            "SĐT": o.customer_phone,
            "Trạng thái": status_label(o.status),
            "Thanh toán": payment_status_label(o.payment_status),
            "Tổng tiền": format_vnd(o.total_amount),
            "Ngày tạo": o.created_at[:16].replace("T", " "),
        }
        for o in page.items
    ]
)

if df_orders.empty:
    st.info("Không có đơn hàng phù hợp.")
else:
    st.dataframe(df_orders, hide_index=True, use_container_width=True)

col_prev, col_info, col_next = st.columns([1, 2, 1])
with col_prev:
    if st.button("◀ Trước", disabled=page.page <= 1):
        st.session_state["orders_page"] = page.page - 1
        st.rerun()
with col_info:
    st.caption(
        f"Trang {page.page}/{page.total_pages} · "
        f"{page.total_items} đơn (hiển thị từ #{page.start_index + 1 if page.items else 0})"
    )
with col_next:
    if st.button("Sau ▶", disabled=page.page >= page.total_pages):
        st.session_state["orders_page"] = page.page + 1
        st.rerun()

st.divider()

# -----------------------------------------------------------------------------
# Order detail
# -----------------------------------------------------------------------------
if not page.items:
    st.stop()

order_id = st.selectbox(
    "Chi tiết đơn hàng",
    options=[o.id for o in page.items],
    format_func=lambda oid: next(
        (f"{o.order_code} - {o.customer_phone}" for o in page.items if o.id == oid), oid
    ),
)

try:
    order = data_integrator.get_order(order_id)
except ApiError as e:
    st.error(f"Không thể tải đơn hàng: {e}")
    st.stop()

col_info_1, col_info_2, col_info_3 = st.columns(3)
with col_info_1:
    st.markdown(f"**{order.order_code}**")
    st.write(f"Trạng thái: {status_label(order.status)}")
    st.write(f"Thanh toán: {payment_status_label(order.payment_status)}")
    st.write(f"Phương thức: {PAYMENT_METHOD_LABELS.get(order.payment_method, order.payment_method or '-')}")
with col_info_2:
    st.write(f"Khách: {order.customer_name or '-'}")
    st.write(f"SĐT: {order.customer_phone}")
    st.write(f"Địa chỉ: {order.customer_address or '-'}")
with col_info_3:
    st.metric("Tổng cộng", format_vnd(order.total_amount))
    st.caption(f"Tạm tính {format_vnd(order.subtotal)} · Giảm {format_vnd(order.discount_amount)}")

if order.weighed_at:
    st.caption(f"Đã cân lúc {order.weighed_at}")
if order.shipped_at:
    st.caption(f"Đã gửi lúc {order.shipped_at}")

df_items = pd.DataFrame(
    [
        {
            "Sản phẩm": f"{item.seafood_code} - {item.seafood_name}",
            "SL": item.quantity if item.quantity is not None else "-",
            "Cân nặng": format_weight(item.weight),
            "Đơn giá": format_vnd(item.unit_price),
            "Thành tiền": format_vnd(item.subtotal),
            "Ghi chú": item.notes,
        }
        for item in order.items
    ]
)
st.dataframe(df_items, hide_index=True, use_container_width=True)

# Correct weight / price after weighing
if order.items:
    with st.form("order_item_edit_form", enter_to_submit=False):
        st.subheader("Cập nhật cân nặng / đơn giá")
        item_id = st.selectbox(
            "Sản phẩm",
            options=[item.id for item in order.items],
            format_func=lambda iid: next(
                (i.seafood_name for i in order.items if i.id == iid), iid
            ),
        )
        current = next(i for i in order.items if i.id == item_id)
        new_weight = st.number_input("Cân nặng (kg)", min_value=0.0, step=0.1, value=float(current.weight))
        new_price = st.number_input("Đơn giá (₫/kg)", min_value=0.0, step=1000.0, value=float(current.unit_price))
        image_url = st.text_input("Link ảnh cân (tùy chọn)")

        if st.form_submit_button("Lưu"):
            ok, msg, _ = order_service.update_order_item(
                order.id,
                item_id,
                weight=new_weight,
                unit_price=new_price,
                weight_image_url=image_url or None,
                token=session.token,
            )
            if ok:
                reload_orders()
                st.success("Đã cập nhật sản phẩm")
                st.rerun()
            else:
                st.error(msg)

col_weighed, col_shipped, col_pdf, col_cancel = st.columns(4)

with col_weighed:
    if st.button("⚖️ Đánh dấu đã cân", disabled=order.weighed_at is not None):
        ok, msg, _ = order_service.mark_weighed(order.id, order.weight_images, token=session.token)
        if ok:
            reload_orders()
            st.rerun()
        else:
            st.error(msg)

with col_shipped:
    shipping_notes = st.text_input("Ghi chú vận chuyển", value=order.shipping_notes)
    if st.button("🚚 Đánh dấu đã gửi", disabled=order.shipped_at is not None):
        ok, msg, _ = order_service.mark_shipped(order.id, shipping_notes, token=session.token)
        if ok:
            reload_orders()
            st.rerun()
        else:
            st.error(msg)

with col_pdf:
    if st.button("📄 Xuất PDF"):
        ok, msg, content = order_service.export_pdf(order.id, token=session.token)
        if ok:
            st.session_state["order_pdf"] = (order.id, content)
        else:
            st.error(msg)

    pdf = st.session_state.get("order_pdf")
    if pdf and pdf[0] == order.id:
        st.download_button(
            "Tải PDF",
            data=pdf[1],
            file_name=f"{order.order_code or order.id}.pdf",
            mime="application/pdf",
        )

with col_cancel:
    if st.button("❌ Hủy đơn", disabled=order.status in ("cancelled", "completed")):
        def _cancel():
            ok, msg = order_service.cancel(order.id, token=session.token)
            if ok:
                reload_orders()
            return ok, msg

        confirmation_dialog(
            {"Mã đơn": order.order_code, "SĐT": order.customer_phone, "Tổng": format_vnd(order.total_amount)},
            _cancel,
            "order_cancel_state",
        )
