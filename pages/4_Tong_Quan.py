import logging
from datetime import datetime

import streamlit as st
import pandas as pd

import data_integrator
from config import get_settings
from domain.errors import ApiError
from element_component import auth_gate
from services.listing_service import orders_by_status, revenue_last_days
from utils.formatting import format_vnd, status_label

logger = logging.getLogger(__name__)

st.set_page_config(page_title="Tổng quan", page_icon="📊", layout="wide")
session = auth_gate()
st.sidebar.header("📊 Tổng quan")

st.title("📊 Tổng quan cửa hàng")

REFRESH_SECONDS = get_settings().dashboard_refresh_seconds


@st.fragment(run_every=REFRESH_SECONDS)
def dashboard():
    try:
        stats = data_integrator.get_dashboard_stats()
        orders = data_integrator.list_orders(limit=100)
    except ApiError as e:
        logger.warning("Dashboard refresh failed: %s", e)
        st.error(f"Không thể tải dữ liệu tổng quan: {e}")
        return

    col_1, col_2, col_3, col_4, col_5 = st.columns(5)
    col_1.metric("Sản phẩm", stats.total_products)
    col_2.metric("Giá trị tồn kho", format_vnd(stats.total_stock_value))
    col_3.metric("Đơn hôm nay", stats.today_orders)
    col_4.metric("Doanh thu hôm nay", format_vnd(stats.today_revenue))
    col_5.metric("Sắp hết hàng", stats.low_stock_products)

    col_revenue, col_status = st.columns([2, 1])

    with col_revenue:
        st.subheader("Doanh thu 7 ngày")
        df_revenue = revenue_last_days(orders, days=7)
        df_revenue["Ngày"] = pd.to_datetime(df_revenue["date"]).dt.strftime("%d/%m")
        st.bar_chart(df_revenue, x="Ngày", y="revenue", y_label="₫")

    with col_status:
        st.subheader("Đơn theo trạng thái")
        df_status = orders_by_status(orders)
        df_status["Trạng thái"] = df_status["status"].map(status_label)
        st.dataframe(
            df_status[["Trạng thái", "count"]].rename(columns={"count": "Số đơn"}),
            hide_index=True,
            use_container_width=True,
        )

    try:
        top_products = data_integrator.get_product_stats(limit=10)
    except ApiError as e:
        logger.warning("Product stats unavailable: %s", e)
        top_products = []
    if top_products:
        st.subheader("Sản phẩm bán chạy")
        st.dataframe(pd.DataFrame(top_products), hide_index=True, use_container_width=True)

    st.subheader("Đơn hàng gần đây")
    df_recent = pd.DataFrame(
        [
            {
                "Mã đơn": o.order_code,
                "Khách": o.customer_name or o.customer_phone,
                "Trạng thái": status_label(o.status),
                "Tổng tiền": format_vnd(o.total_amount),
            }
            for o in orders[:10]
        ]
    )
    if df_recent.empty:
        st.info("Chưa có đơn hàng.")
    else:
        st.dataframe(df_recent, hide_index=True, use_container_width=True)

    st.caption(
        f"Cập nhật lúc {datetime.now():%H:%M:%S} · tự làm mới mỗi {REFRESH_SECONDS} giây"
    )


dashboard()
