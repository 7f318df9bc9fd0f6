import re

import streamlit as st
import pandas as pd
from typing import Any, Dict

import data_integrator
from domain.errors import ApiError
from domain.models import UNIT_TYPES, Product
from element_component import auth_gate, confirmation_dialog, show_result
from services.listing_service import ALL, PAGE_SIZES, filter_product_admin, paginate
from utils.formatting import PRODUCT_STATUS_LABELS, UNIT_LABELS, format_vnd, format_weight

st.set_page_config(page_title="Sản phẩm", page_icon="🐟", layout="wide")
session = auth_gate()
st.sidebar.header("🐟 Sản phẩm & Danh mục")

st.session_state.setdefault("products_page", 1)

EMPTY_FORM = Product(id="", code="", name="").to_form()


def validate_product(data: Dict[str, Any]):
    if not data["code"]:
        return False, "Mã sản phẩm không được để trống"
    if not re.match(r"^[A-Za-z0-9_-]{2,30}$", data["code"]):
        return False, "Mã chỉ gồm chữ, số, gạch ngang hoặc gạch dưới (2–30 ký tự)."
    if not data["name"]:
        return False, "Tên sản phẩm không được để trống"
    if data["unit_type"] != "kg" and data["avg_unit_weight"] <= 0:
        return False, "Sản phẩm tính theo con/thùng cần cân nặng trung bình > 0"
    if data["current_price"] <= 0:
        return False, "Giá bán phải lớn hơn 0"
    return True, ""


def validate_category(name: str, slug: str):
    if not name:
        return False, "Tên danh mục không được để trống"
    if not re.match(r"^[a-z0-9-]{2,50}$", slug):
        return False, "Slug chỉ gồm chữ thường, số và gạch ngang (2–50 ký tự)."
    return True, ""


def load_data():
    return data_integrator.list_products(), data_integrator.list_categories()


st.title("🐟 Quản lý Sản phẩm")

try:
    products, categories = load_data()
except ApiError as e:
    st.error(f"Không thể tải dữ liệu: {e}")
    st.stop()

category_name_by_id = {c.id: c.name for c in categories}

show_result("product_delete_state", "Đã xóa sản phẩm")
show_result("category_delete_state", "Đã xóa danh mục")

tab_products, tab_categories = st.tabs(["Sản phẩm", "Danh mục"])

# -----------------------------------------------------------------------------
# Products
# -----------------------------------------------------------------------------
with tab_products:
    col_search, col_cat, col_status, col_size = st.columns([2, 1, 1, 1])
    with col_search:
        search = st.text_input("Tìm theo tên hoặc mã", key="product_search")
    with col_cat:
        cat_filter = st.selectbox(
            "Danh mục",
            options=[ALL] + [c.id for c in categories],
            format_func=lambda cid: "Tất cả" if cid == ALL else category_name_by_id.get(cid, cid),
        )
    with col_status:
        status_filter = st.selectbox(
            "Trạng thái",
            options=[ALL] + list(PRODUCT_STATUS_LABELS.keys()),
            format_func=lambda s: "Tất cả" if s == ALL else PRODUCT_STATUS_LABELS[s],
        )
    with col_size:
        per_page = st.selectbox("Số dòng", options=PAGE_SIZES, key="product_page_size")

    filtered = filter_product_admin(products, search, cat_filter, status_filter)

    filter_key = (search, cat_filter, status_filter, per_page)
    if st.session_state.get("products_filter_key") != filter_key:
        st.session_state["products_filter_key"] = filter_key
        st.session_state["products_page"] = 1

    page = paginate(filtered, st.session_state["products_page"], per_page)

    df_products = pd.DataFrame(
        [
            {
                "Mã": p.code,
                "Tên": p.name,
                "Danh mục": category_name_by_id.get(p.category_id, "-"),
                "Đơn vị": UNIT_LABELS.get(p.unit_type, p.unit_type),
                "TB/đơn vị": format_weight(p.avg_unit_weight) if p.avg_unit_weight else "-",
                "Giá/kg": format_vnd(p.current_price),
                "Tồn kho": format_weight(p.stock_quantity),
                "Trạng thái": PRODUCT_STATUS_LABELS.get(p.status, p.status),
            }
            for p in page.items
        ]
    )
    if df_products.empty:
        st.info("Không có sản phẩm phù hợp.")
    else:
        st.dataframe(df_products, hide_index=True, use_container_width=True)

    col_prev, col_info, col_next = st.columns([1, 2, 1])
    with col_prev:
        if st.button("◀ Trước", disabled=page.page <= 1, key="products_prev"):
            st.session_state["products_page"] = page.page - 1
            st.rerun()
    with col_info:
        st.caption(f"Trang {page.page}/{page.total_pages} · {page.total_items} sản phẩm")
    with col_next:
        if st.button("Sau ▶", disabled=page.page >= page.total_pages, key="products_next"):
            st.session_state["products_page"] = page.page + 1
            st.rerun()

    st.divider()

    by_id = {p.id: p for p in products}
    editing_id = st.selectbox(
        "Sửa sản phẩm",
        options=[""] + [p.id for p in filtered],
        format_func=lambda pid: "➕ Thêm sản phẩm mới" if not pid else f"{by_id[pid].code} - {by_id[pid].name}",
    )
    form = by_id[editing_id].to_form() if editing_id else dict(EMPTY_FORM)

    with st.form(f"product_form_{editing_id or 'new'}", enter_to_submit=False):
        col_a, col_b = st.columns(2)
        with col_a:
            code = st.text_input("Mã sản phẩm *", value=form["code"])
            name = st.text_input("Tên sản phẩm *", value=form["name"])
            category_id = st.selectbox(
                "Danh mục",
                options=[""] + [c.id for c in categories],
                index=([""] + [c.id for c in categories]).index(form["category_id"])
                if form["category_id"] in category_name_by_id else 0,
                format_func=lambda cid: category_name_by_id.get(cid, "Chọn danh mục"),
            )
            unit_type = st.selectbox(
                "Đơn vị",
                options=UNIT_TYPES,
                index=UNIT_TYPES.index(form["unit_type"]) if form["unit_type"] in UNIT_TYPES else 0,
                format_func=lambda u: UNIT_LABELS.get(u, u),
            )
            avg_unit_weight = st.number_input(
                "Cân nặng TB mỗi đơn vị (kg)", min_value=0.0, step=0.01,
                value=float(form["avg_unit_weight"]),
            )
            status = st.selectbox(
                "Trạng thái",
                options=list(PRODUCT_STATUS_LABELS.keys()),
                index=list(PRODUCT_STATUS_LABELS.keys()).index(form["status"])
                if form["status"] in PRODUCT_STATUS_LABELS else 0,
                format_func=lambda s: PRODUCT_STATUS_LABELS[s],
            )
        with col_b:
            current_price = st.number_input("Giá bán (₫/kg) *", min_value=0.0, step=1000.0,
                                            value=float(form["current_price"]))
            stock_quantity = st.number_input("Tồn kho (kg)", min_value=0.0, step=0.5,
                                             value=float(form["stock_quantity"]))
            origin = st.text_input("Xuất xứ", value=form["origin"])
            image_url = st.text_input("Link ảnh", value=form["image_url"])
            tags = st.text_input("Tags (phân cách bằng dấu phẩy)", value=", ".join(form["tags"]))
            description = st.text_area("Mô tả", value=form["description"])

        submitted = st.form_submit_button("Lưu")

        if submitted:
            payload = {
                "code": code.strip().upper(),
                "name": name.strip(),
                "category_id": category_id or None,
                "unit_type": unit_type,
                "avg_unit_weight": avg_unit_weight if unit_type != "kg" else None,
                "current_price": current_price,
                "stock_quantity": stock_quantity,
                "description": description,
                "origin": origin,
                "image_url": image_url or None,
                "tags": [t.strip() for t in tags.split(",") if t.strip()],
                "status": status,
            }
            is_valid, message = validate_product({**payload, "avg_unit_weight": avg_unit_weight})
            if not is_valid:
                st.error(message)
            else:
                ok, msg, _ = data_integrator.save_product(payload, editing_id or None, session.token)
                if ok:
                    st.success("Cập nhật sản phẩm thành công!" if editing_id else "Thêm sản phẩm thành công!")
                else:
                    st.error(msg)

    if editing_id and st.button("🗑️ Xóa sản phẩm", key="product_delete"):
        product = by_id[editing_id]
        confirmation_dialog(
            {"Mã": product.code, "Tên": product.name},
            lambda: data_integrator.remove_product(product.id, session.token),
            "product_delete_state",
        )

# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------
with tab_categories:
    df_categories = pd.DataFrame(
        [
            {
                "Tên": c.name,
                "Slug": c.slug,
                "Thứ tự": c.sort_order,
                "Số sản phẩm": sum(1 for p in products if p.category_id == c.id),
                "Mô tả": c.description,
            }
            for c in sorted(categories, key=lambda c: c.sort_order)
        ]
    )
    if df_categories.empty:
        st.info("Chưa có danh mục.")
    else:
        st.dataframe(df_categories, hide_index=True, use_container_width=True)

    cat_by_id = {c.id: c for c in categories}
    editing_cat = st.selectbox(
        "Sửa danh mục",
        options=[""] + [c.id for c in categories],
        format_func=lambda cid: "➕ Thêm danh mục mới" if not cid else cat_by_id[cid].name,
    )
    current_cat = cat_by_id.get(editing_cat)

    with st.form(f"category_form_{editing_cat or 'new'}", enter_to_submit=False):
        cat_name = st.text_input("Tên danh mục *", value=current_cat.name if current_cat else "")
        cat_slug = st.text_input("Slug *", value=current_cat.slug if current_cat else "")
        cat_order = st.number_input("Thứ tự", min_value=0, step=1,
                                    value=current_cat.sort_order if current_cat else 0)
        cat_desc = st.text_area("Mô tả", value=current_cat.description if current_cat else "")

        if st.form_submit_button("Lưu"):
            is_valid, message = validate_category(cat_name.strip(), cat_slug.strip())
            if not is_valid:
                st.error(message)
            else:
                ok, msg, _ = data_integrator.save_category(
                    {
                        "name": cat_name.strip(),
                        "slug": cat_slug.strip(),
                        "sort_order": int(cat_order),
                        "description": cat_desc,
                    },
                    editing_cat or None,
                    session.token,
                )
                if ok:
                    st.success("Lưu danh mục thành công!")
                else:
                    st.error(msg)

    if current_cat and st.button("🗑️ Xóa danh mục", key="category_delete"):
        confirmation_dialog(
            {"Tên": current_cat.name, "Slug": current_cat.slug},
            lambda: data_integrator.remove_category(current_cat.id, session.token),
            "category_delete_state",
        )
