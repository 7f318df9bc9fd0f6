import re

import streamlit as st
import pandas as pd

import rbac_integrator
from domain.errors import ApiError
from element_component import auth_gate, confirmation_dialog, show_result

st.set_page_config(page_title="Phân quyền", page_icon="🔐", layout="wide")
session = auth_gate()
st.sidebar.header("🔐 Vai trò & Quyền")

ACTIONS = ("view", "create", "update", "delete", "manage")


def validate_role(name, slug):
    if not name:
        return False, "Tên vai trò không được để trống"
    if not re.match(r"^[a-z0-9_-]{2,50}$", slug):
        return False, "Slug chỉ gồm chữ thường, số, gạch ngang hoặc gạch dưới (2–50 ký tự)."
    return True, ""


def validate_permission(name, codename, module):
    if not name:
        return False, "Tên quyền không được để trống"
    if not re.match(r"^[a-z0-9_.:-]{3,100}$", codename):
        return False, "Codename chỉ gồm chữ thường, số và . _ : - (3–100 ký tự)."
    if not module:
        return False, "Module không được để trống"
    return True, ""


st.title("🔐 Vai trò & Phân quyền")

try:
    roles = rbac_integrator.list_roles(session.token)
    permissions = rbac_integrator.list_permissions(session.token)
except ApiError as e:
    st.error(f"Không thể tải dữ liệu: {e}")
    st.stop()

role_by_id = {r.id: r for r in roles}
perm_by_id = {p.id: p for p in permissions}

show_result("role_delete_state", "Đã xóa vai trò")
show_result("perm_delete_state", "Đã xóa quyền")

col_roles, col_perms, col_stats = st.columns([1, 1, 2])
col_roles.metric("Vai trò", len(roles))
col_perms.metric("Quyền", len(permissions))
with col_stats:
    with st.expander("Thống kê chi tiết"):
        try:
            st.json(rbac_integrator.get_rbac_stats(session.token))
        except ApiError as e:
            st.warning(f"Không thể tải thống kê: {e}")

tab_roles, tab_role_perms, tab_perms, tab_users = st.tabs(
    ["Vai trò", "Quyền của vai trò", "Danh sách quyền", "Người dùng"]
)

# -----------------------------------------------------------------------------
# Roles
# -----------------------------------------------------------------------------
with tab_roles:
    df_roles = pd.DataFrame(
        [
            {"Tên": r.name, "Slug": r.slug, "Cấp": r.level, "Màu": r.color,
             "Số quyền": len(r.permissions), "Mô tả": r.description}
            for r in sorted(roles, key=lambda r: -r.level)
        ]
    )
    if df_roles.empty:
        st.info("Chưa có vai trò.")
    else:
        st.dataframe(df_roles, hide_index=True, use_container_width=True)

    editing_role = st.selectbox(
        "Sửa vai trò",
        options=[""] + [r.id for r in roles],
        format_func=lambda rid: "➕ Tạo vai trò mới" if not rid else role_by_id[rid].name,
    )
    current = role_by_id.get(editing_role)

    with st.form(f"role_form_{editing_role or 'new'}", enter_to_submit=False):
        name = st.text_input("Tên *", value=current.name if current else "")
        slug = st.text_input("Slug *", value=current.slug if current else "")
        level = st.number_input("Cấp độ", min_value=0, max_value=100, step=1,
                                value=current.level if current else 10)
        color = st.color_picker("Màu", value=current.color if current and current.color else "#3b82f6")
        description = st.text_area("Mô tả", value=current.description if current else "")
        initial_perms = []
        if not current:
            initial_perms = st.multiselect(
                "Quyền ban đầu",
                options=[p.id for p in permissions],
                format_func=lambda pid: f"{perm_by_id[pid].module} · {perm_by_id[pid].name}",
            )

        if st.form_submit_button("Lưu"):
            is_valid, message = validate_role(name.strip(), slug.strip())
            if not is_valid:
                st.error(message)
            else:
                data = {
                    "name": name.strip(),
                    "slug": slug.strip(),
                    "level": int(level),
                    "color": color,
                    "description": description,
                }
                if initial_perms:
                    data["permission_ids"] = initial_perms
                ok, msg, _ = rbac_integrator.save_role(data, session.token, editing_role or None)
                if ok:
                    st.success("Lưu vai trò thành công!")
                else:
                    st.error(msg)

    if current and st.button("🗑️ Xóa vai trò", key="role_delete"):
        confirmation_dialog(
            {"Tên": current.name, "Slug": current.slug},
            lambda: rbac_integrator.remove_role(current.id, session.token),
            "role_delete_state",
        )

# -----------------------------------------------------------------------------
# Role permissions
# -----------------------------------------------------------------------------
with tab_role_perms:
    if not roles:
        st.info("Chưa có vai trò.")
    else:
        role_id = st.selectbox(
            "Vai trò",
            options=[r.id for r in roles],
            format_func=lambda rid: role_by_id[rid].name,
            key="perm_role",
        )
        try:
            assigned = {p.id for p in rbac_integrator.get_role_permissions(role_id, session.token)}
        except ApiError as e:
            st.error(f"Không thể tải quyền của vai trò: {e}")
            assigned = None

        if assigned is not None:
            with st.form(f"role_permissions_form_{role_id}", enter_to_submit=False):
                modules = sorted({p.module for p in permissions})
                chosen = []
                for module in modules:
                    st.markdown(f"**{module or 'Khác'}**")
                    for p in [p for p in permissions if p.module == module]:
                        if st.checkbox(f"{p.name} (`{p.codename}`)", value=p.id in assigned,
                                       key=f"rp_{role_id}_{p.id}"):
                            chosen.append(p.id)

                if st.form_submit_button("Lưu quyền"):
                    try:
                        rbac_integrator.assign_permissions_to_role(role_id, chosen, session.token)
                    except ApiError as e:
                        st.error(str(e))
                    else:
                        st.success(f"Đã gán {len(chosen)} quyền cho {role_by_id[role_id].name}")

# -----------------------------------------------------------------------------
# Permissions
# -----------------------------------------------------------------------------
with tab_perms:
    search = st.text_input("Tìm quyền", key="perm_search").strip().lower()
    shown = [
        p for p in permissions
        if not search or search in p.name.lower() or search in p.codename.lower() or search in p.module.lower()
    ]
    df_perms = pd.DataFrame(
        [{"Module": p.module, "Tên": p.name, "Codename": p.codename, "Hành động": p.action,
          "Mô tả": p.description} for p in shown]
    )
    if df_perms.empty:
        st.info("Không có quyền phù hợp.")
    else:
        st.dataframe(df_perms, hide_index=True, use_container_width=True)

    editing_perm = st.selectbox(
        "Sửa quyền",
        options=[""] + [p.id for p in permissions],
        format_func=lambda pid: "➕ Tạo quyền mới" if not pid else f"{perm_by_id[pid].module} · {perm_by_id[pid].name}",
        key="perm_edit",
    )
    current_perm = perm_by_id.get(editing_perm)

    with st.form(f"permission_form_{editing_perm or 'new'}", enter_to_submit=False):
        st.subheader("Sửa quyền" if current_perm else "Tạo quyền mới")
        p_name = st.text_input("Tên *", value=current_perm.name if current_perm else "")
        p_codename = st.text_input("Codename *", value=current_perm.codename if current_perm else "",
                                   placeholder="orders.create")
        p_module = st.text_input("Module *", value=current_perm.module if current_perm else "",
                                 placeholder="orders")
        p_action = st.selectbox(
            "Hành động",
            options=ACTIONS,
            index=ACTIONS.index(current_perm.action) if current_perm and current_perm.action in ACTIONS else 0,
        )
        p_desc = st.text_area("Mô tả", value=current_perm.description if current_perm else "")

        if st.form_submit_button("Lưu"):
            is_valid, message = validate_permission(p_name.strip(), p_codename.strip(), p_module.strip())
            if not is_valid:
                st.error(message)
            else:
                ok, msg, _ = rbac_integrator.save_permission(
                    {
                        "name": p_name.strip(),
                        "codename": p_codename.strip(),
                        "module": p_module.strip(),
                        "action": p_action,
                        "description": p_desc,
                    },
                    session.token,
                    editing_perm or None,
                )
                if ok:
                    st.success("Lưu quyền thành công!")
                else:
                    st.error(msg)

    if current_perm and st.button("🗑️ Xóa quyền", key="perm_delete"):
        confirmation_dialog(
            {"Tên": current_perm.name, "Codename": current_perm.codename},
            lambda: rbac_integrator.remove_permission(current_perm.id, session.token),
            "perm_delete_state",
        )

# -----------------------------------------------------------------------------
# Users
# -----------------------------------------------------------------------------
with tab_users:
    try:
        users = rbac_integrator.list_users(session.token)
    except ApiError as e:
        st.error(f"Không thể tải người dùng: {e}")
        users = []

    user_by_id = {u.id: u for u in users}

    df_users = pd.DataFrame(
        [
            {
                "Họ tên": u.full_name,
                "Email": u.email,
                "Loại": u.user_type,
                "Hoạt động": "✅" if u.is_active else "⛔",
                "Vai trò": ", ".join(r.name for r in u.roles) or "-",
            }
            for u in users
        ]
    )
    if not df_users.empty:
        st.dataframe(df_users, hide_index=True, use_container_width=True)

    if users and roles:
        with st.form("user_roles_form", enter_to_submit=False):
            st.subheader("Gán vai trò cho một người dùng")
            user_id = st.selectbox(
                "Người dùng",
                options=[u.id for u in users],
                format_func=lambda uid: f"{user_by_id[uid].full_name} ({user_by_id[uid].email})",
            )
            role_ids = st.multiselect(
                "Vai trò",
                options=[r.id for r in roles],
                format_func=lambda rid: role_by_id[rid].name,
            )
            if st.form_submit_button("Gán"):
                if not role_ids:
                    st.error("Chọn ít nhất 1 vai trò")
                else:
                    ok, msg = rbac_integrator.set_user_roles(user_id, role_ids, session.token)
                    if ok:
                        st.success("Đã gán vai trò")
                    else:
                        st.error(msg)

        with st.form("bulk_assign_form", enter_to_submit=False):
            st.subheader("Gán một vai trò cho nhiều người dùng")
            bulk_role = st.selectbox(
                "Vai trò",
                options=[r.id for r in roles],
                format_func=lambda rid: role_by_id[rid].name,
                key="bulk_role",
            )
            bulk_users = st.multiselect(
                "Người dùng",
                options=[u.id for u in users],
                format_func=lambda uid: user_by_id[uid].full_name,
                key="bulk_users",
            )
            if st.form_submit_button("Gán hàng loạt"):
                if not bulk_users:
                    st.error("Chọn ít nhất 1 người dùng")
                else:
                    try:
                        rbac_integrator.bulk_assign_role_to_users(bulk_users, bulk_role, session.token)
                    except ApiError as e:
                        st.error(str(e))
                    else:
                        st.success(f"Đã gán {role_by_id[bulk_role].name} cho {len(bulk_users)} người dùng")
