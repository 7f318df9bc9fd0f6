import streamlit as st
import re

from config import setup_logging
from domain.errors import ApiError, SessionError
from services.auth_service import current_session, login, logout, refresh_profile, register

setup_logging()

st.set_page_config(
    page_title="Hải Sản POS - Đăng nhập",
    page_icon="🦐"
)

st.sidebar.header("🦐 Hải Sản POS")

POS_PAGE = "pages/1_Ban_Hang.py"

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_login(email, password):
    if not email:
        return False, "Email không được để trống"
    if not password:
        return False, "Mật khẩu không được để trống"
    return True, ""


def validate_register(data):
    if not EMAIL_RE.match(data["email"] or ""):
        return False, "Email không hợp lệ"
    if len(data["password"] or "") < 6:
        return False, "Mật khẩu phải có ít nhất 6 ký tự"
    if data["password"] != data["confirm_password"]:
        return False, "Mật khẩu xác nhận không khớp"
    if not data["first_name"] or not data["last_name"]:
        return False, "Họ và tên không được để trống"
    return True, ""


session = current_session(st.session_state)

if session and not st.session_state.get("profile_checked"):
    # make sure the backend still accepts the token before landing on the POS
    try:
        session = refresh_profile(st.session_state)
        st.session_state["profile_checked"] = True
    except SessionError:
        session = None
    except ApiError as e:
        st.warning(f"Không kiểm tra được tài khoản: {e}")

if session:
    st.success(f"Đã đăng nhập: {session.display_name}")
    col_go, col_out = st.columns(2)
    with col_go:
        if st.button("Vào bán hàng", type="primary"):
            st.switch_page(POS_PAGE)
    with col_out:
        if st.button("Đăng xuất"):
            logout(st.session_state)
            st.rerun()
    st.stop()

tab_login, tab_register = st.tabs(["Đăng nhập", "Đăng ký"])

with tab_login:
    with st.form("login_form", enter_to_submit=True):
        st.subheader("Đăng nhập")
        email = st.text_input("Email")
        password = st.text_input("Mật khẩu", type="password")

        submitted = st.form_submit_button("Đăng nhập")

        if submitted:
            is_valid, message = validate_login(email, password)
            if not is_valid:
                st.error(message)
            else:
                try:
                    login(st.session_state, email.strip(), password)
                except ApiError as e:
                    st.error(str(e) or "Đăng nhập thất bại")
                else:
                    st.switch_page(POS_PAGE)

with tab_register:
    with st.form("register_form", enter_to_submit=False):
        st.subheader("Tạo tài khoản")
        col_first, col_last = st.columns(2)
        with col_first:
            first_name = st.text_input("Tên")
        with col_last:
            last_name = st.text_input("Họ")
        reg_email = st.text_input("Email", key="reg_email")
        reg_password = st.text_input("Mật khẩu", type="password", key="reg_password")
        confirm_password = st.text_input("Xác nhận mật khẩu", type="password")

        submitted_reg = st.form_submit_button("Đăng ký")

        if submitted_reg:
            data = {
                "email": reg_email.strip(),
                "password": reg_password,
                "confirm_password": confirm_password,
                "first_name": first_name.strip(),
                "last_name": last_name.strip(),
            }
            is_valid, message = validate_register(data)
            if not is_valid:
                st.error(message)
            else:
                data.pop("confirm_password")
                try:
                    new_session = register(st.session_state, data)
                except ApiError as e:
                    st.error(str(e) or "Đăng ký thất bại")
                else:
                    if new_session:
                        st.switch_page(POS_PAGE)
                    else:
                        st.info("Đăng ký thành công, vui lòng đăng nhập.")
