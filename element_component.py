import streamlit as st
import pandas as pd

from config import setup_logging
from domain.errors import SessionError
from services.auth_service import AuthSession, logout, require_session

LOGIN_PAGE = "Dang_Nhap.py"


def auth_gate() -> AuthSession:
    """
    Guard for every protected page: no valid session -> back to login.
    """
    setup_logging()
    try:
        session = require_session(st.session_state)
    except SessionError:
        st.switch_page(LOGIN_PAGE)
        st.stop()

    with st.sidebar:
        st.caption(f"👤 {session.display_name}")
        if st.button("Đăng xuất", key="sidebar_logout"):
            logout(st.session_state)
            st.switch_page(LOGIN_PAGE)

    return session


@st.dialog("Xác nhận")
def confirmation_dialog(value: dict, on_confirm, state_name: str):
    """
    Show `value` as a key/value table, run `on_confirm()` on "Có".

    `on_confirm` returns (ok, msg); the outcome is left in
    st.session_state[state_name] as (ok, msg) for the page to display after rerun.
    """
    df = pd.DataFrame(value.items(), columns=["Mục", "Giá trị"])
    df["Giá trị"] = df["Giá trị"].astype(str)
    st.dataframe(df, hide_index=True)

    col_yes, col_no = st.columns(2)

    with col_yes:
        if st.button("Có", type="primary", key="confirm_yes"):
            ok, msg = on_confirm()
            st.session_state[state_name] = (ok, msg)

            if not ok:
                st.error(msg)
            else:
                st.rerun()
    with col_no:
        if st.button("Không", key="confirm_no"):
            st.session_state[state_name] = None
            st.rerun()


def show_result(state_name: str, success_text: str) -> None:
    """Render and consume the outcome left by confirmation_dialog."""
    result = st.session_state.pop(state_name, None)
    if not result:
        return
    ok, msg = result
    if ok:
        st.success(success_text)
    else:
        st.error(msg)
