"""Runs the POS screen in-process with Streamlit's AppTest."""

from pathlib import Path

from streamlit.testing.v1 import AppTest

from services.auth_service import SESSION_KEY, AuthSession

POS_PAGE = Path(__file__).resolve().parent.parent / "pages" / "1_Ban_Hang.py"


def open_pos() -> AppTest:
    at = AppTest.from_file(str(POS_PAGE), default_timeout=10)
    at.session_state[SESSION_KEY] = AuthSession(token="tok", user={"email": "lan@haisan.vn"})
    return at.run()


class TestSubmitButton:
    def test_enabled_before_click(self, fake_api):
        at = open_pos()

        assert not at.exception
        assert at.button(key="pos_submit").disabled is False

    def test_disabled_during_the_submitting_run(self, fake_api):
        at = open_pos()

        at.button(key="pos_submit").click().run()

        assert at.button(key="pos_submit").disabled is True
        assert "Giỏ hàng trống!" in [e.value for e in at.error]

    def test_enabled_again_after_rejected_submit(self, fake_api):
        at = open_pos()
        at.button(key="pos_submit").click().run()

        at.run()

        assert at.button(key="pos_submit").disabled is False
        assert not at.error

    def test_rejected_submit_sends_no_order(self, fake_api):
        at = open_pos()
        calls_before = len(fake_api.calls)

        at.button(key="pos_submit").click().run()

        assert all(call.args[0] == "GET" for call in fake_api.calls[calls_before:])
