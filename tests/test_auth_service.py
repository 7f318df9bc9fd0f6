"""Tests for login sessions kept in the browser session state."""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from domain.errors import ApiError, SessionError
from services import auth_service
from services.auth_service import (
    SESSION_KEY,
    AuthSession,
    current_session,
    login,
    logout,
    refresh_profile,
    register,
    require_session,
    token_expiry,
)


def make_token(expires_in: timedelta = timedelta(hours=1)) -> str:
    exp = datetime.now(timezone.utc) + expires_in
    return jwt.encode({"sub": "u-1", "exp": int(exp.timestamp())}, "test-secret", algorithm="HS256")


def login_body(token: str) -> dict:
    return {
        "access_token": token,
        "token_type": "bearer",
        "user": {"id": "u-1", "email": "lan@haisan.vn", "first_name": "Lan", "last_name": "Nguyễn"},
    }


class TestTokenExpiry:
    def test_reads_exp_claim(self):
        exp = datetime(2030, 1, 1, tzinfo=timezone.utc)
        token = jwt.encode({"exp": int(exp.timestamp())}, "k", algorithm="HS256")

        assert token_expiry(token) == exp

    def test_opaque_token_has_no_expiry(self):
        assert token_expiry("not-a-jwt") is None

    def test_token_without_exp(self):
        assert token_expiry(jwt.encode({"sub": "x"}, "k", algorithm="HS256")) is None


class TestLogin:
    def test_stores_session(self, fake_api):
        token = make_token()
        fake_api.respond(200, login_body(token))
        state = {}

        session = login(state, "lan@haisan.vn", "secret")

        assert state[SESSION_KEY] is session
        assert session.token == token
        assert session.display_name == "Lan Nguyễn"
        assert session.expires_at is not None

    def test_rejected_credentials_leave_state_empty(self, fake_api):
        fake_api.respond(401, {"detail": "Sai email hoặc mật khẩu"})
        state = {}

        with pytest.raises(ApiError, match="Sai email"):
            login(state, "lan@haisan.vn", "wrong")

        assert SESSION_KEY not in state

    def test_response_without_token(self, fake_api):
        fake_api.respond(200, {"user": {}})

        with pytest.raises(ApiError):
            login({}, "lan@haisan.vn", "secret")


class TestRegister:
    def test_logs_in_after_register(self, fake_api):
        fake_api.respond(201, {"id": "u-1"}).respond(200, login_body(make_token()))
        state = {}

        session = register(state, {"email": "lan@haisan.vn", "password": "secret1",
                                   "first_name": "Lan", "last_name": "Nguyễn"})

        assert session is not None
        assert current_session(state) is session

    def test_auto_login_failure_returns_none(self, fake_api):
        fake_api.respond(201, {"id": "u-1"}).respond(500, {"detail": "oops"})
        state = {}

        session = register(state, {"email": "lan@haisan.vn", "password": "secret1"})

        assert session is None
        assert SESSION_KEY not in state

    def test_register_failure_propagates(self, fake_api):
        fake_api.respond(400, {"detail": "Email đã được sử dụng"})

        with pytest.raises(ApiError, match="Email đã được sử dụng"):
            register({}, {"email": "lan@haisan.vn", "password": "secret1"})


class TestSessionLifetime:
    def test_expired_session_is_dropped(self):
        state = {SESSION_KEY: AuthSession(token="t", expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))}

        assert current_session(state) is None
        assert SESSION_KEY not in state

    def test_session_without_expiry_stays(self):
        session = AuthSession(token="opaque")
        state = {SESSION_KEY: session}

        assert current_session(state) is session

    def test_require_session_raises_when_missing(self):
        with pytest.raises(SessionError):
            require_session({})

    def test_logout_is_idempotent(self):
        state = {SESSION_KEY: AuthSession(token="t")}

        logout(state)
        logout(state)

        assert state == {}

    def test_display_name_falls_back_to_email(self):
        assert AuthSession(token="t", user={"email": "kho@haisan.vn"}).display_name == "kho@haisan.vn"


class TestRefreshProfile:
    def test_updates_user(self, fake_api):
        fake_api.respond(200, {"id": "u-1", "email": "lan@haisan.vn", "first_name": "Thị Lan", "last_name": "Nguyễn"})
        state = {SESSION_KEY: AuthSession(token="tok", user={"email": "lan@haisan.vn"})}

        session = refresh_profile(state)

        _, url, kwargs = fake_api.last_call()
        assert url == "http://api.test/api/users/me"
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert session.display_name == "Thị Lan Nguyễn"

    def test_unauthorized_logs_out(self, fake_api):
        fake_api.respond(401, {"detail": "Token hết hạn"})
        state = {SESSION_KEY: AuthSession(token="tok")}

        with pytest.raises(SessionError):
            refresh_profile(state)

        assert SESSION_KEY not in state

    def test_other_errors_keep_session(self, fake_api):
        fake_api.respond(503, {"detail": "Bảo trì"})
        state = {SESSION_KEY: AuthSession(token="tok")}

        with pytest.raises(ApiError):
            auth_service.refresh_profile(state)

        assert SESSION_KEY in state
