# services/auth_service.py

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Optional

from jose import jwt, JWTError

import rbac_integrator
from domain.errors import ApiError, SessionError

logger = logging.getLogger(__name__)

SESSION_KEY = "auth_session"


@dataclass
class AuthSession:
    """
    Login context for one browser session: bearer token, profile as returned
    by the login call, and the token expiry when the token carries one.
    """
    token: str
    user: Dict[str, Any] = field(default_factory=dict)
    expires_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at

    @property
    def display_name(self) -> str:
        first = self.user.get("first_name") or ""
        last = self.user.get("last_name") or ""
        return f"{first} {last}".strip() or self.user.get("email", "")


def token_expiry(token: str) -> Optional[datetime]:
    """
    Read the `exp` claim without verifying the signature; the backend does the
    verifying. Tokens that are not JWTs, or carry no exp, yield None.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    exp = claims.get("exp")
    if exp is None:
        return None
    try:
        return datetime.fromtimestamp(int(exp), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


def start_session(state: MutableMapping, body: Dict[str, Any]) -> AuthSession:
    token = body.get("access_token")
    if not token:
        raise ApiError("Phản hồi đăng nhập không có token")
    session = AuthSession(token=token, user=body.get("user") or {}, expires_at=token_expiry(token))
    state[SESSION_KEY] = session
    return session


def login(state: MutableMapping, email: str, password: str) -> AuthSession:
    body = rbac_integrator.login(email, password)
    session = start_session(state, body or {})
    logger.info("Logged in as %s", session.user.get("email", email))
    return session


def register(state: MutableMapping, data: Dict[str, Any]) -> Optional[AuthSession]:
    """
    Create the account, then log straight in with the same credentials.
    Returns None when the account exists but the automatic login failed; the
    user then has to log in by hand.
    """
    rbac_integrator.register(data)
    try:
        return login(state, data["email"], data["password"])
    except ApiError as e:
        logger.warning("Auto login after register failed: %s", e)
        return None


def logout(state: MutableMapping) -> None:
    state.pop(SESSION_KEY, None)


def current_session(state: MutableMapping) -> Optional[AuthSession]:
    session = state.get(SESSION_KEY)
    if session is None:
        return None
    if session.is_expired():
        logger.info("Session expired, dropping it")
        logout(state)
        return None
    return session


def require_session(state: MutableMapping) -> AuthSession:
    session = current_session(state)
    if session is None:
        raise SessionError("Phiên đăng nhập không hợp lệ hoặc đã hết hạn")
    return session


def refresh_profile(state: MutableMapping) -> AuthSession:
    """
    Re-read the profile from the backend. A 401 means the token is no longer
    accepted, so the session is dropped.
    """
    session = require_session(state)
    try:
        user = rbac_integrator.me(session.token)
    except ApiError as e:
        if e.status_code == 401:
            logout(state)
            raise SessionError(str(e)) from e
        raise
    session.user = {
        **session.user,
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
    }
    return session
