# seafood_pos/domain/errors.py

from typing import List, Optional


class ApiError(Exception):
    """
    The backend rejected a request, or it never answered.
    The message is the backend's `detail` text when it sent one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(Exception):
    """Input rejected before any network call was made."""

    def __init__(self, messages: List[str]):
        super().__init__("; ".join(messages))
        self.messages = list(messages)


class SessionError(Exception):
    """No usable login session (never logged in, logged out, or token expired)."""
