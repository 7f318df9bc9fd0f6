# api_client.py
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import requests

from config import get_settings
from domain.errors import ApiError

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Request failed"


def extract_error_detail(resp: requests.Response) -> str:
    """
    Pull a human readable message out of an error response.

    The backend answers errors as {"detail": "..."}; validation errors come as
    {"detail": [{"msg": "...", ...}, ...]}. Anything else falls back to a
    generic text.
    """
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}" if resp.status_code else GENERIC_ERROR

    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, list):
        msgs = [d.get("msg", "") for d in detail if isinstance(d, dict)]
        msgs = [m for m in msgs if m]
        if msgs:
            return "; ".join(msgs)
    return f"HTTP {resp.status_code}" if resp.status_code else GENERIC_ERROR


class ApiClient:
    def __init__(
            self,
            base_url: str,
            *,
            timeout: float = 15,
            session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def request(
            self,
            method: str,
            path: str,
            *,
            token: Optional[str] = None,
            params: Optional[Dict[str, Any]] = None,
            json: Any = None,
            raw: bool = False,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        # drop unset query params so the backend applies its own defaults
        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}

        url = f"{self.base_url}{path}"
        logger.debug("%s %s params=%s", method, path, params)

        try:
            resp = self.session.request(
                method,
                url,
                headers=headers,
                params=params or None,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(str(e) or GENERIC_ERROR) from e

        if not resp.ok:
            detail = extract_error_detail(resp)
            logger.warning("%s %s -> %s: %s", method, path, resp.status_code, detail)
            raise ApiError(detail, status_code=resp.status_code)

        if raw:
            return resp.content

        if resp.status_code == 204 or not resp.content:
            return None

        try:
            return resp.json()
        except ValueError as e:
            raise ApiError("Invalid JSON in response", status_code=resp.status_code) from e

    def get(self, path: str, **kwargs) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs) -> Any:
        return self.request("DELETE", path, **kwargs)


@lru_cache(maxsize=1)
def get_client() -> ApiClient:
    settings = get_settings()
    return ApiClient(settings.api_base_url, timeout=settings.timeout_seconds)
