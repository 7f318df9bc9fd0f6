"""Tests for the REST client: headers, query params, error details."""

from unittest.mock import Mock

import pytest
import requests

from api_client import ApiClient, extract_error_detail
from conftest import BASE_URL, make_response
from domain.errors import ApiError


class TestExtractErrorDetail:
    def test_string_detail(self):
        resp = make_response(400, {"detail": "Sản phẩm không tồn tại"})

        assert extract_error_detail(resp) == "Sản phẩm không tồn tại"

    def test_validation_list_joins_messages(self):
        resp = make_response(422, {"detail": [
            {"loc": ["body", "weight"], "msg": "field required"},
            {"loc": ["body", "unit_price"], "msg": "must be positive"},
        ]})

        assert extract_error_detail(resp) == "field required; must be positive"

    def test_non_json_body_falls_back_to_status(self):
        resp = make_response(502, content=b"<html>Bad gateway</html>")

        assert extract_error_detail(resp) == "HTTP 502"

    def test_body_without_detail(self):
        resp = make_response(500, {"error": "boom"})

        assert extract_error_detail(resp) == "HTTP 500"


class TestApiClient:
    def test_bearer_header_only_with_token(self, fake_api):
        fake_api.client.get("/api/seafood/products")
        _, _, kwargs = fake_api.last_call()
        assert "Authorization" not in kwargs["headers"]

        fake_api.client.get("/api/users/me", token="abc")
        _, _, kwargs = fake_api.last_call()
        assert kwargs["headers"]["Authorization"] == "Bearer abc"

    def test_unset_params_are_dropped(self, fake_api):
        fake_api.respond(200, [])

        fake_api.client.get("/api/seafood/orders", params={"status": None, "customer_phone": "", "limit": 50})

        _, _, kwargs = fake_api.last_call()
        assert kwargs["params"] == {"limit": 50}

    def test_all_params_unset_sends_none(self, fake_api):
        fake_api.client.get("/api/seafood/products", params={"search": None})

        _, _, kwargs = fake_api.last_call()
        assert kwargs["params"] is None

    def test_base_url_trailing_slash(self):
        session = Mock(spec=requests.Session)
        session.request.return_value = make_response(200, [])
        client = ApiClient(BASE_URL + "/", session=session)

        client.get("/api/seafood/categories")

        assert session.request.call_args[0][1] == "http://api.test/api/seafood/categories"

    def test_timeout_passed_through(self, fake_api):
        fake_api.client.get("/x")

        _, _, kwargs = fake_api.last_call()
        assert kwargs["timeout"] == 5

    def test_error_status_raises_with_detail(self, fake_api):
        fake_api.respond(404, {"detail": "Không tìm thấy đơn hàng"})

        with pytest.raises(ApiError) as exc:
            fake_api.client.get("/api/seafood/orders/o-404")

        assert str(exc.value) == "Không tìm thấy đơn hàng"
        assert exc.value.status_code == 404

    def test_connection_error_becomes_api_error(self):
        session = Mock(spec=requests.Session)
        session.request.side_effect = requests.ConnectionError("connection refused")
        client = ApiClient(BASE_URL, session=session)

        with pytest.raises(ApiError, match="connection refused") as exc:
            client.get("/api/seafood/products")

        assert exc.value.status_code is None

    def test_no_content_returns_none(self, fake_api):
        fake_api.respond(204)

        assert fake_api.client.delete("/api/seafood/products/p-1") is None

    def test_raw_returns_bytes(self, fake_api):
        fake_api.respond(200, content=b"%PDF-1.7 ...")

        assert fake_api.client.get("/export", raw=True) == b"%PDF-1.7 ..."

    def test_invalid_json_in_success_response(self, fake_api):
        fake_api.respond(200, content=b"not json")

        with pytest.raises(ApiError, match="Invalid JSON"):
            fake_api.client.get("/api/seafood/products")
