"""Shared pytest fixtures for the POS tests."""

import json
from typing import Any, List, Optional
from unittest.mock import Mock

import pytest
import requests

import data_integrator
import rbac_integrator
from api_client import ApiClient
from domain.models import CartLine, Product

BASE_URL = "http://api.test"


def make_product(
        product_id: str = "p-1",
        unit_type: str = "kg",
        price: float = 200000,
        avg_unit_weight: Optional[float] = None,
        name: Optional[str] = None,
        code: Optional[str] = None,
        category_id: Optional[str] = None,
        status: str = "active",
) -> Product:
    return Product(
        id=product_id,
        code=code or product_id.upper(),
        name=name or f"Product {product_id}",
        unit_type=unit_type,
        current_price=price,
        avg_unit_weight=avg_unit_weight,
        category_id=category_id,
        status=status,
    )


def make_line(weight: float, unit_price: float, product: Optional[Product] = None) -> CartLine:
    product = product or make_product(price=unit_price)
    return CartLine(product=product, quantity=None, weight=weight, unit_price=unit_price)


def make_response(status: int = 200, body: Any = None, content: Optional[bytes] = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    if content is not None:
        resp._content = content
    elif body is not None:
        resp._content = json.dumps(body).encode("utf-8")
        resp.headers["Content-Type"] = "application/json"
    else:
        resp._content = b""
    return resp


class FakeApi:
    """An ApiClient whose HTTP session is a Mock; queue responses, inspect calls."""

    def __init__(self):
        self.session = Mock(spec=requests.Session)
        self.client = ApiClient(BASE_URL, timeout=5, session=self.session)
        self._responses: List[requests.Response] = []
        self.session.request.side_effect = self._next

    def _next(self, *args, **kwargs):
        if not self._responses:
            return make_response(200, {})
        return self._responses.pop(0)

    def respond(self, status: int = 200, body: Any = None, content: Optional[bytes] = None) -> "FakeApi":
        self._responses.append(make_response(status, body, content))
        return self

    @property
    def calls(self):
        return self.session.request.call_args_list

    def last_call(self):
        args, kwargs = self.session.request.call_args
        return args[0], args[1], kwargs


@pytest.fixture
def fake_api(monkeypatch) -> FakeApi:
    api = FakeApi()
    monkeypatch.setattr(data_integrator, "get_client", lambda: api.client)
    monkeypatch.setattr(rbac_integrator, "get_client", lambda: api.client)
    return api


@pytest.fixture
def kg_product() -> Product:
    return make_product("shrimp", unit_type="kg", price=450000, name="Tôm hùm")


@pytest.fixture
def piece_product() -> Product:
    return make_product("crab", unit_type="piece", price=300000, avg_unit_weight=0.05, name="Cua")


@pytest.fixture
def box_without_avg() -> Product:
    return make_product("clam-box", unit_type="box", price=80000, avg_unit_weight=None, name="Nghêu")
