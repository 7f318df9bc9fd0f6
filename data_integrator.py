from typing import Any, Dict, List, Optional, Tuple

from api_client import get_client
from domain.errors import ApiError
from domain.models import Category, DashboardStats, Order, Product

SEAFOOD = "/api/seafood"


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------

def list_categories() -> List[Category]:
    data = get_client().get(f"{SEAFOOD}/categories")
    return [Category.from_api(row) for row in data or []]


def create_category(data: Dict[str, Any], token: Optional[str] = None) -> Category:
    return Category.from_api(get_client().post(f"{SEAFOOD}/categories", token=token, json=data))


def update_category(category_id: str, data: Dict[str, Any], token: Optional[str] = None) -> Category:
    return Category.from_api(
        get_client().put(f"{SEAFOOD}/categories/{category_id}", token=token, json=data)
    )


def delete_category(category_id: str, token: Optional[str] = None) -> None:
    get_client().delete(f"{SEAFOOD}/categories/{category_id}", token=token)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

def list_products(
        category_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
) -> List[Product]:
    """
    Fetch the catalog snapshot. Filters are applied server-side; pass nothing
    to get every product.
    """
    data = get_client().get(
        f"{SEAFOOD}/products",
        params={"category_id": category_id, "status": status, "search": search},
    )
    return [Product.from_api(row) for row in data or []]


def create_product(data: Dict[str, Any], token: Optional[str] = None) -> Product:
    return Product.from_api(get_client().post(f"{SEAFOOD}/products", token=token, json=data))


def update_product(product_id: str, data: Dict[str, Any], token: Optional[str] = None) -> Product:
    return Product.from_api(
        get_client().put(f"{SEAFOOD}/products/{product_id}", token=token, json=data)
    )


def delete_product(product_id: str, token: Optional[str] = None) -> None:
    get_client().delete(f"{SEAFOOD}/products/{product_id}", token=token)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------

def list_orders(
        status: Optional[str] = None,
        customer_phone: Optional[str] = None,
        limit: Optional[int] = None,
) -> List[Order]:
    data = get_client().get(
        f"{SEAFOOD}/orders",
        params={"status": status, "customer_phone": customer_phone, "limit": limit},
    )
    return [Order.from_api(row) for row in data or []]


def get_order(order_id: str) -> Order:
    return Order.from_api(get_client().get(f"{SEAFOOD}/orders/{order_id}"))


def create_order(payload: Dict[str, Any], token: Optional[str] = None) -> Order:
    return Order.from_api(get_client().post(f"{SEAFOOD}/orders", token=token, json=payload))


def cancel_order(order_id: str, token: Optional[str] = None) -> None:
    get_client().delete(f"{SEAFOOD}/orders/{order_id}", token=token)


def update_order_item(
        order_id: str,
        item_id: str,
        *,
        weight: Optional[float] = None,
        unit_price: Optional[float] = None,
        weight_image_url: Optional[str] = None,
        token: Optional[str] = None,
) -> Any:
    """
    Correct one line of a stored order after weighing.
    The backend takes the new values as query parameters, only the given ones.
    """
    return get_client().post(
        f"{SEAFOOD}/orders/{order_id}/update-item",
        token=token,
        params={
            "item_id": item_id,
            "weight": weight,
            "unit_price": unit_price,
            "weight_image_url": weight_image_url,
        },
    )


def mark_order_weighed(
        order_id: str,
        weight_images: Optional[List[str]] = None,
        token: Optional[str] = None,
) -> Any:
    return get_client().post(
        f"{SEAFOOD}/orders/{order_id}/mark-weighed",
        token=token,
        json={"weight_images": list(weight_images or [])},
    )


def mark_order_shipped(order_id: str, shipping_notes: str = "", token: Optional[str] = None) -> Any:
    return get_client().post(
        f"{SEAFOOD}/orders/{order_id}/mark-shipped",
        token=token,
        json={"shipping_notes": shipping_notes},
    )


def export_order_pdf(order_id: str, token: Optional[str] = None) -> bytes:
    return get_client().get(f"{SEAFOOD}/orders/{order_id}/export-pdf", token=token, raw=True)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

def get_dashboard_stats() -> DashboardStats:
    return DashboardStats.from_api(get_client().get(f"{SEAFOOD}/stats/dashboard") or {})


def get_product_stats(limit: int = 10) -> List[Dict[str, Any]]:
    return get_client().get(f"{SEAFOOD}/stats/products", params={"limit": limit}) or []


# ---------------------------------------------------------------------------
# Form-style wrappers: (ok, message, data)
# ---------------------------------------------------------------------------

def save_product(
        data: Dict[str, Any],
        product_id: Optional[str] = None,
        token: Optional[str] = None,
) -> Tuple[bool, str, Optional[Product]]:
    """
    Create the product, or update it when `product_id` is given.
    Returns (ok, message, product)
    """
    try:
        if product_id:
            return True, "Updated", update_product(product_id, data, token)
        return True, "Created", create_product(data, token)
    except ApiError as e:
        return False, str(e), None


def remove_product(product_id: str, token: Optional[str] = None) -> Tuple[bool, str]:
    try:
        delete_product(product_id, token)
        return True, "Deleted"
    except ApiError as e:
        return False, str(e)


def save_category(
        data: Dict[str, Any],
        category_id: Optional[str] = None,
        token: Optional[str] = None,
) -> Tuple[bool, str, Optional[Category]]:
    try:
        if category_id:
            return True, "Updated", update_category(category_id, data, token)
        return True, "Created", create_category(data, token)
    except ApiError as e:
        return False, str(e), None


def remove_category(category_id: str, token: Optional[str] = None) -> Tuple[bool, str]:
    try:
        delete_category(category_id, token)
        return True, "Deleted"
    except ApiError as e:
        return False, str(e)
