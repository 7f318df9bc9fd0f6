# services/listing_service.py

import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Generic, Iterable, List, Optional, Sequence, TypeVar

import pandas as pd

from domain.models import Order, Product

T = TypeVar("T")

ALL = "all"
PAGE_SIZES = (10, 20, 50, 100)
DASHBOARD_STATUSES = ("pending", "processing", "completed", "cancelled")


@dataclass
class Page(Generic[T]):
    items: List[T]
    page: int
    total_pages: int
    total_items: int
    per_page: int = 10

    @property
    def start_index(self) -> int:
        return (self.page - 1) * self.per_page


def paginate(items: Sequence[T], page: int = 1, per_page: int = 10) -> Page[T]:
    """
    Slice an already fetched list. `page` is 1-based and pulled back into
    [1, total_pages]; an empty list has one empty page.
    """
    if per_page <= 0:
        raise ValueError("per_page must be positive")

    total = len(items)
    total_pages = max(1, math.ceil(total / per_page))
    page = min(max(1, page), total_pages)
    start = (page - 1) * per_page
    return Page(items=list(items[start:start + per_page]), page=page,
                total_pages=total_pages, total_items=total, per_page=per_page)


def filter_orders(
        orders: Iterable[Order],
        search: str = "",
        status: str = ALL,
        payment_status: str = ALL,
) -> List[Order]:
    needle = (search or "").strip()
    lowered = needle.lower()
    result = []
    for o in orders:
        match_search = (
            not needle
            or lowered in o.order_code.lower()
            or needle in o.customer_phone
            or (o.customer_name and lowered in o.customer_name.lower())
        )
        match_status = status in (ALL, "", None) or o.status == status
        match_payment = payment_status in (ALL, "", None) or o.payment_status == payment_status
        if match_search and match_status and match_payment:
            result.append(o)
    return result


def filter_product_admin(
        products: Iterable[Product],
        search: str = "",
        category_id: str = ALL,
        status: str = ALL,
) -> List[Product]:
    lowered = (search or "").strip().lower()
    result = []
    for p in products:
        match_search = not lowered or lowered in p.name.lower() or lowered in p.code.lower()
        match_category = category_id in (ALL, "", None) or p.category_id == category_id
        match_status = status in (ALL, "", None) or p.status == status
        if match_search and match_category and match_status:
            result.append(p)
    return result


def orders_to_frame(orders: Iterable[Order]) -> pd.DataFrame:
    rows = [
        {
            "id": o.id,
            "order_code": o.order_code,
            "customer_name": o.customer_name,
            "customer_phone": o.customer_phone,
            "status": o.status,
            "payment_status": o.payment_status,
            "total_amount": o.total_amount,
            "created_at": o.created_at,
        }
        for o in orders
    ]
    return pd.DataFrame(
        rows,
        columns=["id", "order_code", "customer_name", "customer_phone",
                 "status", "payment_status", "total_amount", "created_at"],
    )


def revenue_last_days(
        orders: Iterable[Order],
        days: int = 7,
        today: Optional[date] = None,
) -> pd.DataFrame:
    """
    Revenue and order count per calendar day for the last `days` days,
    oldest first, days without orders filled with 0.

    Days are UTC calendar days, for `today` as well as for the order
    timestamps.

    Columns: date (datetime.date), revenue (float), orders (int)
    """
    today = today or datetime.now(timezone.utc).date()
    window = [today - timedelta(days=i) for i in range(days - 1, -1, -1)]

    df = orders_to_frame(orders)
    if df.empty:
        return pd.DataFrame({"date": window, "revenue": [0.0] * days, "orders": [0] * days})

    df["date"] = pd.to_datetime(df["created_at"], errors="coerce", utc=True).dt.date
    df = df.dropna(subset=["date"])

    grouped = df.groupby("date").agg(revenue=("total_amount", "sum"), orders=("id", "count"))
    grouped = grouped.reindex(window, fill_value=0)

    return pd.DataFrame({
        "date": window,
        "revenue": grouped["revenue"].astype(float).tolist(),
        "orders": grouped["orders"].astype(int).tolist(),
    })


def orders_by_status(orders: Iterable[Order]) -> pd.DataFrame:
    """
    Columns: status, count, one row per dashboard status, in display order.
    """
    counts = {s: 0 for s in DASHBOARD_STATUSES}
    for o in orders:
        if o.status in counts:
            counts[o.status] += 1
    return pd.DataFrame({"status": list(counts.keys()), "count": list(counts.values())})
