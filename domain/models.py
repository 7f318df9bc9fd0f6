# seafood_pos/domain/models.py

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

WEIGHT_BASED = "kg"
COUNT_BASED = ("piece", "box")
UNIT_TYPES = (WEIGHT_BASED, *COUNT_BASED)


def _to_float(value: Any, default: float = 0.0) -> float:
    # backend serializes Decimal columns as strings
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return _to_float(value)


@dataclass
class Category:
    id: str
    name: str
    slug: str = ""
    description: str = ""
    image_url: Optional[str] = None
    sort_order: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            slug=data.get("slug") or "",
            description=data.get("description") or "",
            image_url=data.get("image_url"),
            sort_order=int(data.get("sort_order") or 0),
        )


@dataclass
class Product:
    """
    A catalog entry as served by the product service.

    `current_price` is always per kg, whatever the unit type.
    `avg_unit_weight` only makes sense for count-based units (piece / box).
    """
    id: str
    code: str
    name: str
    unit_type: str = WEIGHT_BASED
    current_price: float = 0.0
    stock_quantity: float = 0.0
    avg_unit_weight: Optional[float] = None
    category_id: Optional[str] = None
    category: Optional[Category] = None
    description: str = ""
    origin: str = ""
    image_url: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    status: str = "active"

    @property
    def is_weight_based(self) -> bool:
        return self.unit_type == WEIGHT_BASED

    @property
    def known_avg_weight(self) -> Optional[float]:
        """avg_unit_weight when it is usable for a weight computation, else None."""
        if self.avg_unit_weight:
            return self.avg_unit_weight
        return None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Product":
        category = data.get("category")
        category_id = data.get("category_id")
        return cls(
            id=str(data["id"]),
            code=data.get("code", ""),
            name=data.get("name", ""),
            unit_type=data.get("unit_type") or WEIGHT_BASED,
            current_price=_to_float(data.get("current_price")),
            stock_quantity=_to_float(data.get("stock_quantity")),
            avg_unit_weight=_to_optional_float(data.get("avg_unit_weight")),
            category_id=str(category_id) if category_id is not None else None,
            category=Category.from_api(category) if category else None,
            description=data.get("description") or "",
            origin=data.get("origin") or "",
            image_url=data.get("image_url"),
            tags=list(data.get("tags") or []),
            status=data.get("status") or "active",
        )

    def to_form(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "name": self.name,
            "category_id": self.category_id or "",
            "unit_type": self.unit_type,
            "avg_unit_weight": self.avg_unit_weight or 0,
            "current_price": self.current_price,
            "stock_quantity": self.stock_quantity,
            "description": self.description,
            "origin": self.origin,
            "image_url": self.image_url or "",
            "tags": list(self.tags),
            "status": self.status,
        }


@dataclass
class SelectionEntry:
    """
    One pick in the product chooser, before it becomes a cart line.
    """
    product: Product
    quantity: Optional[float]
    weight: float
    notes: str = ""


@dataclass
class CartLine:
    """
    One product entry of the order being built.
    """
    product: Product
    quantity: Optional[float]  # None for weight-based units
    weight: float  # kg
    unit_price: float  # price per kg, copied from the catalog when added
    notes: str = ""

    @property
    def subtotal(self) -> float:
        return self.weight * self.unit_price

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "seafood_id": self.product.id,
            "weight": self.weight,
            "unit_price": self.unit_price,
            "notes": self.notes,
        }
        if self.quantity is not None:
            payload["quantity"] = self.quantity
        return payload


@dataclass
class OrderDraft:
    """
    The order being typed at the counter. Lives only in the browser session
    until the order service accepts it.
    """
    customer_phone: str = ""
    customer_name: str = ""
    customer_address: str = ""
    payment_method: str = "cash"
    payment_status: str = "pending"
    discount_amount: float = 0.0
    notes: str = ""
    lines: List[CartLine] = field(default_factory=list)
    processing: bool = False


@dataclass
class OrderTotals:
    subtotal: float
    discount: float
    total: float


@dataclass
class OrderItem:
    id: str
    seafood_id: str
    seafood_name: str
    seafood_code: str
    weight: float
    unit_price: float
    subtotal: float
    quantity: Optional[float] = None
    estimated_weight: Optional[float] = None
    weight_image_url: Optional[str] = None
    notes: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "OrderItem":
        seafood = data.get("seafood") or {}
        weight = _to_float(data.get("weight"))
        unit_price = _to_float(data.get("unit_price"))
        subtotal = data.get("subtotal")
        return cls(
            id=str(data.get("id", "")),
            seafood_id=str(data.get("seafood_id") or seafood.get("id", "")),
            seafood_name=seafood.get("name", ""),
            seafood_code=seafood.get("code", ""),
            weight=weight,
            unit_price=unit_price,
            subtotal=_to_float(subtotal) if subtotal is not None else weight * unit_price,
            quantity=_to_optional_float(data.get("quantity")),
            estimated_weight=_to_optional_float(data.get("estimated_weight")),
            weight_image_url=data.get("weight_image_url"),
            notes=data.get("notes") or "",
        )


@dataclass
class Order:
    """
    An order as stored by the backend. Code, timestamps and amounts are
    assigned server-side.
    """
    id: str
    order_code: str
    customer_phone: str
    status: str
    payment_status: str
    customer_name: str = ""
    customer_address: str = ""
    payment_method: str = ""
    subtotal: float = 0.0
    discount_amount: float = 0.0
    total_amount: float = 0.0
    paid_amount: float = 0.0
    notes: str = ""
    created_at: str = ""
    weighed_at: Optional[str] = None
    shipped_at: Optional[str] = None
    shipping_notes: str = ""
    weight_images: List[str] = field(default_factory=list)
    items: List[OrderItem] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Order":
        return cls(
            id=str(data["id"]),
            order_code=data.get("order_code", ""),
            customer_phone=data.get("customer_phone") or "",
            status=data.get("status") or "pending",
            payment_status=data.get("payment_status") or "pending",
            customer_name=data.get("customer_name") or "",
            customer_address=data.get("customer_address") or "",
            payment_method=data.get("payment_method") or "",
            subtotal=_to_float(data.get("subtotal")),
            discount_amount=_to_float(data.get("discount_amount")),
            total_amount=_to_float(data.get("total_amount")),
            paid_amount=_to_float(data.get("paid_amount")),
            notes=data.get("notes") or "",
            created_at=data.get("created_at") or "",
            weighed_at=data.get("weighed_at"),
            shipped_at=data.get("shipped_at"),
            shipping_notes=data.get("shipping_notes") or "",
            weight_images=list(data.get("weight_images") or []),
            items=[OrderItem.from_api(i) for i in data.get("items") or []],
        )


@dataclass
class DashboardStats:
    total_products: int = 0
    total_stock_value: float = 0.0
    today_orders: int = 0
    today_revenue: float = 0.0
    low_stock_products: int = 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "DashboardStats":
        return cls(
            total_products=int(data.get("total_products") or 0),
            total_stock_value=_to_float(data.get("total_stock_value")),
            today_orders=int(data.get("today_orders") or 0),
            today_revenue=_to_float(data.get("today_revenue")),
            low_stock_products=int(data.get("low_stock_products") or 0),
        )


@dataclass
class Permission:
    id: str
    name: str
    codename: str
    module: str = ""
    action: str = ""
    description: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Permission":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            codename=data.get("codename", ""),
            module=data.get("module") or "",
            action=data.get("action") or "",
            description=data.get("description") or "",
        )


@dataclass
class Role:
    id: str
    name: str
    slug: str
    level: int = 0
    color: str = ""
    description: str = ""
    permissions: List[Permission] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Role":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            slug=data.get("slug", ""),
            level=int(data.get("level") or 0),
            color=data.get("color") or "",
            description=data.get("description") or "",
            permissions=[Permission.from_api(p) for p in data.get("permissions") or []],
        )


@dataclass
class User:
    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    is_active: bool = True
    user_type: str = ""
    roles: List[Role] = field(default_factory=list)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=str(data["id"]),
            email=data.get("email", ""),
            first_name=data.get("first_name") or "",
            last_name=data.get("last_name") or "",
            is_active=bool(data.get("is_active", True)),
            user_type=data.get("user_type") or "",
            roles=[Role.from_api(r) for r in data.get("roles") or []],
        )
