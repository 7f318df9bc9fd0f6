# seafood_pos/services/cart_service.py

import logging
from collections import OrderedDict
from typing import Any, Iterable, List, Optional

from domain.errors import ValidationError
from domain.models import CartLine, OrderTotals, Product, SelectionEntry

logger = logging.getLogger(__name__)

DEFAULT_KG_WEIGHT = 0.5  # starting weight for weight-based units, corrected at the scale
DEFAULT_COUNT = 1
QUICK_ADD_KG_STEP = 0.5
SINGLE_ADD_MIN_WEIGHT = 0.1

EMPTY_SELECTION_MSG = "Vui lòng chọn ít nhất 1 sản phẩm!"


def _parse_number(value: Any) -> float:
    """Form inputs arrive as text; anything unparsable counts as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def default_quantity(product: Product) -> Optional[float]:
    if product.is_weight_based:
        return None
    return DEFAULT_COUNT


def default_weight(product: Product, quantity: Optional[float] = None) -> float:
    """
    Weight-based: 0.5 kg. Count-based: quantity x avg unit weight, or 0 when
    the average is unknown.
    """
    if product.is_weight_based:
        return DEFAULT_KG_WEIGHT
    qty = DEFAULT_COUNT if quantity is None else quantity
    return qty * (product.known_avg_weight or 0)


def _apply_edit(target, field: str, value: Any, min_weight: float = 0.0) -> None:
    # shared by selection entries and cart lines; both carry product/quantity/weight/notes
    if field == "quantity":
        qty = max(0.0, _parse_number(value))
        target.quantity = qty
        avg = target.product.known_avg_weight
        if avg:
            # a quantity edit always wins over a manual weight
            target.weight = qty * avg
    elif field == "weight":
        target.weight = max(min_weight, _parse_number(value))
    elif field == "notes":
        target.notes = "" if value is None else str(value)
    else:
        raise ValueError(f"Unknown field: {field}")


class SelectionSet:
    """
    Products picked in the chooser, keyed by product id, in pick order.
    """

    def __init__(self):
        self._entries: "OrderedDict[str, SelectionEntry]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, product_id: str) -> bool:
        return product_id in self._entries

    def __iter__(self):
        return iter(self._entries.values())

    def get(self, product_id: str) -> Optional[SelectionEntry]:
        return self._entries.get(product_id)

    def ids(self) -> List[str]:
        return list(self._entries.keys())

    def toggle(self, product: Product) -> bool:
        """
        Pick the product with default quantity / weight, or un-pick it.
        Returns True when the product is selected afterwards.
        """
        if product.id in self._entries:
            del self._entries[product.id]
            return False

        qty = default_quantity(product)
        self._entries[product.id] = SelectionEntry(
            product=product,
            quantity=qty,
            weight=default_weight(product, qty),
        )
        return True

    def edit(self, product_id: str, field: str, value: Any) -> Optional[SelectionEntry]:
        entry = self._entries.get(product_id)
        if entry is None:
            return None
        _apply_edit(entry, field, value)
        return entry

    def clear(self) -> None:
        self._entries.clear()


def materialize(selection: SelectionSet, cart: List[CartLine]) -> List[CartLine]:
    """
    Turn every picked product into a cart line, appended in pick order.

    Each line keeps a copy of the catalog price at this moment. The selection
    is emptied afterwards. Raises ValidationError on an empty selection and
    leaves the cart as it was.
    """
    if len(selection) == 0:
        raise ValidationError([EMPTY_SELECTION_MSG])

    new_lines: List[CartLine] = []
    for entry in selection:
        product = entry.product
        if product.is_weight_based:
            quantity = None
        else:
            quantity = DEFAULT_COUNT if entry.quantity is None else entry.quantity
        # already quantity x avg unless typed over in the picker
        weight = entry.weight

        new_lines.append(
            CartLine(
                product=product,
                quantity=quantity,
                weight=weight,
                unit_price=float(product.current_price),
                notes=entry.notes,
            )
        )

    cart.extend(new_lines)
    selection.clear()
    logger.debug("Added %d line(s) to cart, now %d", len(new_lines), len(cart))
    return new_lines


def quick_add(cart: List[CartLine], product: Product) -> CartLine:
    """
    Add one tap of a product. A product already in the cart gets 0.5 kg more
    (weight-based) or one more unit (count-based) instead of a second line.
    """
    for line in cart:
        if line.product.id != product.id:
            continue
        if product.is_weight_based:
            line.weight = (line.weight or 0) + QUICK_ADD_KG_STEP
        else:
            line.quantity = (line.quantity or 0) + 1
            avg = product.known_avg_weight
            if avg:
                line.weight = line.quantity * avg
        return line

    qty = default_quantity(product)
    line = CartLine(
        product=product,
        quantity=qty,
        weight=default_weight(product, qty),
        unit_price=float(product.current_price),
    )
    cart.append(line)
    return line


def edit_line(line: CartLine, field: str, value: Any, min_weight: float = 0.0) -> CartLine:
    """
    Apply one field edit (quantity, weight or notes) to a cart line.

    quantity: clamped to >= 0; when the product has an average unit weight the
              line weight becomes quantity x average, replacing any manual weight.
    weight:   clamped to >= min_weight, quantity untouched.
    notes:    replaced as typed.
    """
    _apply_edit(line, field, value, min_weight=min_weight)
    return line


def remove_line(cart: List[CartLine], index: int) -> Optional[CartLine]:
    if 0 <= index < len(cart):
        return cart.pop(index)
    return None


def clear_cart(cart: List[CartLine]) -> None:
    cart.clear()


def compute_subtotal(lines: Iterable[CartLine]) -> float:
    return sum((line.weight * line.unit_price for line in lines), 0.0)


def compute_totals(lines: Iterable[CartLine], discount: float = 0.0) -> OrderTotals:
    """
    subtotal = sum(weight x unit_price); total = subtotal - discount.
    A discount larger than the subtotal gives a negative total; submission
    validation is where that gets rejected.
    """
    subtotal = compute_subtotal(lines)
    discount = _parse_number(discount)
    return OrderTotals(subtotal=subtotal, discount=discount, total=subtotal - discount)


def filter_products(
        products: Iterable[Product],
        search: str = "",
        category_id: Optional[str] = None,
) -> List[Product]:
    needle = (search or "").strip().lower()
    result = []
    for p in products:
        match_search = not needle or needle in p.name.lower() or needle in p.code.lower()
        match_category = not category_id or p.category_id == category_id
        if match_search and match_category:
            result.append(p)
    return result
