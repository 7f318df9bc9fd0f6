# seafood_pos/services/order_service.py

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import data_integrator
from domain.errors import ApiError, ValidationError
from domain.models import Order, OrderDraft
from services.cart_service import compute_subtotal

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ("cash", "transfer", "momo")
PAYMENT_STATUSES = ("pending", "paid")


def validate_draft(draft: OrderDraft) -> List[str]:
    """
    Client-side checks done before the order is sent.
    Returns the list of problems; empty means the draft can go out.
    """
    errors: List[str] = []

    if not (draft.customer_phone or "").strip():
        errors.append("Vui lòng nhập số điện thoại khách hàng!")

    if not draft.lines:
        errors.append("Giỏ hàng trống!")
    else:
        missing_weight = [line.product.name for line in draft.lines if not line.weight or line.weight <= 0]
        if missing_weight:
            errors.append(f"Vui lòng nhập cân nặng cho: {', '.join(missing_weight)}")

    if draft.discount_amount < 0:
        errors.append("Giảm giá không được âm!")
    elif draft.lines and draft.discount_amount > compute_subtotal(draft.lines):
        errors.append("Giảm giá không được lớn hơn tạm tính!")

    return errors


def build_order_payload(draft: OrderDraft) -> Dict[str, Any]:
    return {
        "customer_phone": draft.customer_phone.strip(),
        "customer_name": draft.customer_name,
        "customer_address": draft.customer_address,
        "payment_method": draft.payment_method,
        "payment_status": draft.payment_status,
        "discount_amount": draft.discount_amount,
        "notes": draft.notes,
        "items": [line.to_payload() for line in draft.lines],
    }


def reset_draft(draft: OrderDraft) -> None:
    draft.lines.clear()
    draft.customer_phone = ""
    draft.customer_name = ""
    draft.customer_address = ""
    draft.discount_amount = 0.0
    draft.notes = ""
    draft.payment_status = "pending"
    draft.processing = False


def submit_order(
        draft: OrderDraft,
        *,
        token: Optional[str] = None,
        create: Optional[Callable[[Dict[str, Any], Optional[str]], Order]] = None,
) -> Order:
    """
    Validate the draft and hand it to the order service.

    - ValidationError: nothing was sent, draft untouched.
    - ApiError: the backend refused or was unreachable; the draft is kept as
      it was so the cashier can retry.
    - success: the draft is cleared and the stored order is returned.

    A draft that is already being sent is refused, so a second click while the
    first request is in flight does not create a duplicate.
    """
    if draft.processing:
        raise ValidationError(["Đơn hàng đang được xử lý, vui lòng chờ..."])

    errors = validate_draft(draft)
    if errors:
        raise ValidationError(errors)

    create = create or data_integrator.create_order
    payload = build_order_payload(draft)

    draft.processing = True
    try:
        order = create(payload, token)
    except ApiError:
        logger.warning("Order for %s rejected, draft kept", draft.customer_phone)
        raise
    finally:
        draft.processing = False

    logger.info("Order %s created (%d items)", order.order_code, len(payload["items"]))
    reset_draft(draft)
    return order


# ---------------------------------------------------------------------------
# Order detail actions: (ok, message, data)
# ---------------------------------------------------------------------------

def update_order_item(
        order_id: str,
        item_id: str,
        weight: Optional[float] = None,
        unit_price: Optional[float] = None,
        weight_image_url: Optional[str] = None,
        token: Optional[str] = None,
) -> Tuple[bool, str, Any]:
    if weight is not None and weight <= 0:
        return False, "Cân nặng phải lớn hơn 0", None
    if unit_price is not None and unit_price < 0:
        return False, "Đơn giá không được âm", None
    try:
        data = data_integrator.update_order_item(
            order_id,
            item_id,
            weight=weight,
            unit_price=unit_price,
            weight_image_url=weight_image_url,
            token=token,
        )
        return True, "Updated", data
    except ApiError as e:
        return False, str(e), None


def mark_weighed(order_id: str, weight_images: Optional[List[str]] = None,
                 token: Optional[str] = None) -> Tuple[bool, str, Any]:
    try:
        return True, "Weighed", data_integrator.mark_order_weighed(order_id, weight_images, token)
    except ApiError as e:
        return False, str(e), None


def mark_shipped(order_id: str, shipping_notes: str = "",
                 token: Optional[str] = None) -> Tuple[bool, str, Any]:
    try:
        return True, "Shipped", data_integrator.mark_order_shipped(order_id, shipping_notes, token)
    except ApiError as e:
        return False, str(e), None


def export_pdf(order_id: str, token: Optional[str] = None) -> Tuple[bool, str, Optional[bytes]]:
    try:
        return True, "Exported", data_integrator.export_order_pdf(order_id, token)
    except ApiError as e:
        return False, str(e), None


def cancel(order_id: str, token: Optional[str] = None) -> Tuple[bool, str]:
    try:
        data_integrator.cancel_order(order_id, token)
        return True, "Cancelled"
    except ApiError as e:
        return False, str(e)
