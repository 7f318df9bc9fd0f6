# seafood_pos/utils/formatting.py

UNIT_LABELS = {
    "kg": "kg",
    "piece": "con",
    "box": "thùng",
}

ORDER_STATUS_LABELS = {
    "pending": "Chờ xử lý",
    "processing": "Đang xử lý",
    "weighed": "Đã cân",
    "ready": "Sẵn sàng giao",
    "shipped": "Đã gửi vận chuyển",
    "completed": "Hoàn thành",
    "cancelled": "Đã hủy",
}

PAYMENT_STATUS_LABELS = {
    "pending": "Chưa thanh toán",
    "paid": "Đã thanh toán",
    "refunded": "Đã hoàn tiền",
}

PAYMENT_METHOD_LABELS = {
    "cash": "Tiền mặt",
    "transfer": "Chuyển khoản",
    "momo": "MoMo",
}

PRODUCT_STATUS_LABELS = {
    "active": "Đang bán",
    "inactive": "Ngừng bán",
}


def format_vnd(n: float) -> str:
    """
    Format an amount Vietnamese-style, '.' as thousands separator, no decimals.
    Example: 525000 -> "525.000 ₫", -2500 -> "-2.500 ₫"
    """
    return f"{n:,.0f}".replace(",", ".") + " ₫"


def format_weight(w: float) -> str:
    return f"{w:.2f} kg"


def unit_label(unit_type: str) -> str:
    return UNIT_LABELS.get(unit_type, "kg")


def status_label(status: str) -> str:
    return ORDER_STATUS_LABELS.get(status, status)


def payment_status_label(status: str) -> str:
    return PAYMENT_STATUS_LABELS.get(status, status)
