import secrets
import time

ORDER_NUMBER_PREFIX = "ORD"


def generate_order_number() -> str:
    """
    Human-facing order reference, e.g. ``ORD-1760880000123-9F2C04AB``.

    The millisecond timestamp keeps numbers roughly sortable by creation
    time; the 32-bit random suffix makes same-millisecond collisions
    negligible. The value is display-only, lookups always use the order id.
    """
    timestamp = int(time.time() * 1000)
    suffix = secrets.token_hex(4).upper()
    return f"{ORDER_NUMBER_PREFIX}-{timestamp}-{suffix}"
