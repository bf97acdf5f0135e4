"""Business settings for order placement.

Every value can be overridden through the environment so that staging and
production deployments can change fees or the order-number prefix without a
code change.
"""

import os


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    return float(raw) if raw not in (None, "") else default


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    return int(raw) if raw not in (None, "") else default


ORDER_NUMBER_PREFIX = os.getenv("ORDER_NUMBER_PREFIX", "CBW")

# Flat delivery fee (UAE)
DELIVERY_FEE = _float_env("ORDERING_DELIVERY_FEE", 15.0)

# VAT (UAE 5%), applied on subtotal + delivery fee
VAT_RATE = _float_env("ORDERING_VAT_RATE", 0.05)

CURRENCY = os.getenv("ORDERING_CURRENCY", "AED")

MAX_LINE_QUANTITY = _int_env("ORDERING_MAX_LINE_QUANTITY", 99)

# Attempts made at the transaction boundary before giving up on a conflict
TRANSACTION_ATTEMPTS = _int_env("ORDERING_TRANSACTION_ATTEMPTS", 3)
