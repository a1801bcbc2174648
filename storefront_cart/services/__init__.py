# Cart engine services
# CartStore lives in .store and is imported from there directly.

from .coupons import CouponResult, apply_coupon, coupon_error_message
from .summary import compute_summary
from .reducer import normalize_state, reduce

__all__ = [
    "CouponResult",
    "apply_coupon",
    "coupon_error_message",
    "compute_summary",
    "normalize_state",
    "reduce",
]
