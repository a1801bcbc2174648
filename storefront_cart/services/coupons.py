"""Coupon validation and discount calculation"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..core.config import Settings, get_settings
from ..core.errors import CouponErrorKind
from ..models.base import as_utc
from ..models.coupon import (
    CouponBase,
    FixedAmountCoupon,
    FreeShippingCoupon,
    PercentageCoupon,
)


@dataclass
class CouponResult:
    """Outcome of checking a coupon against a subtotal"""
    accepted: bool
    discount_amount: float = 0.0
    reason: Optional[CouponErrorKind] = None


def apply_coupon(
    coupon: CouponBase,
    subtotal: float,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
    shipping: Optional[float] = None,
) -> CouponResult:
    """
    Check whether ``coupon`` applies to ``subtotal`` and compute its discount.

    ``shipping`` is the fee a free-shipping coupon waives; when omitted it is
    derived from the subtotal and the configured threshold, and is 0 for a
    zero subtotal.
    """
    settings = settings or get_settings()
    now = as_utc(now) if now else datetime.now(timezone.utc)

    if not coupon.active or not coupon.is_within_window(now):
        return CouponResult(accepted=False, reason=CouponErrorKind.INACTIVE_COUPON)

    if coupon.min_purchase_amount is not None and subtotal < coupon.min_purchase_amount:
        return CouponResult(accepted=False, reason=CouponErrorKind.MINIMUM_PURCHASE_NOT_MET)

    if isinstance(coupon, PercentageCoupon):
        amount = subtotal * coupon.value / 100
        if coupon.max_discount_amount is not None:
            amount = min(amount, coupon.max_discount_amount)
    elif isinstance(coupon, FixedAmountCoupon):
        # Not clamped to the subtotal; the cart total is floored at zero instead
        amount = coupon.value
    elif isinstance(coupon, FreeShippingCoupon):
        if shipping is None:
            # An empty order has nothing to ship
            shipping = settings.shipping_for(subtotal) if subtotal > 0 else 0
        amount = shipping
    else:
        raise TypeError(f"Unsupported coupon type: {type(coupon).__name__}")

    return CouponResult(accepted=True, discount_amount=amount)


def coupon_error_message(
    kind: CouponErrorKind,
    code: Optional[str] = None,
    coupon: Optional[CouponBase] = None,
) -> str:
    """User-visible message for a coupon rejection"""
    label = code or (coupon.code if coupon else "")

    if kind == CouponErrorKind.INACTIVE_COUPON:
        return f"Coupon {label} is not active"
    if kind == CouponErrorKind.MINIMUM_PURCHASE_NOT_MET:
        minimum = coupon.min_purchase_amount if coupon else None
        if minimum is not None:
            return f"Minimum purchase required: {minimum:,.0f}"
        return "Minimum purchase not met"
    if kind == CouponErrorKind.UNKNOWN_COUPON_CODE:
        return f"Coupon code {label} does not exist"
    if kind == CouponErrorKind.COUPON_ALREADY_APPLIED:
        return f"Coupon {label} is already applied"
    return "Invalid coupon"
