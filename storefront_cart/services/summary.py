"""Cart summary calculation"""

from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..core.config import Settings, get_settings
from ..models.base import as_utc
from ..models.cart import CartSummary, LineItem
from ..models.coupon import CouponBase
from .coupons import apply_coupon


def compute_summary(
    items: Sequence[LineItem],
    applied_coupons: Iterable[CouponBase] = (),
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> CartSummary:
    """
    Derive the full monetary breakdown from line items and applied coupons.

    Always recomputed from scratch. Shipping is not taxed, and coupons that
    no longer apply (window closed, subtotal under the minimum) contribute 0.
    """
    settings = settings or get_settings()
    now = as_utc(now) if now else None

    subtotal = sum(item.total_price for item in items)
    shipping = settings.shipping_for(subtotal) if items else 0
    tax = subtotal * settings.tax_rate
    discount = 0  # No non-coupon promotions yet

    coupon_discount = 0
    for coupon in applied_coupons:
        result = apply_coupon(coupon, subtotal, now=now, settings=settings, shipping=shipping)
        if result.accepted:
            coupon_discount += result.discount_amount

    total = max(0, subtotal + tax + shipping - discount - coupon_discount)

    return CartSummary(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        discount=discount,
        coupon_discount=coupon_discount,
        total=total,
        savings=discount + coupon_discount,
        item_count=sum(item.quantity for item in items),
        unique_items=len(items),
    )
