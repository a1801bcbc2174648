"""Coupon catalog"""

from datetime import datetime, timezone
from typing import Iterable, Optional

from ..models.coupon import (
    CouponBase,
    FixedAmountCoupon,
    FreeShippingCoupon,
    PercentageCoupon,
    normalize_code,
)

_CAMPAIGN_START = datetime(2024, 1, 1, tzinfo=timezone.utc)
_CAMPAIGN_END = datetime(2030, 12, 31, 23, 59, 59, tzinfo=timezone.utc)

# Storefront promotions
COUPONS: list[CouponBase] = [
    PercentageCoupon(
        id="cpn-001",
        code="WELCOME10",
        description="10% off your first order, up to 20,000",
        value=10,
        max_discount_amount=20000,
        valid_from=_CAMPAIGN_START,
        valid_until=_CAMPAIGN_END,
    ),
    FixedAmountCoupon(
        id="cpn-002",
        code="SAVE20K",
        description="20,000 off orders of 100,000 or more",
        value=20000,
        min_purchase_amount=100000,
        valid_from=_CAMPAIGN_START,
        valid_until=_CAMPAIGN_END,
    ),
    FreeShippingCoupon(
        id="cpn-003",
        code="FREESHIP",
        description="Free shipping on any order",
        valid_from=_CAMPAIGN_START,
        valid_until=_CAMPAIGN_END,
    ),
    PercentageCoupon(
        id="cpn-004",
        code="SUMMER25",
        description="25% off, summer campaign (ended)",
        value=25,
        valid_from=datetime(2024, 6, 1, tzinfo=timezone.utc),
        valid_until=datetime(2024, 8, 31, 23, 59, 59, tzinfo=timezone.utc),
        active=False,
    ),
]


class CouponDatabase:
    """In-memory coupon catalog keyed by case-insensitive code"""

    def __init__(self, coupons: Optional[Iterable[CouponBase]] = None):
        self.coupons: dict[str, CouponBase] = {}
        for coupon in COUPONS if coupons is None else coupons:
            self.add_coupon(coupon)

    def add_coupon(self, coupon: CouponBase) -> None:
        self.coupons[coupon.match_key] = coupon

    def get_coupon(self, code: str) -> Optional[CouponBase]:
        """Look up a coupon by code, ignoring case"""
        return self.coupons.get(normalize_code(code))

    def list_coupons(self, active_only: bool = True) -> list[CouponBase]:
        coupons = list(self.coupons.values())
        if active_only:
            coupons = [c for c in coupons if c.active]
        return coupons


# Singleton instance
coupon_db = CouponDatabase()
