"""Coupon models

A coupon is a closed tagged variant over its ``type``: percentage, fixed
and free-shipping coupons each carry only the fields that make sense for
that kind. Payloads are validated through ``coupon_adapter`` so malformed
coupons are rejected before any discount math runs.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter, model_validator

from .base import CartModel, UtcDatetime, as_utc


class CouponBase(CartModel):
    """Fields shared by every coupon kind"""
    code: str = Field(min_length=1)
    description: str = ""
    id: Optional[str] = None
    min_purchase_amount: Optional[float] = Field(default=None, ge=0)
    valid_from: UtcDatetime
    valid_until: UtcDatetime
    active: bool = True

    @model_validator(mode="after")
    def check_window(self):
        if self.valid_from > self.valid_until:
            raise ValueError("validFrom must not be later than validUntil")
        return self

    @property
    def match_key(self) -> str:
        """Case-insensitive lookup key for the coupon code"""
        return normalize_code(self.code)

    def is_within_window(self, now: datetime) -> bool:
        return self.valid_from <= as_utc(now) <= self.valid_until


class PercentageCoupon(CouponBase):
    """Takes ``value`` percent off the subtotal, optionally capped"""
    type: Literal["percentage"] = "percentage"
    value: float = Field(gt=0, le=100)
    max_discount_amount: Optional[float] = Field(default=None, ge=0)


class FixedAmountCoupon(CouponBase):
    """Takes a fixed amount off the order"""
    type: Literal["fixed"] = "fixed"
    value: float = Field(gt=0)


class FreeShippingCoupon(CouponBase):
    """Waives the shipping fee"""
    type: Literal["free-shipping"] = "free-shipping"
    value: float = 0.0


Coupon = Annotated[
    Union[PercentageCoupon, FixedAmountCoupon, FreeShippingCoupon],
    Field(discriminator="type"),
]

coupon_adapter: TypeAdapter = TypeAdapter(Coupon)


def normalize_code(code: str) -> str:
    return code.strip().casefold()


def parse_coupon(data) -> Union[PercentageCoupon, FixedAmountCoupon, FreeShippingCoupon]:
    """Validate a coupon payload (dict or model); raises ``ValidationError``"""
    if isinstance(data, CouponBase):
        return data
    return coupon_adapter.validate_python(data)
