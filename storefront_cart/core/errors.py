"""Cart engine error taxonomy"""

from enum import Enum
from typing import Optional


class CouponErrorKind(str, Enum):
    """Why a coupon could not be applied"""
    INACTIVE_COUPON = "InactiveCoupon"
    MINIMUM_PURCHASE_NOT_MET = "MinimumPurchaseNotMet"
    UNKNOWN_COUPON_CODE = "UnknownCouponCode"
    COUPON_ALREADY_APPLIED = "CouponAlreadyApplied"
    MALFORMED_COUPON = "MalformedCoupon"


class CartEngineError(Exception):
    """Base exception for cart engine errors"""
    pass


class CorruptPersistedState(CartEngineError):
    """Stored cart blob could not be decoded or failed structural validation"""
    pass


class CouponRejected(CartEngineError):
    """A coupon failed a business rule; carries a user-visible message"""

    def __init__(self, kind: CouponErrorKind, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"CouponRejected(kind={self.kind.value!r}, code={self.code!r})"
