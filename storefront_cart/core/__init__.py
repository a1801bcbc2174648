# Core modules

from .config import Settings, get_settings
from .errors import CartEngineError, CorruptPersistedState, CouponErrorKind, CouponRejected

__all__ = [
    "Settings",
    "get_settings",
    "CartEngineError",
    "CorruptPersistedState",
    "CouponErrorKind",
    "CouponRejected",
]
