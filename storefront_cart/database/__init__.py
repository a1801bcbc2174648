# Database modules

from .storage import KeyValueStorage, InMemoryStorage, FileStorage, create_storage
from .persistence import CartPersistence
from .coupons import coupon_db, CouponDatabase

__all__ = [
    "KeyValueStorage",
    "InMemoryStorage",
    "FileStorage",
    "create_storage",
    "CartPersistence",
    "coupon_db",
    "CouponDatabase",
]
