# Cart Engine Models

from .product import Product, ProductVariant
from .coupon import (
    Coupon,
    CouponBase,
    FixedAmountCoupon,
    FreeShippingCoupon,
    PercentageCoupon,
    coupon_adapter,
    normalize_code,
    parse_coupon,
)
from .cart import (
    AddToCartPayload,
    ApplyCouponRequest,
    CartResponse,
    CartState,
    CartSummary,
    LineItem,
    ProductCartStatus,
    UpdateQuantityRequest,
    make_item_id,
)
from .commands import (
    AddItem,
    ApplyCoupon,
    ClearCart,
    Command,
    MergeCart,
    RemoveCoupon,
    RemoveItem,
    RestoreCart,
    UpdateQuantity,
)

__all__ = [
    "Product",
    "ProductVariant",
    "Coupon",
    "CouponBase",
    "FixedAmountCoupon",
    "FreeShippingCoupon",
    "PercentageCoupon",
    "coupon_adapter",
    "normalize_code",
    "parse_coupon",
    "AddToCartPayload",
    "ApplyCouponRequest",
    "CartResponse",
    "CartState",
    "CartSummary",
    "LineItem",
    "ProductCartStatus",
    "UpdateQuantityRequest",
    "make_item_id",
    "AddItem",
    "ApplyCoupon",
    "ClearCart",
    "Command",
    "MergeCart",
    "RemoveCoupon",
    "RemoveItem",
    "RestoreCart",
    "UpdateQuantity",
]
