"""Commands accepted by the cart reducer"""

from dataclasses import dataclass
from typing import Optional, Union

from .cart import CartState
from .coupon import CouponBase
from .product import Product, ProductVariant


@dataclass(frozen=True)
class AddItem:
    """Add a product, merging into an existing line with the same id"""
    product: Product
    quantity: int = 1
    selected_variant: Optional[ProductVariant] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class RemoveItem:
    item_id: str


@dataclass(frozen=True)
class UpdateQuantity:
    """Set a line's quantity; zero or less removes the line"""
    item_id: str
    quantity: int


@dataclass(frozen=True)
class ClearCart:
    """Empty the cart; a new session id starts a fresh session"""
    new_session_id: Optional[str] = None


@dataclass(frozen=True)
class ApplyCoupon:
    coupon: CouponBase


@dataclass(frozen=True)
class RemoveCoupon:
    code: str


@dataclass(frozen=True)
class RestoreCart:
    """Replace the cart with previously persisted state"""
    state: CartState


@dataclass(frozen=True)
class MergeCart:
    """Fold a guest cart's items into the current cart"""
    guest_cart: CartState


Command = Union[
    AddItem,
    RemoveItem,
    UpdateQuantity,
    ClearCart,
    ApplyCoupon,
    RemoveCoupon,
    RestoreCart,
    MergeCart,
]
