"""Cart models"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from .base import CartModel, UtcDatetime
from .coupon import Coupon
from .product import Product, ProductVariant


def make_item_id(product_id: str, variant_id: Optional[str] = None) -> str:
    """Line item identity: the same product and variant always share an id"""
    return f"{product_id}-{variant_id}" if variant_id else product_id


class LineItem(CartModel):
    """One product (plus optional variant) in the cart"""
    item_id: str = Field(alias="id")
    product_id: str
    product: Product
    quantity: int = Field(ge=1)
    selected_variant: Optional[ProductVariant] = None
    unit_price: float = Field(ge=0)
    total_price: float = Field(ge=0)
    added_at: UtcDatetime
    notes: Optional[str] = None

    def with_quantity(self, quantity: int) -> "LineItem":
        """Copy with a new quantity; the frozen unit price is kept"""
        return self.model_copy(
            update={"quantity": quantity, "total_price": self.unit_price * quantity}
        )


class CartSummary(CartModel):
    """Derived monetary breakdown of the cart"""
    subtotal: float = 0.0
    shipping: float = 0.0
    tax: float = 0.0
    discount: float = 0.0
    coupon_discount: float = 0.0
    total: float = 0.0
    savings: float = 0.0
    item_count: int = 0
    unique_items: int = 0


class CartState(CartModel):
    """Shopping cart aggregate"""
    items: list[LineItem] = []
    summary: CartSummary = CartSummary()
    applied_coupons: list[Coupon] = []
    last_updated: UtcDatetime
    session_id: str = Field(min_length=1)

    @classmethod
    def empty(cls, session_id: str, now: datetime) -> "CartState":
        """Fresh cart with no items or coupons"""
        return cls(session_id=session_id, last_updated=now)

    def find_item(self, item_id: str) -> Optional[LineItem]:
        return next((item for item in self.items if item.item_id == item_id), None)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class AddToCartPayload(CartModel):
    """Request to add a product to the cart"""
    product: Product
    quantity: int = 1
    selected_variant: Optional[ProductVariant] = None
    notes: Optional[str] = None


class UpdateQuantityRequest(CartModel):
    """Request to set a line item's quantity"""
    quantity: int


class ApplyCouponRequest(CartModel):
    """Request to apply a coupon by code"""
    code: str = Field(min_length=1)


class ProductCartStatus(CartModel):
    """How much of a product is in the cart"""
    product_id: str
    quantity: int
    in_cart: bool


class CartResponse(CartModel):
    """Cart API response"""
    cart: CartState
    message: Optional[str] = None
    error: Optional[str] = None
