"""Cart API routes"""

from fastapi import APIRouter, HTTPException, Depends, Header, Request, Response
from typing import Optional

from ..models.cart import (
    AddToCartPayload,
    ApplyCouponRequest,
    CartResponse,
    ProductCartStatus,
    UpdateQuantityRequest,
)
from ..services.store import CartStore

CART_ID_HEADER = "X-Cart-Id"

router = APIRouter(prefix="/api/cart", tags=["Cart"])


def get_cart_id(x_cart_id: Optional[str] = Header(None)) -> Optional[str]:
    """Extract cart ID from header"""
    return x_cart_id


def get_cart_store(
    request: Request,
    response: Response,
    cart_id: Optional[str] = Depends(get_cart_id),
) -> CartStore:
    """
    Resolve the caller's cart from the X-Cart-Id header.

    Requests without the header get a fresh cart; its id is returned in
    the response header for the client to send back.
    """
    registry = getattr(request.app.state, "cart_registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Cart registry not loaded")

    if not cart_id:
        cart_id = registry.new_cart_id()
    response.headers[CART_ID_HEADER] = cart_id
    return registry.get_store(cart_id)


@router.get("", response_model=CartResponse)
async def get_cart(store: CartStore = Depends(get_cart_store)):
    """Get the current cart"""
    return CartResponse(cart=store.get_cart())


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartPayload,
    store: CartStore = Depends(get_cart_store),
):
    """Add a product to the cart"""
    if request.quantity <= 0:
        raise HTTPException(status_code=400, detail="Quantity must be at least 1")

    cart = store.add_to_cart(request)
    return CartResponse(
        cart=cart,
        message=f"Added {request.quantity}x {request.product.name} to cart",
    )


@router.put("/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    item_id: str,
    request: UpdateQuantityRequest,
    store: CartStore = Depends(get_cart_store),
):
    """Set an item's quantity; zero removes it"""
    cart = store.update_quantity(item_id, request.quantity)
    return CartResponse(cart=cart, message="Cart updated")


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_from_cart(
    item_id: str,
    store: CartStore = Depends(get_cart_store),
):
    """Remove an item from the cart"""
    cart = store.remove_from_cart(item_id)
    return CartResponse(cart=cart, message="Item removed")


@router.delete("", response_model=CartResponse)
async def clear_cart(
    reset_session: bool = False,
    store: CartStore = Depends(get_cart_store),
):
    """Clear all items and coupons from the cart"""
    cart = store.clear_cart(reset_session=reset_session)
    return CartResponse(cart=cart, message="Cart cleared")


@router.post("/coupons", response_model=CartResponse)
async def apply_coupon(
    request: ApplyCouponRequest,
    store: CartStore = Depends(get_cart_store),
):
    """Apply a coupon by code"""
    await store.apply_coupon_code(request.code)

    error = store.get_last_error()
    if error:
        store.clear_error()
        raise HTTPException(status_code=400, detail=error)

    return CartResponse(cart=store.get_cart(), message=f"Coupon {request.code} applied")


@router.delete("/coupons/{code}", response_model=CartResponse)
async def remove_coupon(
    code: str,
    store: CartStore = Depends(get_cart_store),
):
    """Remove an applied coupon"""
    cart = store.remove_coupon(code)
    return CartResponse(cart=cart, message="Coupon removed")


@router.get("/products/{product_id}", response_model=ProductCartStatus)
async def get_product_status(
    product_id: str,
    store: CartStore = Depends(get_cart_store),
):
    """How many units of a product are in the cart"""
    return ProductCartStatus(
        product_id=product_id,
        quantity=store.get_item_quantity(product_id),
        in_cart=store.is_in_cart(product_id),
    )
