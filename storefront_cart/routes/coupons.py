"""Coupon catalog routes"""

from fastapi import APIRouter, HTTPException

from ..database.coupons import coupon_db
from ..models.coupon import Coupon

router = APIRouter(prefix="/api/coupons", tags=["Coupons"])


@router.get("", response_model=list[Coupon])
async def list_coupons(active_only: bool = True):
    """List available promotions"""
    return coupon_db.list_coupons(active_only=active_only)


@router.get("/{code}", response_model=Coupon)
async def get_coupon(code: str):
    """Get a coupon by code (case-insensitive)"""
    coupon = coupon_db.get_coupon(code)
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon
