"""Product snapshot models held by cart line items"""

from pydantic import Field
from typing import Optional

from .base import CartModel


class Product(CartModel):
    """Catalog product as it looked when added to the cart"""
    id: str = Field(min_length=1)
    name: str
    price: float = Field(ge=0)
    description: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None


class ProductVariant(CartModel):
    """Selected variant (color, size, ...) of a product"""
    id: str = Field(min_length=1)
    name: str
    value: Optional[str] = None
    additional_price: float = 0.0
