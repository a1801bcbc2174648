from datetime import datetime, timezone

import pytest

from storefront_cart.core.config import Settings
from storefront_cart.database.coupons import CouponDatabase
from storefront_cart.database.persistence import CartPersistence
from storefront_cart.database.storage import InMemoryStorage
from storefront_cart.models import (
    CartState,
    FixedAmountCoupon,
    FreeShippingCoupon,
    PercentageCoupon,
    Product,
    ProductVariant,
)
from storefront_cart.services.store import CartStore

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
WINDOW_START = datetime(2026, 1, 1, tzinfo=timezone.utc)
WINDOW_END = datetime(2026, 12, 31, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    return Settings(
        max_items=50,
        max_qty_per_item=99,
        tax_rate=0.19,
        free_shipping_threshold=150000,
        shipping_fee=15000,
        storage_backend="memory",
    )


# ---------------------------------------------------------------------------
# Catalog data
# ---------------------------------------------------------------------------

def make_product(product_id: str = "prod-001", price: float = 50000, name: str = "") -> Product:
    return Product(id=product_id, name=name or f"Product {product_id}", price=price)


@pytest.fixture
def shirt() -> Product:
    return make_product("shirt-001", 40000, "Cotton Shirt")


@pytest.fixture
def shoes() -> Product:
    return make_product("shoes-001", 100000, "Running Shoes")


@pytest.fixture
def large() -> ProductVariant:
    return ProductVariant(id="L", name="Size", value="L", additional_price=5000)


@pytest.fixture
def percent_coupon() -> PercentageCoupon:
    return PercentageCoupon(
        code="TEN",
        description="10% off, max 5,000",
        value=10,
        max_discount_amount=5000,
        valid_from=WINDOW_START,
        valid_until=WINDOW_END,
    )


@pytest.fixture
def fixed_coupon() -> FixedAmountCoupon:
    return FixedAmountCoupon(
        code="MINUS20K",
        description="20,000 off orders over 100,000",
        value=20000,
        min_purchase_amount=100000,
        valid_from=WINDOW_START,
        valid_until=WINDOW_END,
    )


@pytest.fixture
def shipping_coupon() -> FreeShippingCoupon:
    return FreeShippingCoupon(
        code="SHIPFREE",
        valid_from=WINDOW_START,
        valid_until=WINDOW_END,
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@pytest.fixture
def empty_cart() -> CartState:
    return CartState.empty("sess-001", NOW)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def persistence(storage, settings) -> CartPersistence:
    return CartPersistence(storage, key="test-cart", settings=settings)


@pytest.fixture
def session_ids():
    counter = iter(range(1, 1000))
    return lambda: f"sess-{next(counter):03d}"


@pytest.fixture
def store(persistence, settings, session_ids) -> CartStore:
    catalog = CouponDatabase(
        [
            PercentageCoupon(
                code="WELCOME10",
                value=10,
                max_discount_amount=20000,
                valid_from=WINDOW_START,
                valid_until=WINDOW_END,
            ),
            FixedAmountCoupon(
                code="SAVE20K",
                value=20000,
                min_purchase_amount=100000,
                valid_from=WINDOW_START,
                valid_until=WINDOW_END,
            ),
        ]
    )
    cart_store = CartStore(
        persistence=persistence,
        coupon_catalog=catalog,
        settings=settings,
        clock=lambda: NOW,
        session_id_factory=session_ids,
    )
    cart_store.load()
    return cart_store
