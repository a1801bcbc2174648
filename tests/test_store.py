"""Tests for the cart store: commands, queries, coupon errors and persistence."""

import asyncio
import json

import pytest

from conftest import NOW, WINDOW_END, WINDOW_START
from storefront_cart.core.errors import CouponErrorKind
from storefront_cart.models import AddItem, CartState, PercentageCoupon
from storefront_cart.services import reduce
from storefront_cart.services.store import CartRegistry, CartStore


def add(store, product, quantity=1, variant=None):
    payload = {"product": product.model_dump(), "quantity": quantity}
    if variant is not None:
        payload["selected_variant"] = variant.model_dump()
    return store.add_to_cart(payload)


# ---------------------------------------------------------------------------
# Commands and queries
# ---------------------------------------------------------------------------

class TestCommands:
    def test_starts_empty(self, store):
        assert store.loaded
        assert store.cart.items == []
        assert store.cart.session_id == "sess-001"
        assert store.get_total_items() == 0
        assert store.get_total_price() == 0

    def test_add_and_query(self, store, shirt, shoes, large):
        add(store, shirt, 2)
        add(store, shirt, 1, variant=large)
        add(store, shoes, 1)

        assert store.get_item_quantity("shirt-001") == 3
        assert store.get_item_quantity("missing") == 0
        assert store.is_in_cart("shoes-001")
        assert not store.is_in_cart("missing")
        assert store.get_total_items() == 4
        assert store.get_total_price() == store.cart.summary.total

    def test_update_and_remove(self, store, shirt):
        add(store, shirt, 2)
        store.update_quantity("shirt-001", 500)
        assert store.get_item_quantity("shirt-001") == 99
        store.update_quantity("shirt-001", 0)
        assert not store.is_in_cart("shirt-001")
        add(store, shirt, 1)
        store.remove_from_cart("shirt-001")
        store.remove_from_cart("shirt-001")
        assert store.cart.items == []

    def test_clear_keeps_session_by_default(self, store, shirt):
        add(store, shirt)
        store.clear_cart()
        assert store.cart.items == []
        assert store.cart.session_id == "sess-001"

    def test_clear_with_reset_starts_new_session(self, store, shirt):
        add(store, shirt)
        store.clear_cart(reset_session=True)
        assert store.cart.session_id == "sess-002"

    def test_merge_cart(self, store, shirt, settings):
        add(store, shirt, 1)
        guest = reduce(CartState.empty("guest", NOW), AddItem(product=shirt, quantity=4), NOW, settings)
        store.merge_cart(guest)
        assert store.get_item_quantity("shirt-001") == 5
        assert store.cart.session_id == "sess-001"


# ---------------------------------------------------------------------------
# Subscribers
# ---------------------------------------------------------------------------

class TestSubscribers:
    def test_listener_receives_new_state(self, store, shirt):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        add(store, shirt)
        assert seen == [store.cart]

        unsubscribe()
        add(store, shirt)
        assert len(seen) == 1

    def test_noop_does_not_notify(self, store):
        seen = []
        store.subscribe(seen.append)
        store.remove_from_cart("missing")
        assert seen == []

    def test_failing_listener_does_not_break_others(self, store, shirt, caplog):
        def broken(state):
            raise RuntimeError("render failed")

        seen = []
        store.subscribe(broken)
        store.subscribe(seen.append)
        add(store, shirt)
        assert len(seen) == 1
        assert "render failed" in caplog.text


# ---------------------------------------------------------------------------
# Coupons
# ---------------------------------------------------------------------------

class TestCoupons:
    def test_apply_coupon_code(self, store, shoes):
        add(store, shoes, 1)
        asyncio.run(store.apply_coupon_code("welcome10"))
        assert store.get_last_error() is None
        assert store.cart.summary.coupon_discount == 10000

    def test_naive_clock(self, settings, shirt, percent_coupon):
        store = CartStore(settings=settings, clock=lambda: NOW.replace(tzinfo=None))
        store.load()
        add(store, shirt, 1)
        asyncio.run(store.apply_coupon(percent_coupon))
        assert store.get_last_error() is None
        assert store.cart.summary.coupon_discount == 4000
        assert store.cart.last_updated == NOW

    def test_unknown_code(self, store):
        asyncio.run(store.apply_coupon_code("NOPE"))
        assert store.last_error.kind == CouponErrorKind.UNKNOWN_COUPON_CODE
        assert "NOPE" in store.get_last_error()

    def test_minimum_purchase_not_met(self, store, shirt):
        add(store, shirt, 1)
        before = store.cart
        asyncio.run(store.apply_coupon_code("SAVE20K"))
        assert store.last_error.kind == CouponErrorKind.MINIMUM_PURCHASE_NOT_MET
        assert store.get_last_error() == "Minimum purchase required: 100,000"
        assert store.cart is before

    def test_duplicate_code_rejected_by_store(self, store, shoes):
        add(store, shoes, 1)
        asyncio.run(store.apply_coupon_code("WELCOME10"))
        asyncio.run(store.apply_coupon_code("Welcome10"))
        assert store.last_error.kind == CouponErrorKind.COUPON_ALREADY_APPLIED
        assert len(store.cart.applied_coupons) == 1

    def test_inactive_coupon(self, store, shoes):
        add(store, shoes, 1)
        expired = PercentageCoupon(
            code="OLD",
            value=50,
            valid_from=WINDOW_START.replace(year=2024),
            valid_until=WINDOW_END.replace(year=2024),
        )
        asyncio.run(store.apply_coupon(expired))
        assert store.last_error.kind == CouponErrorKind.INACTIVE_COUPON
        assert store.cart.applied_coupons == []

    def test_malformed_payload(self, store):
        asyncio.run(store.apply_coupon({"code": "X", "type": "percentage", "value": 400}))
        assert store.last_error.kind == CouponErrorKind.MALFORMED_COUPON

    def test_coupon_from_dict(self, store, shoes):
        add(store, shoes, 1)
        asyncio.run(
            store.apply_coupon(
                {
                    "code": "SHIP",
                    "type": "free-shipping",
                    "validFrom": WINDOW_START.isoformat(),
                    "validUntil": WINDOW_END.isoformat(),
                }
            )
        )
        assert store.get_last_error() is None
        assert store.cart.summary.coupon_discount == 15000

    def test_success_clears_previous_error(self, store, shoes):
        asyncio.run(store.apply_coupon_code("NOPE"))
        add(store, shoes, 1)
        asyncio.run(store.apply_coupon_code("WELCOME10"))
        assert store.get_last_error() is None

    def test_clear_error(self, store):
        asyncio.run(store.apply_coupon_code("NOPE"))
        store.clear_error()
        assert store.get_last_error() is None

    def test_remove_coupon(self, store, shoes):
        add(store, shoes, 1)
        asyncio.run(store.apply_coupon_code("WELCOME10"))
        store.remove_coupon("welcome10")
        assert store.cart.applied_coupons == []
        assert store.cart.summary.coupon_discount == 0


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class TestPersistence:
    def test_changes_are_saved_without_event_loop(self, store, storage, shirt):
        add(store, shirt, 2)
        data = json.loads(storage.get("test-cart"))
        assert data["items"][0]["quantity"] == 2

    def test_save_is_deferred_inside_event_loop(self, store, storage, shirt):
        async def scenario():
            add(store, shirt, 1)
            assert storage.get("test-cart") is None
            assert store.is_in_cart("shirt-001")
            await asyncio.sleep(0)
            return json.loads(storage.get("test-cart"))

        data = asyncio.run(scenario())
        assert data["items"][0]["id"] == "shirt-001"

    def test_load_restores_previous_session(self, store, persistence, settings, shirt, session_ids):
        add(store, shirt, 3)
        asyncio.run(store.apply_coupon_code("WELCOME10"))

        restored = CartStore(
            persistence=persistence,
            coupon_catalog=store.coupon_catalog,
            settings=settings,
            clock=lambda: NOW,
            session_id_factory=session_ids,
        )
        seen = []
        restored.subscribe(seen.append)
        restored.load()

        assert restored.cart.session_id == "sess-001"
        assert restored.get_item_quantity("shirt-001") == 3
        assert restored.cart.summary == store.cart.summary
        assert len(seen) == 1

    def test_corrupt_storage_starts_empty(self, persistence, storage, settings):
        storage.set("test-cart", "{garbage")
        store = CartStore(persistence=persistence, settings=settings, clock=lambda: NOW)
        store.load()
        assert store.cart.items == []
        assert storage.get("test-cart") is None

    def test_store_without_persistence(self, settings, shirt):
        store = CartStore(settings=settings, clock=lambda: NOW)
        store.load()
        add(store, shirt)
        assert store.is_in_cart("shirt-001")


# ---------------------------------------------------------------------------
# Cart registry
# ---------------------------------------------------------------------------

class TestCartRegistry:
    @pytest.fixture
    def registry(self, storage, settings) -> CartRegistry:
        return CartRegistry(storage=storage, settings=settings, clock=lambda: NOW)

    def test_store_per_cart_id(self, registry, shirt):
        first = registry.get_store("cart-a")
        add(first, shirt, 2)

        assert registry.get_store("cart-a") is first
        second = registry.get_store("cart-b")
        assert second is not first
        assert second.cart.items == []
        assert second.cart.session_id == "cart-b"

    def test_carts_persist_under_their_own_keys(self, registry, storage, shirt):
        add(registry.get_store("cart-a"), shirt, 2)
        data = json.loads(storage.get("storefront-cart:cart-a"))
        assert data["items"][0]["quantity"] == 2
        assert storage.get("storefront-cart:cart-b") is None

    def test_coupon_errors_stay_with_their_cart(self, registry):
        asyncio.run(registry.get_store("cart-a").apply_coupon_code("NOPE"))
        assert registry.get_store("cart-a").get_last_error() is not None
        assert registry.get_store("cart-b").get_last_error() is None

    def test_cart_is_restored_from_storage(self, storage, settings, shirt):
        add(CartRegistry(storage=storage, settings=settings).get_store("cart-a"), shirt, 3)
        restored = CartRegistry(storage=storage, settings=settings).get_store("cart-a")
        assert restored.loaded
        assert restored.get_item_quantity("shirt-001") == 3

    def test_new_cart_ids_are_unique(self, registry):
        assert registry.new_cart_id() != registry.new_cart_id()
