"""
Cart Store

Single owner of the current cart. Every command goes through the reducer;
after each change subscribers are notified and the new state is handed to
persistence without waiting for it.

Usage:
    registry = CartRegistry()
    store = registry.get_store(cart_id)

    store.add_to_cart({"product": {...}, "quantity": 2})
    await store.apply_coupon_code("WELCOME10")
    if store.get_last_error():
        ...
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from pydantic import ValidationError

from ..core.config import Settings, get_settings
from ..core.errors import CouponErrorKind, CouponRejected
from ..database.coupons import CouponDatabase, coupon_db
from ..database.persistence import CartPersistence
from ..database.storage import KeyValueStorage, create_storage
from ..models.base import as_utc
from ..models.cart import AddToCartPayload, CartState
from ..models.commands import (
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
from ..models.coupon import CouponBase, parse_coupon
from .coupons import apply_coupon as validate_coupon, coupon_error_message
from .reducer import reduce

logger = logging.getLogger(__name__)

CartListener = Callable[[CartState], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_session_id() -> str:
    return str(uuid.uuid4())


class CartStore:
    """Holds the cart and exposes its command/query API"""

    def __init__(
        self,
        persistence: Optional[CartPersistence] = None,
        coupon_catalog: Optional[CouponDatabase] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utcnow,
        session_id_factory: Callable[[], str] = _new_session_id,
        session_id: Optional[str] = None,
    ):
        self.settings = settings or get_settings()
        self.persistence = persistence
        self.coupon_catalog = coupon_db if coupon_catalog is None else coupon_catalog
        self._clock = clock
        self._session_id_factory = session_id_factory
        self._state = CartState.empty(session_id or session_id_factory(), self._now())
        self._listeners: list[CartListener] = []
        self._last_error: Optional[CouponRejected] = None
        self.loaded = False

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def load(self) -> CartState:
        """Restore persisted state; call once before the first command"""
        if self.persistence is not None:
            restored = self.persistence.load(now=self._now())
            if restored is not None:
                self._dispatch(RestoreCart(state=restored), persist=False)
                logger.info(
                    f"Restored cart session {restored.session_id} "
                    f"with {len(self._state.items)} item(s)"
                )
        self.loaded = True
        return self._state

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener for new states; returns an unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------
    def add_to_cart(self, payload: Union[AddToCartPayload, dict]) -> CartState:
        if isinstance(payload, dict):
            payload = AddToCartPayload.model_validate(payload)
        return self._dispatch(
            AddItem(
                product=payload.product,
                quantity=payload.quantity,
                selected_variant=payload.selected_variant,
                notes=payload.notes,
            )
        )

    def remove_from_cart(self, item_id: str) -> CartState:
        return self._dispatch(RemoveItem(item_id=item_id))

    def update_quantity(self, item_id: str, quantity: int) -> CartState:
        return self._dispatch(UpdateQuantity(item_id=item_id, quantity=quantity))

    def clear_cart(self, reset_session: bool = False) -> CartState:
        """Empty the cart, optionally starting a new session"""
        new_session_id = self._session_id_factory() if reset_session else None
        return self._dispatch(ClearCart(new_session_id=new_session_id))

    def merge_cart(self, guest_cart: CartState) -> CartState:
        """Fold a guest cart (e.g. after sign-in) into this one"""
        return self._dispatch(MergeCart(guest_cart=guest_cart))

    async def apply_coupon(self, coupon: Union[CouponBase, dict]) -> None:
        """
        Apply a coupon to the cart.

        Rejections do not raise; the reason is available from
        ``get_last_error()`` until cleared or until a coupon is accepted.
        """
        try:
            coupon = parse_coupon(coupon)
        except ValidationError as e:
            logger.info(f"Malformed coupon payload: {e.error_count()} error(s)")
            self._reject(CouponErrorKind.MALFORMED_COUPON)
            return

        if any(c.match_key == coupon.match_key for c in self._state.applied_coupons):
            self._reject(CouponErrorKind.COUPON_ALREADY_APPLIED, coupon=coupon)
            return

        now = self._now()
        summary = self._state.summary
        result = validate_coupon(
            coupon,
            summary.subtotal,
            now=now,
            settings=self.settings,
            shipping=summary.shipping,
        )
        if not result.accepted:
            self._reject(result.reason, coupon=coupon)
            return

        self._last_error = None
        self._dispatch(ApplyCoupon(coupon=coupon), now=now)
        logger.info(f"Coupon {coupon.code} applied: -{result.discount_amount:,.2f}")

    async def apply_coupon_code(self, code: str) -> None:
        """Look up a coupon in the catalog and apply it"""
        coupon = self.coupon_catalog.get_coupon(code)
        if coupon is None:
            self._reject(CouponErrorKind.UNKNOWN_COUPON_CODE, code=code)
            return
        await self.apply_coupon(coupon)

    def remove_coupon(self, code: str) -> CartState:
        return self._dispatch(RemoveCoupon(code=code))

    def clear_error(self) -> None:
        self._last_error = None

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def cart(self) -> CartState:
        return self._state

    def get_cart(self) -> CartState:
        return self._state

    @property
    def last_error(self) -> Optional[CouponRejected]:
        return self._last_error

    def get_last_error(self) -> Optional[str]:
        """User-visible message of the last coupon rejection"""
        return self._last_error.message if self._last_error else None

    def get_item_quantity(self, product_id: str) -> int:
        """Quantity of a product in the cart, across all its variants"""
        return sum(item.quantity for item in self._state.items if item.product_id == product_id)

    def is_in_cart(self, product_id: str) -> bool:
        return any(item.product_id == product_id for item in self._state.items)

    def get_total_items(self) -> int:
        return self._state.summary.item_count

    def get_total_price(self) -> float:
        return self._state.summary.total

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _now(self) -> datetime:
        return as_utc(self._clock())

    def _dispatch(
        self,
        command: Command,
        now: Optional[datetime] = None,
        persist: bool = True,
    ) -> CartState:
        new_state = reduce(self._state, command, now=now or self._now(), settings=self.settings)
        if new_state is self._state:
            return new_state

        self._state = new_state
        self._notify(new_state)
        if persist:
            self._schedule_save(new_state)
        return new_state

    def _notify(self, state: CartState) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                logger.error(f"Cart listener failed: {e}", exc_info=True)

    def _schedule_save(self, state: CartState) -> None:
        if self.persistence is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop: persist inline, state is already visible
            self.persistence.save(state)
            return

        loop.call_soon(self.persistence.save, state)

    def _reject(
        self,
        kind: CouponErrorKind,
        code: Optional[str] = None,
        coupon: Optional[CouponBase] = None,
    ) -> None:
        message = coupon_error_message(kind, code=code, coupon=coupon)
        self._last_error = CouponRejected(kind, message, code=code or (coupon.code if coupon else None))
        logger.info(f"Coupon rejected ({kind.value}): {message}")


class CartRegistry:
    """
    One ``CartStore`` per cart id.

    Stores are created and loaded on first use. Each cart persists under
    its own storage key, so carts never see each other's items, coupons
    or coupon errors.
    """

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        coupon_catalog: Optional[CouponDatabase] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or get_settings()
        self.storage = create_storage(self.settings) if storage is None else storage
        self.coupon_catalog = coupon_db if coupon_catalog is None else coupon_catalog
        self._clock = clock
        self.stores: dict[str, CartStore] = {}

    def new_cart_id(self) -> str:
        return _new_session_id()

    def storage_key(self, cart_id: str) -> str:
        return f"{self.settings.storage_key}:{cart_id}"

    def get_store(self, cart_id: str) -> CartStore:
        """Get the store for a cart, restoring it from storage on first use"""
        store = self.stores.get(cart_id)
        if store is None:
            persistence = CartPersistence(
                self.storage, key=self.storage_key(cart_id), settings=self.settings
            )
            store = CartStore(
                persistence=persistence,
                coupon_catalog=self.coupon_catalog,
                settings=self.settings,
                clock=self._clock,
                session_id=cart_id,
            )
            store.load()
            self.stores[cart_id] = store
            logger.info(f"Opened cart {cart_id}")
        return store
