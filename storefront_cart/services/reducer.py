"""
Cart reducer

Pure state transitions: ``reduce(state, command, now)`` returns a new
``CartState`` or, for no-ops and rejected coupons, the very same object.
The summary is recomputed in full on every structural change.
"""

from datetime import datetime
from typing import Optional

from ..core.config import Settings, get_settings
from ..models.base import as_utc
from ..models.cart import CartState, LineItem, make_item_id
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
from ..models.coupon import normalize_code
from .coupons import apply_coupon
from .summary import compute_summary


def reduce(
    state: CartState,
    command: Command,
    now: datetime,
    settings: Optional[Settings] = None,
) -> CartState:
    """Apply one command to the cart"""
    settings = settings or get_settings()
    now = as_utc(now)

    if isinstance(command, AddItem):
        return _add_item(state, command, now, settings)
    if isinstance(command, RemoveItem):
        return _remove_item(state, command.item_id, now, settings)
    if isinstance(command, UpdateQuantity):
        return _update_quantity(state, command, now, settings)
    if isinstance(command, ClearCart):
        return CartState.empty(command.new_session_id or state.session_id, now)
    if isinstance(command, ApplyCoupon):
        return _apply_coupon(state, command, now, settings)
    if isinstance(command, RemoveCoupon):
        return _remove_coupon(state, command.code, now, settings)
    if isinstance(command, RestoreCart):
        return normalize_state(command.state, now, settings)
    if isinstance(command, MergeCart):
        return _merge_cart(state, command.guest_cart, now, settings)

    raise TypeError(f"Unknown cart command: {type(command).__name__}")


def normalize_state(
    state: CartState,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> CartState:
    """
    Bring a restored cart back within the cart invariants.

    Quantities are clamped, repeated item ids are collapsed into one line,
    the list is cut to ``max_items`` and the summary is re-derived rather
    than trusted.
    """
    settings = settings or get_settings()
    now = as_utc(now) if now else None

    items: list[LineItem] = []
    for item in state.items:
        existing = next((i for i in items if i.item_id == item.item_id), None)
        if existing:
            merged = existing.with_quantity(
                min(existing.quantity + item.quantity, settings.max_qty_per_item)
            )
            items = [merged if i.item_id == item.item_id else i for i in items]
        else:
            items.append(item.with_quantity(min(item.quantity, settings.max_qty_per_item)))

    items = items[: settings.max_items]

    return state.model_copy(
        update={
            "items": items,
            "summary": compute_summary(items, state.applied_coupons, now, settings),
        }
    )


def _with_items(
    state: CartState,
    items: list[LineItem],
    now: datetime,
    settings: Settings,
    applied_coupons: Optional[list] = None,
) -> CartState:
    coupons = state.applied_coupons if applied_coupons is None else applied_coupons
    return state.model_copy(
        update={
            "items": items,
            "applied_coupons": coupons,
            "summary": compute_summary(items, coupons, now, settings),
            "last_updated": now,
        }
    )


def _add_item(state: CartState, command: AddItem, now: datetime, settings: Settings) -> CartState:
    if command.quantity <= 0:
        return state

    variant = command.selected_variant
    item_id = make_item_id(command.product.id, variant.id if variant else None)
    existing = state.find_item(item_id)

    if existing:
        # Price stays frozen at the value captured when the line was created
        new_quantity = min(existing.quantity + command.quantity, settings.max_qty_per_item)
        items = [
            item.with_quantity(new_quantity) if item.item_id == item_id else item
            for item in state.items
        ]
    else:
        unit_price = command.product.price + (variant.additional_price if variant else 0)
        quantity = min(command.quantity, settings.max_qty_per_item)
        new_item = LineItem(
            item_id=item_id,
            product_id=command.product.id,
            product=command.product,
            quantity=quantity,
            selected_variant=variant,
            unit_price=unit_price,
            total_price=unit_price * quantity,
            added_at=now,
            notes=command.notes,
        )
        items = [*state.items, new_item]

    # Past the cap new lines are dropped, nothing is evicted
    items = items[: settings.max_items]
    return _with_items(state, items, now, settings)


def _remove_item(state: CartState, item_id: str, now: datetime, settings: Settings) -> CartState:
    if state.find_item(item_id) is None:
        return state

    items = [item for item in state.items if item.item_id != item_id]
    return _with_items(state, items, now, settings)


def _update_quantity(
    state: CartState, command: UpdateQuantity, now: datetime, settings: Settings
) -> CartState:
    if command.quantity <= 0:
        return _remove_item(state, command.item_id, now, settings)

    if state.find_item(command.item_id) is None:
        return state

    quantity = min(command.quantity, settings.max_qty_per_item)
    items = [
        item.with_quantity(quantity) if item.item_id == command.item_id else item
        for item in state.items
    ]
    return _with_items(state, items, now, settings)


def _apply_coupon(
    state: CartState, command: ApplyCoupon, now: datetime, settings: Settings
) -> CartState:
    result = apply_coupon(
        command.coupon,
        state.summary.subtotal,
        now=now,
        settings=settings,
        shipping=state.summary.shipping,
    )
    if not result.accepted:
        return state

    coupons = [*state.applied_coupons, command.coupon]
    return _with_items(state, state.items, now, settings, applied_coupons=coupons)


def _remove_coupon(state: CartState, code: str, now: datetime, settings: Settings) -> CartState:
    key = normalize_code(code)
    coupons = [c for c in state.applied_coupons if c.match_key != key]
    if len(coupons) == len(state.applied_coupons):
        return state

    return _with_items(state, state.items, now, settings, applied_coupons=coupons)


def _merge_cart(
    state: CartState, guest_cart: CartState, now: datetime, settings: Settings
) -> CartState:
    if not guest_cart.items:
        return state

    items = list(state.items)
    for guest_item in guest_cart.items:
        existing = next((i for i in items if i.item_id == guest_item.item_id), None)
        if existing:
            quantity = min(existing.quantity + guest_item.quantity, settings.max_qty_per_item)
            items = [
                i.with_quantity(quantity) if i.item_id == guest_item.item_id else i
                for i in items
            ]
        else:
            items.append(
                guest_item.with_quantity(min(guest_item.quantity, settings.max_qty_per_item))
            )

    items = items[: settings.max_items]
    return _with_items(state, items, now, settings)
