"""
Cart persistence

Saves the cart to a single key-value slot and restores it on startup.
A blob that cannot be decoded or fails structural validation is deleted
and treated as an empty slot; failed saves are logged and never reach
the command that triggered them.
"""

import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import ValidationError

from ..core.config import Settings, get_settings
from ..core.errors import CorruptPersistedState
from ..models.base import as_utc
from ..models.cart import CartState
from ..services.reducer import normalize_state
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)


class CartPersistence:
    """Loads and saves cart state through a key-value storage slot"""

    def __init__(
        self,
        storage: KeyValueStorage,
        key: Optional[str] = None,
        settings: Optional[Settings] = None,
    ):
        self.storage = storage
        self.settings = settings or get_settings()
        self.key = key or self.settings.storage_key

    def load(self, now: Optional[datetime] = None) -> Optional[CartState]:
        """Restore the persisted cart, or None if there is nothing usable"""
        now = as_utc(now) if now else datetime.now(timezone.utc)

        raw = self.storage.get(self.key)
        if raw is None:
            return None

        try:
            state = self.decode(raw, now)
        except CorruptPersistedState as e:
            logger.warning(f"Discarding persisted cart under '{self.key}': {e}")
            self.storage.delete(self.key)
            return None

        if self._is_expired(state, now):
            logger.info(f"Discarding expired cart session {state.session_id}")
            self.storage.delete(self.key)
            return None

        return state

    def decode(self, raw: str, now: datetime) -> CartState:
        """
        Parse a stored blob into a normalized cart.

        The blob is merged over a fresh empty cart so fields missing from
        older blobs get defaults. The stored summary is dropped and derived
        again from the restored items and coupons.
        """
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise CorruptPersistedState(f"invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CorruptPersistedState(f"expected an object, got {type(data).__name__}")

        if not isinstance(data.get("items"), list):
            raise CorruptPersistedState("missing 'items' list")

        merged = CartState.empty(str(uuid.uuid4()), now).to_record()
        merged.update(data)
        merged.pop("summary", None)

        try:
            state = CartState.model_validate(merged)
        except ValidationError as e:
            raise CorruptPersistedState(f"{e.error_count()} invalid field(s)") from e

        return normalize_state(state, now, self.settings)

    def save(self, state: CartState) -> None:
        """Persist the cart; failures are logged, never raised"""
        try:
            self.storage.set(self.key, state.to_json())
        except Exception as e:
            logger.error(f"Error saving cart {state.session_id}: {e}", exc_info=True)

    def _is_expired(self, state: CartState, now: datetime) -> bool:
        if self.settings.session_timeout_minutes is None:
            return False
        timeout = timedelta(minutes=self.settings.session_timeout_minutes)
        return now - state.last_updated > timeout
