"""Persistent last known position of each cover."""

from __future__ import annotations

import logging

from homeassistant.core import HomeAssistant
from homeassistant.helpers.storage import Store

from .const import STORAGE_KEY, STORAGE_SAVE_DELAY, STORAGE_VERSION

_LOGGER = logging.getLogger(__name__)


class PositionStore:
    """Key-value store of positions keyed by cover name.

    Loaded once at setup. Reads and writes afterwards are synchronous and
    served from memory; writes are flushed to disk with a short delay.
    """

    def __init__(self, hass: HomeAssistant) -> None:
        self._store: Store[dict[str, int]] = Store(hass, STORAGE_VERSION, STORAGE_KEY)
        self._positions: dict[str, int] = {}

    async def async_load(self) -> None:
        """Load stored positions from disk."""
        data = await self._store.async_load()
        if isinstance(data, dict):
            self._positions = {
                name: int(pos)
                for name, pos in data.items()
                if isinstance(pos, (int, float))
            }
        _LOGGER.debug("async_load :: %d stored positions", len(self._positions))

    def load(self, name: str) -> int | None:
        """Return the stored position for name, or None if absent."""
        return self._positions.get(name)

    def save(self, name: str, position: int) -> None:
        """Store position for name."""
        self._positions[name] = int(position)
        self._store.async_delay_save(self._data_to_save, STORAGE_SAVE_DELAY)

    def remove(self, name: str) -> None:
        """Forget the stored position for name."""
        if self._positions.pop(name, None) is not None:
            self._store.async_delay_save(self._data_to_save, STORAGE_SAVE_DELAY)

    def rename(self, old_name: str, new_name: str) -> None:
        """Move the stored position of old_name to new_name."""
        if old_name == new_name or old_name not in self._positions:
            return
        self._positions[new_name] = self._positions.pop(old_name)
        self._store.async_delay_save(self._data_to_save, STORAGE_SAVE_DELAY)

    def _data_to_save(self) -> dict[str, int]:
        return dict(self._positions)
