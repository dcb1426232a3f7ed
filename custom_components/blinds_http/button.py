"""Stop button for blinds_http covers."""

from __future__ import annotations

import logging

from homeassistant.components.button import ButtonEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .config import BlindsConfig
from .const import DOMAIN
from .cover import device_info_for
from .motion import MotionSimulator

_LOGGER = logging.getLogger(__name__)


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the stop button if it is enabled and a stop URL exists."""
    data = hass.data[DOMAIN][entry.entry_id]
    if not (data.config.show_stop_button and data.config.has_stop_endpoint):
        return
    async_add_entities(
        [BlindsHttpStopButton(entry.entry_id, data.config, data.simulator)]
    )


class BlindsHttpStopButton(ButtonEntity):
    """Momentary control that stops the cover where it is."""

    def __init__(
        self, entry_id: str, config: BlindsConfig, simulator: MotionSimulator
    ) -> None:
        self._entry_id = entry_id
        self._config = config
        self._simulator = simulator

    @property
    def name(self):
        return f"{self._config.name} Stop"

    @property
    def unique_id(self):
        return f"{DOMAIN}_{self._entry_id}_stop"

    @property
    def device_info(self) -> DeviceInfo:
        return device_info_for(self._entry_id, self._config)

    async def async_press(self) -> None:
        """Request a manual stop."""
        _LOGGER.debug("(%s) async_press", self.entity_id)
        await self._simulator.async_request_stop(manual=True)
