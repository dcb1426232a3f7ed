"""Cover entity for blinds driven by HTTP commands."""

from __future__ import annotations

import logging

from homeassistant.components.cover import (
    ATTR_POSITION,
    CoverDeviceClass,
    CoverEntity,
    CoverEntityFeature,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.device_registry import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .config import BlindsConfig
from .const import (
    CONF_MOTION_TIME,
    CONF_RESPONSE_LAG,
    DOMAIN,
    POSITION_CLOSED,
    POSITION_OPEN,
)
from .motion import MotionSimulator, PositionState

_LOGGER = logging.getLogger(__name__)

ATTR_TARGET_POSITION = "target_position"


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    """Set up the cover from a config entry."""
    data = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([BlindsHttpCover(entry.entry_id, data.config, data.simulator)])


def device_info_for(entry_id: str, config: BlindsConfig) -> DeviceInfo:
    """Return the device shared by the cover and its stop button."""
    return DeviceInfo(
        identifiers={(DOMAIN, entry_id)},
        name=config.name,
        manufacturer="blinds_http",
        model="HTTP blinds",
    )


class BlindsHttpCover(CoverEntity):
    """Cover whose position is estimated from movement time."""

    def __init__(
        self, entry_id: str, config: BlindsConfig, simulator: MotionSimulator
    ) -> None:
        """Initialize the cover."""
        self._entry_id = entry_id
        self._config = config
        self._simulator = simulator

    def _log(self, msg, *args):
        """Log a debug message prefixed with the entity ID."""
        _LOGGER.debug("(%s) " + msg, self.entity_id, *args)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    async def async_added_to_hass(self):
        """Write state whenever the estimated position changes."""
        self._simulator.set_update_callback(self.async_write_ha_state)
        self._log(
            "async_added_to_hass :: position %d%%", self._simulator.last_position
        )

    async def async_will_remove_from_hass(self):
        """Stop tracking when the entity is removed."""
        self._simulator.set_update_callback(None)
        self._simulator.shutdown()

    # -----------------------------------------------------------------------
    # Properties
    # -----------------------------------------------------------------------

    @property
    def name(self):
        """Return the name of the cover."""
        return self._config.name

    @property
    def unique_id(self):
        """Return the unique id."""
        return f"{DOMAIN}_{self._entry_id}"

    @property
    def device_info(self) -> DeviceInfo:
        return device_info_for(self._entry_id, self._config)

    @property
    def device_class(self):
        """Return the device class of the cover."""
        return CoverDeviceClass.BLIND

    @property
    def should_poll(self) -> bool:
        """Poll only when the controller can report its position."""
        return bool(self._config.position_url)

    @property
    def assumed_state(self):
        """Return True unless the position is read back from the controller."""
        return not self._config.position_url

    @property
    def supported_features(self) -> CoverEntityFeature:
        """Flag supported features."""
        supported_features = (
            CoverEntityFeature.OPEN
            | CoverEntityFeature.CLOSE
            | CoverEntityFeature.SET_POSITION
        )
        if self._config.has_stop_endpoint:
            supported_features |= CoverEntityFeature.STOP
        return supported_features

    @property
    def current_cover_position(self) -> int | None:
        """Return the current position of the cover."""
        return self._simulator.last_position

    @property
    def is_opening(self):
        """Return if the cover is opening or not."""
        return self._simulator.position_state == PositionState.MOVING_UP

    @property
    def is_closing(self):
        """Return if the cover is closing or not."""
        return self._simulator.position_state == PositionState.MOVING_DOWN

    @property
    def is_closed(self):
        """Return if the cover is closed."""
        return self._simulator.last_position == POSITION_CLOSED

    @property
    def extra_state_attributes(self):
        """Return the device state attributes."""
        return {
            ATTR_TARGET_POSITION: self._simulator.target_position,
            CONF_MOTION_TIME: self._config.motion_time,
            CONF_RESPONSE_LAG: self._config.response_lag,
        }

    # -----------------------------------------------------------------------
    # Public HA service handlers
    # -----------------------------------------------------------------------

    async def async_update(self) -> None:
        """Read the position back from the controller."""
        await self._simulator.async_poll_position()

    async def async_open_cover(self, **kwargs):
        """Open the cover fully."""
        self._log("async_open_cover")
        await self._simulator.async_set_target(POSITION_OPEN)

    async def async_close_cover(self, **kwargs):
        """Close the cover fully."""
        self._log("async_close_cover")
        await self._simulator.async_set_target(POSITION_CLOSED)

    async def async_set_cover_position(self, **kwargs):
        """Move the cover to a specific position."""
        if ATTR_POSITION in kwargs:
            position = kwargs[ATTR_POSITION]
            self._log("async_set_cover_position: %d", position)
            await self._simulator.async_set_target(position)

    async def async_stop_cover(self, **kwargs):
        """Stop the cover where it is."""
        self._log("async_stop_cover")
        await self._simulator.async_request_stop(manual=True)
