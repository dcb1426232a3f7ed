"""Blinds HTTP integration."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import voluptuous as vol
from homeassistant.config_entries import ConfigEntry
from homeassistant.const import Platform
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryError
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .config import BlindsConfig
from .const import DOMAIN
from .dispatcher import CommandDispatcher
from .motion import MotionSimulator
from .store import PositionStore

_LOGGER = logging.getLogger(__name__)

PLATFORMS: list[Platform] = [Platform.COVER, Platform.BUTTON]
DATA_STORE = "store"


@dataclass
class BlindsData:
    """Objects shared by the platforms of one config entry."""

    config: BlindsConfig
    simulator: MotionSimulator


async def async_get_position_store(hass: HomeAssistant) -> PositionStore:
    """Return the shared position store, loading it on first use."""
    domain_data = hass.data.setdefault(DOMAIN, {})
    store = domain_data.get(DATA_STORE)
    if store is None:
        store = PositionStore(hass)
        await store.async_load()
        domain_data[DATA_STORE] = store
    return store


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Blinds HTTP from a config entry."""
    try:
        config = BlindsConfig.from_options(entry.title, entry.options)
    except vol.Invalid as err:
        raise ConfigEntryError(f"Invalid configuration for {entry.title}: {err}") from err

    store = await async_get_position_store(hass)
    dispatcher = CommandDispatcher.from_config(async_get_clientsession(hass), config)
    simulator = MotionSimulator(hass, config, dispatcher, store)
    _LOGGER.debug(
        "async_setup_entry :: %s starting at %d%%", config.name, simulator.last_position
    )
    hass.data[DOMAIN][entry.entry_id] = BlindsData(config, simulator)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(async_update_options))

    return True


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        data: BlindsData | None = hass.data[DOMAIN].pop(entry.entry_id, None)
        if data is not None:
            data.simulator.shutdown()
            # positions are keyed by title; follow a rename before the reload
            if data.config.name != entry.title:
                store = await async_get_position_store(hass)
                store.rename(data.config.name, entry.title)
    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Forget the stored position of a removed cover."""
    store = await async_get_position_store(hass)
    store.remove(entry.title)


async def async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle options update - reload the entry."""
    await hass.config_entries.async_reload(entry.entry_id)
