"""Integration test fixtures for blinds_http.

Uses pytest-homeassistant-custom-component for a real HA instance.
HTTP controllers are replaced by aioclient_mock.
"""

from __future__ import annotations

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry
from pytest_homeassistant_custom_component.plugins import hass  # noqa: F401

# Re-export the plugin's real ``hass`` fixture so it takes precedence over the
# MagicMock ``hass`` fixture defined in tests/conftest.py.

DOMAIN = "blinds_http"

UP_URL = "http://blinds.local/up"
DOWN_URL = "http://blinds.local/down"
STOP_URL = "http://blinds.local/stop"
POSITION_URL = "http://blinds.local/position"


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations):
    """Enable custom integrations for all tests in this directory."""
    return


@pytest.fixture
def base_options():
    """Return options for a cover with up, down and stop URLs."""
    return {
        "up_url": UP_URL,
        "down_url": DOWN_URL,
        "stop_url": STOP_URL,
        "motion_time": 10000,
        "response_lag": 0,
    }


@pytest.fixture
def controller(aioclient_mock):
    """Answer every command URL with 200 OK."""
    for url in (UP_URL, DOWN_URL, STOP_URL):
        aioclient_mock.post(url, text="OK")
    return aioclient_mock


@pytest.fixture
async def setup_cover(hass: HomeAssistant, controller, base_options):
    """Create and load a blinds_http config entry.

    Yields the entry, then unloads it on teardown to cancel all timers.
    """
    entry = MockConfigEntry(
        domain=DOMAIN,
        version=1,
        title="Test Blinds",
        data={},
        options=base_options,
    )
    entry.add_to_hass(hass)
    await hass.config_entries.async_setup(entry.entry_id)
    await hass.async_block_till_done()

    state = hass.states.get("cover.test_blinds")
    assert state is not None, "Cover entity was not created"

    yield entry

    await hass.config_entries.async_unload(entry.entry_id)
    await hass.async_block_till_done()
