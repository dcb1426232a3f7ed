"""Tests for the BlindsHttpCover entity."""

import pytest
from unittest.mock import MagicMock

from homeassistant.components.cover import CoverDeviceClass, CoverEntityFeature

from custom_components.blinds_http.const import DOMAIN
from custom_components.blinds_http.cover import BlindsHttpCover, device_info_for

from .conftest import (
    DOWN_URL,
    POSITION_URL,
    STOP_URL,
    UP_URL,
    FakeResponse,
    FakeSession,
    drain,
    run_move,
)


@pytest.fixture
def make_cover(make_simulator):
    """Return a factory creating a cover backed by a real simulator."""

    def _make(session=None, last_position=None, **config_kwargs):
        simulator = make_simulator(
            session=session, last_position=last_position, **config_kwargs
        )
        cover = BlindsHttpCover("entry_1", simulator._config, simulator)
        cover.async_write_ha_state = MagicMock()
        return cover

    return _make


class TestProperties:
    """Static entity properties."""

    def test_identity(self, make_cover):
        cover = make_cover()
        assert cover.name == "Test Blinds"
        assert cover.unique_id == f"{DOMAIN}_entry_1"
        assert cover.device_class == CoverDeviceClass.BLIND
        assert cover.device_info == device_info_for("entry_1", cover._config)

    def test_features_with_stop(self, make_cover):
        features = make_cover().supported_features
        assert features & CoverEntityFeature.OPEN
        assert features & CoverEntityFeature.CLOSE
        assert features & CoverEntityFeature.SET_POSITION
        assert features & CoverEntityFeature.STOP

    def test_features_without_stop(self, make_cover):
        features = make_cover(stop_url=None).supported_features
        assert not features & CoverEntityFeature.STOP

    def test_same_url_for_stop_enables_stop(self, make_cover):
        cover = make_cover(stop_url=None, use_same_url_for_stop=True)
        assert cover.supported_features & CoverEntityFeature.STOP

    def test_assumed_state_without_position_url(self, make_cover):
        cover = make_cover()
        assert cover.assumed_state is True
        assert cover.should_poll is False

    def test_polls_with_position_url(self, make_cover):
        cover = make_cover(position_url=POSITION_URL)
        assert cover.assumed_state is False
        assert cover.should_poll is True

    def test_restored_position(self, make_cover):
        cover = make_cover(last_position=40)
        assert cover.current_cover_position == 40
        assert cover.is_closed is False
        assert cover.extra_state_attributes == {
            "target_position": 40,
            "motion_time": 10000,
            "response_lag": 0,
        }

    def test_closed_by_default(self, make_cover):
        cover = make_cover()
        assert cover.current_cover_position == 0
        assert cover.is_closed is True
        assert cover.is_opening is False
        assert cover.is_closing is False


class TestLifecycle:
    """Entity add/remove wiring."""

    @pytest.mark.asyncio
    async def test_added_registers_state_writer(self, make_cover):
        cover = make_cover()
        await cover.async_added_to_hass()
        cover._simulator._notify()
        cover.async_write_ha_state.assert_called_once()

    @pytest.mark.asyncio
    async def test_removed_shuts_down(self, make_cover):
        cover = make_cover()
        await cover.async_added_to_hass()
        generation = cover._simulator.generation

        await cover.async_will_remove_from_hass()

        assert cover._simulator.generation == generation + 1
        cover._simulator._notify()
        cover.async_write_ha_state.assert_not_called()


class TestCommands:
    """Service handlers drive the simulator."""

    @pytest.mark.asyncio
    async def test_open_cover(self, hass, timers, make_cover):
        session = FakeSession(FakeResponse(200))
        cover = make_cover(session=session)
        await cover.async_added_to_hass()

        await cover.async_open_cover()
        await drain(hass)

        assert session.urls == [UP_URL]
        assert cover.is_opening is True
        await run_move(hass, timers)
        assert cover.current_cover_position == 100
        assert cover.is_opening is False

    @pytest.mark.asyncio
    async def test_close_cover(self, hass, timers, make_cover):
        session = FakeSession(FakeResponse(200))
        cover = make_cover(session=session, last_position=100)

        await cover.async_close_cover()
        await drain(hass)

        assert session.urls == [DOWN_URL]
        assert cover.is_closing is True
        await run_move(hass, timers)
        assert cover.current_cover_position == 0

    @pytest.mark.asyncio
    async def test_set_cover_position(self, hass, timers, make_cover):
        session = FakeSession(FakeResponse(200))
        cover = make_cover(session=session)

        await cover.async_set_cover_position(position=30)
        await run_move(hass, timers)

        assert cover.current_cover_position == 30
        assert session.urls == [UP_URL, STOP_URL]

    @pytest.mark.asyncio
    async def test_set_cover_position_without_position(self, hass, make_cover):
        session = FakeSession(FakeResponse(200))
        cover = make_cover(session=session)

        await cover.async_set_cover_position()
        await drain(hass)

        assert session.requests == []

    @pytest.mark.asyncio
    async def test_stop_cover(self, hass, make_cover):
        session = FakeSession(FakeResponse(200))
        cover = make_cover(session=session)

        await cover.async_stop_cover()

        assert session.urls == [STOP_URL]
        assert cover._simulator.manual_stop_requested is True

    @pytest.mark.asyncio
    async def test_update_polls_position(self, make_cover):
        session = FakeSession(FakeResponse(200, "55"))
        cover = make_cover(session=session, position_url=POSITION_URL)

        await cover.async_update()

        assert cover.current_cover_position == 55
        assert session.requests[0][0] == "GET"
