"""Position estimation for covers without position feedback.

The controller only understands "up", "down" and "stop". The position is
estimated by stepping one percentage point every motion_time / 100 while
the cover is expected to move. Position convention: 0 = fully closed,
100 = fully open.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import timedelta
from enum import Enum
from functools import partial

from homeassistant.core import CALLBACK_TYPE, HomeAssistant, callback
from homeassistant.helpers.event import async_call_later, async_track_time_interval

from .config import BlindsConfig
from .const import POSITION_CLOSED, POSITION_OPEN
from .dispatcher import (
    GET_REQUEST,
    CommandDispatcher,
    InvalidPositionError,
    MissingEndpointError,
)
from .store import PositionStore

_LOGGER = logging.getLogger(__name__)


class PositionState(Enum):
    """Enum class for the movement state."""

    MOVING_DOWN = 0
    MOVING_UP = 1
    STOPPED = 2


def parse_position(body: str | None) -> int:
    """Parse a position endpoint response, raising InvalidPositionError."""
    if body is None or not str(body).strip():
        raise InvalidPositionError("(missing or error)")
    try:
        position = int(str(body).strip())
    except ValueError as err:
        raise InvalidPositionError(str(body).strip()) from err
    if not POSITION_CLOSED <= position <= POSITION_OPEN:
        raise InvalidPositionError(str(position))
    return position


def _is_intermediate(position: int) -> bool:
    return position % 100 > 0


class MotionSimulator:
    """Track the estimated position of one cover and drive its movements."""

    def __init__(
        self,
        hass: HomeAssistant,
        config: BlindsConfig,
        dispatcher: CommandDispatcher,
        store: PositionStore,
        on_update: Callable[[], None] | None = None,
    ) -> None:
        self.hass = hass
        self._config = config
        self._name = config.name
        self._dispatcher = dispatcher
        self._store = store
        self._on_update = on_update
        self._stop_url = config.stop_url

        stored = store.load(self._name)
        if stored is None:
            stored = POSITION_CLOSED
        self.last_position: int = max(POSITION_CLOSED, min(POSITION_OPEN, stored))
        self.target_position: int = self.last_position
        self.manual_stop_requested = False
        self.position_state = PositionState.STOPPED
        self.generation = 0

        self._unsub_stop_timer: CALLBACK_TYPE | None = None
        self._unsub_lag_timer: CALLBACK_TYPE | None = None
        self._unsub_step_ticker: CALLBACK_TYPE | None = None

    def _log(self, msg, *args):
        """Log an info message prefixed with the cover name."""
        _LOGGER.info("(%s) " + msg, self._name, *args)

    def _verbose(self, msg, *args):
        """Log a message that is only interesting in verbose mode."""
        _LOGGER.log(
            logging.INFO if self._config.verbose else logging.DEBUG,
            "(%s) " + msg,
            self._name,
            *args,
        )

    @property
    def stop_url(self) -> str | None:
        """Return the URL the next stop command will be sent to."""
        return self._stop_url

    @property
    def is_moving(self) -> bool:
        return self.position_state != PositionState.STOPPED

    def set_update_callback(self, on_update: Callable[[], None] | None) -> None:
        """Register the callback run whenever position or state change."""
        self._on_update = on_update

    @callback
    def _notify(self) -> None:
        if self._on_update is not None:
            self._on_update()

    # -----------------------------------------------------------------------
    # Movement
    # -----------------------------------------------------------------------

    async def async_set_target(self, position: int) -> None:
        """Start moving towards position.

        Returns as soon as the move command is scheduled. Position tracking
        starts only once the controller has accepted the command.
        """
        position = int(position)
        if not POSITION_CLOSED <= position <= POSITION_OPEN:
            raise ValueError(f"Position must be between 0 and 100, got {position}")

        self.cancel_timers()
        self.manual_stop_requested = False
        self.target_position = position
        self.generation += 1

        if position == self.last_position:
            if _is_intermediate(position):
                self._log("Already there: %d%%", position)
                self._set_stopped()
                return
            self._log("Already there: %d%%, re-sending request", position)

        move_up = position > self.last_position or position == POSITION_OPEN
        endpoint = self._config.up_url if move_up else self._config.down_url
        if self._config.use_same_url_for_stop:
            self._stop_url = endpoint

        self._log("Requested Move %s (to %d%%)", "up" if move_up else "down", position)
        self.hass.async_create_task(
            self._async_move(self.generation, position, move_up, endpoint)
        )

    async def _async_move(
        self, generation: int, target: int, move_up: bool, endpoint: str | None
    ) -> None:
        """Send the move command, then schedule stop and position tracking."""
        started = time.monotonic()
        result = await self._dispatcher.async_send(endpoint, self._config.request)
        if not result.ok:
            _LOGGER.debug(
                "(%s) _async_move :: move to %d%% dropped: %s",
                self._name,
                target,
                result.error,
            )
            if generation == self.generation:
                self._set_stopped()
            return
        if generation != self.generation:
            _LOGGER.debug(
                "(%s) _async_move :: move to %d%% superseded by a newer request",
                self._name,
                target,
            )
            return

        self._store.save(self._name, target)
        step_duration = self._config.step_duration
        wait_delay = abs(target - self.last_position) * step_duration
        response_lag = self._config.response_lag / 1000

        self._log(
            "Move request sent (%d ms), waiting %.1fs (+ %.1fs response lag)...",
            (time.monotonic() - started) * 1000,
            wait_delay,
            response_lag,
        )

        if self._config.stop_at_boundaries or _is_intermediate(target):
            self._verbose("Stop command will be requested")
            self._unsub_stop_timer = async_call_later(
                self.hass, max(wait_delay, 0), self._async_boundary_stop
            )

        self.position_state = (
            PositionState.MOVING_UP if move_up else PositionState.MOVING_DOWN
        )
        self._notify()
        self._unsub_lag_timer = async_call_later(
            self.hass, max(response_lag, 0), partial(self._start_stepping, move_up)
        )

    @callback
    def _start_stepping(self, move_up: bool, _now) -> None:
        """Start the step ticker once the response lag has passed."""
        self._unsub_lag_timer = None
        self._verbose("Timeout finished")
        self._unsub_step_ticker = async_track_time_interval(
            self.hass,
            partial(self._step, move_up),
            timedelta(seconds=self._config.step_duration),
        )

    @callback
    def _step(self, move_up: bool, _now=None) -> None:
        """Advance the estimated position by one point, or finish."""
        if self.manual_stop_requested:
            self.target_position = self.last_position

        if move_up and self.last_position < self.target_position:
            self.last_position += 1
        elif not move_up and self.last_position > self.target_position:
            self.last_position -= 1
        else:
            self._log(
                "End Move %s (to %d%%)",
                "up" if move_up else "down",
                self.target_position,
            )
            self._cancel_step_ticker()
            # overshoot
            self.target_position = self.last_position
            self.position_state = PositionState.STOPPED
        self._notify()

    @callback
    def _set_stopped(self) -> None:
        if self.position_state != PositionState.STOPPED:
            self.position_state = PositionState.STOPPED
            self._notify()

    # -----------------------------------------------------------------------
    # Stop
    # -----------------------------------------------------------------------

    async def _async_boundary_stop(self, _now) -> None:
        """Stop the motor when the expected travel time has elapsed."""
        self._unsub_stop_timer = None
        await self.async_request_stop(manual=False)

    async def async_request_stop(self, manual: bool = True) -> None:
        """Send the stop command.

        A manual stop also freezes the estimated position at the next step.
        """
        if manual:
            self._log("Requesting manual stop")
            self._cancel_stop_timer()
        else:
            self._log("Requesting stop")

        generation = self.generation
        result = await self._dispatcher.async_send(self._stop_url, self._config.request)
        if isinstance(result.error, MissingEndpointError):
            _LOGGER.debug("(%s) async_request_stop :: no stop URL", self._name)
            return
        if not result.ok:
            _LOGGER.warning("(%s) Stop request failed", self._name)
            return

        if manual:
            if generation != self.generation:
                _LOGGER.debug(
                    "(%s) async_request_stop :: stop superseded by a newer move",
                    self._name,
                )
                return
            self.manual_stop_requested = True
        self._log("Stop request sent")

    # -----------------------------------------------------------------------
    # Position polling
    # -----------------------------------------------------------------------

    async def async_poll_position(self) -> int:
        """Refresh last_position from the position URL, if configured."""
        self._verbose("Requested CurrentPosition: %d%%", self.last_position)
        if not self._config.position_url:
            return self.last_position

        result = await self._dispatcher.async_send(
            self._config.position_url, GET_REQUEST
        )
        if not result.ok:
            return self.last_position
        try:
            position = parse_position(result.body)
        except InvalidPositionError as err:
            _LOGGER.error(
                "(%s) Position update failed; invalid response (should be 0-100): %s",
                self._name,
                err,
            )
            return self.last_position

        if position != self.last_position:
            self.last_position = position
            self._notify()
        return position

    # -----------------------------------------------------------------------
    # Timers
    # -----------------------------------------------------------------------

    def _cancel_stop_timer(self) -> None:
        if self._unsub_stop_timer is not None:
            self._unsub_stop_timer()
            self._unsub_stop_timer = None

    def _cancel_lag_timer(self) -> None:
        if self._unsub_lag_timer is not None:
            self._unsub_lag_timer()
            self._unsub_lag_timer = None

    def _cancel_step_ticker(self) -> None:
        if self._unsub_step_ticker is not None:
            self._unsub_step_ticker()
            self._unsub_step_ticker = None

    def cancel_timers(self) -> None:
        """Cancel the boundary stop, response lag and step timers."""
        self._cancel_lag_timer()
        self._cancel_stop_timer()
        self._cancel_step_ticker()

    def shutdown(self) -> None:
        """Cancel pending timers and invalidate in-flight moves."""
        self.generation += 1
        self.cancel_timers()
