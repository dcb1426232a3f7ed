"""Shared fixtures for blinds_http tests."""

import asyncio
import inspect
import logging

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from custom_components.blinds_http.config import BlindsConfig
from custom_components.blinds_http.dispatcher import CommandDispatcher
from custom_components.blinds_http.motion import MotionSimulator

_LOGGER = logging.getLogger(__name__)

UP_URL = "http://blinds.local/up"
DOWN_URL = "http://blinds.local/down"
STOP_URL = "http://blinds.local/stop"
POSITION_URL = "http://blinds.local/position"


class FakeResponse:
    """Minimal stand-in for an aiohttp response context manager."""

    def __init__(self, status=200, body="OK"):
        self.status = status
        self._body = body

    async def text(self, encoding="utf-8", errors="strict"):
        if isinstance(self._body, bytes):
            return self._body.decode(encoding, errors)
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


class FakeSession:
    """Replays queued responses. The last queued item repeats forever.

    Exceptions in the queue are raised from request().
    """

    def __init__(self, *responses):
        self._responses = list(responses) or [FakeResponse()]
        self.requests = []

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        if len(self._responses) > 1:
            item = self._responses.pop(0)
        else:
            item = self._responses[0]
        if isinstance(item, BaseException):
            raise item
        return item

    @property
    def urls(self):
        return [url for _, url, _ in self.requests]


class FakeTimer:
    """A scheduled HA timer that only fires when a test says so."""

    def __init__(self, delay, action, repeat=False):
        self.delay = delay
        self.action = action
        self.repeat = repeat
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True

    @property
    def active(self):
        return not self.cancelled and (self.repeat or not self.fired)

    async def fire(self):
        self.fired = True
        result = self.action(None)
        if inspect.isawaitable(result):
            await result


class FakeTimers:
    """Replacement for async_call_later / async_track_time_interval."""

    def __init__(self):
        self.later = []
        self.intervals = []

    def call_later(self, hass, delay, action):
        timer = FakeTimer(delay, action)
        self.later.append(timer)
        return timer.cancel

    def track_time_interval(self, hass, action, interval):
        timer = FakeTimer(interval.total_seconds(), action, repeat=True)
        self.intervals.append(timer)
        return timer.cancel

    def active_later(self):
        return [t for t in self.later if t.active]

    def active_intervals(self):
        return [t for t in self.intervals if t.active]

    async def fire_later(self):
        """Fire pending one-shot timers, shortest delay first."""
        for timer in sorted(self.active_later(), key=lambda t: t.delay):
            if timer.active:
                await timer.fire()

    async def tick(self, count=1):
        """Run each active interval timer count times."""
        for _ in range(count):
            for timer in self.active_intervals():
                await timer.fire()


async def drain(hass):
    """Wait for every task created through hass.async_create_task."""
    while True:
        pending = [task for task in hass.tasks if not task.done()]
        if not pending:
            return
        await asyncio.gather(*pending)


@pytest.fixture
def hass():
    """Return a minimal mock HA instance that runs created tasks."""
    hass = MagicMock()
    hass.tasks = []

    def _create_task(coro, *args, **kwargs):
        task = asyncio.ensure_future(coro)
        hass.tasks.append(task)
        return task

    hass.async_create_task = _create_task
    return hass


@pytest.fixture
def timers():
    """Patch the HA timer helpers used by the motion simulator."""
    fake = FakeTimers()
    with (
        patch(
            "custom_components.blinds_http.motion.async_call_later",
            side_effect=fake.call_later,
        ),
        patch(
            "custom_components.blinds_http.motion.async_track_time_interval",
            side_effect=fake.track_time_interval,
        ),
    ):
        yield fake


@pytest.fixture(autouse=True)
def no_retry_sleep():
    """Skip the delay between HTTP attempts."""
    with patch(
        "custom_components.blinds_http.dispatcher.sleep", new_callable=AsyncMock
    ) as mock_sleep:
        yield mock_sleep


@pytest.fixture
def make_config():
    """Return a factory for BlindsConfig with test URLs."""

    def _make(**kwargs):
        values = {
            "name": "Test Blinds",
            "up_url": UP_URL,
            "down_url": DOWN_URL,
            "stop_url": STOP_URL,
        }
        values.update(kwargs)
        return BlindsConfig(**values)

    return _make


@pytest.fixture
def make_simulator(hass, timers, make_config):
    """Return a factory that creates a MotionSimulator on a FakeSession."""

    def _make(session=None, last_position=None, **config_kwargs):
        config = make_config(**config_kwargs)
        session = session or FakeSession(FakeResponse(200))
        dispatcher = CommandDispatcher.from_config(session, config)
        store = MagicMock()
        store.load.return_value = last_position
        return MotionSimulator(hass, config, dispatcher, store)

    return _make


async def run_move(hass, timers, max_ticks=200):
    """Complete a dispatched move: send, wait out the lag, step to the end."""
    await drain(hass)
    await timers.fire_later()
    await drain(hass)
    ticks = 0
    while timers.active_intervals() and ticks < max_ticks:
        await timers.tick()
        ticks += 1
    return ticks
