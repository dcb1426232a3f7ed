"""HTTP command dispatch with bounded retries.

Every movement and stop command, and the optional position poll, goes
through CommandDispatcher.async_send. The dispatcher never raises: the
outcome of a command is a CommandResult carrying the response body and,
on failure, an error value.
"""

from __future__ import annotations

import asyncio
import logging
from asyncio import sleep
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp
from homeassistant.exceptions import HomeAssistantError

from .const import (
    DEFAULT_HTTP_METHOD,
    DEFAULT_MAX_HTTP_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_SUCCESS_CODES,
    MIN_HTTP_ATTEMPTS,
    MIN_RETRY_DELAY,
    REQUEST_TIMEOUT,
    RETRY_HTTP_OR_NETWORK_ERROR,
    RETRY_NON_SUCCESS,
)

if TYPE_CHECKING:
    from .config import BlindsConfig

_LOGGER = logging.getLogger(__name__)


class BlindsHttpError(HomeAssistantError):
    """Base error for blinds_http."""


class MissingEndpointError(BlindsHttpError):
    """No URL is configured for the requested command."""


class RequestFailedError(BlindsHttpError):
    """All attempts of a request failed."""

    def __init__(self, message: str, status: int | None, attempts: int) -> None:
        super().__init__(message)
        self.status = status
        self.attempts = attempts


class InvalidPositionError(BlindsHttpError):
    """The position endpoint returned something that is not 0-100."""


@dataclass(frozen=True)
class RequestSpec:
    """Method, headers and body sent with every command."""

    method: str = DEFAULT_HTTP_METHOD
    headers: dict[str, str] | None = None
    body: str | None = None


GET_REQUEST = RequestSpec(method="GET")


@dataclass
class CommandResult:
    """Outcome of a dispatched command."""

    body: str | None
    error: Exception | None = None
    status: int | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        """Return True if the command succeeded."""
        return self.error is None


RetryStrategy = Callable[[int | None, Exception | None, tuple[int, ...]], bool]


def retry_non_success(
    status: int | None, error: Exception | None, success_codes: tuple[int, ...]
) -> bool:
    """Retry on network errors and on any status outside the success codes."""
    return error is not None or status not in success_codes


def retry_http_or_network_error(
    status: int | None, error: Exception | None, success_codes: tuple[int, ...]
) -> bool:
    """Retry on network errors and on 5xx responses only."""
    return error is not None or (status is not None and status >= 500)


RETRY_STRATEGIES: dict[str, RetryStrategy] = {
    RETRY_NON_SUCCESS: retry_non_success,
    RETRY_HTTP_OR_NETWORK_ERROR: retry_http_or_network_error,
}


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


class CommandDispatcher:
    """Send commands to the blinds controller, retrying transient failures."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        name: str,
        success_codes: tuple[int, ...] = DEFAULT_SUCCESS_CODES,
        max_attempts: int = DEFAULT_MAX_HTTP_ATTEMPTS,
        retry_delay: int = DEFAULT_RETRY_DELAY,
        retry_strategy: RetryStrategy = retry_non_success,
        verbose: bool = False,
    ) -> None:
        self._session = session
        self._name = name
        self._success_codes = tuple(success_codes)
        self._max_attempts = max(int(max_attempts), MIN_HTTP_ATTEMPTS)
        # milliseconds
        self._retry_delay = max(int(retry_delay), MIN_RETRY_DELAY)
        self._retry_strategy = retry_strategy
        self._verbose = verbose
        self._timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)

    @classmethod
    def from_config(
        cls, session: aiohttp.ClientSession, config: BlindsConfig
    ) -> CommandDispatcher:
        """Create a dispatcher for a configured cover."""
        return cls(
            session,
            config.name,
            success_codes=config.success_codes,
            max_attempts=config.max_http_attempts,
            retry_delay=config.retry_delay,
            retry_strategy=RETRY_STRATEGIES[config.retry_strategy],
            verbose=config.verbose,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def retry_delay(self) -> int:
        return self._retry_delay

    async def async_send(
        self, endpoint: str | None, request: RequestSpec | None = None
    ) -> CommandResult:
        """Send a command and return its result. Never raises."""
        if not endpoint:
            _LOGGER.debug("(%s) async_send :: no endpoint configured", self._name)
            return CommandResult(
                None, MissingEndpointError(f"No URL configured for {self._name}")
            )

        request = request or RequestSpec()
        attempts = 0
        while True:
            attempts += 1
            status = None
            body = None
            error = None
            try:
                status, body = await self._async_request(endpoint, request)
            except (aiohttp.ClientError, asyncio.TimeoutError) as err:
                error = err

            if attempts >= self._max_attempts or not self._retry_strategy(
                status, error, self._success_codes
            ):
                break
            _LOGGER.debug(
                "(%s) async_send :: attempt %d / %d failed (status=%s, error=%s), retrying in %dms",
                self._name,
                attempts,
                self._max_attempts,
                status,
                error,
                self._retry_delay,
            )
            await sleep(self._retry_delay / 1000)

        if error is None and status in self._success_codes:
            if attempts > 1 or self._verbose:
                _LOGGER.info(
                    "(%s) Request succeeded after %d / %d attempt%s",
                    self._name,
                    attempts,
                    self._max_attempts,
                    _plural(self._max_attempts),
                )
            return CommandResult(body, None, status, attempts)

        _LOGGER.error(
            "(%s) Error sending request (HTTP status code %s): %s",
            self._name,
            status if status is not None else "not defined",
            error,
        )
        _LOGGER.error(
            "(%s) %d / %d attempt%s failed",
            self._name,
            attempts,
            self._max_attempts,
            _plural(self._max_attempts),
        )
        _LOGGER.error("(%s) Body: %s", self._name, body)
        return CommandResult(
            body,
            RequestFailedError(
                f"Request to {endpoint} failed after {attempts} attempt{_plural(attempts)}",
                status,
                attempts,
            ),
            status,
            attempts,
        )

    async def _async_request(
        self, endpoint: str, request: RequestSpec
    ) -> tuple[int, str]:
        """Perform a single HTTP attempt."""
        async with self._session.request(
            request.method,
            endpoint,
            headers=request.headers,
            data=request.body,
            timeout=self._timeout,
        ) as resp:
            # controllers may answer in any encoding
            return resp.status, await resp.text(errors="replace")
