"""Device configuration for blinds_http covers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import homeassistant.helpers.config_validation as cv
import voluptuous as vol

from .const import (
    CONF_DOWN_URL,
    CONF_HTTP_BODY,
    CONF_HTTP_HEADERS,
    CONF_HTTP_METHOD,
    CONF_MAX_HTTP_ATTEMPTS,
    CONF_MOTION_TIME,
    CONF_POSITION_URL,
    CONF_RESPONSE_LAG,
    CONF_RETRY_DELAY,
    CONF_RETRY_STRATEGY,
    CONF_SHOW_STOP_BUTTON,
    CONF_STOP_AT_BOUNDARIES,
    CONF_STOP_URL,
    CONF_SUCCESS_CODES,
    CONF_UP_URL,
    CONF_USE_SAME_URL_FOR_STOP,
    CONF_VERBOSE,
    DEFAULT_HTTP_METHOD,
    DEFAULT_MAX_HTTP_ATTEMPTS,
    DEFAULT_MOTION_TIME,
    DEFAULT_RESPONSE_LAG,
    DEFAULT_RETRY_DELAY,
    DEFAULT_SUCCESS_CODES,
    RETRY_NON_SUCCESS,
    RETRY_STRATEGIES,
)
from .dispatcher import RequestSpec


def parse_success_codes(value: Any) -> tuple[int, ...]:
    """Parse success codes from a list or a comma separated string.

    Raises vol.Invalid for anything that is not a valid HTTP status code.
    """
    if value is None or value == "":
        return DEFAULT_SUCCESS_CODES
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",") if part.strip()]
    elif isinstance(value, int):
        items = [value]
    else:
        items = list(value)
    if not items:
        raise vol.Invalid("at least one success code is required")

    codes = []
    for item in items:
        try:
            code = int(item)
        except (TypeError, ValueError) as err:
            raise vol.Invalid(f"invalid status code: {item}") from err
        if not 100 <= code <= 599:
            raise vol.Invalid(f"invalid status code: {code}")
        codes.append(code)
    return tuple(codes)


def parse_http_method(value: Any) -> dict[str, Any]:
    """Normalize the method option to a dict.

    A bare verb string is the legacy form and is treated exactly like
    {"method": verb}.
    """
    if value is None:
        return {"method": DEFAULT_HTTP_METHOD}
    if isinstance(value, str):
        return {"method": value.upper()}
    if isinstance(value, dict):
        method = dict(value)
        method["method"] = str(method.get("method", DEFAULT_HTTP_METHOD)).upper()
        return method
    raise vol.Invalid(f"invalid http method: {value}")


OPTIONS_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_UP_URL): vol.Any(None, cv.string),
        vol.Optional(CONF_DOWN_URL): vol.Any(None, cv.string),
        vol.Optional(CONF_STOP_URL): vol.Any(None, cv.string),
        vol.Optional(CONF_POSITION_URL): vol.Any(None, cv.string),
        vol.Optional(CONF_SHOW_STOP_BUTTON, default=False): cv.boolean,
        vol.Optional(CONF_STOP_AT_BOUNDARIES, default=False): cv.boolean,
        vol.Optional(CONF_USE_SAME_URL_FOR_STOP, default=False): cv.boolean,
        vol.Optional(CONF_HTTP_METHOD, default=DEFAULT_HTTP_METHOD): parse_http_method,
        vol.Optional(CONF_HTTP_HEADERS): vol.Any(None, {cv.string: cv.string}),
        vol.Optional(CONF_HTTP_BODY): vol.Any(None, cv.string),
        vol.Optional(
            CONF_SUCCESS_CODES, default=list(DEFAULT_SUCCESS_CODES)
        ): parse_success_codes,
        vol.Optional(
            CONF_MAX_HTTP_ATTEMPTS, default=DEFAULT_MAX_HTTP_ATTEMPTS
        ): vol.Coerce(int),
        vol.Optional(CONF_RETRY_DELAY, default=DEFAULT_RETRY_DELAY): vol.Coerce(int),
        vol.Optional(CONF_RETRY_STRATEGY, default=RETRY_NON_SUCCESS): vol.In(
            RETRY_STRATEGIES
        ),
        vol.Optional(CONF_MOTION_TIME, default=DEFAULT_MOTION_TIME): vol.All(
            vol.Coerce(int), vol.Range(min=100)
        ),
        vol.Optional(CONF_RESPONSE_LAG, default=DEFAULT_RESPONSE_LAG): vol.Coerce(
            int
        ),
        vol.Optional(CONF_VERBOSE, default=False): cv.boolean,
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True)
class BlindsConfig:
    """Static configuration of one cover.

    Times are in milliseconds.
    """

    name: str
    up_url: str | None = None
    down_url: str | None = None
    stop_url: str | None = None
    position_url: str | None = None
    show_stop_button: bool = False
    stop_at_boundaries: bool = False
    use_same_url_for_stop: bool = False
    request: RequestSpec = field(default_factory=RequestSpec)
    success_codes: tuple[int, ...] = DEFAULT_SUCCESS_CODES
    max_http_attempts: int = DEFAULT_MAX_HTTP_ATTEMPTS
    retry_delay: int = DEFAULT_RETRY_DELAY
    retry_strategy: str = RETRY_NON_SUCCESS
    motion_time: int = DEFAULT_MOTION_TIME
    response_lag: int = DEFAULT_RESPONSE_LAG
    verbose: bool = False

    @classmethod
    def from_options(cls, name: str, options: dict[str, Any]) -> BlindsConfig:
        """Validate config entry options and build a BlindsConfig."""
        data = OPTIONS_SCHEMA(dict(options))
        method = data[CONF_HTTP_METHOD]
        headers = dict(method.get("headers") or {})
        headers.update(data.get(CONF_HTTP_HEADERS) or {})
        body = data.get(CONF_HTTP_BODY) or method.get("body")

        return cls(
            name=name,
            up_url=data.get(CONF_UP_URL) or None,
            down_url=data.get(CONF_DOWN_URL) or None,
            stop_url=data.get(CONF_STOP_URL) or None,
            position_url=data.get(CONF_POSITION_URL) or None,
            show_stop_button=data[CONF_SHOW_STOP_BUTTON],
            stop_at_boundaries=data[CONF_STOP_AT_BOUNDARIES],
            use_same_url_for_stop=data[CONF_USE_SAME_URL_FOR_STOP],
            request=RequestSpec(
                method=method["method"], headers=headers or None, body=body
            ),
            success_codes=data[CONF_SUCCESS_CODES],
            max_http_attempts=data[CONF_MAX_HTTP_ATTEMPTS],
            retry_delay=data[CONF_RETRY_DELAY],
            retry_strategy=data[CONF_RETRY_STRATEGY],
            motion_time=data[CONF_MOTION_TIME],
            response_lag=data[CONF_RESPONSE_LAG],
            verbose=data[CONF_VERBOSE],
        )

    @property
    def has_stop_endpoint(self) -> bool:
        """Return True if a stop command can be sent."""
        return bool(self.stop_url) or self.use_same_url_for_stop

    @property
    def step_duration(self) -> float:
        """Seconds needed to move one percentage point."""
        return self.motion_time / 100 / 1000
