"""Config flow for Blinds HTTP integration."""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.config_entries import (
    ConfigEntry,
    ConfigFlow,
    ConfigFlowResult,
    OptionsFlow,
)
from homeassistant.const import CONF_NAME
from homeassistant.core import callback
from homeassistant.data_entry_flow import section
from homeassistant.helpers.selector import (
    BooleanSelector,
    NumberSelector,
    NumberSelectorConfig,
    NumberSelectorMode,
    ObjectSelector,
    SelectSelector,
    SelectSelectorConfig,
    SelectSelectorMode,
    TextSelector,
    TextSelectorConfig,
    TextSelectorType,
)

from .config import parse_success_codes
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
    DOMAIN,
    HTTP_METHODS,
    MIN_RETRY_DELAY,
    RETRY_NON_SUCCESS,
    RETRY_STRATEGIES,
)

SECTION_HTTP = "http"

URL_SELECTOR = TextSelector(TextSelectorConfig(type=TextSelectorType.URL))

MILLISECONDS_SELECTOR = NumberSelector(
    NumberSelectorConfig(
        min=0,
        max=600000,
        step=1,
        unit_of_measurement="ms",
        mode=NumberSelectorMode.BOX,
    )
)

MOTION_TIME_SELECTOR = NumberSelector(
    NumberSelectorConfig(
        min=100,
        max=600000,
        step=1,
        unit_of_measurement="ms",
        mode=NumberSelectorMode.BOX,
    )
)

RETRY_DELAY_SELECTOR = NumberSelector(
    NumberSelectorConfig(
        min=MIN_RETRY_DELAY,
        max=60000,
        step=1,
        unit_of_measurement="ms",
        mode=NumberSelectorMode.BOX,
    )
)

ATTEMPTS_SELECTOR = NumberSelector(
    NumberSelectorConfig(min=1, max=20, step=1, mode=NumberSelectorMode.BOX)
)


def _build_options_schema(defaults: dict[str, Any] | None = None) -> vol.Schema:
    """Build the schema for URLs, timing and HTTP settings."""
    d = defaults or {}
    fields: dict[vol.Marker, Any] = {}

    for key in (CONF_UP_URL, CONF_DOWN_URL, CONF_STOP_URL, CONF_POSITION_URL):
        fields[
            vol.Optional(key, description={"suggested_value": d.get(key)})
        ] = URL_SELECTOR

    for key in (
        CONF_USE_SAME_URL_FOR_STOP,
        CONF_SHOW_STOP_BUTTON,
        CONF_STOP_AT_BOUNDARIES,
    ):
        fields[vol.Optional(key, default=d.get(key, False))] = BooleanSelector()

    fields[
        vol.Required(
            CONF_MOTION_TIME, default=d.get(CONF_MOTION_TIME, DEFAULT_MOTION_TIME)
        )
    ] = MOTION_TIME_SELECTOR
    fields[
        vol.Required(
            CONF_RESPONSE_LAG, default=d.get(CONF_RESPONSE_LAG, DEFAULT_RESPONSE_LAG)
        )
    ] = MILLISECONDS_SELECTOR

    # HTTP section (collapsed)
    success_codes = d.get(CONF_SUCCESS_CODES, DEFAULT_SUCCESS_CODES)
    if not isinstance(success_codes, str):
        success_codes = ", ".join(str(code) for code in success_codes)
    method = d.get(CONF_HTTP_METHOD, DEFAULT_HTTP_METHOD)
    if isinstance(method, dict):
        method = method.get("method", DEFAULT_HTTP_METHOD)

    fields[vol.Optional(SECTION_HTTP)] = section(
        vol.Schema(
            {
                vol.Required(CONF_HTTP_METHOD, default=method): SelectSelector(
                    SelectSelectorConfig(
                        options=HTTP_METHODS, mode=SelectSelectorMode.DROPDOWN
                    )
                ),
                vol.Optional(
                    CONF_HTTP_HEADERS,
                    description={"suggested_value": d.get(CONF_HTTP_HEADERS)},
                ): ObjectSelector(),
                vol.Optional(
                    CONF_HTTP_BODY,
                    description={"suggested_value": d.get(CONF_HTTP_BODY)},
                ): TextSelector(TextSelectorConfig(multiline=True)),
                vol.Required(CONF_SUCCESS_CODES, default=success_codes): TextSelector(),
                vol.Required(
                    CONF_MAX_HTTP_ATTEMPTS,
                    default=d.get(CONF_MAX_HTTP_ATTEMPTS, DEFAULT_MAX_HTTP_ATTEMPTS),
                ): ATTEMPTS_SELECTOR,
                vol.Required(
                    CONF_RETRY_DELAY,
                    default=d.get(CONF_RETRY_DELAY, DEFAULT_RETRY_DELAY),
                ): RETRY_DELAY_SELECTOR,
                vol.Required(
                    CONF_RETRY_STRATEGY,
                    default=d.get(CONF_RETRY_STRATEGY, RETRY_NON_SUCCESS),
                ): SelectSelector(
                    SelectSelectorConfig(
                        options=RETRY_STRATEGIES,
                        translation_key="retry_strategy",
                        mode=SelectSelectorMode.LIST,
                    )
                ),
                vol.Optional(
                    CONF_VERBOSE, default=d.get(CONF_VERBOSE, False)
                ): BooleanSelector(),
            }
        ),
        {"collapsed": True},
    )

    return vol.Schema(fields)


def _flatten_input(user_input: dict[str, Any]) -> dict[str, Any]:
    """Flatten section data into a single dict."""
    data: dict[str, Any] = {}
    for key, value in user_input.items():
        if key == SECTION_HTTP and isinstance(value, dict):
            data.update(value)
        else:
            data[key] = value
    return data


def _validate_options(data: dict[str, Any]) -> dict[str, str]:
    """Validate options and normalize them in place. Returns form errors."""
    errors: dict[str, str] = {}
    if not data.get(CONF_UP_URL) and not data.get(CONF_DOWN_URL):
        errors[CONF_UP_URL] = "url_required"
    try:
        data[CONF_SUCCESS_CODES] = list(
            parse_success_codes(data.get(CONF_SUCCESS_CODES))
        )
    except vol.Invalid:
        errors[SECTION_HTTP] = "invalid_success_codes"
    for key in (
        CONF_MOTION_TIME,
        CONF_RESPONSE_LAG,
        CONF_RETRY_DELAY,
        CONF_MAX_HTTP_ATTEMPTS,
    ):
        if data.get(key) is not None:
            data[key] = int(data[key])
    return errors


class BlindsHttpConfigFlow(ConfigFlow, domain=DOMAIN):
    """Handle a config flow for Blinds HTTP."""

    VERSION = 1

    async def async_step_user(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Configure name, URLs and timing."""
        errors: dict[str, str] = {}
        if user_input is not None:
            data = _flatten_input(user_input)
            name = data.pop(CONF_NAME)
            errors = _validate_options(data)
            # positions are stored by name
            if any(
                entry.title == name for entry in self._async_current_entries()
            ):
                errors[CONF_NAME] = "name_exists"
            if not errors:
                return self.async_create_entry(title=name, data={}, options=data)

        defaults = _flatten_input(user_input) if user_input else {}
        schema = vol.Schema(
            {
                vol.Required(
                    CONF_NAME, default=defaults.get(CONF_NAME, vol.UNDEFINED)
                ): TextSelector(),
            }
        ).extend(_build_options_schema(defaults).schema)
        return self.async_show_form(step_id="user", data_schema=schema, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(
        config_entry: ConfigEntry,
    ) -> BlindsHttpOptionsFlow:
        """Get the options flow for this handler."""
        return BlindsHttpOptionsFlow()


class BlindsHttpOptionsFlow(OptionsFlow):
    """Handle options flow for reconfiguring a cover."""

    async def async_step_init(
        self, user_input: dict[str, Any] | None = None
    ) -> ConfigFlowResult:
        """Edit URLs, timing and HTTP settings."""
        errors: dict[str, str] = {}
        if user_input is not None:
            data = _flatten_input(user_input)
            errors = _validate_options(data)
            if not errors:
                return self.async_create_entry(title="", data=data)

        current = dict(self.config_entry.options)
        if user_input is not None:
            current.update(_flatten_input(user_input))
        return self.async_show_form(
            step_id="init",
            data_schema=_build_options_schema(current),
            errors=errors,
        )
