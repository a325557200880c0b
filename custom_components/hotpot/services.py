"""Services for Hotpot heating controller."""

from __future__ import annotations

from typing import TYPE_CHECKING

import voluptuous as vol
from homeassistant.config_entries import ConfigEntryState
from homeassistant.core import HomeAssistant, ServiceCall, callback
from homeassistant.exceptions import ServiceValidationError
from homeassistant.helpers import config_validation as cv

from .const import (
    ATTR_CONFIG_ENTRY_ID,
    ATTR_SERVICE,
    ATTR_SOURCE,
    ATTR_STATE,
    ATTR_TARGET,
    ATTR_UNTIL,
    CHANNEL_ALL,
    DOMAIN,
    LOGGER,
    SERVICE_ADD_PIN_REQUEST,
    SERVICE_ADD_REQUEST,
    SERVICE_PURGE_REQUESTS,
)
from .core.exceptions import InvalidRequestError, UnknownChannelError

if TYPE_CHECKING:
    from .coordinator import HotpotDataUpdateCoordinator
    from .data import HotpotConfigEntry

_NUMBER_OR_TEXT = vol.Any(vol.Coerce(float), cv.string)

_BASE_SCHEMA = {
    vol.Required(ATTR_CONFIG_ENTRY_ID): cv.string,
    vol.Optional(ATTR_SERVICE, default=CHANNEL_ALL): cv.string,
    vol.Required(ATTR_SOURCE): cv.string,
}

ADD_REQUEST_SCHEMA = vol.Schema(
    {
        **_BASE_SCHEMA,
        vol.Required(ATTR_TARGET): _NUMBER_OR_TEXT,
        vol.Required(ATTR_UNTIL): _NUMBER_OR_TEXT,
    }
)

ADD_PIN_REQUEST_SCHEMA = vol.Schema(
    {
        **_BASE_SCHEMA,
        vol.Required(ATTR_STATE): vol.Any(vol.Coerce(int), cv.string),
        vol.Required(ATTR_UNTIL): _NUMBER_OR_TEXT,
    }
)

PURGE_REQUESTS_SCHEMA = vol.Schema(_BASE_SCHEMA)


def _get_coordinator(
    hass: HomeAssistant, call: ServiceCall
) -> HotpotDataUpdateCoordinator:
    """Return the coordinator of the config entry a service call addresses."""
    entry_id = call.data[ATTR_CONFIG_ENTRY_ID]
    entry: HotpotConfigEntry | None = hass.config_entries.async_get_entry(entry_id)
    if (
        entry is None
        or entry.domain != DOMAIN
        or entry.state is not ConfigEntryState.LOADED
    ):
        msg = f"Hotpot config entry '{entry_id}' is not loaded"
        raise ServiceValidationError(msg)
    return entry.runtime_data.coordinator


@callback
def async_setup_services(hass: HomeAssistant) -> None:
    """Register the request services."""

    async def async_add_request(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call)
        try:
            await coordinator.async_add_request(
                call.data[ATTR_SERVICE],
                call.data[ATTR_SOURCE],
                call.data[ATTR_TARGET],
                call.data[ATTR_UNTIL],
            )
        except (InvalidRequestError, UnknownChannelError) as err:
            raise ServiceValidationError(str(err)) from err

    async def async_add_pin_request(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call)
        try:
            await coordinator.async_add_pin_request(
                call.data[ATTR_SERVICE],
                call.data[ATTR_SOURCE],
                call.data[ATTR_STATE],
                call.data[ATTR_UNTIL],
            )
        except (InvalidRequestError, UnknownChannelError) as err:
            raise ServiceValidationError(str(err)) from err

    async def async_purge_requests(call: ServiceCall) -> None:
        coordinator = _get_coordinator(hass, call)
        try:
            await coordinator.async_purge_requests(
                call.data[ATTR_SERVICE], call.data[ATTR_SOURCE]
            )
        except UnknownChannelError as err:
            raise ServiceValidationError(str(err)) from err

    hass.services.async_register(
        DOMAIN, SERVICE_ADD_REQUEST, async_add_request, schema=ADD_REQUEST_SCHEMA
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_ADD_PIN_REQUEST,
        async_add_pin_request,
        schema=ADD_PIN_REQUEST_SCHEMA,
    )
    hass.services.async_register(
        DOMAIN,
        SERVICE_PURGE_REQUESTS,
        async_purge_requests,
        schema=PURGE_REQUESTS_SCHEMA,
    )
    LOGGER.debug("Registered %s services", DOMAIN)
