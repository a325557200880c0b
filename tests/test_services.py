"""Tests for Hotpot request services."""

from datetime import timedelta

import pytest
import voluptuous as vol
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ServiceValidationError
from homeassistant.util import dt as dt_util
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.hotpot.const import (
    DOMAIN,
    SERVICE_ADD_PIN_REQUEST,
    SERVICE_ADD_REQUEST,
    SERVICE_PURGE_REQUESTS,
)
from custom_components.hotpot.core.request import PinState


async def call(hass: HomeAssistant, service: str, data: dict) -> None:
    """Call a Hotpot service and wait for it."""
    await hass.services.async_call(DOMAIN, service, data, blocking=True)
    await hass.async_block_till_done()


async def test_services_registered(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test the request services are registered."""
    for service in (
        SERVICE_ADD_REQUEST,
        SERVICE_ADD_PIN_REQUEST,
        SERVICE_PURGE_REQUESTS,
    ):
        assert hass.services.has_service(DOMAIN, service)


async def test_add_request(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test add_request sets a channel's target."""
    controller = init_integration.runtime_data.coordinator.controller
    until = (dt_util.now() + timedelta(hours=2)).isoformat()

    await call(
        hass,
        SERVICE_ADD_REQUEST,
        {
            "config_entry_id": init_integration.entry_id,
            "service": "CH",
            "source": "calendar",
            "target": 21,
            "until": until,
        },
    )

    thermostat = controller.get_thermostat("CH")
    assert thermostat.get_target_temperature(dt_util.now()) == 21.0
    assert controller.get_thermostat("HW").requests == ()


async def test_add_request_defaults_to_all(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test add_request without a service addresses every channel."""
    controller = init_integration.runtime_data.coordinator.controller

    await call(
        hass,
        SERVICE_ADD_REQUEST,
        {
            "config_entry_id": init_integration.entry_id,
            "source": "away",
            "target": "OFF",
            "until": (dt_util.utcnow() + timedelta(days=1)).timestamp(),
        },
    )

    for channel_id in ("CH", "HW"):
        [request] = controller.get_thermostat(channel_id).requests
        assert request.target == 0.0


async def test_add_request_until_now_withdraws(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test an expiry of now removes the caller's request."""
    controller = init_integration.runtime_data.coordinator.controller
    base = {
        "config_entry_id": init_integration.entry_id,
        "service": "CH",
        "source": "calendar",
        "target": 21,
    }

    await call(hass, SERVICE_ADD_REQUEST, {**base, "until": "boost"})
    assert controller.get_thermostat("CH").requests

    await call(hass, SERVICE_ADD_REQUEST, {**base, "until": "now"})
    assert controller.get_thermostat("CH").requests == ()


async def test_add_request_invalid_target(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test an unparseable target is rejected."""
    with pytest.raises(ServiceValidationError):
        await call(
            hass,
            SERVICE_ADD_REQUEST,
            {
                "config_entry_id": init_integration.entry_id,
                "service": "CH",
                "source": "calendar",
                "target": "warm",
                "until": "boost",
            },
        )


async def test_add_request_until_out_of_range(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test an epoch expiry outside the representable range is rejected."""
    with pytest.raises(ServiceValidationError):
        await call(
            hass,
            SERVICE_ADD_REQUEST,
            {
                "config_entry_id": init_integration.entry_id,
                "service": "CH",
                "source": "calendar",
                "target": 21,
                "until": "1e20",
            },
        )

    controller = init_integration.runtime_data.coordinator.controller
    assert controller.get_thermostat("CH").requests == ()


async def test_add_request_unknown_channel(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test a request to a missing channel is rejected."""
    with pytest.raises(ServiceValidationError):
        await call(
            hass,
            SERVICE_ADD_REQUEST,
            {
                "config_entry_id": init_integration.entry_id,
                "service": "UFH",
                "source": "calendar",
                "target": 21,
                "until": "boost",
            },
        )


async def test_add_request_requires_source(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test the schema requires a source."""
    with pytest.raises((vol.Invalid, ServiceValidationError)):
        await call(
            hass,
            SERVICE_ADD_REQUEST,
            {
                "config_entry_id": init_integration.entry_id,
                "target": 21,
                "until": "boost",
            },
        )


async def test_unknown_config_entry(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test calls for an entry that is not loaded are rejected."""
    with pytest.raises(ServiceValidationError):
        await call(
            hass,
            SERVICE_PURGE_REQUESTS,
            {"config_entry_id": "missing", "source": "calendar"},
        )


async def test_add_pin_request(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
    switch_calls: list[tuple[str, str]],
) -> None:
    """Test add_pin_request forces a pin on."""
    switch_calls.clear()

    await call(
        hass,
        SERVICE_ADD_PIN_REQUEST,
        {
            "config_entry_id": init_integration.entry_id,
            "service": "HW",
            "source": "bathroom",
            "state": "on",
            "until": (dt_util.now() + timedelta(minutes=30)).isoformat(),
        },
    )

    pin = init_integration.runtime_data.coordinator.controller.get_pin("HW")
    [request] = pin.requests
    assert request.state == PinState.ON
    assert switch_calls == [("switch.hw_pin", "turn_on")]


async def test_add_pin_request_invalid_state(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test an unknown pin state is rejected."""
    with pytest.raises(ServiceValidationError):
        await call(
            hass,
            SERVICE_ADD_PIN_REQUEST,
            {
                "config_entry_id": init_integration.entry_id,
                "service": "HW",
                "source": "bathroom",
                "state": "toggle",
                "until": (dt_util.now() + timedelta(minutes=30)).isoformat(),
            },
        )


async def test_purge_requests(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test purge_requests removes one caller's requests everywhere."""
    coordinator = init_integration.runtime_data.coordinator
    controller = coordinator.controller
    until = dt_util.utcnow() + timedelta(hours=1)
    controller.add_request("ALL", "app", 21, until)
    controller.add_pin_request("HW", "app", "off", until)
    controller.add_request("CH", "calendar", 19, until)

    await call(
        hass,
        SERVICE_PURGE_REQUESTS,
        {"config_entry_id": init_integration.entry_id, "source": "app"},
    )

    assert [r.source for r in controller.get_thermostat("CH").requests] == [
        "calendar"
    ]
    assert controller.get_thermostat("HW").requests == ()
    assert controller.get_pin("HW").requests == ()
