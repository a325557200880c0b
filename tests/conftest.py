"""Common fixtures for Hotpot tests."""

from collections.abc import Generator
from typing import Any
from unittest.mock import patch

import pytest
from homeassistant.const import STATE_OFF, STATE_ON, Platform
from homeassistant.core import HomeAssistant, ServiceCall
from homeassistant.helpers import entity_registry as er
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.hotpot.const import DOMAIN

MOCK_CONTROLLER_ID = "test_controller"

MOCK_TIMING: dict[str, int] = {
    "valve_return": 0,
    "rule_interval": 5000,
    "override_duration": 3600,
}

# Flat single-point timelines keep targets independent of the test timezone
MOCK_CH_CHANNEL: dict[str, Any] = {
    "id": "CH",
    "name": "Central heating",
    "rule": "central_heating",
    "window": 1.0,
    "temp_sensor": "sensor.ch_temp",
    "pin_switch": "switch.ch_pin",
    "timeline": {
        "minimum": 0.0,
        "maximum": 25.0,
        "period": 86400,
        "points": [{"time": "00:00", "value": 18.0}],
    },
}

MOCK_HW_CHANNEL: dict[str, Any] = {
    "id": "HW",
    "name": "Hot water",
    "rule": "hot_water",
    "window": 5.0,
    "temp_sensor": "sensor.hw_temp",
    "pin_switch": "switch.hw_pin",
    "timeline": {
        "minimum": 0.0,
        "maximum": 70.0,
        "period": 86400,
        "points": [{"time": "00:00", "value": 50.0}],
    },
}


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry with CH and HW channels."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="Test Controller",
        data={
            "name": "Test Controller",
            "controller_id": MOCK_CONTROLLER_ID,
        },
        options={
            "timing": dict(MOCK_TIMING),
            "channels": [dict(MOCK_CH_CHANNEL), dict(MOCK_HW_CHANNEL)],
        },
        entry_id="test_entry_id",
        unique_id=MOCK_CONTROLLER_ID,
    )


@pytest.fixture
def mock_config_entry_no_channels() -> MockConfigEntry:
    """Return a mock config entry without channels."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="Test Controller",
        data={
            "name": "Test Controller",
            "controller_id": MOCK_CONTROLLER_ID,
        },
        options={
            "timing": dict(MOCK_TIMING),
            "channels": [],
        },
        entry_id="test_entry_id_no_channels",
        unique_id=f"{MOCK_CONTROLLER_ID}_no_channels",
    )


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(
    enable_custom_integrations: None,
) -> None:
    """Enable custom integrations for all tests."""


@pytest.fixture(autouse=True)
def expected_lingering_timers() -> bool:
    """Allow lingering timers for coordinator updates."""
    return True


@pytest.fixture
def platforms() -> list[Platform]:
    """Return the platforms to load."""
    return [
        Platform.SENSOR,
        Platform.BINARY_SENSOR,
        Platform.SELECT,
    ]


@pytest.fixture
def mock_setup_entry() -> Generator[None]:
    """Mock setting up a config entry."""
    with patch(
        "custom_components.hotpot.async_setup_entry",
        return_value=True,
    ):
        yield


@pytest.fixture
async def switch_calls(hass: HomeAssistant) -> list[tuple[str, str]]:
    """
    Register switch services that record calls and update the switch state.

    Returns the list of (entity_id, service) tuples in call order.
    """
    calls: list[tuple[str, str]] = []

    async def handle(call: ServiceCall) -> None:
        entity_ids = call.data["entity_id"]
        if isinstance(entity_ids, str):
            entity_ids = [entity_ids]
        for entity_id in entity_ids:
            calls.append((entity_id, call.service))
            hass.states.async_set(
                entity_id, STATE_ON if call.service == "turn_on" else STATE_OFF
            )

    hass.services.async_register(Platform.SWITCH, "turn_on", handle)
    hass.services.async_register(Platform.SWITCH, "turn_off", handle)

    hass.states.async_set("switch.ch_pin", STATE_OFF)
    hass.states.async_set("switch.hw_pin", STATE_OFF)
    return calls


@pytest.fixture
async def mock_temp_sensors(hass: HomeAssistant) -> None:
    """
    Set temperatures that sit inside both channels' hysteresis windows.

    With these readings the rules leave the pins alone, so tests start from
    a quiet controller.
    """
    hass.states.async_set("sensor.ch_temp", "18.0")
    hass.states.async_set("sensor.hw_temp", "50.0")


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    switch_calls: list[tuple[str, str]],
    mock_temp_sensors: None,
) -> MockConfigEntry:
    """Set up the integration with quiet CH and HW channels."""
    mock_config_entry.add_to_hass(hass)
    await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()
    return mock_config_entry


def get_entity_id(
    hass: HomeAssistant, platform: str, key: str, channel_id: str | None = None
) -> str:
    """Look up an entity by the key its unique ID was built from."""
    unique_id = (
        f"{MOCK_CONTROLLER_ID}_{channel_id}_{key}"
        if channel_id
        else f"{MOCK_CONTROLLER_ID}_{key}"
    )
    entity_id = er.async_get(hass).async_get_entity_id(platform, DOMAIN, unique_id)
    assert entity_id is not None, f"No {platform} entity with unique_id {unique_id}"
    return entity_id
