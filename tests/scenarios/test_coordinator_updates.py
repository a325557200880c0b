"""Tests for Hotpot coordinator ticks, status and logging."""

import logging
from datetime import UTC, datetime, timedelta

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.hotpot.const import ControllerStatus


async def test_update_interval_from_timing(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test the tick interval follows the rule interval option."""
    coordinator = init_integration.runtime_data.coordinator
    assert coordinator.update_interval == timedelta(seconds=5)
    assert coordinator.controller.interlock.valve_return == 0


async def test_valve_reset_on_setup(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
    switch_calls: list[tuple[str, str]],
) -> None:
    """Test setup returns the valve to rest before the first tick."""
    assert switch_calls[:3] == [
        ("switch.hw_pin", "turn_on"),
        ("switch.ch_pin", "turn_off"),
        ("switch.hw_pin", "turn_off"),
    ]


async def test_valve_reset_failure_does_not_block_setup(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_temp_sensors: None,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test a failed valve reset is logged and setup carries on."""
    mock_config_entry.add_to_hass(hass)
    await hass.config_entries.async_setup(mock_config_entry.entry_id)
    await hass.async_block_till_done()

    assert "Valve reset failed" in caplog.text
    assert mock_config_entry.runtime_data.coordinator is not None


async def test_initial_status_normal(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test a healthy first tick leaves the controller normal."""
    coordinator = init_integration.runtime_data.coordinator
    assert coordinator.status == ControllerStatus.NORMAL
    assert coordinator.data["controller_status"] == ControllerStatus.NORMAL
    assert set(coordinator.data["channels"]) == {"CH", "HW"}


async def test_sensor_failure_logged_once(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test a lost sensor is logged once, degrades, and recovers."""
    coordinator = init_integration.runtime_data.coordinator

    hass.states.async_set("sensor.hw_temp", "unavailable")
    await coordinator.async_refresh()
    await coordinator.async_refresh()

    assert caplog.text.count("Channel HW temperature unavailable") == 1
    assert coordinator.status == ControllerStatus.DEGRADED
    # The last good reading is kept
    assert coordinator.data["channels"]["HW"]["temperature"] == 50.0

    caplog.clear()
    caplog.set_level(logging.INFO, logger="custom_components.hotpot")
    hass.states.async_set("sensor.hw_temp", "51.0")
    await coordinator.async_refresh()

    assert "Channel HW temperature sensor recovered" in caplog.text
    assert "Controller recovered to normal operation" in caplog.text
    assert coordinator.status == ControllerStatus.NORMAL


async def test_rule_failure_is_isolated(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
    switch_calls: list[tuple[str, str]],
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test a rule that raises is logged and the other channel still runs."""
    coordinator = init_integration.runtime_data.coordinator
    runtime = coordinator.controller.get_channel_runtime("CH")

    def explode(*_args: object) -> None:
        msg = "rule bug"
        raise RuntimeError(msg)

    runtime.rule.evaluate = explode  # type: ignore[method-assign]
    hass.states.async_set("sensor.hw_temp", "30.0")
    await coordinator.async_refresh()
    await hass.async_block_till_done()

    assert "Rule 'central_heating' failed: rule bug" in caplog.text
    assert coordinator.status == ControllerStatus.DEGRADED
    assert ("switch.hw_pin", "turn_on") in switch_calls


async def test_valve_return_logged(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
    switch_calls: list[tuple[str, str]],
    caplog: pytest.LogCaptureFixture,
) -> None:
    """Test switching CH off with HW idle runs and logs the valve return."""
    coordinator = init_integration.runtime_data.coordinator
    caplog.set_level(logging.INFO, logger="custom_components.hotpot")

    hass.states.async_set("sensor.ch_temp", "16.0")
    await coordinator.async_refresh()
    switch_calls.clear()

    hass.states.async_set("sensor.ch_temp", "19.0")
    await coordinator.async_refresh()
    await hass.async_block_till_done()

    assert switch_calls == [
        ("switch.ch_pin", "turn_off"),
        ("switch.hw_pin", "turn_on"),
        ("switch.ch_pin", "turn_off"),
    ]
    assert "Channel CH switched off via valve return sequence" in caplog.text
    assert coordinator.data["valve_pending"] is False


async def test_pin_change_pushed_without_tick(
    hass: HomeAssistant,
    init_integration: MockConfigEntry,
) -> None:
    """Test pin observations update entity data as they happen."""
    coordinator = init_integration.runtime_data.coordinator
    pin = coordinator.controller.get_pin("HW")

    await pin.async_set_state(True, datetime.now(UTC))

    assert coordinator.data["channels"]["HW"]["pin_state"] is True


async def test_no_channels(
    hass: HomeAssistant,
    mock_config_entry_no_channels: MockConfigEntry,
) -> None:
    """Test a controller without channels sets up and stays idle."""
    mock_config_entry_no_channels.add_to_hass(hass)
    await hass.config_entries.async_setup(mock_config_entry_no_channels.entry_id)
    await hass.async_block_till_done()

    coordinator = mock_config_entry_no_channels.runtime_data.coordinator
    assert coordinator.data["channels"] == {}
    assert coordinator.status == ControllerStatus.NORMAL
