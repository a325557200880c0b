"""Home Assistant backed pin and temperature sources for Hotpot."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.const import (
    SERVICE_TURN_OFF,
    SERVICE_TURN_ON,
    STATE_ON,
    STATE_UNAVAILABLE,
    STATE_UNKNOWN,
    Platform,
)
from homeassistant.exceptions import HomeAssistantError

from .core.exceptions import PinIOError, SensorReadError

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class SwitchPinBackend:
    """Drives a pin through a switch entity."""

    def __init__(self, hass: HomeAssistant, entity_id: str) -> None:
        """Initialize the backend."""
        self.hass = hass
        self.entity_id = entity_id

    async def async_read_state(self) -> bool:
        """Return True if the switch is on."""
        state = self.hass.states.get(self.entity_id)
        if state is None or state.state in (STATE_UNAVAILABLE, STATE_UNKNOWN):
            msg = f"Switch {self.entity_id} is {'missing' if state is None else state.state}"
            raise PinIOError(msg)
        return state.state == STATE_ON

    async def async_write_state(self, state: bool) -> None:
        """Turn the switch on or off and wait for the call to complete."""
        service = SERVICE_TURN_ON if state else SERVICE_TURN_OFF

        if not self.hass.services.has_service(Platform.SWITCH, service):
            msg = f"Switch service '{service}' not available for {self.entity_id}"
            raise PinIOError(msg)

        try:
            await self.hass.services.async_call(
                Platform.SWITCH,
                service,
                {"entity_id": self.entity_id},
                blocking=True,
            )
        except HomeAssistantError as err:
            msg = f"Switch service '{service}' failed for {self.entity_id}: {err}"
            raise PinIOError(msg) from err


class EntityTemperatureSource:
    """Reads a temperature from a sensor entity."""

    def __init__(self, hass: HomeAssistant, entity_id: str) -> None:
        """Initialize the source."""
        self.hass = hass
        self.entity_id = entity_id

    async def async_read(self) -> float:
        """Return the sensor state as a float."""
        state = self.hass.states.get(self.entity_id)
        if state is None or state.state in (STATE_UNAVAILABLE, STATE_UNKNOWN):
            msg = (
                f"Temperature sensor {self.entity_id} is "
                f"{'missing' if state is None else state.state}"
            )
            raise SensorReadError(msg)
        try:
            return float(state.state)
        except (ValueError, TypeError) as err:
            msg = f"Temperature sensor {self.entity_id} reported '{state.state}'"
            raise SensorReadError(msg) from err
