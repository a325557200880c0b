"""Binary sensor platform for Hotpot heating controller."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from homeassistant.components.binary_sensor import (
    BinarySensorDeviceClass,
    BinarySensorEntity,
    BinarySensorEntityDescription,
)

from .const import ControllerStatus
from .entity import HotpotChannelEntity, HotpotEntity

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

    from .coordinator import HotpotDataUpdateCoordinator
    from .data import HotpotConfigEntry


@dataclass(frozen=True, kw_only=True)
class HotpotChannelBinarySensorEntityDescription(BinarySensorEntityDescription):
    """Describes Hotpot channel binary sensor entity."""

    value_fn: Callable[[dict[str, Any]], bool | None]
    attributes_fn: Callable[[dict[str, Any]], dict[str, Any]] | None = None


CHANNEL_BINARY_SENSORS: tuple[HotpotChannelBinarySensorEntityDescription, ...] = (
    HotpotChannelBinarySensorEntityDescription(
        key="pin",
        translation_key="pin",
        device_class=BinarySensorDeviceClass.HEAT,
        value_fn=lambda data: data.get("pin_state"),
        attributes_fn=lambda data: {
            "pin_request": data.get("pin_request"),
            "pin_requests": data.get("pin_requests", []),
            "rule": data.get("rule"),
            "reason": data.get("reason"),
        },
    ),
    HotpotChannelBinarySensorEntityDescription(
        key="pin_fault",
        translation_key="pin_fault",
        device_class=BinarySensorDeviceClass.PROBLEM,
        value_fn=lambda data: data.get("pin_fault", False),
        attributes_fn=lambda data: {
            "requested_state": data.get("requested_state"),
            "last_error": data.get("pin_error"),
        },
    ),
)


async def async_setup_entry(
    _hass: HomeAssistant,
    entry: HotpotConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up the binary sensor platform."""
    coordinator = entry.runtime_data.coordinator

    entities: list[BinarySensorEntity] = [
        HotpotStatusSensor(coordinator),
        HotpotValveTransitionSensor(coordinator),
    ]
    entities.extend(
        HotpotChannelBinarySensor(
            coordinator=coordinator,
            channel_id=channel["id"],
            channel_name=channel.get("name", channel["id"]),
            description=description,
        )
        for channel in entry.options.get("channels", [])
        for description in CHANNEL_BINARY_SENSORS
    )
    async_add_entities(entities)


class HotpotChannelBinarySensor(HotpotChannelEntity, BinarySensorEntity):
    """Binary sensor entity for channel pin state and faults."""

    entity_description: HotpotChannelBinarySensorEntityDescription

    def __init__(
        self,
        coordinator: HotpotDataUpdateCoordinator,
        channel_id: str,
        channel_name: str,
        description: HotpotChannelBinarySensorEntityDescription,
    ) -> None:
        """Initialize the binary sensor entity."""
        super().__init__(coordinator, channel_id, channel_name, description.key)
        self.entity_description = description

    @property
    def is_on(self) -> bool | None:
        """Return the sensor state."""
        return self.entity_description.value_fn(self.channel_data)

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        """Return additional pin attributes."""
        if self.entity_description.attributes_fn is None:
            return None
        return self.entity_description.attributes_fn(self.channel_data)


class HotpotStatusSensor(HotpotEntity, BinarySensorEntity):
    """
    Binary sensor indicating controller operational status.

    This sensor is ON when a sensor read, a rule or pin I/O failed on the last
    tick, and OFF when the controller is operating normally.
    """

    _attr_translation_key = "status"
    _attr_device_class = BinarySensorDeviceClass.PROBLEM

    def __init__(self, coordinator: HotpotDataUpdateCoordinator) -> None:
        """Initialize the status sensor."""
        super().__init__(coordinator, "status")

    @property
    def is_on(self) -> bool:
        """Return True if the controller is degraded."""
        return self.coordinator.status == ControllerStatus.DEGRADED

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return additional status attributes."""
        return {"controller_status": self.coordinator.status.value}


class HotpotValveTransitionSensor(HotpotEntity, BinarySensorEntity):
    """Binary sensor that is ON while the valve return sequence runs."""

    _attr_translation_key = "valve_transition"
    _attr_device_class = BinarySensorDeviceClass.RUNNING

    def __init__(self, coordinator: HotpotDataUpdateCoordinator) -> None:
        """Initialize the valve transition sensor."""
        super().__init__(coordinator, "valve_transition")

    @property
    def is_on(self) -> bool:
        """Return True if a valve transition is pending."""
        return self.coordinator.data.get("valve_pending", False)
