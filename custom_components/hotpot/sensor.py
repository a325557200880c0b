"""Sensor platform for Hotpot heating controller."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from homeassistant.components.sensor import (
    SensorDeviceClass,
    SensorEntity,
    SensorEntityDescription,
    SensorStateClass,
)
from homeassistant.const import UnitOfTemperature

from .entity import HotpotChannelEntity

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

    from .coordinator import HotpotDataUpdateCoordinator
    from .data import HotpotConfigEntry


@dataclass(frozen=True, kw_only=True)
class HotpotChannelSensorEntityDescription(SensorEntityDescription):
    """Describes Hotpot channel sensor entity."""

    value_fn: Callable[[dict[str, Any]], float | None]
    attributes_fn: Callable[[dict[str, Any]], dict[str, Any]] | None = None


CHANNEL_SENSORS: tuple[HotpotChannelSensorEntityDescription, ...] = (
    HotpotChannelSensorEntityDescription(
        key="temperature",
        translation_key="temperature",
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        device_class=SensorDeviceClass.TEMPERATURE,
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=1,
        value_fn=lambda data: data.get("temperature"),
    ),
    HotpotChannelSensorEntityDescription(
        key="target",
        translation_key="target",
        native_unit_of_measurement=UnitOfTemperature.CELSIUS,
        device_class=SensorDeviceClass.TEMPERATURE,
        state_class=SensorStateClass.MEASUREMENT,
        suggested_display_precision=1,
        value_fn=lambda data: data.get("target"),
        attributes_fn=lambda data: {
            "boost": data.get("boost"),
            "maximum": data.get("maximum"),
            "requests": data.get("requests", []),
        },
    ),
)


async def async_setup_entry(
    _hass: HomeAssistant,
    entry: HotpotConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up the sensor platform."""
    coordinator = entry.runtime_data.coordinator

    async_add_entities(
        HotpotChannelSensor(
            coordinator=coordinator,
            channel_id=channel["id"],
            channel_name=channel.get("name", channel["id"]),
            description=description,
        )
        for channel in entry.options.get("channels", [])
        for description in CHANNEL_SENSORS
    )


class HotpotChannelSensor(HotpotChannelEntity, SensorEntity):
    """Sensor entity for channel temperatures."""

    entity_description: HotpotChannelSensorEntityDescription

    def __init__(
        self,
        coordinator: HotpotDataUpdateCoordinator,
        channel_id: str,
        channel_name: str,
        description: HotpotChannelSensorEntityDescription,
    ) -> None:
        """Initialize the sensor entity."""
        super().__init__(coordinator, channel_id, channel_name, description.key)
        self.entity_description = description

    @property
    def native_value(self) -> float | None:
        """Return the sensor value."""
        return self.entity_description.value_fn(self.channel_data)

    @property
    def extra_state_attributes(self) -> dict[str, Any] | None:
        """Return active requests for the target sensor."""
        if self.entity_description.attributes_fn is None:
            return None
        return self.entity_description.attributes_fn(self.channel_data)
