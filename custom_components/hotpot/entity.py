"""Base entity classes for Hotpot."""

from __future__ import annotations

from typing import Any

from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import HotpotDataUpdateCoordinator
from .device import get_channel_device_info, get_controller_device_info


class HotpotEntity(CoordinatorEntity[HotpotDataUpdateCoordinator]):
    """Base class for controller-level Hotpot entities."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: HotpotDataUpdateCoordinator,
        key: str,
    ) -> None:
        """Initialize the entity."""
        super().__init__(coordinator)
        self._attr_device_info = get_controller_device_info(coordinator)

        controller_id = coordinator.config_entry.data.get("controller_id", "")
        self._attr_unique_id = f"{controller_id}_{key}"


class HotpotChannelEntity(CoordinatorEntity[HotpotDataUpdateCoordinator]):
    """Base class for channel-level Hotpot entities."""

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: HotpotDataUpdateCoordinator,
        channel_id: str,
        channel_name: str,
        key: str,
    ) -> None:
        """Initialize the entity."""
        super().__init__(coordinator)
        self._channel_id = channel_id
        self._attr_device_info = get_channel_device_info(
            coordinator, channel_id, channel_name
        )

        controller_id = coordinator.config_entry.data.get("controller_id", "")
        self._attr_unique_id = f"{controller_id}_{channel_id}_{key}"

    @property
    def channel_id(self) -> str:
        """Return the channel ID."""
        return self._channel_id

    @property
    def channel_data(self) -> dict[str, Any]:
        """Return this channel's slice of the coordinator data."""
        return self.coordinator.data.get("channels", {}).get(self._channel_id, {})

    @property
    def available(self) -> bool:
        """Return True if the coordinator has data for this channel."""
        return super().available and self._channel_id in self.coordinator.data.get(
            "channels", {}
        )
