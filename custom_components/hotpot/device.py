"""Device helpers for Hotpot."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.device_registry import DeviceInfo

from .const import DOMAIN, VERSION

if TYPE_CHECKING:
    from .coordinator import HotpotDataUpdateCoordinator


def get_controller_device_info(
    coordinator: HotpotDataUpdateCoordinator,
) -> DeviceInfo:
    """Get device info for the main controller device."""
    return DeviceInfo(
        identifiers={(DOMAIN, coordinator.config_entry.entry_id)},
        name=coordinator.config_entry.data.get("name", "Hotpot"),
        manufacturer="Hotpot",
        model="Heating Controller",
        sw_version=VERSION,
    )


def get_channel_device_info(
    coordinator: HotpotDataUpdateCoordinator,
    channel_id: str,
    channel_name: str,
) -> DeviceInfo:
    """Get device info for a channel device."""
    return DeviceInfo(
        identifiers={(DOMAIN, f"{coordinator.config_entry.entry_id}_{channel_id}")},
        name=channel_name,
        manufacturer="Hotpot",
        model="Heating Channel",
        via_device=(DOMAIN, coordinator.config_entry.entry_id),
    )
