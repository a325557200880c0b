"""Custom integration to integrate the Hotpot heating controller with Home Assistant."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.const import Platform
from homeassistant.exceptions import ConfigEntryError
from homeassistant.helpers import config_validation as cv

from .const import DOMAIN, LOGGER
from .coordinator import HotpotDataUpdateCoordinator
from .core.exceptions import ConfigValidationError
from .data import HotpotData
from .services import async_setup_services

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.typing import ConfigType

    from .data import HotpotConfigEntry

PLATFORMS: list[Platform] = [
    Platform.SENSOR,
    Platform.BINARY_SENSOR,
    Platform.SELECT,
]

CONFIG_SCHEMA = cv.config_entry_only_config_schema(DOMAIN)


async def async_setup(hass: HomeAssistant, _config: ConfigType) -> bool:
    """Set up the Hotpot services."""
    async_setup_services(hass)
    return True


async def async_setup_entry(
    hass: HomeAssistant,
    entry: HotpotConfigEntry,
) -> bool:
    """Set up Hotpot from a config entry."""
    LOGGER.debug("Setting up Hotpot entry: %s", entry.entry_id)

    try:
        coordinator = HotpotDataUpdateCoordinator(hass=hass, entry=entry)
    except ConfigValidationError as err:
        msg = f"Invalid Hotpot configuration: {err}"
        raise ConfigEntryError(msg) from err

    # The valve position is unknown after a restart
    await coordinator.async_reset_valve()
    await coordinator.async_config_entry_first_refresh()

    entry.runtime_data = HotpotData(coordinator=coordinator)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))

    return True


async def async_unload_entry(
    hass: HomeAssistant,
    entry: HotpotConfigEntry,
) -> bool:
    """Handle removal of an entry."""
    LOGGER.debug("Unloading Hotpot entry: %s", entry.entry_id)

    coordinator = entry.runtime_data.coordinator
    await coordinator.async_shutdown()
    await coordinator.async_save_state()

    return await hass.config_entries.async_unload_platforms(entry, PLATFORMS)


async def async_reload_entry(
    hass: HomeAssistant,
    entry: HotpotConfigEntry,
) -> None:
    """Reload config entry."""
    await hass.config_entries.async_reload(entry.entry_id)


__all__ = [
    "DOMAIN",
    "async_setup_entry",
    "async_unload_entry",
]
