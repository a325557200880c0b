"""Select platform for Hotpot."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from homeassistant.components.select import SelectEntity

from .const import PinOverride
from .entity import HotpotChannelEntity

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant
    from homeassistant.helpers.entity_platform import AddConfigEntryEntitiesCallback

    from .coordinator import HotpotDataUpdateCoordinator
    from .data import HotpotConfigEntry


async def async_setup_entry(
    _hass: HomeAssistant,
    entry: HotpotConfigEntry,
    async_add_entities: AddConfigEntryEntitiesCallback,
) -> None:
    """Set up the select platform."""
    coordinator = entry.runtime_data.coordinator

    async_add_entities(
        HotpotOverrideSelect(
            coordinator, channel["id"], channel.get("name", channel["id"])
        )
        for channel in entry.options.get("channels", [])
    )


class HotpotOverrideSelect(HotpotChannelEntity, SelectEntity):
    """
    Select entity overriding a channel's pin.

    "on" and "off" hold for the configured override duration, "boost" lasts
    until the channel reaches its maximum temperature and "auto" hands the
    pin back to its rule.
    """

    _attr_translation_key = "override"
    _attr_options: ClassVar[list[str]] = [option.value for option in PinOverride]

    def __init__(
        self,
        coordinator: HotpotDataUpdateCoordinator,
        channel_id: str,
        channel_name: str,
    ) -> None:
        """Initialize the select entity."""
        super().__init__(coordinator, channel_id, channel_name, "override")

    @property
    def current_option(self) -> str:
        """Return the current override."""
        return self.channel_data.get("override", PinOverride.AUTO)

    async def async_select_option(self, option: str) -> None:
        """Set the override."""
        await self.coordinator.async_set_override(self._channel_id, PinOverride(option))
