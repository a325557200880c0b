"""Custom types for hotpot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry

    from .coordinator import HotpotDataUpdateCoordinator


type HotpotConfigEntry = ConfigEntry[HotpotData]


@dataclass
class HotpotData:
    """Data for the Hotpot integration."""

    coordinator: HotpotDataUpdateCoordinator
