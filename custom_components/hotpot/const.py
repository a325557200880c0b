"""Constants for Hotpot heating controller."""

from __future__ import annotations

import json
from enum import StrEnum
from logging import Logger, getLogger
from pathlib import Path
from typing import TypedDict

LOGGER: Logger = getLogger(__package__)

DOMAIN = "hotpot"

# Load version from manifest.json once at module load
MANIFEST_PATH = Path(__file__).parent / "manifest.json"
VERSION = json.loads(MANIFEST_PATH.read_text())["version"]

# Channels sharing the Y-plan valve
CHANNEL_CH = "CH"
CHANNEL_HW = "HW"

# Pseudo-channel addressing every thermostat or pin
CHANNEL_ALL = "ALL"

# Request source used by the override select entity
SELECT_REQUEST_SOURCE = "select"


class ControllerStatus(StrEnum):
    """Controller operational status for error tracking."""

    INITIALIZING = "initializing"  # No successful tick yet
    NORMAL = "normal"  # All rules evaluated and all pins written
    DEGRADED = "degraded"  # A sensor, rule or pin failed this tick


class RuleType(StrEnum):
    """Rule variants that can drive a pin."""

    CENTRAL_HEATING = "central_heating"
    HOT_WATER = "hot_water"
    MANUAL = "manual"


class PinOverride(StrEnum):
    """Options of the pin override select entity."""

    AUTO = "auto"
    ON = "on"
    OFF = "off"
    BOOST = "boost"


class TimingDefaults(TypedDict):
    """Type for DEFAULT_TIMING dictionary."""

    valve_return: int
    rule_interval: int
    override_duration: int


class TimelineDefaults(TypedDict):
    """Type for DEFAULT_TIMELINE dictionary."""

    minimum: float
    maximum: float
    period: int
    points: str


# Default timing parameters
DEFAULT_TIMING: TimingDefaults = {
    "valve_return": 8000,  # ms for the valve spring to return
    "rule_interval": 5000,  # ms between rule evaluations
    "override_duration": 3600,  # seconds an on/off override from the UI lasts
}

# Default timeline for a new channel
DEFAULT_TIMELINE: TimelineDefaults = {
    "minimum": 0.0,
    "maximum": 25.0,
    "period": 86400,
    "points": "00:00=10, 06:30=18, 22:00=18, 22:30=10",
}

# Default hysteresis window per rule type, in °C
DEFAULT_WINDOW: dict[RuleType, float] = {
    RuleType.CENTRAL_HEATING: 1.0,
    RuleType.HOT_WATER: 5.0,
    RuleType.MANUAL: 0.0,
}

# UI validation constraints for timing parameters (ms)
UI_TIMING_VALVE_RETURN = {"min": 0, "max": 60000, "step": 500}
UI_TIMING_RULE_INTERVAL = {"min": 1000, "max": 300000, "step": 1000}
UI_TIMING_OVERRIDE_DURATION = {"min": 60, "max": 86400, "step": 60}

# UI validation constraints for channel parameters
UI_WINDOW = {"min": 0.0, "max": 20.0, "step": 0.1}
UI_TIMELINE_BOUND = {"min": -20.0, "max": 90.0, "step": 0.5}

# Services
SERVICE_ADD_REQUEST = "add_request"
SERVICE_ADD_PIN_REQUEST = "add_pin_request"
SERVICE_PURGE_REQUESTS = "purge_requests"

ATTR_CONFIG_ENTRY_ID = "config_entry_id"
ATTR_SERVICE = "service"
ATTR_SOURCE = "source"
ATTR_TARGET = "target"
ATTR_STATE = "state"
ATTR_UNTIL = "until"
