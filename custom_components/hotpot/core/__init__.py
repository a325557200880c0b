"""Core control logic for Hotpot heating controller."""

from .controller import (
    ChannelConfig,
    ChannelRuntime,
    ControllerConfig,
    HeatingController,
    RuleOutcome,
    SensorReadOutcome,
)
from .exceptions import (
    ConfigValidationError,
    HotpotError,
    InvalidRequestError,
    PinIOError,
    RuleEvaluationError,
    SensorReadError,
    TimelineError,
    UnknownChannelError,
)
from .interlock import InterlockAction, ValveInterlock
from .pin import Pin, PinBackend, SimulatedPinBackend
from .request import (
    BOOST,
    PinRequest,
    PinState,
    Request,
    parse_pin_state,
    parse_target,
    parse_until,
)
from .rules import (
    CentralHeatingRule,
    HotWaterRule,
    ManualRule,
    RuleDecision,
    ThermostatRule,
    build_rule,
)
from .thermostat import TemperatureSource, Thermostat
from .timeline import Timeline, TimelinePoint, parse_points, parse_time_of_day

__all__ = [
    "BOOST",
    "CentralHeatingRule",
    "ChannelConfig",
    "ChannelRuntime",
    "ConfigValidationError",
    "ControllerConfig",
    "HeatingController",
    "HotWaterRule",
    "HotpotError",
    "InterlockAction",
    "InvalidRequestError",
    "ManualRule",
    "Pin",
    "PinBackend",
    "PinIOError",
    "PinRequest",
    "PinState",
    "Request",
    "RuleDecision",
    "RuleEvaluationError",
    "RuleOutcome",
    "SensorReadError",
    "SensorReadOutcome",
    "SimulatedPinBackend",
    "TemperatureSource",
    "Thermostat",
    "ThermostatRule",
    "Timeline",
    "TimelineError",
    "TimelinePoint",
    "UnknownChannelError",
    "ValveInterlock",
    "build_rule",
    "parse_pin_state",
    "parse_points",
    "parse_target",
    "parse_time_of_day",
    "parse_until",
]
