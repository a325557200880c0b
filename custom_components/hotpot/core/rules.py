"""
Rules deciding pin states for Hotpot heating controller.

Each channel is driven by one rule chosen from a closed set. A rule looks at
the channel's thermostat and pin and decides whether the pin should be on,
off, or left as it is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from custom_components.hotpot.const import DEFAULT_WINDOW, RuleType

from .exceptions import ConfigValidationError
from .request import PinState

if TYPE_CHECKING:
    from datetime import datetime

    from .pin import Pin
    from .thermostat import Thermostat


@dataclass(frozen=True)
class RuleDecision:
    """Desired pin state and why. A state of None holds the current state."""

    state: bool | None
    reason: str


class ThermostatRule:
    """
    Base rule: pin requests first, then the thermostat with hysteresis.

    Pin requests take priority. An OFF request turns the pin off, an ON
    request turns it on and a BOOST request keeps it on until the thermostat
    reaches its maximum temperature, at which point the boost is purged.

    Without a pin request the pin is switched on below target - window/2 and
    off above target + window/2. In between the pin is left alone.
    """

    rule_type: ClassVar[RuleType]

    def __init__(self, window: float | None = None) -> None:
        """Initialize with a hysteresis window in °C."""
        self.window = DEFAULT_WINDOW[self.rule_type] if window is None else window

    def evaluate(self, thermostat: Thermostat, pin: Pin, now: datetime) -> RuleDecision:
        """
        Decide the pin state.

        Args:
            thermostat: Thermostat of the channel.
            pin: Pin of the channel.
            now: Current local time.

        Returns:
            The decision for the pin.

        """
        decision = self._evaluate_pin_request(thermostat, pin, now)
        if decision is not None:
            return decision
        return self._evaluate_thermostat(thermostat, now)

    def _evaluate_pin_request(
        self, thermostat: Thermostat, pin: Pin, now: datetime
    ) -> RuleDecision | None:
        request = pin.get_active_request(now)
        if request is None:
            return None

        if request.state == PinState.OFF:
            return RuleDecision(state=False, reason=f"off requested by {request.source}")
        if request.state == PinState.ON:
            return RuleDecision(state=True, reason=f"on requested by {request.source}")

        temperature = thermostat.temperature
        if temperature is None:
            return RuleDecision(state=False, reason="boost waiting for temperature")
        maximum = thermostat.get_maximum_temperature()
        if temperature >= maximum:
            pin.purge_requests(state=PinState.BOOST)
            return RuleDecision(
                state=False, reason=f"boost reached {maximum:g}, cleared"
            )
        return RuleDecision(
            state=True, reason=f"boost requested by {request.source} to {maximum:g}"
        )

    def _evaluate_thermostat(
        self, thermostat: Thermostat, now: datetime
    ) -> RuleDecision:
        temperature = thermostat.temperature
        if temperature is None:
            return RuleDecision(state=False, reason="temperature unknown")

        target = thermostat.get_target_temperature(now)
        half_window = self.window / 2
        if temperature < target - half_window:
            return RuleDecision(
                state=True, reason=f"{temperature:g} below target {target:g}"
            )
        if temperature > target + half_window:
            return RuleDecision(
                state=False, reason=f"{temperature:g} above target {target:g}"
            )
        return RuleDecision(
            state=None, reason=f"{temperature:g} within window of {target:g}"
        )


class CentralHeatingRule(ThermostatRule):
    """Space heating; tight window around the room temperature target."""

    rule_type = RuleType.CENTRAL_HEATING


class HotWaterRule(ThermostatRule):
    """Cylinder heating; wide window to avoid short cycling the boiler."""

    rule_type = RuleType.HOT_WATER


class ManualRule(ThermostatRule):
    """Only pin requests switch the pin on; otherwise it stays off."""

    rule_type = RuleType.MANUAL

    def _evaluate_thermostat(
        self,
        thermostat: Thermostat,  # noqa: ARG002
        now: datetime,  # noqa: ARG002
    ) -> RuleDecision:
        return RuleDecision(state=False, reason="no request")


RULES: dict[RuleType, type[ThermostatRule]] = {
    RuleType.CENTRAL_HEATING: CentralHeatingRule,
    RuleType.HOT_WATER: HotWaterRule,
    RuleType.MANUAL: ManualRule,
}


def build_rule(rule_type: str, window: float | None = None) -> ThermostatRule:
    """
    Create the rule selected by configuration.

    Raises:
        ConfigValidationError: If the rule type is not known.

    """
    try:
        rule_class = RULES[RuleType(rule_type)]
    except ValueError as err:
        msg = f"Unknown rule '{rule_type}'"
        raise ConfigValidationError(msg) from err
    return rule_class(window)
