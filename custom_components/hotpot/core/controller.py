"""
Controller logic for Hotpot heating controller.

This module provides the HeatingController class that owns the thermostats,
pins and rules of every channel, routes requests to them and runs the rule
evaluation behind each poll tick.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import partial
from typing import TYPE_CHECKING, Any

from custom_components.hotpot.const import (
    CHANNEL_ALL,
    DEFAULT_TIMELINE,
    DEFAULT_TIMING,
    RuleType,
)

from .exceptions import (
    ConfigValidationError,
    HotpotError,
    PinIOError,
    RuleEvaluationError,
    SensorReadError,
    UnknownChannelError,
)
from .interlock import InterlockAction, ValveInterlock
from .pin import Pin, SimulatedPinBackend
from .request import (
    BOOST,
    PinRequest,
    PinState,
    Request,
    parse_pin_state,
    parse_target,
    parse_until,
)
from .rules import RuleDecision, ThermostatRule, build_rule
from .thermostat import Thermostat
from .timeline import Timeline

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from .pin import PinBackend
    from .thermostat import TemperatureSource


@dataclass
class ChannelConfig:
    """Configuration for a single channel."""

    channel_id: str
    name: str
    timeline: Timeline
    rule: RuleType = RuleType.CENTRAL_HEATING
    window: float | None = None
    temp_sensor: str | None = None
    pin_switch: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChannelConfig:
        """
        Build a channel configuration from its stored form.

        Raises:
            ConfigValidationError: If required fields are missing or invalid.

        """
        try:
            channel_id = data["id"]
        except KeyError as err:
            msg = "Channel configuration is missing 'id'"
            raise ConfigValidationError(msg) from err

        try:
            rule = RuleType(data.get("rule", RuleType.CENTRAL_HEATING))
        except ValueError as err:
            msg = f"Channel {channel_id} has unknown rule '{data.get('rule')}'"
            raise ConfigValidationError(msg) from err

        window = data.get("window")
        if window is not None and window < 0:
            msg = f"Channel {channel_id} has negative window {window}"
            raise ConfigValidationError(msg)

        return cls(
            channel_id=channel_id,
            name=data.get("name", channel_id),
            timeline=Timeline.from_dict(data.get("timeline", DEFAULT_TIMELINE)),
            rule=rule,
            window=window,
            temp_sensor=data.get("temp_sensor") or None,
            pin_switch=data.get("pin_switch") or None,
        )


@dataclass
class ControllerConfig:
    """Configuration for the heating controller."""

    controller_id: str
    name: str
    valve_return: float = DEFAULT_TIMING["valve_return"] / 1000  # seconds
    rule_interval: float = DEFAULT_TIMING["rule_interval"] / 1000  # seconds
    channels: list[ChannelConfig] = field(default_factory=list)


@dataclass
class SensorReadOutcome:
    """Result of reading one channel's temperature sensor."""

    channel_id: str
    temperature: float | None
    changed: bool = False
    error: SensorReadError | None = None


@dataclass
class RuleOutcome:
    """
    Result of evaluating one channel's rule.

    A failed rule or pin read or write is captured here instead of aborting
    the tick so the remaining channels are still evaluated.
    """

    channel_id: str
    decision: RuleDecision | None = None
    action: InterlockAction | None = None
    error: HotpotError | None = None

    @property
    def failed(self) -> bool:
        """Return True if the rule or its pin I/O failed."""
        return self.error is not None


@dataclass
class ChannelRuntime:
    """Runtime objects of one channel."""

    config: ChannelConfig
    thermostat: Thermostat
    pin: Pin
    rule: ThermostatRule
    sensor: TemperatureSource | None = None
    last_decision: RuleDecision | None = None


class HeatingController:
    """
    Main heating controller coordinating all channels.

    Owns a thermostat, pin and rule per channel plus the valve interlock
    that serialises every pin write.
    """

    def __init__(
        self,
        config: ControllerConfig,
        backends: Mapping[str, PinBackend] | None = None,
        sensors: Mapping[str, TemperatureSource] | None = None,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        clock: Callable[[], datetime] = partial(datetime.now, UTC),
    ) -> None:
        """
        Initialize the heating controller.

        Args:
            config: Controller configuration.
            backends: Pin I/O by channel id. Channels without one are simulated.
            sensors: Temperature sources by channel id.
            sleep: Coroutine used by the interlock to wait.
            clock: Source of observation timestamps.

        """
        self.config = config
        backends = backends or {}
        sensors = sensors or {}

        self._channels: dict[str, ChannelRuntime] = {}
        for channel in config.channels:
            if channel.channel_id in self._channels:
                msg = f"Duplicate channel id '{channel.channel_id}'"
                raise ConfigValidationError(msg)
            self._channels[channel.channel_id] = ChannelRuntime(
                config=channel,
                thermostat=Thermostat(channel.channel_id, channel.timeline),
                pin=Pin(
                    channel.channel_id,
                    backends.get(channel.channel_id) or SimulatedPinBackend(),
                ),
                rule=build_rule(channel.rule, channel.window),
                sensor=sensors.get(channel.channel_id),
            )

        self._pins = {
            channel_id: runtime.pin for channel_id, runtime in self._channels.items()
        }
        self.interlock = ValveInterlock(
            self._pins, config.valve_return, sleep=sleep, clock=clock
        )

    @property
    def channel_ids(self) -> list[str]:
        """Return list of channel IDs in configuration order."""
        return list(self._channels.keys())

    def get_channel_runtime(self, channel_id: str) -> ChannelRuntime | None:
        """Get runtime for a specific channel."""
        return self._channels.get(channel_id)

    def get_thermostat(self, channel_id: str) -> Thermostat:
        """
        Get the thermostat of a channel.

        Raises:
            UnknownChannelError: If there is no such channel.

        """
        return self._runtime(channel_id).thermostat

    def get_pin(self, channel_id: str) -> Pin:
        """
        Get the pin of a channel.

        Raises:
            UnknownChannelError: If there is no such channel.

        """
        return self._runtime(channel_id).pin

    def _runtime(self, channel_id: str) -> ChannelRuntime:
        try:
            return self._channels[channel_id]
        except KeyError as err:
            msg = f"Unknown channel '{channel_id}'"
            raise UnknownChannelError(msg) from err

    def _select(self, service: str) -> list[ChannelRuntime]:
        """Resolve a channel id or ALL into the addressed channels."""
        if service == CHANNEL_ALL:
            return list(self._channels.values())
        return [self._runtime(service)]

    def add_request(
        self,
        service: str,
        source: str,
        target: str | float,
        until: str | datetime | float,
    ) -> list[Request]:
        """
        Add a thermostat request to a channel or to ALL channels.

        Args:
            service: Channel id, or ALL.
            source: Unique key of the caller.
            target: Temperature, "OFF" or "BOOST <temperature>".
            until: Expiry as datetime, ISO string or epoch seconds, "boost",
                or "now" to remove the caller's request instead.

        Returns:
            The requests stored, one per addressed channel.

        Raises:
            InvalidRequestError: If target or until cannot be parsed.
            UnknownChannelError: If the channel does not exist.

        """
        channels = self._select(service)
        expiry = parse_until(until)
        if expiry is None:
            for runtime in channels:
                runtime.thermostat.purge_requests(source=source)
            return []

        value, boost = parse_target(target)
        if boost:
            expiry = BOOST
        return [
            runtime.thermostat.add_request(source, value, expiry)
            for runtime in channels
        ]

    def add_pin_request(
        self,
        service: str,
        source: str,
        state: str | int,
        until: str | datetime | float,
    ) -> list[PinRequest]:
        """
        Add a pin request to a channel or to ALL channels.

        An expiry of "boost" turns the request into a BOOST request.

        Returns:
            The requests stored, one per addressed channel.

        Raises:
            InvalidRequestError: If state or until cannot be parsed.
            UnknownChannelError: If the channel does not exist.

        """
        channels = self._select(service)
        expiry = parse_until(until)
        if expiry is None:
            for runtime in channels:
                runtime.pin.purge_requests(source=source)
            return []

        pin_state = PinState.BOOST if expiry == BOOST else parse_pin_state(state)
        return [runtime.pin.add_request(source, pin_state, expiry) for runtime in channels]

    def purge_requests(self, service: str, source: str) -> int:
        """
        Remove a caller's thermostat and pin requests.

        Returns:
            Number of requests removed.

        Raises:
            UnknownChannelError: If the channel does not exist.

        """
        removed = 0
        for runtime in self._select(service):
            removed += len(runtime.thermostat.purge_requests(source=source))
            removed += len(runtime.pin.purge_requests(source=source))
        return removed

    async def async_update_temperatures(self, now: datetime) -> list[SensorReadOutcome]:
        """
        Read every configured temperature sensor.

        A failed read keeps the last known temperature.
        """
        outcomes: list[SensorReadOutcome] = []
        for channel_id, runtime in self._channels.items():
            if runtime.sensor is None:
                continue
            try:
                temperature = await runtime.sensor.async_read()
            except SensorReadError as err:
                outcomes.append(
                    SensorReadOutcome(
                        channel_id=channel_id,
                        temperature=runtime.thermostat.temperature,
                        error=err,
                    )
                )
                continue
            changed = runtime.thermostat.set_temperature(temperature, now)
            outcomes.append(
                SensorReadOutcome(
                    channel_id=channel_id, temperature=temperature, changed=changed
                )
            )
        return outcomes

    def purge_expired(self, now: datetime) -> None:
        """Purge expired and satisfied requests on every channel."""
        for runtime in self._channels.values():
            runtime.thermostat.purge_requests(now=now)
            runtime.pin.purge_requests(now=now)

    async def async_evaluate_rules(self, now: datetime) -> list[RuleOutcome]:
        """
        Run one rule tick.

        Purges every channel first, then evaluates each rule and applies its
        decision through the interlock. Failures are isolated per channel.

        Args:
            now: Current local time.

        Returns:
            Outcome per channel in configuration order.

        """
        self.purge_expired(now)

        outcomes: list[RuleOutcome] = []
        for channel_id, runtime in self._channels.items():
            outcome = RuleOutcome(channel_id=channel_id)
            outcomes.append(outcome)
            try:
                decision = runtime.rule.evaluate(runtime.thermostat, runtime.pin, now)
            except Exception as err:  # noqa: BLE001
                outcome.error = RuleEvaluationError(runtime.config.rule, err)
                continue

            outcome.decision = decision
            runtime.last_decision = decision
            if decision.state is None:
                outcome.action = InterlockAction.NO_CHANGE
                # Keep the observed state current while the rule holds
                try:
                    await runtime.pin.async_get_state(now)
                except PinIOError as err:
                    outcome.error = err
                continue

            try:
                outcome.action = await self.interlock.async_set_state(
                    channel_id, decision.state
                )
            except PinIOError as err:
                outcome.error = err
        return outcomes

    async def async_reset_valve(self) -> bool:
        """
        Return the Y-plan valve to its rest position.

        Returns:
            False if the controller has no CH and HW pair.

        Raises:
            PinIOError: If a pin cannot be written.

        """
        return await self.interlock.async_reset_valve()

    def export_requests(self) -> dict[str, dict[str, list[dict[str, Any]]]]:
        """Return active requests of every channel in serialisable form."""
        return {
            channel_id: {
                "thermostat": [
                    request.as_dict() for request in runtime.thermostat.requests
                ],
                "pin": [request.as_dict() for request in runtime.pin.requests],
            }
            for channel_id, runtime in self._channels.items()
        }

    def restore_requests(
        self, data: Mapping[str, Mapping[str, list[dict[str, Any]]]], now: datetime
    ) -> int:
        """
        Restore requests exported earlier, skipping expired ones.

        Channels that no longer exist are ignored.

        Returns:
            Number of requests restored.

        """
        restored = 0
        for channel_id, requests in data.items():
            runtime = self._channels.get(channel_id)
            if runtime is None:
                continue
            for item in requests.get("thermostat", []):
                request = Request.from_dict(item)
                if not request.has_expired(now):
                    runtime.thermostat.restore_request(request)
                    restored += 1
            for item in requests.get("pin", []):
                pin_request = PinRequest.from_dict(item)
                if not pin_request.has_expired(now):
                    runtime.pin.restore_request(pin_request)
                    restored += 1
        return restored
