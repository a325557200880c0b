"""DataUpdateCoordinator for Hotpot heating controller."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from homeassistant.core import callback
from homeassistant.helpers.storage import Store
from homeassistant.helpers.update_coordinator import TimestampDataUpdateCoordinator
from homeassistant.util import dt as dt_util

from .const import (
    DEFAULT_TIMING,
    DOMAIN,
    LOGGER,
    SELECT_REQUEST_SOURCE,
    ControllerStatus,
    PinOverride,
)
from .core.controller import (
    ChannelConfig,
    ControllerConfig,
    HeatingController,
    RuleOutcome,
    SensorReadOutcome,
)
from .core.exceptions import PinIOError
from .core.interlock import InterlockAction
from .core.request import BOOST, PinState
from .hardware import EntityTemperatureSource, SwitchPinBackend

# Storage constants
STORAGE_VERSION = 1
STORAGE_KEY = "hotpot"

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .core.pin import PinBackend
    from .core.thermostat import TemperatureSource
    from .data import HotpotConfigEntry

_OVERRIDE_STATE: dict[PinOverride, PinState] = {
    PinOverride.ON: PinState.ON,
    PinOverride.OFF: PinState.OFF,
    PinOverride.BOOST: PinState.BOOST,
}


def get_timing(entry: HotpotConfigEntry) -> dict[str, int]:
    """Return timing options merged over the defaults."""
    return {**DEFAULT_TIMING, **entry.options.get("timing", {})}


class HotpotDataUpdateCoordinator(TimestampDataUpdateCoordinator[dict[str, Any]]):
    """
    Runs the rule poll loop of the Hotpot heating controller.

    Every tick reads the temperature sensors, purges expired requests and
    evaluates each channel's rule. A request from a service or the override
    select triggers an immediate tick.
    """

    config_entry: HotpotConfigEntry

    def __init__(
        self,
        hass: HomeAssistant,
        entry: HotpotConfigEntry,
    ) -> None:
        """Initialize the coordinator."""
        self._controller = self._build_controller(hass, entry)
        self._status: ControllerStatus = ControllerStatus.INITIALIZING

        super().__init__(
            hass,
            LOGGER,
            config_entry=entry,
            name=DOMAIN,
            update_interval=timedelta(seconds=self._controller.config.rule_interval),
        )
        self.config_entry = entry

        # Storage for active requests across restarts
        self._store: Store[dict[str, Any]] = Store(
            hass,
            STORAGE_VERSION,
            f"{STORAGE_KEY}.{entry.entry_id}",
        )
        self._state_restored: bool = False

        # Channels whose sensor or rule failed on the last tick
        self._failed_sensors: set[str] = set()
        self._failed_rules: set[str] = set()

        for channel_id in self._controller.channel_ids:
            runtime = self._controller.get_channel_runtime(channel_id)
            if runtime is None:
                continue
            runtime.thermostat.add_listener(self._on_observation)
            runtime.pin.add_listener(self._on_observation)

    @staticmethod
    def _build_controller(
        hass: HomeAssistant, entry: HotpotConfigEntry
    ) -> HeatingController:
        """
        Build HeatingController from config entry.

        Raises:
            ConfigValidationError: If a channel or its timeline is invalid.

        """
        data = entry.data
        timing = get_timing(entry)

        channels = [
            ChannelConfig.from_dict(channel)
            for channel in entry.options.get("channels", [])
        ]

        backends: dict[str, PinBackend] = {}
        sensors: dict[str, TemperatureSource] = {}
        for channel in channels:
            if channel.pin_switch:
                backends[channel.channel_id] = SwitchPinBackend(
                    hass, channel.pin_switch
                )
            if channel.temp_sensor:
                sensors[channel.channel_id] = EntityTemperatureSource(
                    hass, channel.temp_sensor
                )

        config = ControllerConfig(
            controller_id=data["controller_id"],
            name=data["name"],
            valve_return=timing["valve_return"] / 1000,
            rule_interval=timing["rule_interval"] / 1000,
            channels=channels,
        )

        return HeatingController(config, backends, sensors, clock=dt_util.utcnow)

    @property
    def controller(self) -> HeatingController:
        """Return the heating controller."""
        return self._controller

    @property
    def status(self) -> ControllerStatus:
        """Return the current controller operational status."""
        return self._status

    @callback
    def _on_observation(self, name: str, timestamp: datetime, value: Any) -> None:
        """Push a temperature or pin change to entities as it happens."""
        LOGGER.debug("Observed %s = %s at %s", name, value, timestamp.isoformat())
        if self.data is None:
            return
        self.data = self._build_state_dict(dt_util.now())
        self.async_update_listeners()

    async def async_load_stored_state(self) -> None:
        """Restore active requests saved before the last shutdown."""
        if self._state_restored:
            return
        self._state_restored = True

        stored_data = await self._store.async_load()
        if stored_data is None:
            return

        try:
            restored = self._controller.restore_requests(
                stored_data.get("requests", {}), dt_util.now()
            )
        except (KeyError, TypeError, ValueError):
            LOGGER.warning("Ignoring unreadable stored requests", exc_info=True)
            return
        LOGGER.debug("Restored %d requests from storage", restored)

    def _build_storage_state(self) -> dict[str, Any]:
        """Build state dictionary for persistent storage."""
        return {
            "version": STORAGE_VERSION,
            "saved_at": dt_util.utcnow().isoformat(),
            "requests": self._controller.export_requests(),
        }

    async def async_save_state(self) -> None:
        """Save active requests to storage."""
        await self._store.async_save(self._build_storage_state())

    def _async_refresh_finished(self) -> None:
        """Persist requests after each successful tick."""
        super()._async_refresh_finished()

        if self.last_update_success:
            self.hass.async_create_task(self.async_save_state())

    async def async_reset_valve(self) -> None:
        """Return the Y-plan valve to rest before the first tick."""
        try:
            if await self._controller.async_reset_valve():
                LOGGER.debug("Valve reset to rest position")
        except PinIOError as err:
            LOGGER.warning("Valve reset failed: %s", err)

    async def _async_update_data(self) -> dict[str, Any]:
        """Run one rule tick."""
        if not self._state_restored:
            await self.async_load_stored_state()

        now = dt_util.now()

        for sensor_outcome in await self._controller.async_update_temperatures(now):
            self._log_sensor_outcome(sensor_outcome)

        rule_outcomes = await self._controller.async_evaluate_rules(now)
        for rule_outcome in rule_outcomes:
            self._log_rule_outcome(rule_outcome)

        self._update_status()
        return self._build_state_dict(now)

    def _log_sensor_outcome(self, outcome: SensorReadOutcome) -> None:
        """Log sensor failures once and their recovery."""
        channel_id = outcome.channel_id
        if outcome.error is not None:
            if channel_id not in self._failed_sensors:
                LOGGER.warning(
                    "Channel %s temperature unavailable, keeping %s: %s",
                    channel_id,
                    outcome.temperature,
                    outcome.error,
                )
            self._failed_sensors.add(channel_id)
            return

        if channel_id in self._failed_sensors:
            self._failed_sensors.discard(channel_id)
            LOGGER.info("Channel %s temperature sensor recovered", channel_id)
        if outcome.changed:
            LOGGER.debug(
                "Channel %s temperature is now %s", channel_id, outcome.temperature
            )

    def _log_rule_outcome(self, outcome: RuleOutcome) -> None:
        """Log rule decisions, pin actions and failures."""
        channel_id = outcome.channel_id
        error = outcome.error
        if error is not None:
            if channel_id not in self._failed_rules:
                if isinstance(error, PinIOError):
                    LOGGER.warning("Channel %s pin I/O failed: %s", channel_id, error)
                else:
                    LOGGER.error(
                        "Channel %s: %s",
                        channel_id,
                        error,
                        exc_info=getattr(error, "cause", error),
                    )
            self._failed_rules.add(channel_id)
            return

        if channel_id in self._failed_rules:
            self._failed_rules.discard(channel_id)
            LOGGER.info("Channel %s recovered to normal operation", channel_id)

        if outcome.action == InterlockAction.INTERLOCKED:
            LOGGER.info(
                "Channel %s switched off via valve return sequence (%s)",
                channel_id,
                outcome.decision.reason if outcome.decision else "",
            )
        elif outcome.action == InterlockAction.DIRECT and outcome.decision:
            LOGGER.debug(
                "Channel %s switched %s: %s",
                channel_id,
                "on" if outcome.decision.state else "off",
                outcome.decision.reason,
            )

    def _update_status(self) -> None:
        """Update controller status from the failures of this tick."""
        previous = self._status
        if self._failed_sensors or self._failed_rules:
            self._status = ControllerStatus.DEGRADED
        else:
            self._status = ControllerStatus.NORMAL

        if previous == ControllerStatus.DEGRADED and self._status != previous:
            LOGGER.info("Controller recovered to normal operation")

    def _build_state_dict(self, now: datetime) -> dict[str, Any]:
        """Build state dictionary for entities to consume."""
        result: dict[str, Any] = {
            "controller_status": self._status.value,
            "valve_pending": self._controller.interlock.pending,
            "channels": {},
        }

        for channel_id in self._controller.channel_ids:
            runtime = self._controller.get_channel_runtime(channel_id)
            if runtime is None:
                continue
            thermostat = runtime.thermostat
            pin = runtime.pin
            boost = thermostat.get_active_boost(now)
            pin_request = pin.get_active_request(now)

            result["channels"][channel_id] = {
                "temperature": thermostat.temperature,
                "target": thermostat.get_target_temperature(now),
                "maximum": thermostat.get_maximum_temperature(),
                "boost": boost.target if boost else None,
                "requests": [request.as_dict() for request in thermostat.requests],
                "pin_state": pin.state,
                "requested_state": pin.requested_state,
                "pin_fault": pin.fault,
                "pin_error": pin.last_error,
                "pin_request": pin_request.state.name if pin_request else None,
                "pin_requests": [request.as_dict() for request in pin.requests],
                "override": self._current_override(channel_id),
                "rule": runtime.config.rule.value,
                "reason": (
                    runtime.last_decision.reason if runtime.last_decision else None
                ),
            }

        return result

    def _current_override(self, channel_id: str) -> PinOverride:
        """Return the override select option set for a channel."""
        pin = self._controller.get_pin(channel_id)
        for request in pin.requests:
            if request.source == SELECT_REQUEST_SOURCE:
                return PinOverride(request.state.name.lower())
        return PinOverride.AUTO

    async def async_add_request(
        self,
        service: str,
        source: str,
        target: str | float,
        until: str | datetime | float,
    ) -> None:
        """Add a thermostat request and trigger refresh."""
        self._controller.add_request(service, source, target, until)
        LOGGER.debug(
            "Request from %s for %s: target %s until %s", source, service, target, until
        )
        await self.async_request_refresh()

    async def async_add_pin_request(
        self,
        service: str,
        source: str,
        state: str | int,
        until: str | datetime | float,
    ) -> None:
        """Add a pin request and trigger refresh."""
        self._controller.add_pin_request(service, source, state, until)
        LOGGER.debug(
            "Pin request from %s for %s: state %s until %s", source, service, state, until
        )
        await self.async_request_refresh()

    async def async_purge_requests(self, service: str, source: str) -> int:
        """Remove a caller's requests and trigger refresh."""
        removed = self._controller.purge_requests(service, source)
        LOGGER.debug("Purged %d requests from %s on %s", removed, source, service)
        await self.async_request_refresh()
        return removed

    async def async_set_override(self, channel_id: str, option: PinOverride) -> None:
        """Apply an override select option to a channel's pin."""
        if option == PinOverride.AUTO:
            self._controller.get_pin(channel_id).purge_requests(
                source=SELECT_REQUEST_SOURCE
            )
        else:
            until: datetime | str = BOOST
            if option != PinOverride.BOOST:
                until = dt_util.utcnow() + timedelta(
                    seconds=get_timing(self.config_entry)["override_duration"]
                )
            self._controller.add_pin_request(
                channel_id, SELECT_REQUEST_SOURCE, _OVERRIDE_STATE[option], until
            )
        LOGGER.debug("Override for channel %s set to %s", channel_id, option)
        await self.async_request_refresh()
