"""
Thermostat state and target resolution for Hotpot heating controller.

A thermostat (channel) holds the sensed temperature of one heating circuit,
its timeline and the requests currently overriding that timeline. The target
temperature is resolved from these on every read.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from .request import Request, Until

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from .timeline import Timeline

type TemperatureListener = Callable[[str, datetime, float | None], None]


class Thermostat:
    """
    Sensed temperature, timeline and active requests for one channel.

    Requests are kept in insertion order. The most recently added boost
    request wins; otherwise the most recently added request wins; otherwise
    the timeline applies.
    """

    def __init__(self, name: str, timeline: Timeline) -> None:
        """
        Initialize the thermostat.

        Args:
            name: Channel name, e.g. "CH" or "HW".
            timeline: Schedule of target temperatures.

        """
        self.name = name
        self.timeline = timeline
        self.temperature: float | None = None
        self.last_reading: datetime | None = None
        self._requests: list[Request] = []
        self._listeners: list[TemperatureListener] = []

    @property
    def requests(self) -> tuple[Request, ...]:
        """Return the active requests in insertion order."""
        return tuple(self._requests)

    def add_listener(self, listener: TemperatureListener) -> Callable[[], None]:
        """
        Register an observer of temperature changes.

        Returns:
            Callable that removes the listener again.

        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def set_temperature(self, value: float | None, now: datetime) -> bool:
        """
        Record a sensed temperature and notify observers if it changed.

        Returns:
            True if the temperature changed.

        """
        self.last_reading = now
        if value == self.temperature:
            return False
        self.temperature = value
        for listener in list(self._listeners):
            listener(self.name, now, value)
        return True

    def add_request(self, source: str, target: float, until: Until) -> Request:
        """
        Add a request, replacing any earlier request from the same source.

        Args:
            source: Unique key of the caller.
            target: Requested target temperature.
            until: Expiry time, or BOOST to expire when the target is reached.

        Returns:
            The stored request.

        """
        self.purge_requests(source=source)
        request = Request(source=source, target=target, until=until)
        self._requests.append(request)
        return request

    def restore_request(self, request: Request) -> None:
        """Append a previously stored request, replacing its source."""
        self.purge_requests(source=request.source)
        self._requests.append(request)

    def purge_requests(
        self, source: str | None = None, now: datetime | None = None
    ) -> list[Request]:
        """
        Remove requests that match, are satisfied or have expired.

        A request is removed when its source matches, when it is a boost
        request and the sensed temperature has reached its target or the
        timeline maximum, or when its expiry lies before now.

        Args:
            source: Remove requests from this source.
            now: Current time; expiry is only checked when given.

        Returns:
            The removed requests.

        """
        kept: list[Request] = []
        removed: list[Request] = []
        for request in self._requests:
            if self._should_purge(request, source, now):
                removed.append(request)
            else:
                kept.append(request)
        self._requests = kept
        return removed

    def _should_purge(
        self, request: Request, source: str | None, now: datetime | None
    ) -> bool:
        if source is not None and request.source == source:
            return True
        if request.is_boost:
            return self.temperature is not None and (
                self.temperature >= request.target
                or self.temperature >= self.timeline.maximum
            )
        return now is not None and request.has_expired(now)

    def get_active_boost(self, now: datetime | None = None) -> Request | None:
        """Return the most recently added boost request, if any."""
        self.purge_requests(now=now)
        for request in reversed(self._requests):
            if request.is_boost:
                return request
        return None

    def get_active_request(self, now: datetime | None = None) -> Request | None:
        """Return the request that currently governs the target, if any."""
        boost = self.get_active_boost(now)
        if boost is not None:
            return boost
        return self._requests[-1] if self._requests else None

    def get_target_temperature(self, now: datetime) -> float:
        """
        Resolve the effective target temperature.

        Args:
            now: Current local time; its time of day indexes the timeline.

        Returns:
            Target of the governing request, or the timeline value.

        """
        request = self.get_active_request(now)
        if request is not None:
            return request.target
        return self.timeline.value_at_time(now)

    def get_maximum_temperature(self) -> float:
        """Return the timeline peak, raised by any active boost target above it."""
        maximum = self.timeline.max_value()
        for request in self._requests:
            if request.is_boost and request.target > maximum:
                maximum = request.target
        return maximum


class TemperatureSource(Protocol):
    """Reads the temperature a thermostat senses."""

    async def async_read(self) -> float:
        """
        Read the current temperature.

        Raises:
            SensorReadError: If the sensor cannot be read.

        """
        ...
