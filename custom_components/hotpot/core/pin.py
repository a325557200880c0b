"""
Pin state and pin request resolution for Hotpot heating controller.

A pin is a physical on/off output driving one heating channel. Besides the
state it last observed it keeps its own list of requests, used for direct
on/off/boost overrides that bypass the thermostat target.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from .exceptions import PinIOError
from .request import PinRequest, PinState, Until

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

type PinListener = Callable[[str, datetime, bool], None]


class PinBackend(Protocol):
    """Physical I/O for a single pin."""

    async def async_read_state(self) -> bool:
        """
        Read the physical state of the pin.

        Raises:
            PinIOError: If the state cannot be read.

        """
        ...

    async def async_write_state(self, state: bool) -> None:
        """
        Drive the pin to the given state.

        Raises:
            PinIOError: If the state cannot be written.

        """
        ...


class SimulatedPinBackend:
    """In-memory pin used when no switch is configured."""

    def __init__(self, *, state: bool = False) -> None:
        """Initialize with the given physical state."""
        self.state = state

    async def async_read_state(self) -> bool:
        """Return the simulated state."""
        return self.state

    async def async_write_state(self, state: bool) -> None:
        """Set the simulated state."""
        self.state = state


class Pin:
    """
    Physical output with its own request list.

    The requested state is what the controller last asked for; the state is
    what the backend last reported. A difference between the two, or a
    failed write, is a fault the operator can see.
    """

    def __init__(self, name: str, backend: PinBackend) -> None:
        """
        Initialize the pin.

        Args:
            name: Channel name the pin drives.
            backend: Physical I/O implementation.

        """
        self.name = name
        self.backend = backend
        self.state: bool | None = None
        self.requested_state: bool | None = None
        self.last_error: str | None = None
        self._read_failed = False
        self._requests: list[PinRequest] = []
        self._listeners: list[PinListener] = []

    @property
    def requests(self) -> tuple[PinRequest, ...]:
        """Return the active requests in insertion order."""
        return tuple(self._requests)

    @property
    def fault(self) -> bool:
        """Return True if the last I/O failed or the pin disagrees with the write."""
        if self.last_error is not None:
            return True
        return self.requested_state is not None and self.state != self.requested_state

    def add_listener(self, listener: PinListener) -> Callable[[], None]:
        """
        Register an observer of pin state changes.

        Returns:
            Callable that removes the listener again.

        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _observe(self, state: bool, now: datetime) -> None:
        if state == self.state:
            return
        self.state = state
        for listener in list(self._listeners):
            listener(self.name, now, state)

    async def async_get_state(self, now: datetime) -> bool:
        """
        Read the physical state from the backend.

        Raises:
            PinIOError: If the backend cannot be read.

        """
        try:
            state = bool(await self.backend.async_read_state())
        except PinIOError as err:
            self.last_error = str(err)
            self._read_failed = True
            raise
        if self._read_failed:
            self.last_error = None
            self._read_failed = False
        self._observe(state, now)
        return state

    async def async_set_state(self, state: bool, now: datetime) -> None:
        """
        Write the physical state through the backend.

        Raises:
            PinIOError: If the backend cannot be written. The requested state
                is kept so the mismatch stays visible.

        """
        self.requested_state = state
        try:
            await self.backend.async_write_state(state)
        except PinIOError as err:
            self.last_error = str(err)
            self._read_failed = False
            raise
        self.last_error = None
        self._read_failed = False
        self._observe(state, now)

    def add_request(self, source: str, state: PinState, until: Until) -> PinRequest:
        """
        Add a request, replacing any earlier request from the same source.

        Args:
            source: Unique key of the caller.
            state: Requested pin state.
            until: Expiry time, or BOOST to expire when the rule decides.

        Returns:
            The stored request.

        """
        self.purge_requests(source=source)
        request = PinRequest(source=source, state=state, until=until)
        self._requests.append(request)
        return request

    def restore_request(self, request: PinRequest) -> None:
        """Append a previously stored request, replacing its source."""
        self.purge_requests(source=request.source)
        self._requests.append(request)

    def purge_requests(
        self,
        state: PinState | None = None,
        source: str | None = None,
        now: datetime | None = None,
    ) -> list[PinRequest]:
        """
        Remove requests that match or have expired.

        A request is removed when its state or its source matches, or when it
        is not a boost request and its expiry lies before now.

        Returns:
            The removed requests.

        """
        kept: list[PinRequest] = []
        removed: list[PinRequest] = []
        for request in self._requests:
            if (
                (source is not None and request.source == source)
                or (state is not None and request.state == state)
                or (now is not None and request.has_expired(now))
            ):
                removed.append(request)
            else:
                kept.append(request)
        self._requests = kept
        return removed

    def get_active_request(self, now: datetime | None = None) -> PinRequest | None:
        """
        Return the request governing the pin, if any.

        Any OFF request wins over concurrent ON and BOOST requests; otherwise
        the earliest added request wins.
        """
        self.purge_requests(now=now)
        for request in self._requests:
            if request.state == PinState.OFF:
                return request
        return self._requests[0] if self._requests else None
