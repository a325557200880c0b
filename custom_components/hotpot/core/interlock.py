"""
Y-plan valve interlock for Hotpot heating controller.

Central heating (CH) and hot water (HW) share a three-way valve driven by a
spring-return motor. Switching CH off while HW is also off leaves the motor
holding the valve against its spring with nothing to release it. The
interlock avoids this by powering HW for long enough that the valve returns,
then latching CH off.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from enum import StrEnum
from functools import partial
from typing import TYPE_CHECKING

from custom_components.hotpot.const import CHANNEL_CH, CHANNEL_HW

from .exceptions import UnknownChannelError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping

    from .pin import Pin


class InterlockAction(StrEnum):
    """
    What a set_state call did to the pins.

    Returned so the caller can log the transition.
    """

    NO_CHANGE = "no_change"  # Pin already in the desired state
    DIRECT = "direct"  # Single write to the pin
    INTERLOCKED = "interlocked"  # CH off via the valve return sequence


class ValveInterlock:
    """
    Serialises pin writes and applies the valve return sequence.

    At most one valve transition is in flight. Calls arriving while one is
    pending wait valve_return and try again.
    """

    def __init__(
        self,
        pins: Mapping[str, Pin],
        valve_return: float,
        *,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        clock: Callable[[], datetime] = partial(datetime.now, UTC),
    ) -> None:
        """
        Initialize the interlock.

        Args:
            pins: Pins by channel name, shared with the controller.
            valve_return: Seconds the valve spring needs to return.
            sleep: Coroutine used to wait.
            clock: Source of observation timestamps.

        """
        self._pins = pins
        self.valve_return = valve_return
        self.pending = False
        self._sleep = sleep
        self._clock = clock

    def _pin(self, channel: str) -> Pin:
        try:
            return self._pins[channel]
        except KeyError as err:
            msg = f"No pin named '{channel}'"
            raise UnknownChannelError(msg) from err

    async def _wait_idle(self) -> None:
        while self.pending:
            await self._sleep(self.valve_return)

    async def async_set_state(self, channel: str, state: bool) -> InterlockAction:
        """
        Drive a pin to the desired state.

        Switching CH off while CH is on and HW is off runs the valve return
        sequence: CH off, HW on, wait valve_return, CH off. HW is left on for
        the next rule evaluation to decide.

        Args:
            channel: Name of the pin to drive.
            state: Desired state.

        Returns:
            The action taken.

        Raises:
            PinIOError: If a pin cannot be read or written. The pending flag
                is cleared before the error propagates.
            UnknownChannelError: If there is no pin with that name.

        """
        pin = self._pin(channel)
        hot_water = self._pins.get(CHANNEL_HW) if channel == CHANNEL_CH else None

        while True:
            await self._wait_idle()
            current = await pin.async_get_state(self._clock())
            hw_state = None
            # HW only matters when CH is about to go from on to off
            if hot_water is not None and current and not state:
                hw_state = await hot_water.async_get_state(self._clock())
            # Another transition may have started while reading
            if not self.pending:
                break

        if current == state:
            return InterlockAction.NO_CHANGE

        if hot_water is None or state or hw_state:
            await pin.async_set_state(state, self._clock())
            return InterlockAction.DIRECT

        self.pending = True
        try:
            await pin.async_set_state(False, self._clock())
            await hot_water.async_set_state(True, self._clock())
            await self._sleep(self.valve_return)
            await pin.async_set_state(False, self._clock())
        finally:
            self.pending = False
        return InterlockAction.INTERLOCKED

    async def async_reset_valve(self) -> bool:
        """
        Return the valve to its rest position.

        Runs HW on, wait valve_return, CH off, HW off. Used at startup when
        the valve position is unknown.

        Returns:
            False if CH or HW is not configured and nothing was done.

        Raises:
            PinIOError: If a pin cannot be written.

        """
        central = self._pins.get(CHANNEL_CH)
        hot_water = self._pins.get(CHANNEL_HW)
        if central is None or hot_water is None:
            return False

        await self._wait_idle()
        self.pending = True
        try:
            await hot_water.async_set_state(True, self._clock())
            await self._sleep(self.valve_return)
            await central.async_set_state(False, self._clock())
            await hot_water.async_set_state(False, self._clock())
        finally:
            self.pending = False
        return True
