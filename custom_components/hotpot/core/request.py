"""
Request model for Hotpot heating controller.

A request is a caller-scoped override of the normal schedule. Thermostat
requests carry a target temperature, pin requests carry a desired pin state.
Both expire at a concrete time or, for boost requests, when the rules decide
the boost has been satisfied.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import IntEnum
from typing import Any, Final, Literal

from .exceptions import InvalidRequestError

BOOST: Final = "boost"
NOW: Final = "now"

type Until = datetime | Literal["boost"]

_BOOST_TARGET = re.compile(r"^BOOST\s*(.*)$", re.IGNORECASE)


class PinState(IntEnum):
    """State a pin request asks for."""

    OFF = 0
    ON = 1
    BOOST = 2


@dataclass(frozen=True)
class Request:
    """A request for a thermostat target temperature."""

    source: str
    target: float
    until: Until

    @property
    def is_boost(self) -> bool:
        """Return True if this request expires on temperature, not time."""
        return self.until == BOOST

    def has_expired(self, now: datetime) -> bool:
        """Return True if the request has a concrete expiry in the past."""
        return not self.is_boost and self.until < now  # type: ignore[operator]

    def as_dict(self) -> dict[str, Any]:
        """Return a serialisable form of the request."""
        return {
            "source": self.source,
            "target": self.target,
            "until": _until_as_str(self.until),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Request:
        """Rebuild a request from its serialisable form."""
        return cls(
            source=data["source"],
            target=float(data["target"]),
            until=_until_from_str(data["until"]),
        )


@dataclass(frozen=True)
class PinRequest:
    """A request for a pin state."""

    source: str
    state: PinState
    until: Until

    @property
    def is_boost(self) -> bool:
        """
        Return True if this is a boost request.

        Boost requests never expire by time; the rule driving the pin purges
        them once the thermostat reaches its maximum temperature.
        """
        return self.state == PinState.BOOST or self.until == BOOST

    def has_expired(self, now: datetime) -> bool:
        """Return True if the request has a concrete expiry in the past."""
        if self.is_boost:
            return False
        return self.until < now  # type: ignore[operator]

    def as_dict(self) -> dict[str, Any]:
        """Return a serialisable form of the request."""
        return {
            "source": self.source,
            "state": int(self.state),
            "until": _until_as_str(self.until),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PinRequest:
        """Rebuild a pin request from its serialisable form."""
        return cls(
            source=data["source"],
            state=PinState(int(data["state"])),
            until=_until_from_str(data["until"]),
        )


def _until_as_str(until: Until) -> str:
    return BOOST if until == BOOST else until.isoformat()  # type: ignore[union-attr]


def _until_from_str(value: str) -> Until:
    if value == BOOST:
        return BOOST
    return datetime.fromisoformat(value)


def parse_until(value: str | datetime | float | None) -> Until | None:
    """
    Parse the expiry of a request.

    Accepted forms:
    - "boost": the request expires when its target is reached
    - "now": the request expires immediately; returns None so the caller
      purges any existing request from the same source instead
    - a datetime, an ISO 8601 string or epoch seconds

    Naive datetimes are interpreted in the local timezone.

    Raises:
        InvalidRequestError: If the value cannot be parsed.

    """
    if value is None:
        msg = "Request has no expiry"
        raise InvalidRequestError(msg)

    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.astimezone()

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=UTC)
        except (ValueError, OverflowError, OSError) as err:
            msg = f"Cannot parse request expiry '{value}'"
            raise InvalidRequestError(msg) from err

    text = value.strip()
    if text.lower() == BOOST:
        return BOOST
    if text.lower() == NOW:
        return None

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as err:
        msg = f"Cannot parse request expiry '{value}'"
        raise InvalidRequestError(msg) from err
    return parsed if parsed.tzinfo is not None else parsed.astimezone()


def parse_target(value: str | float) -> tuple[float, bool]:
    """
    Parse a requested target temperature.

    Accepts a number, "OFF" (target 0) or "BOOST <number>" which turns the
    request into a boost request.

    Returns:
        Tuple of (target, boost).

    Raises:
        InvalidRequestError: If the value cannot be parsed.

    """
    if isinstance(value, (int, float)):
        return float(value), False

    text = value.strip()
    boost = False
    match = _BOOST_TARGET.match(text)
    if match:
        boost = True
        text = match.group(1).strip()

    if text.upper() == "OFF":
        return 0.0, boost

    try:
        return float(text), boost
    except ValueError as err:
        msg = f"Bad target temperature in '{value}'"
        raise InvalidRequestError(msg) from err


def parse_pin_state(value: str | int) -> PinState:
    """
    Parse a requested pin state from 0/1/2 or off/on/boost.

    Raises:
        InvalidRequestError: If the value is not a known state.

    """
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            value = int(text)
        else:
            try:
                return PinState[text.upper()]
            except KeyError as err:
                msg = f"Unknown pin state '{value}'"
                raise InvalidRequestError(msg) from err
    try:
        return PinState(value)
    except ValueError as err:
        msg = f"Unknown pin state '{value}'"
        raise InvalidRequestError(msg) from err
