"""
Timeline schedule for Hotpot heating controller.

A timeline is a piecewise-linear schedule of target values over a repeating
period (normally one day). It is a pure function of the time of day and is
rebuilt wholesale whenever the configuration changes.
"""

from __future__ import annotations

import re
from bisect import bisect_right
from dataclasses import dataclass
from datetime import datetime, time
from typing import TYPE_CHECKING, Any

from .exceptions import TimelineError

if TYPE_CHECKING:
    from collections.abc import Iterable

SECONDS_PER_DAY = 86400

_TIME_OF_DAY = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2})(?:\.(\d{1,6}))?)?$")
_POINT_SEPARATOR = re.compile(r"[,;\n]+")


@dataclass(frozen=True)
class TimelinePoint:
    """A control point: value reached at a time offset into the period."""

    time: float  # seconds since the start of the period
    value: float


def parse_time_of_day(text: str) -> float:
    """
    Parse a time of day into seconds since midnight.

    Accepts "HH:MM", "HH:MM:SS" and "HH:MM:SS.fff".

    Args:
        text: Time of day string.

    Returns:
        Seconds since midnight.

    Raises:
        TimelineError: If the string is not a valid time of day.

    """
    match = _TIME_OF_DAY.match(text.strip())
    if match is None:
        msg = f"Invalid time of day '{text}'"
        raise TimelineError(msg)

    hours, minutes, seconds, fraction = match.groups()
    if int(hours) > 23 or int(minutes) > 59 or int(seconds or 0) > 59:  # noqa: PLR2004
        msg = f"Time of day out of range '{text}'"
        raise TimelineError(msg)

    total = int(hours) * 3600 + int(minutes) * 60 + int(seconds or 0)
    if fraction:
        total += float(f"0.{fraction}")
    return float(total)


def format_time_of_day(seconds: float) -> str:
    """Format seconds since midnight as HH:MM, adding seconds only when needed."""
    whole, millis = divmod(round(seconds * 1000), 1000)
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    if millis:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"
    if secs:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}"


def parse_points(text: str) -> list[TimelinePoint]:
    """
    Parse control points from "HH:MM=value" entries.

    Entries are separated by commas, semicolons or newlines.

    Raises:
        TimelineError: If an entry is malformed.

    """
    points: list[TimelinePoint] = []
    for entry in _POINT_SEPARATOR.split(text):
        if not entry.strip():
            continue
        when, sep, value = entry.partition("=")
        if not sep:
            msg = f"Timeline entry '{entry.strip()}' is not of the form HH:MM=value"
            raise TimelineError(msg)
        try:
            points.append(TimelinePoint(parse_time_of_day(when), float(value)))
        except ValueError as err:
            msg = f"Invalid value in timeline entry '{entry.strip()}'"
            raise TimelineError(msg) from err
    return points


def format_points(points: Iterable[TimelinePoint]) -> str:
    """Format control points in the form accepted by parse_points."""
    return ", ".join(
        f"{format_time_of_day(point.time)}={point.value:g}" for point in points
    )


def _seconds_into_day(when: time | datetime | float) -> float:
    """Convert a time of day or datetime into seconds since midnight."""
    if isinstance(when, (int, float)):
        return float(when)
    return (
        when.hour * 3600 + when.minute * 60 + when.second + when.microsecond / 1e6
    )


class Timeline:
    """
    Piecewise-linear schedule over a repeating period.

    Points are sorted by time and lie within [0, period). Between two points
    the value is linearly interpolated; after the last point it interpolates
    towards the first point of the next period.
    """

    def __init__(
        self,
        points: Iterable[TimelinePoint],
        *,
        minimum: float,
        maximum: float,
        period: float = SECONDS_PER_DAY,
    ) -> None:
        """
        Initialize and validate the timeline.

        Args:
            points: Control points, sorted by time.
            minimum: Lowest value a point may take.
            maximum: Highest value a point may take; also the boost ceiling.
            period: Length of the repeating period in seconds.

        Raises:
            TimelineError: If the points are empty, unsorted or out of bounds.

        """
        self._points: tuple[TimelinePoint, ...] = tuple(points)
        self.minimum = minimum
        self.maximum = maximum
        self.period = period
        self._validate()
        self._times = [point.time for point in self._points]

    def _validate(self) -> None:
        if self.period <= 0:
            msg = f"Timeline period must be positive, got {self.period}"
            raise TimelineError(msg)
        if self.minimum > self.maximum:
            msg = f"Timeline minimum {self.minimum} exceeds maximum {self.maximum}"
            raise TimelineError(msg)
        if not self._points:
            msg = "Timeline has no points"
            raise TimelineError(msg)

        previous: TimelinePoint | None = None
        for point in self._points:
            if not 0 <= point.time < self.period:
                msg = f"Timeline point at {point.time}s is outside the period"
                raise TimelineError(msg)
            if not self.minimum <= point.value <= self.maximum:
                msg = (
                    f"Timeline value {point.value} at "
                    f"{format_time_of_day(point.time)} is outside "
                    f"[{self.minimum}, {self.maximum}]"
                )
                raise TimelineError(msg)
            if previous is not None and point.time <= previous.time:
                msg = (
                    f"Timeline points are not sorted at "
                    f"{format_time_of_day(point.time)}"
                )
                raise TimelineError(msg)
            previous = point

    @property
    def points(self) -> tuple[TimelinePoint, ...]:
        """Return the control points."""
        return self._points

    def value_at_time(self, when: time | datetime | float) -> float:
        """
        Get the interpolated value at a time of day.

        Args:
            when: Time of day, datetime (its time of day is used) or seconds
                since the start of the period.

        Returns:
            The value linearly interpolated between the bracketing points.

        """
        offset = _seconds_into_day(when) % self.period
        index = bisect_right(self._times, offset) - 1

        if index < 0:
            # Before the first point: bracket with the last point of the
            # previous period
            last = self._points[-1]
            before = TimelinePoint(last.time - self.period, last.value)
            after = self._points[0]
        else:
            before = self._points[index]
            if index + 1 < len(self._points):
                after = self._points[index + 1]
            else:
                first = self._points[0]
                after = TimelinePoint(first.time + self.period, first.value)

        span = after.time - before.time
        if span <= 0:
            return before.value
        fraction = (offset - before.time) / span
        return before.value + (after.value - before.value) * fraction

    def max_value(self) -> float:
        """Return the highest value across the control points."""
        return max(point.value for point in self._points)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Timeline:
        """
        Build a timeline from its stored configuration.

        Points may be given as a list of {"time", "value"} mappings or in the
        text form accepted by parse_points.

        Raises:
            TimelineError: If required fields are missing or invalid.

        """
        try:
            raw_points = data["points"]
            minimum = float(data["minimum"])
            maximum = float(data["maximum"])
        except KeyError as err:
            msg = f"Timeline configuration is missing '{err.args[0]}'"
            raise TimelineError(msg) from err
        except (TypeError, ValueError) as err:
            msg = "Timeline bounds must be numbers"
            raise TimelineError(msg) from err

        if isinstance(raw_points, str):
            points = parse_points(raw_points)
        else:
            try:
                points = [
                    TimelinePoint(
                        parse_time_of_day(str(point["time"])), float(point["value"])
                    )
                    for point in raw_points
                ]
            except (KeyError, TypeError, ValueError) as err:
                msg = "Timeline points must have a time and a numeric value"
                raise TimelineError(msg) from err

        return cls(
            points,
            minimum=minimum,
            maximum=maximum,
            period=float(data.get("period", SECONDS_PER_DAY)),
        )

    def as_dict(self) -> dict[str, Any]:
        """Return the timeline in its stored configuration form."""
        return {
            "minimum": self.minimum,
            "maximum": self.maximum,
            "period": self.period,
            "points": [
                {"time": format_time_of_day(point.time), "value": point.value}
                for point in self._points
            ],
        }
