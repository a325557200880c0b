"""Exceptions raised by the Hotpot core."""


class HotpotError(Exception):
    """Base class for all Hotpot core errors."""


class ConfigValidationError(HotpotError):
    """Configuration is missing required fields or is inconsistent."""


class TimelineError(ConfigValidationError):
    """Timeline control points are empty, unsorted or out of bounds."""


class SensorReadError(HotpotError):
    """A temperature sensor could not be read."""


class PinIOError(HotpotError):
    """Reading or writing the physical state of a pin failed."""


class RuleEvaluationError(HotpotError):
    """A rule raised while deciding the state of its pin."""

    def __init__(self, rule: str, cause: BaseException) -> None:
        """Initialize with the rule name and the original exception."""
        super().__init__(f"Rule '{rule}' failed: {cause}")
        self.rule = rule
        self.cause = cause


class UnknownChannelError(HotpotError):
    """A request addressed a thermostat or pin that does not exist."""


class InvalidRequestError(HotpotError):
    """A request has an unparseable target, state or expiry."""
