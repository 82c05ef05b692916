"""Errors raised by the scheduling core.

All of them are ``ValueError`` subclasses so callers that only care about
"bad input" can catch a single type. The HTTP layer maps them to 400
responses (see ``whenworks.errors.register_exception_handlers``).
"""


class SchedulingError(ValueError):
    """Base class for scheduling core errors."""


class InvalidTimeError(SchedulingError):
    """Hour outside 0-23 or minute not on the half-hour grid."""


class MalformedKeyError(SchedulingError):
    """Slot key does not have the ``YYYY-MM-DDTHH:MM`` shape."""


class InvalidLimitError(SchedulingError):
    """Non-positive result limit passed to the block finder."""
