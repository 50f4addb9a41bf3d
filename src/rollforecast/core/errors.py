"""
Error classes for rollforecast.

This module defines the exceptions raised when the caller hands the engine
input it cannot interpret: malformed month identifiers, unparseable
timestamps, or structurally broken input documents.
"""


class ForecastInputError(ValueError):
    """
    Base class for rejected forecast input.

    These errors describe problems with external data and are meant to be
    surfaced to the caller as rejected input. They never indicate a defect in
    the balance computation itself (see ``rollforecast.core.exceptions`` for
    those).
    """

    pass


class InvalidPeriodIdentifier(ForecastInputError):
    """
    Month identifier that does not parse to a valid year/month pair.

    **Common Causes:**
    - Wrong separator or ordering (``"01/2025"``, ``"2025.01"``)
    - Month out of range (``"2025-13"``, ``"2025-00"``)
    - The same month listed twice in one computation

    **Example Usage:**
        ```python
        from rollforecast.core.errors import InvalidPeriodIdentifier
        from rollforecast.core.periods import month_window

        try:
            month_window("2025-13")
        except InvalidPeriodIdentifier as e:
            print(f"Rejected month: {e.identifier}")
        ```
    """

    def __init__(self, identifier: str, reason: str | None = None):
        self.identifier = identifier
        message = f"Invalid month identifier: {identifier!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class TimestampParseError(ForecastInputError):
    """Timestamp string that is not an ISO-8601 instant."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid timestamp: {value!r}")


class InputError(ForecastInputError):
    """Raised when an input document or import payload cannot be parsed or validated."""

    pass
