"""
Internal-consistency exceptions for rollforecast.

These are raised by the continuity verifier when a computed balance chain
breaks one of its invariants. A firing means corrupted input data or a
regression in the engine, never a user-facing validation message.
"""

from __future__ import annotations


class ForecastIntegrityError(Exception):
    """
    Base class for balance-chain invariant failures.

    Attributes:
        account_slug: Account whose chain is broken
        period_key: Month (``YYYY-MM``) or week-ending date of the failing cell
        expected: Value the invariant required
        actual: Value found in the computed cell
    """

    kind = "integrity"

    def __init__(
        self,
        account_slug: str,
        period_key: str,
        expected: float,
        actual: float,
        message: str,
    ):
        self.account_slug = account_slug
        self.period_key = period_key
        self.expected = expected
        self.actual = actual
        super().__init__(self._fmt(message))

    def _fmt(self, msg: str) -> str:
        """Format the error message with account and period context."""
        return f"[{self.kind} {self.account_slug} @ {self.period_key}] {msg}"


class ContinuityViolation(ForecastIntegrityError):
    """A roll-forward window does not begin where the previous window ended."""

    kind = "continuity"

    def __init__(
        self,
        account_slug: str,
        period_key: str,
        expected: float,
        actual: float,
        granularity: str = "monthly",
    ):
        self.granularity = granularity
        super().__init__(
            account_slug,
            period_key,
            expected,
            actual,
            f"{granularity.capitalize()} roll-forward violation: "
            f"expected beginning {expected}, got {actual}",
        )


class ReconciliationViolation(ForecastIntegrityError):
    """The last week of a month does not end on the month's ending balance."""

    kind = "reconciliation"

    def __init__(
        self,
        account_slug: str,
        period_key: str,
        expected: float,
        actual: float,
    ):
        super().__init__(
            account_slug,
            period_key,
            expected,
            actual,
            f"Weekly/monthly mismatch: weekly ending {actual}, "
            f"monthly ending {expected}",
        )
