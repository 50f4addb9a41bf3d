"""
Utility functions for rollforecast.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from typing import Any

import numpy as np

from .errors import InputError, TimestampParseError


def parse_timestamp(value: str | datetime | date) -> datetime:
    """
    Parse an ISO-8601 instant into a timezone-aware UTC datetime.

    **Args:**
        value: ISO-8601 string (``"2025-01-17T14:00:00Z"``,
            ``"2025-01-17T09:00:00-05:00"``, ``"2025-01-17"``), or an already
            parsed ``datetime`` / ``date``

    **Returns:**
        The same instant expressed in UTC

    **Raises:**
        TimestampParseError: If the string is not an ISO-8601 instant

    **Example:**
        ```python
        from rollforecast.core.utils import parse_timestamp

        parse_timestamp("2025-01-17T09:00:00-05:00")
        # datetime(2025, 1, 17, 14, 0, tzinfo=timezone.utc)
        ```

    **Note:**
        Naive timestamps and bare calendar dates are taken to be UTC.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise TimestampParseError(value) from None
    else:
        raise TimestampParseError(value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(instant: datetime) -> str:
    """Render a UTC instant as ISO-8601 with a ``Z`` suffix."""
    text = instant.astimezone(timezone.utc).replace(tzinfo=None).isoformat()
    return f"{text}Z"


def list_accounts(
    occurrences: Iterable,
    checkpoints: Iterable,
    prior_ending_balances: Mapping[str, float] | None,
) -> list[str]:
    """
    Collect the account universe of a computation.

    The union of slugs referenced by occurrences, checkpoints and the prior
    balance map, sorted lexicographically so iteration order is stable across
    runs.
    """
    accounts: set[str] = set()
    accounts.update(item.account_slug for item in occurrences)
    accounts.update(item.account_slug for item in checkpoints)
    accounts.update((prior_ending_balances or {}).keys())
    return sorted(accounts)


def require_keys(data: Mapping[str, Any], ctx: str, *keys: str) -> None:
    """Raise ``InputError`` naming every key of ``keys`` missing from ``data``."""
    missing = [key for key in keys if key not in data]
    if missing:
        raise InputError(f"{ctx}: missing required keys {missing}")


def account_from(data: Mapping[str, Any], ctx: str) -> str:
    """Read the account slug of an input record (``account_slug`` or ``accountSlug``)."""
    value = data.get("account_slug", data.get("accountSlug"))
    if not isinstance(value, str) or not value.strip():
        raise InputError(f"{ctx}: 'account_slug' is required")
    return value


def finite_number(value: Any, ctx: str) -> float:
    """
    Coerce an input amount or balance to ``float``.

    Booleans, non-numeric values, NaN and infinities are rejected with
    ``InputError``; JSON decoders accept ``NaN`` and ``Infinity`` literals.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputError(f"{ctx}: expected a number")
    number = float(value)
    if not math.isfinite(number):
        raise InputError(f"{ctx}: expected a finite number, got {value!r}")
    return number


def almost_equal(a: float, b: float, tol: float = 0.01) -> bool:
    """Absolute-tolerance comparison used by the continuity checks."""
    return bool(np.isclose(a, b, rtol=0.0, atol=tol))
