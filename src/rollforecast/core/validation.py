"""
Continuity verification for computed balance chains.

These checks guard the engine itself: on self-consistent input they never
fire. A violation points at corrupted input (for example a tampered prior
balance map fed into a re-run) or at a regression in the chain builder.
"""

from __future__ import annotations

import warnings
from collections.abc import Mapping
from typing import TYPE_CHECKING

from .exceptions import ContinuityViolation, ForecastIntegrityError, ReconciliationViolation
from .models import AnchorSource, BalanceCell
from .utils import almost_equal

if TYPE_CHECKING:
    from .results import ForecastResult

DEFAULT_TOLERANCE = 0.01

MonthlyCells = Mapping[str, Mapping[str, BalanceCell]]
WeeklyCells = Mapping[str, Mapping[str, Mapping[str, BalanceCell]]]


def _check_chain(
    ordered: list[tuple[str, Mapping[str, BalanceCell]]],
    tol: float,
    granularity: str,
) -> None:
    last_ending: dict[str, float] = {}
    for period_key, cells in ordered:
        for account in sorted(cells):
            cell = cells[account]
            expected = last_ending.get(account)
            if (
                expected is not None
                and cell.anchor.source is not AnchorSource.CHECKPOINT
                and not almost_equal(cell.beginning_balance, expected, tol)
            ):
                raise ContinuityViolation(
                    account,
                    period_key,
                    expected,
                    cell.beginning_balance,
                    granularity=granularity,
                )
            last_ending[account] = cell.balance


def verify_monthly_continuity(monthly: MonthlyCells, tol: float = DEFAULT_TOLERANCE) -> None:
    """
    Check that each month begins where the previous month ended, per account.

    Months whose anchor is a checkpoint are exempt: the observed balance is
    allowed to override the roll-forward value.

    Raises:
        ContinuityViolation: On the first account/month that breaks the chain
    """
    _check_chain([(ym, monthly[ym]) for ym in sorted(monthly)], tol, "monthly")


def verify_weekly_continuity(weekly: WeeklyCells, tol: float = DEFAULT_TOLERANCE) -> None:
    """Same rule as the monthly check, across all weeks in order, spanning month boundaries."""
    ordered = [
        (week_key, weekly[ym][week_key])
        for ym in sorted(weekly)
        for week_key in sorted(weekly[ym])
    ]
    _check_chain(ordered, tol, "weekly")


def verify_reconciliation(
    monthly: MonthlyCells, weekly: WeeklyCells, tol: float = DEFAULT_TOLERANCE
) -> None:
    """
    Check that each month's last week ends on the month's ending balance.

    Raises:
        ReconciliationViolation: On the first account/month where they disagree
    """
    for ym in sorted(monthly):
        week_map = weekly.get(ym) or {}
        if not week_map:
            continue
        last_week = week_map[max(week_map)]
        for account in sorted(monthly[ym]):
            week_cell = last_week.get(account)
            month_cell = monthly[ym][account]
            if week_cell is not None and not almost_equal(
                week_cell.balance, month_cell.balance, tol
            ):
                raise ReconciliationViolation(
                    account, ym, month_cell.balance, week_cell.balance
                )


def verify_forecast(
    result: ForecastResult, mode: str = "raise", tol: float = DEFAULT_TOLERANCE
) -> list[ForecastIntegrityError]:
    """
    Run every continuity and reconciliation check over a forecast result.

    Args:
        result: Result produced by ``build_forecast`` (or rebuilt from JSON)
        mode: ``'raise'`` to raise the first violation, ``'warn'`` to emit a
              warning per failing check instead
        tol: Absolute tolerance for balance comparisons

    Returns:
        The violations found (always empty in ``'raise'`` mode)

    Raises:
        ContinuityViolation: If a chain breaks and mode='raise'
        ReconciliationViolation: If weekly and monthly endings disagree and mode='raise'
    """
    if mode not in ("raise", "warn"):
        raise ValueError(f"mode must be 'raise' or 'warn', got {mode!r}")

    checks = [
        lambda: verify_monthly_continuity(result.monthly, tol),
        lambda: verify_weekly_continuity(result.weekly, tol),
        lambda: verify_reconciliation(result.monthly, result.weekly, tol),
    ]

    fails: list[ForecastIntegrityError] = []
    for check in checks:
        try:
            check()
        except ForecastIntegrityError as exc:
            if mode == "raise":
                raise
            fails.append(exc)
            warnings.warn(str(exc), stacklevel=2)
    return fails
