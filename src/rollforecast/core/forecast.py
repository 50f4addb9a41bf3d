"""
Balance chain builder for orchestrating forecast computations.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .anchors import compute_cell
from .context import RunningBalances
from .errors import InvalidPeriodIdentifier
from .loader import load_inputs
from .models import AnchorCheckpoint, BalanceCell, Occurrence, PeriodWindow
from .periods import month_window, parse_month, weeks_in_month
from .results import ForecastResult
from .utils import list_accounts
from .validation import DEFAULT_TOLERANCE, verify_forecast

logger = logging.getLogger(__name__)


def order_months(months: Iterable[str]) -> list[str]:
    """
    Validate and sort month identifiers.

    Raises:
        InvalidPeriodIdentifier: If a month is malformed or listed more than once
    """
    months = list(months)
    for ym in months:
        parse_month(ym)
    ordered = sorted(months)
    seen: set[str] = set()
    for ym in ordered:
        if ym in seen:
            raise InvalidPeriodIdentifier(ym, "listed more than once")
        seen.add(ym)
    return ordered


def _group_by_account(items: Iterable) -> dict[str, list]:
    grouped: dict[str, list] = defaultdict(list)
    for item in items:
        grouped[item.account_slug].append(item)
    return grouped


def _run_windows(
    windows: Iterable[PeriodWindow],
    accounts: list[str],
    occurrences_by_account: Mapping[str, list[Occurrence]],
    checkpoints_by_account: Mapping[str, list[AnchorCheckpoint]],
    running: RunningBalances,
) -> Iterable[tuple[PeriodWindow, dict[str, BalanceCell]]]:
    """Compute every (window, account) cell in order, threading ``running`` forward."""
    for window in windows:
        cells: dict[str, BalanceCell] = {}
        for account in accounts:
            cell = compute_cell(
                window,
                account,
                occurrences_by_account.get(account, ()),
                checkpoints_by_account.get(account, ()),
                running,
            )
            running.set(account, cell.balance)
            cells[account] = cell
        yield window, cells


def compute_monthly_balances(
    months: list[str],
    accounts: list[str],
    occurrences: Iterable[Occurrence],
    checkpoints: Iterable[AnchorCheckpoint],
    running: RunningBalances,
) -> dict[str, dict[str, BalanceCell]]:
    """
    Monthly pass: one cell per (month, account).

    Args:
        months: Month identifiers, already ordered
        accounts: Account universe, already ordered
        occurrences: All occurrences of the computation
        checkpoints: All checkpoints of the computation
        running: State owned by this pass; mutated as each ending balance is computed

    Returns:
        month -> account -> cell
    """
    logger.debug("Monthly pass: %d months x %d accounts", len(months), len(accounts))
    windows = (month_window(ym) for ym in months)
    monthly = {
        window.key: cells
        for window, cells in _run_windows(
            windows,
            accounts,
            _group_by_account(occurrences),
            _group_by_account(checkpoints),
            running,
        )
    }
    logger.debug("Monthly pass done: %d windows", len(monthly))
    return monthly


def compute_weekly_balances(
    months: list[str],
    accounts: list[str],
    occurrences: Iterable[Occurrence],
    checkpoints: Iterable[AnchorCheckpoint],
    running: RunningBalances,
) -> dict[str, dict[str, dict[str, BalanceCell]]]:
    """
    Weekly pass: one cell per (month, week, account).

    Runs on its own ``RunningBalances``; agreement with the monthly pass is
    checked afterwards by the continuity verifier, not shared state.

    Returns:
        month -> week-ending date -> account -> cell
    """
    weekly: dict[str, dict[str, dict[str, BalanceCell]]] = {ym: {} for ym in months}
    windows = [week for ym in months for week in weeks_in_month(ym)]
    logger.debug("Weekly pass: %d weeks x %d accounts", len(windows), len(accounts))
    for window, cells in _run_windows(
        windows,
        accounts,
        _group_by_account(occurrences),
        _group_by_account(checkpoints),
        running,
    ):
        weekly[window.month][window.key] = cells
    logger.debug("Weekly pass done: %d windows", len(windows))
    return weekly


def build_forecast(
    months: Iterable[str],
    occurrences: Iterable[Occurrence],
    checkpoints: Iterable[AnchorCheckpoint],
    prior_ending_balances: Mapping[str, float] | None = None,
    *,
    verify: bool = True,
    tol: float = DEFAULT_TOLERANCE,
) -> ForecastResult:
    """
    Compute the monthly and weekly balance chain for every account.

    **Args:**
        months: ``YYYY-MM`` identifiers, in any order
        occurrences: Dated signed movements
        checkpoints: Observed balances that may override the roll-forward value
        prior_ending_balances: account -> ending balance before the first month
        verify: Run the continuity verifier before returning
        tol: Tolerance used by the verifier

    **Returns:**
        A ``ForecastResult`` with sorted months and accounts plus the monthly
        and weekly cell mappings

    **Raises:**
        InvalidPeriodIdentifier: For malformed or duplicate months
        ContinuityViolation: If the computed chain is broken
        ReconciliationViolation: If weekly and monthly endings disagree

    **Example:**
        ```python
        from rollforecast import AnchorCheckpoint, Occurrence, build_forecast

        result = build_forecast(
            months=["2025-01", "2025-02"],
            occurrences=[Occurrence.create("operating", 450, "2025-01-03T10:00:00Z")],
            checkpoints=[
                AnchorCheckpoint.create("cp-1", "operating", 1480, "2025-01-17T14:00:00Z")
            ],
            prior_ending_balances={"operating": 1250},
        )
        result.cell("2025-01", "operating").balance  # 1480.0
        ```
    """
    occurrences = list(occurrences)
    checkpoints = list(checkpoints)
    ordered_months = order_months(months)
    accounts = list_accounts(occurrences, checkpoints, prior_ending_balances)

    logger.debug(
        "Building forecast for %d months, %d accounts (%d occurrences, %d checkpoints)",
        len(ordered_months),
        len(accounts),
        len(occurrences),
        len(checkpoints),
    )

    seed = RunningBalances.seeded(prior_ending_balances)
    monthly = compute_monthly_balances(
        ordered_months, accounts, occurrences, checkpoints, seed.copy()
    )
    weekly = compute_weekly_balances(
        ordered_months, accounts, occurrences, checkpoints, seed.copy()
    )

    result = ForecastResult(
        months=ordered_months, accounts=accounts, monthly=monthly, weekly=weekly
    )
    if verify:
        verify_forecast(result, mode="raise", tol=tol)
        logger.debug("Forecast verified across %d months", len(ordered_months))
    return result


@dataclass
class Forecast:
    """
    Forecast inputs bundled with convenience methods for running them.

    Attributes:
        months: Month identifiers to compute
        occurrences: Dated signed movements
        checkpoints: Observed balances
        prior_ending_balances: account -> ending balance before the first month

    Example:
        >>> forecast = Forecast.from_dict({"months": ["2025-01"], "prior_ending_balances": {"operating": 100}})
        >>> result = forecast.run()
        >>> forecast.validate(mode="warn")
    """

    months: list[str]
    occurrences: list[Occurrence] = field(default_factory=list)
    checkpoints: list[AnchorCheckpoint] = field(default_factory=list)
    prior_ending_balances: dict[str, float] = field(default_factory=dict)
    _last_result: ForecastResult | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Forecast:
        """
        Create a Forecast from an inputs mapping.

        Args:
            data: Mapping with ``months``, ``occurrences``, ``checkpoints`` and
                ``prior_ending_balances`` (see ``rollforecast.core.loader``)
        """
        inputs = load_inputs(data)
        return cls(
            months=inputs.months,
            occurrences=inputs.occurrences,
            checkpoints=inputs.checkpoints,
            prior_ending_balances=inputs.prior_ending_balances,
        )

    @property
    def accounts(self) -> list[str]:
        return list_accounts(
            self.occurrences, self.checkpoints, self.prior_ending_balances
        )

    def run(self, verify: bool = True, tol: float = DEFAULT_TOLERANCE) -> ForecastResult:
        """Compute and (by default) verify the balance chain."""
        self._last_result = build_forecast(
            self.months,
            self.occurrences,
            self.checkpoints,
            self.prior_ending_balances,
            verify=verify,
            tol=tol,
        )
        return self._last_result

    def validate(self, mode: str = "raise", tol: float = DEFAULT_TOLERANCE) -> list:
        """
        Re-verify the last run's result.

        Raises:
            RuntimeError: If the forecast has not been run yet
        """
        if self._last_result is None:
            raise RuntimeError("No forecast has been run yet. Call forecast.run() first.")
        return verify_forecast(self._last_result, mode=mode, tol=tol)
