"""
Results and output structures for rollforecast.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from .models import BalanceCell
from .periods import month_end_date

CELL_COLUMNS = [
    "month",
    "period_key",
    "account_slug",
    "beginning_balance",
    "net_after_anchor",
    "balance",
    "anchor_source",
    "anchor_timestamp",
    "checkpoint_id",
    "is_interim",
]


@dataclass
class ForecastResult:
    """
    Verified balance chain for a set of months and accounts.

    Attributes:
        months: Month identifiers in ascending order
        accounts: Account slugs in ascending order
        monthly: month -> account -> cell
        weekly: month -> week-ending date -> account -> cell

    The nested mappings are the canonical form; every other view (flat cell
    lists, DataFrames, persisted rows) is derived from them on demand.
    """

    months: list[str]
    accounts: list[str]
    monthly: dict[str, dict[str, BalanceCell]] = field(default_factory=dict)
    weekly: dict[str, dict[str, dict[str, BalanceCell]]] = field(default_factory=dict)

    # --- Lookups -----------------------------------------------------------------
    def cell(self, month: str, account: str) -> BalanceCell:
        """Monthly cell for ``account`` in ``month``."""
        return self.monthly[month][account]

    def week_keys(self, month: str) -> list[str]:
        """Week-ending dates of ``month`` in ascending order."""
        return sorted(self.weekly.get(month, {}))

    def monthly_cells(self) -> list[BalanceCell]:
        """All monthly cells ordered by month, then account."""
        return [
            self.monthly[ym][account]
            for ym in self.months
            for account in self.accounts
            if account in self.monthly.get(ym, {})
        ]

    def weekly_cells(self) -> list[BalanceCell]:
        """All weekly cells ordered by month, week, then account."""
        return [
            self.weekly[ym][week_key][account]
            for ym in self.months
            for week_key in self.week_keys(ym)
            for account in self.accounts
            if account in self.weekly[ym][week_key]
        ]

    # --- Serialization -----------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe nested dictionary."""
        return {
            "months": list(self.months),
            "accounts": list(self.accounts),
            "monthly": {
                ym: {account: c.to_dict() for account, c in cells.items()}
                for ym, cells in self.monthly.items()
            },
            "weekly": {
                ym: {
                    week_key: {account: c.to_dict() for account, c in cells.items()}
                    for week_key, cells in weeks.items()
                }
                for ym, weeks in self.weekly.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ForecastResult:
        """Rebuild a result from ``to_dict`` output (e.g. after a JSON round-trip)."""
        return cls(
            months=list(data["months"]),
            accounts=list(data["accounts"]),
            monthly={
                ym: {
                    account: BalanceCell.from_dict(c) for account, c in cells.items()
                }
                for ym, cells in data.get("monthly", {}).items()
            },
            weekly={
                ym: {
                    week_key: {
                        account: BalanceCell.from_dict(c)
                        for account, c in cells.items()
                    }
                    for week_key, cells in weeks.items()
                }
                for ym, weeks in data.get("weekly", {}).items()
            },
        )

    # --- Tabular views -----------------------------------------------------------
    @staticmethod
    def _frame(cells: list[BalanceCell]) -> pd.DataFrame:
        records = [
            {
                "month": c.month,
                "period_key": c.period_key,
                "account_slug": c.account_slug,
                "beginning_balance": c.beginning_balance,
                "net_after_anchor": c.net_after_anchor,
                "balance": c.balance,
                "anchor_source": c.anchor.source.value,
                "anchor_timestamp": pd.Timestamp(c.anchor.timestamp),
                "checkpoint_id": c.anchor.checkpoint_id,
                "is_interim": c.anchor.is_interim,
            }
            for c in cells
        ]
        return pd.DataFrame.from_records(records, columns=CELL_COLUMNS)

    def monthly_frame(self) -> pd.DataFrame:
        """One row per monthly cell, in month then account order."""
        return self._frame(self.monthly_cells())

    def weekly_frame(self) -> pd.DataFrame:
        """One row per weekly cell, in month, week, then account order."""
        return self._frame(self.weekly_cells())

    def balance_matrix(self, freq: str = "M") -> pd.DataFrame:
        """
        Ending balances pivoted to periods x accounts.

        Args:
            freq: ``'M'`` for a ``PeriodIndex`` of months, ``'W'`` for a
                  ``DatetimeIndex`` of week-ending dates

        Returns:
            DataFrame with one column per account
        """
        if freq == "M":
            frame = self.monthly_frame()
            index = pd.PeriodIndex(self.months, freq="M")
            if frame.empty:
                return pd.DataFrame(index=index, columns=self.accounts, dtype=float)
            matrix = frame.pivot(index="month", columns="account_slug", values="balance")
            matrix.index = pd.PeriodIndex(matrix.index, freq="M")
            return matrix.reindex(index=index, columns=self.accounts)
        if freq == "W":
            frame = self.weekly_frame()
            if frame.empty:
                return pd.DataFrame(columns=self.accounts, dtype=float)
            matrix = frame.pivot(
                index="period_key", columns="account_slug", values="balance"
            )
            matrix.index = pd.DatetimeIndex(matrix.index, name="week_end_date")
            return matrix.sort_index().reindex(columns=self.accounts)
        raise ValueError(f"freq must be 'M' or 'W', got {freq!r}")

    # --- Persisted store rows ------------------------------------------------------
    def monthly_rows(self) -> list[dict[str, Any]]:
        """
        Rows shaped for the monthly balance store.

        The store is keyed by ``(account_slug, period_end_date)`` and keeps an
        explicit ``is_interim`` column mirroring the anchor flag.
        """
        return [
            {
                "ym": c.month,
                "period_end_date": month_end_date(c.month).isoformat(),
                "account_slug": c.account_slug,
                "beginning_balance": c.beginning_balance,
                "ending_balance": c.balance,
                "is_interim": c.anchor.is_interim,
            }
            for c in self.monthly_cells()
        ]

    def weekly_rows(self) -> list[dict[str, Any]]:
        """Rows shaped for the weekly balance store, keyed by ``(account_slug, week_end_date)``."""
        return [
            {
                "ym": c.month,
                "week_end_date": c.period_key,
                "account_slug": c.account_slug,
                "beginning_balance": c.beginning_balance,
                "ending_balance": c.balance,
                "is_interim": c.anchor.is_interim,
            }
            for c in self.weekly_cells()
        ]

    # --- Introspection helpers -----------------------------------------------------
    def summary(self) -> dict[str, Any]:
        """Lightweight summary for CLI usage."""
        closing = {}
        if self.months:
            last = self.monthly.get(self.months[-1], {})
            closing = {account: cell.balance for account, cell in last.items()}
        return {
            "months": list(self.months),
            "accounts": list(self.accounts),
            "monthly_cells": len(self.monthly_cells()),
            "weekly_cells": len(self.weekly_cells()),
            "interim_months": sum(
                1 for c in self.monthly_cells() if c.anchor.is_interim
            ),
            "closing_balances": closing,
        }
