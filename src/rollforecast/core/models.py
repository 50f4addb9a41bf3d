"""
Data model for the balance forecast engine.

Occurrences and checkpoints are the immutable inputs; ``AnchorMetadata`` and
``BalanceCell`` are the per-window outputs. Every output type converts to and
from a JSON-safe dict so downstream collaborators can persist or transmit
cells without losing information.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from .utils import (
    account_from,
    finite_number,
    format_timestamp,
    parse_timestamp,
    require_keys,
)

AccountSlug = str


class AnchorSource(Enum):
    """Where a window's anchoring balance comes from."""

    CHECKPOINT = "checkpoint"
    ROLLFORWARD = "rollforward"
    INITIAL = "initial"


@dataclass(frozen=True, slots=True)
class Occurrence:
    """
    A single dated, signed cash movement on an account.

    Attributes:
        account_slug: Account the movement applies to
        amount: Positive for inflows, negative for outflows
        timestamp: UTC instant at which the movement is applied
    """

    account_slug: AccountSlug
    amount: float
    timestamp: datetime

    @classmethod
    def create(
        cls, account_slug: AccountSlug, amount: float, timestamp: str | datetime | date
    ) -> Occurrence:
        """
        Build an occurrence, parsing ``timestamp`` if it is a string.

        Raises:
            InputError: If ``amount`` is not a finite number
            TimestampParseError: If ``timestamp`` is not an ISO-8601 instant
        """
        return cls(
            str(account_slug),
            finite_number(amount, "occurrence amount"),
            parse_timestamp(timestamp),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], ctx: str = "occurrence") -> Occurrence:
        """Build an occurrence from an input record, naming ``ctx`` in any error."""
        require_keys(data, ctx, "amount", "timestamp")
        return cls(
            account_from(data, ctx),
            finite_number(data["amount"], f"{ctx}.amount"),
            parse_timestamp(data["timestamp"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "account_slug": self.account_slug,
            "amount": self.amount,
            "timestamp": format_timestamp(self.timestamp),
        }


@dataclass(frozen=True, slots=True)
class AnchorCheckpoint:
    """
    An externally observed balance at a specific instant.

    Attributes:
        id: Identifier of the observation (echoed in ``AnchorMetadata.checkpoint_id``)
        account_slug: Account the observation belongs to
        balance: Observed balance, already including any activity at ``timestamp``
        timestamp: UTC instant of the observation
    """

    id: str
    account_slug: AccountSlug
    balance: float
    timestamp: datetime

    @classmethod
    def create(
        cls,
        id: str,
        account_slug: AccountSlug,
        balance: float,
        timestamp: str | datetime | date,
    ) -> AnchorCheckpoint:
        """Build a checkpoint, parsing ``timestamp`` if it is a string."""
        return cls(
            str(id),
            str(account_slug),
            finite_number(balance, "checkpoint balance"),
            parse_timestamp(timestamp),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], ctx: str = "checkpoint") -> AnchorCheckpoint:
        """Build a checkpoint from an input record, naming ``ctx`` in any error."""
        require_keys(data, ctx, "id", "balance", "timestamp")
        return cls(
            str(data["id"]),
            account_from(data, ctx),
            finite_number(data["balance"], f"{ctx}.balance"),
            parse_timestamp(data["timestamp"]),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_slug": self.account_slug,
            "balance": self.balance,
            "timestamp": format_timestamp(self.timestamp),
        }


@dataclass(frozen=True, slots=True)
class PeriodWindow:
    """
    Half-open time window ``[start, end)``.

    Attributes:
        start: First instant inside the window
        end: First instant after the window
        key: Externally visible identifier; ``YYYY-MM`` for months, the
            week-ending ISO date for weeks
        month: ``YYYY-MM`` of the month the window belongs to
    """

    start: datetime
    end: datetime
    key: str
    month: str

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant < self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days


@dataclass(frozen=True, slots=True)
class AnchorMetadata:
    """
    The balance and instant from which a window's net activity is measured.

    ``is_interim`` is true only for a checkpoint anchor observed strictly after
    the window start, i.e. a mid-period reconciliation rather than a
    start-of-period value.
    """

    balance: float
    timestamp: datetime
    source: AnchorSource
    checkpoint_id: str | None = None
    is_interim: bool = False

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "balance": self.balance,
            "timestamp": format_timestamp(self.timestamp),
            "source": self.source.value,
            "is_interim": self.is_interim,
        }
        if self.checkpoint_id is not None:
            data["checkpoint_id"] = self.checkpoint_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnchorMetadata:
        return cls(
            balance=float(data["balance"]),
            timestamp=parse_timestamp(data["timestamp"]),
            source=AnchorSource(data["source"]),
            checkpoint_id=data.get("checkpoint_id"),
            is_interim=bool(data.get("is_interim", False)),
        )


@dataclass(frozen=True, slots=True)
class BalanceCell:
    """
    Computed balances for one account over one window.

    Attributes:
        month: ``YYYY-MM`` of the owning month
        period_key: ``month`` for monthly cells, the week-ending ISO date for
            weekly cells
        account_slug: Account the cell describes
        beginning_balance: Equal to ``anchor.balance``; for an interim anchor this
            is the checkpoint value, not the first-instant balance of the window
        balance: Ending balance of the window
        net_after_anchor: Signed activity applied after the anchor
        anchor: How the beginning balance was chosen
    """

    month: str
    period_key: str
    account_slug: AccountSlug
    beginning_balance: float
    balance: float
    net_after_anchor: float
    anchor: AnchorMetadata

    @property
    def is_weekly(self) -> bool:
        return self.period_key != self.month

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": self.month,
            "period_key": self.period_key,
            "account_slug": self.account_slug,
            "beginning_balance": self.beginning_balance,
            "balance": self.balance,
            "net_after_anchor": self.net_after_anchor,
            "anchor": self.anchor.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> BalanceCell:
        return cls(
            month=str(data["month"]),
            period_key=str(data["period_key"]),
            account_slug=str(data["account_slug"]),
            beginning_balance=float(data["beginning_balance"]),
            balance=float(data["balance"]),
            net_after_anchor=float(data["net_after_anchor"]),
            anchor=AnchorMetadata.from_dict(data["anchor"]),
        )
