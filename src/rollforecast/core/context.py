"""
Running balance state for one forecast computation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass
class RunningBalances:
    """
    Current ending balance per account, threaded forward window by window.

    A ``RunningBalances`` is created by the chain builder for a single
    computation, seeded from a copy of the caller's prior ending balances and
    mutated in window order (ascending period, then account). It is never
    shared between passes or retained after the call returns.

    Attributes:
        balances: account -> latest computed ending balance

    Note:
        ``has`` distinguishes an account that was seeded or already computed
        (anchor source ``rollforward``) from one that was never seen (anchor
        source ``initial``), even when the stored balance is 0.
    """

    balances: dict[str, float] = field(default_factory=dict)

    @classmethod
    def seeded(cls, prior_ending_balances: Mapping[str, float] | None) -> RunningBalances:
        """Create state from the caller's prior ending balances without aliasing them."""
        return cls(
            {
                str(account): float(value)
                for account, value in (prior_ending_balances or {}).items()
            }
        )

    def has(self, account: str) -> bool:
        return account in self.balances

    def get(self, account: str, default: float = 0.0) -> float:
        return self.balances.get(account, default)

    def set(self, account: str, balance: float) -> None:
        self.balances[account] = balance

    def copy(self) -> RunningBalances:
        return RunningBalances(dict(self.balances))

    def as_dict(self) -> dict[str, float]:
        return dict(self.balances)
