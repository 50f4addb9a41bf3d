"""
Anchor resolution and activity aggregation for one (window, account) pair.

Both the monthly and the weekly driver go through ``compute_cell``; the window
is the only thing that differs between them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .context import RunningBalances
from .models import (
    AnchorCheckpoint,
    AnchorMetadata,
    AnchorSource,
    BalanceCell,
    Occurrence,
    PeriodWindow,
)

logger = logging.getLogger(__name__)


def checkpoints_in_window(
    checkpoints: Iterable[AnchorCheckpoint], account: str, window: PeriodWindow
) -> list[AnchorCheckpoint]:
    """Checkpoints of ``account`` inside ``window``, ascending by timestamp, input order on ties."""
    selected = [
        cp
        for cp in checkpoints
        if cp.account_slug == account and window.contains(cp.timestamp)
    ]
    # list.sort is stable
    selected.sort(key=lambda cp: cp.timestamp)
    return selected


def occurrences_in_window(
    occurrences: Iterable[Occurrence], account: str, window: PeriodWindow
) -> list[Occurrence]:
    """Occurrences of ``account`` inside ``window``, in input order."""
    return [
        occ
        for occ in occurrences
        if occ.account_slug == account and window.contains(occ.timestamp)
    ]


def resolve_anchor(
    account: str,
    window: PeriodWindow,
    checkpoints: Iterable[AnchorCheckpoint],
    running: RunningBalances,
) -> AnchorMetadata:
    """
    Choose the balance and instant that anchor ``window`` for ``account``.

    The latest checkpoint inside the window wins; among checkpoints sharing the
    latest timestamp the last one supplied wins. Without a checkpoint the
    window starts from the running balance (``rollforward``) or from 0 when the
    account has never been seen (``initial``).

    Args:
        account: Account slug
        window: Half-open window being computed
        checkpoints: All checkpoints of the computation
        running: Running balance state; only read, never written

    Returns:
        Anchor metadata for the window. Never raises.
    """
    in_window = checkpoints_in_window(checkpoints, account, window)

    if not in_window:
        return AnchorMetadata(
            balance=running.get(account, 0.0),
            timestamp=window.start,
            source=(
                AnchorSource.ROLLFORWARD
                if running.has(account)
                else AnchorSource.INITIAL
            ),
            is_interim=False,
        )

    checkpoint = in_window[-1]
    if len(in_window) > 1 and in_window[-2].timestamp == checkpoint.timestamp:
        logger.warning(
            "Account %s has several checkpoints at %s in %s; using %s (last supplied)",
            account,
            checkpoint.timestamp.isoformat(),
            window.key,
            checkpoint.id,
        )

    return AnchorMetadata(
        balance=checkpoint.balance,
        timestamp=checkpoint.timestamp,
        source=AnchorSource.CHECKPOINT,
        checkpoint_id=checkpoint.id,
        is_interim=checkpoint.timestamp > window.start,
    )


def applies_after_anchor(occurrence: Occurrence, anchor: AnchorMetadata) -> bool:
    """
    Whether an occurrence counts toward the activity after ``anchor``.

    A checkpoint balance already includes anything booked at its own instant,
    so an occurrence exactly at a checkpoint anchor is excluded. A roll-forward
    or initial anchor sits at the window start and includes occurrences there.
    """
    if occurrence.timestamp < anchor.timestamp:
        return False
    if (
        anchor.source is AnchorSource.CHECKPOINT
        and occurrence.timestamp == anchor.timestamp
    ):
        return False
    return True


def net_after_anchor(
    account: str,
    window: PeriodWindow,
    anchor: AnchorMetadata,
    occurrences: Iterable[Occurrence],
) -> float:
    """Sum of the signed amounts of ``account`` in ``window`` that apply after ``anchor``."""
    return sum(
        (
            occ.amount
            for occ in occurrences_in_window(occurrences, account, window)
            if applies_after_anchor(occ, anchor)
        ),
        0.0,
    )


def compute_cell(
    window: PeriodWindow,
    account: str,
    occurrences: Iterable[Occurrence],
    checkpoints: Iterable[AnchorCheckpoint],
    running: RunningBalances,
) -> BalanceCell:
    """
    Resolve the anchor and aggregate activity for one (window, account) pair.

    The running state is not touched; the caller writes ``cell.balance`` back
    once the cell is accepted.
    """
    anchor = resolve_anchor(account, window, checkpoints, running)
    net = net_after_anchor(account, window, anchor, occurrences)
    return BalanceCell(
        month=window.month,
        period_key=window.key,
        account_slug=account,
        beginning_balance=anchor.balance,
        balance=anchor.balance + net,
        net_after_anchor=net,
        anchor=anchor,
    )
