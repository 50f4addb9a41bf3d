"""
Tests for anchor resolution and activity aggregation.
"""

import logging
from datetime import datetime, timezone

import pytest

from rollforecast.core.anchors import (
    applies_after_anchor,
    checkpoints_in_window,
    compute_cell,
    net_after_anchor,
    resolve_anchor,
)
from rollforecast.core.context import RunningBalances
from rollforecast.core.models import AnchorCheckpoint, AnchorSource, Occurrence
from rollforecast.core.periods import month_window, weeks_in_month


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def occ(account, amount, ts):
    return Occurrence.create(account, amount, ts)


def cp(cp_id, account, balance, ts):
    return AnchorCheckpoint.create(cp_id, account, balance, ts)


class TestResolveAnchor:
    """Test choosing the anchor of a window."""

    @pytest.fixture
    def january(self):
        return month_window("2025-01")

    def test_initial_when_account_never_seen(self, january):
        anchor = resolve_anchor("operating", january, [], RunningBalances())

        assert anchor.source is AnchorSource.INITIAL
        assert anchor.balance == 0.0
        assert anchor.timestamp == january.start
        assert anchor.checkpoint_id is None
        assert anchor.is_interim is False

    def test_rollforward_from_running_balance(self, january):
        running = RunningBalances.seeded({"operating": 1250})

        anchor = resolve_anchor("operating", january, [], running)

        assert anchor.source is AnchorSource.ROLLFORWARD
        assert anchor.balance == 1250.0
        assert anchor.timestamp == january.start
        assert anchor.is_interim is False

    def test_zero_prior_balance_is_still_rollforward(self, january):
        running = RunningBalances.seeded({"operating": 0})

        anchor = resolve_anchor("operating", january, [], running)

        assert anchor.source is AnchorSource.ROLLFORWARD

    def test_interim_checkpoint_overrides_rollforward(self, january):
        running = RunningBalances.seeded({"operating": 1250})
        checkpoints = [cp("cp-jan", "operating", 1480, "2025-01-17T14:00:00Z")]

        anchor = resolve_anchor("operating", january, checkpoints, running)

        assert anchor.source is AnchorSource.CHECKPOINT
        assert anchor.balance == 1480.0
        assert anchor.timestamp == utc(2025, 1, 17, 14)
        assert anchor.checkpoint_id == "cp-jan"
        assert anchor.is_interim is True

    def test_checkpoint_at_window_start_is_not_interim(self, january):
        checkpoints = [cp("cp-start", "operating", 900, "2025-01-01T00:00:00Z")]

        anchor = resolve_anchor("operating", january, checkpoints, RunningBalances())

        assert anchor.source is AnchorSource.CHECKPOINT
        assert anchor.is_interim is False

    def test_latest_checkpoint_wins_regardless_of_input_order(self, january):
        checkpoints = [
            cp("late", "operating", 300, "2025-01-20T00:00:00Z"),
            cp("early", "operating", 100, "2025-01-05T00:00:00Z"),
        ]

        anchor = resolve_anchor("operating", january, checkpoints, RunningBalances())

        assert anchor.checkpoint_id == "late"
        assert anchor.balance == 300.0

    def test_same_timestamp_tie_keeps_last_supplied(self, january, caplog):
        checkpoints = [
            cp("first", "operating", 100, "2025-01-10T12:00:00Z"),
            cp("second", "operating", 200, "2025-01-10T12:00:00Z"),
        ]

        with caplog.at_level(logging.WARNING, logger="rollforecast.core.anchors"):
            anchor = resolve_anchor(
                "operating", january, checkpoints, RunningBalances()
            )

        assert anchor.checkpoint_id == "second"
        assert anchor.balance == 200.0
        assert "several checkpoints" in caplog.text

    def test_checkpoints_outside_window_or_account_ignored(self, january):
        checkpoints = [
            cp("other-account", "profit", 999, "2025-01-10T00:00:00Z"),
            cp("at-window-end", "operating", 999, "2025-02-01T00:00:00Z"),
            cp("before", "operating", 999, "2024-12-31T23:59:59Z"),
        ]
        running = RunningBalances.seeded({"operating": 10})

        anchor = resolve_anchor("operating", january, checkpoints, running)

        assert anchor.source is AnchorSource.ROLLFORWARD
        assert anchor.balance == 10.0

    def test_resolve_does_not_mutate_running_state(self, january):
        running = RunningBalances.seeded({"operating": 10})
        resolve_anchor(
            "operating",
            january,
            [cp("cp", "operating", 50, "2025-01-09T00:00:00Z")],
            running,
        )
        assert running.as_dict() == {"operating": 10.0}

    def test_checkpoints_in_window_sorted_stably(self, january):
        checkpoints = [
            cp("b", "operating", 2, "2025-01-10T00:00:00Z"),
            cp("a", "operating", 1, "2025-01-03T00:00:00Z"),
            cp("c", "operating", 3, "2025-01-10T00:00:00Z"),
        ]

        ordered = checkpoints_in_window(checkpoints, "operating", january)

        assert [c.id for c in ordered] == ["a", "b", "c"]


class TestNetAfterAnchor:
    """Test activity aggregation relative to the anchor."""

    @pytest.fixture
    def january(self):
        return month_window("2025-01")

    def test_rollforward_includes_occurrence_at_window_start(self, january):
        running = RunningBalances.seeded({"operating": 100})
        occurrences = [
            occ("operating", 25, "2025-01-01T00:00:00Z"),
            occ("operating", -5, "2025-01-15T00:00:00Z"),
        ]
        anchor = resolve_anchor("operating", january, [], running)

        assert net_after_anchor("operating", january, anchor, occurrences) == 20.0

    def test_checkpoint_excludes_occurrence_at_anchor_instant(self, january):
        checkpoints = [cp("cp", "operating", 500, "2025-01-10T12:00:00Z")]
        occurrences = [
            occ("operating", 40, "2025-01-05T00:00:00Z"),
            occ("operating", 100, "2025-01-10T12:00:00Z"),
            occ("operating", 10, "2025-01-10T12:01:00Z"),
        ]
        anchor = resolve_anchor("operating", january, checkpoints, RunningBalances())

        assert net_after_anchor("operating", january, anchor, occurrences) == 10.0

    def test_checkpoint_at_window_start_excludes_start_occurrence(self, january):
        checkpoints = [cp("cp", "operating", 500, "2025-01-01T00:00:00Z")]
        occurrences = [occ("operating", 100, "2025-01-01T00:00:00Z")]
        anchor = resolve_anchor("operating", january, checkpoints, RunningBalances())

        assert net_after_anchor("operating", january, anchor, occurrences) == 0.0

    def test_occurrences_outside_window_ignored(self, january):
        occurrences = [
            occ("operating", 1, "2024-12-31T23:59:59Z"),
            occ("operating", 2, "2025-02-01T00:00:00Z"),
            occ("profit", 3, "2025-01-10T00:00:00Z"),
        ]
        anchor = resolve_anchor("operating", january, [], RunningBalances())

        assert net_after_anchor("operating", january, anchor, occurrences) == 0.0

    def test_applies_after_anchor_predicate(self, january):
        checkpoints = [cp("cp", "operating", 500, "2025-01-10T12:00:00Z")]
        anchor = resolve_anchor("operating", january, checkpoints, RunningBalances())

        assert not applies_after_anchor(occ("operating", 1, "2025-01-10T11:59:59Z"), anchor)
        assert not applies_after_anchor(occ("operating", 1, "2025-01-10T12:00:00Z"), anchor)
        assert applies_after_anchor(occ("operating", 1, "2025-01-10T12:00:01Z"), anchor)


class TestComputeCell:
    """Test building a full cell for one window."""

    def test_cell_fields(self):
        window = month_window("2025-01")
        running = RunningBalances.seeded({"operating": 1250})
        occurrences = [
            occ("operating", 450, "2025-01-03T10:00:00Z"),
            occ("operating", -180, "2025-01-07T18:30:00Z"),
            occ("operating", -220, "2025-01-20T15:45:00Z"),
        ]
        checkpoints = [cp("cp-operating-jan", "operating", 1480, "2025-01-17T14:00:00Z")]

        cell = compute_cell(window, "operating", occurrences, checkpoints, running)

        assert cell.month == "2025-01"
        assert cell.period_key == "2025-01"
        assert cell.account_slug == "operating"
        assert cell.beginning_balance == 1480.0
        assert cell.net_after_anchor == -220.0
        assert cell.balance == 1260.0
        assert cell.anchor.is_interim is True
        # compute_cell leaves the write-back to the caller
        assert running.get("operating") == 1250.0

    def test_weekly_window_cell_uses_week_key(self):
        week = weeks_in_month("2025-01")[0]
        cell = compute_cell(
            week,
            "operating",
            [occ("operating", 450, "2025-01-03T10:00:00Z")],
            [],
            RunningBalances.seeded({"operating": 1250}),
        )

        assert cell.month == "2025-01"
        assert cell.period_key == "2025-01-05"
        assert cell.is_weekly
        assert cell.balance == 1700.0
