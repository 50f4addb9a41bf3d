"""
Export helpers for forecast results.

These produce the shapes consumed by the persistence collaborators: a full
JSON result file, a flat balances CSV, and the bulk-import payload with
``monthly`` and ``weekly`` arrays.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any

from .errors import InputError
from .models import BalanceCell
from .results import ForecastResult

CSV_FIELDS = [
    "granularity",
    "ym",
    "period_key",
    "account_slug",
    "beginning_balance",
    "net_after_anchor",
    "ending_balance",
    "anchor_source",
    "checkpoint_id",
    "is_interim",
]


def export_forecast_json(path: str | Path, result: ForecastResult) -> None:
    """
    Write a forecast result to JSON.

    The file can be read back with ``load_forecast_json`` without loss.
    """
    with open(path, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)


def load_forecast_json(path: str | Path) -> ForecastResult:
    """Read a forecast result written by ``export_forecast_json``."""
    with open(path, encoding="utf-8") as f:
        text = f.read()
    try:
        return ForecastResult.from_dict(json.loads(text))
    except (KeyError, TypeError, ValueError) as exc:
        raise InputError(f"{path}: not a forecast result ({exc})") from exc


def export_balances_csv(path: str | Path, result: ForecastResult) -> None:
    """
    Export monthly and weekly cells to a flat CSV, one row per cell.

    Monthly rows come first (month, account order), then weekly rows
    (month, week, account order).
    """
    rows = []
    for granularity, cells in (
        ("monthly", result.monthly_cells()),
        ("weekly", result.weekly_cells()),
    ):
        for c in cells:
            rows.append(
                {
                    "granularity": granularity,
                    "ym": c.month,
                    "period_key": c.period_key,
                    "account_slug": c.account_slug,
                    "beginning_balance": c.beginning_balance,
                    "net_after_anchor": c.net_after_anchor,
                    "ending_balance": c.balance,
                    "anchor_source": c.anchor.source.value,
                    "checkpoint_id": c.anchor.checkpoint_id or "",
                    "is_interim": c.anchor.is_interim,
                }
            )

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        writer.writerows(rows)


def import_payload(result: ForecastResult) -> dict[str, list[dict[str, Any]]]:
    """Bulk-import payload: ``{"monthly": [...], "weekly": [...]}`` of serialized cells."""
    return {
        "monthly": [c.to_dict() for c in result.monthly_cells()],
        "weekly": [c.to_dict() for c in result.weekly_cells()],
    }


def parse_import_payload(
    payload: str | dict[str, Any],
) -> tuple[list[BalanceCell], list[BalanceCell]]:
    """
    Validate a bulk-import payload and rebuild its cells.

    Args:
        payload: JSON text or an already decoded mapping

    Returns:
        ``(monthly_cells, weekly_cells)``

    Raises:
        InputError: If the payload is not JSON, lacks either array, or holds
            a malformed cell
    """
    if isinstance(payload, str):
        if not payload.strip():
            raise InputError("Import payload is empty.")
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise InputError(f"Import payload is not valid JSON ({exc})") from exc

    if (
        not isinstance(payload, dict)
        or not isinstance(payload.get("monthly"), list)
        or not isinstance(payload.get("weekly"), list)
    ):
        raise InputError("Import payload must include monthly and weekly arrays.")

    parsed: dict[str, list[BalanceCell]] = {}
    for section in ("monthly", "weekly"):
        cells = []
        for idx, item in enumerate(payload[section]):
            try:
                cells.append(BalanceCell.from_dict(item))
            except (KeyError, TypeError, ValueError) as exc:
                raise InputError(f"{section}[{idx}]: malformed balance cell ({exc})") from exc
        parsed[section] = cells
    return parsed["monthly"], parsed["weekly"]
