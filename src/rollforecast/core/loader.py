"""Utilities for loading forecast inputs from YAML/JSON sources."""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml

from .errors import InputError
from .models import AnchorCheckpoint, Occurrence
from .periods import month_range
from .utils import finite_number

__all__ = [
    "ForecastInputs",
    "load_inputs",
]

logger = logging.getLogger(__name__)

_ALIASES = {
    "priorEndingBalances": "prior_ending_balances",
    "horizonMonths": "horizon_months",
}


@dataclass(slots=True)
class ForecastInputs:
    """Normalized inputs ready for ``build_forecast``."""

    months: list[str]
    occurrences: list[Occurrence] = field(default_factory=list)
    checkpoints: list[AnchorCheckpoint] = field(default_factory=list)
    prior_ending_balances: dict[str, float] = field(default_factory=dict)
    source: str = "<memory>"

    def as_kwargs(self) -> dict[str, Any]:
        return {
            "months": self.months,
            "occurrences": self.occurrences,
            "checkpoints": self.checkpoints,
            "prior_ending_balances": self.prior_ending_balances,
        }


def load_inputs(
    source: str | Path | dict[str, Any], *, format: str | None = None
) -> ForecastInputs:
    """
    Parse forecast inputs from YAML/JSON/dict.

    Recognised top-level keys: ``months`` (or ``start`` + ``horizon_months``),
    ``occurrences``, ``checkpoints`` and ``prior_ending_balances``. The
    camel-case spellings used by JavaScript collaborators are accepted too.

    Raises:
        InputError: If the document is structurally invalid
        InvalidPeriodIdentifier: If ``start`` is not a ``YYYY-MM`` month
        TimestampParseError: If an occurrence or checkpoint timestamp is malformed
    """
    mapping, label = _read_source(source, format=format)
    for alias, key in _ALIASES.items():
        if alias in mapping and key not in mapping:
            mapping[key] = mapping.pop(alias)

    inputs = ForecastInputs(
        months=_normalize_months(mapping, label),
        occurrences=_normalize_occurrences(mapping.get("occurrences"), label),
        checkpoints=_normalize_checkpoints(mapping.get("checkpoints"), label),
        prior_ending_balances=_normalize_balances(
            mapping.get("prior_ending_balances"), label
        ),
        source=label,
    )
    logger.debug(
        "Loaded %s: %d months, %d occurrences, %d checkpoints",
        label,
        len(inputs.months),
        len(inputs.occurrences),
        len(inputs.checkpoints),
    )
    return inputs


def _read_source(
    source: str | Path | dict[str, Any], *, format: str | None
) -> tuple[dict[str, Any], str]:
    if isinstance(source, dict):
        return deepcopy(source), "<mapping>"

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(path)

    fmt = (format or path.suffix.lstrip(".")).lower()
    text = path.read_text(encoding="utf-8")
    try:
        if fmt in {"yaml", "yml", ""}:
            data = yaml.safe_load(text)
        elif fmt == "json":
            data = json.loads(text)
        else:
            raise InputError(f"Unsupported input format '{fmt}' for {path}")
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise InputError(f"{path}: could not parse {fmt or 'yaml'} ({exc})") from exc

    if not isinstance(data, dict):
        raise InputError(f"Input root must be a mapping (source={path})")
    return data, str(path)


def _normalize_months(mapping: dict[str, Any], label: str) -> list[str]:
    if "months" in mapping:
        entries = _ensure_list(mapping["months"], f"{label}::months")
        out: list[str] = []
        for idx, item in enumerate(entries):
            if not isinstance(item, str) or not item.strip():
                raise InputError(f"{label}::months[{idx}]: expected YYYY-MM string")
            out.append(item)
        return out

    start = mapping.get("start")
    horizon = mapping.get("horizon_months")
    if start is None or horizon is None:
        raise InputError(f"{label}: provide 'months' or both 'start' and 'horizon_months'")
    if isinstance(horizon, bool) or not isinstance(horizon, int) or horizon < 1:
        raise InputError(f"{label}::horizon_months: expected a positive integer")
    if not isinstance(start, (str, date)):
        raise InputError(f"{label}::start: expected YYYY-MM or an ISO date")
    return month_range(start, horizon)


def _normalize_occurrences(raw: Any, label: str) -> list[Occurrence]:
    occurrences: list[Occurrence] = []
    for idx, entry in enumerate(_ensure_list(raw, f"{label}::occurrences", allow_none=True) or []):
        ctx = f"{label}::occurrences[{idx}]"
        occurrences.append(Occurrence.from_dict(_ensure_dict(entry, ctx), ctx))
    return occurrences


def _normalize_checkpoints(raw: Any, label: str) -> list[AnchorCheckpoint]:
    checkpoints: list[AnchorCheckpoint] = []
    for idx, entry in enumerate(_ensure_list(raw, f"{label}::checkpoints", allow_none=True) or []):
        ctx = f"{label}::checkpoints[{idx}]"
        data = _ensure_dict(entry, ctx)
        data.setdefault("id", f"checkpoint-{idx}")
        checkpoints.append(AnchorCheckpoint.from_dict(data, ctx))
    return checkpoints


def _normalize_balances(raw: Any, label: str) -> dict[str, float]:
    ctx = f"{label}::prior_ending_balances"
    data = _ensure_dict(raw, ctx)
    return {
        str(account): finite_number(value, f"{ctx}.{account}")
        for account, value in data.items()
    }


def _ensure_dict(value: Any, ctx: str) -> dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise InputError(f"{ctx}: expected a mapping")
    return deepcopy(value)


def _ensure_list(value: Any, ctx: str, *, allow_none: bool = False) -> list[Any] | None:
    if value is None:
        if allow_none:
            return None
        raise InputError(f"{ctx}: expected a list")
    if not isinstance(value, list):
        raise InputError(f"{ctx}: expected a list")
    return list(value)
