"""
Quick demonstration of monthly and weekly balance chains with checkpoint anchors.
"""

from __future__ import annotations

import json

import pandas as pd
from rollforecast.cli import EXAMPLE_INPUTS
from rollforecast.core.forecast import Forecast


def pretty(data: dict) -> str:
    """Return JSON formatted output."""
    return json.dumps(data, indent=2, sort_keys=True)


def main() -> None:
    forecast = Forecast.from_dict(EXAMPLE_INPUTS)
    result = forecast.run()

    print("=== Forecast summary ===")
    print(pretty(result.summary()))

    print("\n=== Monthly ending balances ===")
    with pd.option_context("display.width", 120):
        print(result.balance_matrix("M"))

    print("\n=== Weekly ending balances ===")
    with pd.option_context("display.width", 120):
        print(result.balance_matrix("W"))

    print("\n=== Anchors ===")
    frame = result.monthly_frame()
    print(frame[["month", "account_slug", "anchor_source", "checkpoint_id", "is_interim"]])

    print("\nVerification failures:", forecast.validate(mode="warn"))


if __name__ == "__main__":
    main()
