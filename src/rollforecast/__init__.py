"""
rollforecast - Period-Boundary Balance Forecasting

rollforecast computes, for a set of financial accounts, a chronological ledger
of monthly and weekly period-boundary balances. Each period starts either from
the previous period's ending balance (roll-forward) or from an externally
observed checkpoint, and net activity after that anchor is added on top.

Key Features:
- **Half-open windows**: Months and Sunday-ending weeks as ``[start, end)``
- **Checkpoint anchors**: Observed balances override the roll-forward value,
  including mid-period (interim) reconciliations
- **Shared engine**: One anchor resolver and activity aggregator for monthly
  and weekly windows alike
- **Self-verifying**: Month-to-month and week-to-week continuity plus
  weekly/monthly reconciliation are checked before a result is returned
- **Portable output**: Lossless JSON, pandas DataFrames, and rows shaped for
  the persisted balance store

Quick Start:
    ```python
    from rollforecast import AnchorCheckpoint, Occurrence, build_forecast

    result = build_forecast(
        months=["2025-01", "2025-02"],
        occurrences=[
            Occurrence.create("operating", 450, "2025-01-03T10:00:00Z"),
            Occurrence.create("operating", -220, "2025-01-20T15:45:00Z"),
        ],
        checkpoints=[
            AnchorCheckpoint.create(
                "cp-operating-jan", "operating", 1480, "2025-01-17T14:00:00Z"
            ),
        ],
        prior_ending_balances={"operating": 1250},
    )

    jan = result.cell("2025-01", "operating")
    jan.balance               # 1260.0
    jan.anchor.is_interim     # True
    result.monthly_frame()    # pandas view
    ```

Command Line:
    ``rollforecast example > inputs.json`` then
    ``rollforecast run -i inputs.json -o result.json``
"""

# Version information
__version__ = "0.1.0"
__author__ = "rollforecast Team"
__description__ = "Period-boundary balance forecasting with checkpoint anchors"

from .core import (
    AccountSlug,
    AnchorCheckpoint,
    AnchorMetadata,
    AnchorSource,
    BalanceCell,
    ContinuityViolation,
    Forecast,
    ForecastInputError,
    ForecastInputs,
    ForecastIntegrityError,
    ForecastResult,
    InputError,
    InvalidPeriodIdentifier,
    Occurrence,
    PeriodWindow,
    ReconciliationViolation,
    RunningBalances,
    TimestampParseError,
    build_forecast,
    export_balances_csv,
    export_forecast_json,
    import_payload,
    load_forecast_json,
    load_inputs,
    month_range,
    month_window,
    parse_import_payload,
    verify_forecast,
    weeks_in_month,
)

# Define what gets imported with "from rollforecast import *"
__all__ = [
    # Engine
    "build_forecast",
    "Forecast",
    "ForecastResult",
    "RunningBalances",
    # Models
    "AccountSlug",
    "Occurrence",
    "AnchorCheckpoint",
    "AnchorSource",
    "AnchorMetadata",
    "BalanceCell",
    "PeriodWindow",
    # Periods
    "month_window",
    "weeks_in_month",
    "month_range",
    # Verification
    "verify_forecast",
    # Errors
    "ForecastInputError",
    "InvalidPeriodIdentifier",
    "TimestampParseError",
    "InputError",
    "ForecastIntegrityError",
    "ContinuityViolation",
    "ReconciliationViolation",
    # Input / output
    "ForecastInputs",
    "load_inputs",
    "export_forecast_json",
    "load_forecast_json",
    "export_balances_csv",
    "import_payload",
    "parse_import_payload",
    # Version info
    "__version__",
    "__author__",
    "__description__",
]
