"""
Core module for rollforecast.

This module contains the balance-forecast engine: period windows, anchor
resolution, activity aggregation, the balance chain builder and the
continuity verifier.
"""

from .anchors import (
    applies_after_anchor,
    compute_cell,
    net_after_anchor,
    resolve_anchor,
)
from .context import RunningBalances
from .errors import (
    ForecastInputError,
    InputError,
    InvalidPeriodIdentifier,
    TimestampParseError,
)
from .exceptions import (
    ContinuityViolation,
    ForecastIntegrityError,
    ReconciliationViolation,
)
from .export import (
    export_balances_csv,
    export_forecast_json,
    import_payload,
    load_forecast_json,
    parse_import_payload,
)
from .forecast import (
    Forecast,
    build_forecast,
    compute_monthly_balances,
    compute_weekly_balances,
)
from .loader import ForecastInputs, load_inputs
from .models import (
    AccountSlug,
    AnchorCheckpoint,
    AnchorMetadata,
    AnchorSource,
    BalanceCell,
    Occurrence,
    PeriodWindow,
)
from .periods import month_end_date, month_range, month_window, weeks_in_month
from .results import ForecastResult
from .utils import format_timestamp, list_accounts, parse_timestamp
from .validation import (
    verify_forecast,
    verify_monthly_continuity,
    verify_reconciliation,
    verify_weekly_continuity,
)

__all__ = [
    # Errors
    "ForecastInputError",
    "InvalidPeriodIdentifier",
    "TimestampParseError",
    "InputError",
    "ForecastIntegrityError",
    "ContinuityViolation",
    "ReconciliationViolation",
    # Models
    "AccountSlug",
    "Occurrence",
    "AnchorCheckpoint",
    "AnchorSource",
    "AnchorMetadata",
    "BalanceCell",
    "PeriodWindow",
    "RunningBalances",
    # Periods
    "month_window",
    "weeks_in_month",
    "month_range",
    "month_end_date",
    # Anchors
    "resolve_anchor",
    "net_after_anchor",
    "applies_after_anchor",
    "compute_cell",
    # Forecast
    "Forecast",
    "build_forecast",
    "compute_monthly_balances",
    "compute_weekly_balances",
    "ForecastResult",
    # Validation
    "verify_forecast",
    "verify_monthly_continuity",
    "verify_weekly_continuity",
    "verify_reconciliation",
    # Input / output
    "ForecastInputs",
    "load_inputs",
    "export_forecast_json",
    "load_forecast_json",
    "export_balances_csv",
    "import_payload",
    "parse_import_payload",
    # Utils
    "parse_timestamp",
    "format_timestamp",
    "list_accounts",
]
