"""
Command-line interface for rollforecast.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from rollforecast import __version__
from rollforecast.core.errors import ForecastInputError
from rollforecast.core.exceptions import ForecastIntegrityError
from rollforecast.core.export import (
    export_balances_csv,
    export_forecast_json,
    load_forecast_json,
)
from rollforecast.core.forecast import build_forecast
from rollforecast.core.loader import load_inputs
from rollforecast.core.periods import weeks_in_month
from rollforecast.core.validation import DEFAULT_TOLERANCE, verify_forecast

logger = logging.getLogger("rollforecast")

EXAMPLE_INPUTS = {
    "months": ["2025-01", "2025-02"],
    "prior_ending_balances": {"operating": 1250, "profit": 300},
    "occurrences": [
        {"account_slug": "operating", "amount": 450, "timestamp": "2025-01-03T10:00:00Z"},
        {"account_slug": "operating", "amount": -180, "timestamp": "2025-01-07T18:30:00Z"},
        {"account_slug": "operating", "amount": -220, "timestamp": "2025-01-20T15:45:00Z"},
        {"account_slug": "operating", "amount": 375, "timestamp": "2025-02-04T09:05:00Z"},
        {"account_slug": "operating", "amount": -120, "timestamp": "2025-02-12T12:00:00Z"},
        {"account_slug": "operating", "amount": -315, "timestamp": "2025-02-21T13:15:00Z"},
        {"account_slug": "profit", "amount": 75, "timestamp": "2025-01-10T11:00:00Z"},
        {"account_slug": "profit", "amount": -50, "timestamp": "2025-01-25T08:00:00Z"},
        {"account_slug": "profit", "amount": 80, "timestamp": "2025-02-08T16:00:00Z"},
    ],
    "checkpoints": [
        {
            "id": "cp-operating-jan",
            "account_slug": "operating",
            "balance": 1480,
            "timestamp": "2025-01-17T14:00:00Z",
        },
        {
            "id": "cp-profit-feb",
            "account_slug": "profit",
            "balance": 430,
            "timestamp": "2025-02-18T13:30:00Z",
        },
    ],
}


def _configure_logging(args) -> None:
    if getattr(args, "verbose", False):
        level = logging.DEBUG
    elif getattr(args, "quiet", False):
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _print_run_summary(summary: dict) -> None:
    """Print a run summary to stdout."""
    print(
        f"Computed {summary['monthly_cells']} monthly and "
        f"{summary['weekly_cells']} weekly cells for "
        f"{len(summary['accounts'])} accounts over {len(summary['months'])} months"
    )
    if summary["interim_months"]:
        print(f"Interim (mid-month checkpoint) months: {summary['interim_months']}")
    for account, balance in summary["closing_balances"].items():
        print(f"  {account}: {balance:,.2f}")


def cmd_example(_) -> int:
    """Print a sample inputs JSON."""
    json.dump(EXAMPLE_INPUTS, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def cmd_run(args) -> int:
    """Build and verify a forecast, then export it."""
    try:
        inputs = load_inputs(args.input)
        result = build_forecast(**inputs.as_kwargs(), tol=args.tolerance)

        if args.format == "csv":
            export_balances_csv(args.output, result)
        else:
            export_forecast_json(args.output, result)

        _print_run_summary(result.summary())
        print(f"Results saved to {args.output}")
        return 0

    except ForecastInputError as e:
        print(f"Rejected input: {e}", file=sys.stderr)
        return 1
    except ForecastIntegrityError as e:
        logger.error("Forecast failed its consistency checks: %s", e)
        print(f"Internal consistency failure: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error running forecast: {e}", file=sys.stderr)
        return 1


def cmd_weeks(args) -> int:
    """Print the weekly windows of a month."""
    try:
        weeks = weeks_in_month(args.month)
    except ForecastInputError as e:
        print(f"Rejected input: {e}", file=sys.stderr)
        return 1

    if args.json:
        output = [
            {
                "week_key": w.key,
                "start": w.start.date().isoformat(),
                "end_exclusive": w.end.date().isoformat(),
                "days": w.days,
            }
            for w in weeks
        ]
        json.dump(output, sys.stdout, indent=2)
        sys.stdout.write("\n")
    else:
        for w in weeks:
            print(
                f"{w.key}: {w.start.date().isoformat()} .. "
                f"{w.end.date().isoformat()} ({w.days} days)"
            )
    return 0


def cmd_verify(args) -> int:
    """Re-verify an exported forecast result JSON."""
    try:
        result = load_forecast_json(args.input)
        verify_forecast(result, mode="raise", tol=args.tolerance)
    except ForecastInputError as e:
        print(f"Rejected input: {e}", file=sys.stderr)
        return 1
    except ForecastIntegrityError as e:
        print(f"❌ Verification failed: {e}")
        return 1
    except OSError as e:
        print(f"Verification failed: {e}", file=sys.stderr)
        return 1

    print("✅ Verification passed")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rollforecast",
        description="rollforecast - Monthly and weekly balance forecasting",
    )

    # Version argument
    parser.add_argument(
        "--version", action="version", version=f"rollforecast {__version__}"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    verbosity.add_argument(
        "-q", "--quiet", action="store_true", help="Only log errors"
    )

    subparsers = parser.add_subparsers(
        dest="cmd", required=True, help="Available commands"
    )

    # Example command
    example_parser = subparsers.add_parser(
        "example", help="Print a sample inputs JSON"
    )
    example_parser.set_defaults(func=cmd_example)

    # Run command
    run_parser = subparsers.add_parser(
        "run", help="Build a forecast from an inputs file and export the result"
    )
    run_parser.add_argument(
        "-i", "--input", required=True, help="Inputs file (JSON or YAML)"
    )
    run_parser.add_argument(
        "-o", "--output", required=True, help="Output file"
    )
    run_parser.add_argument(
        "--format",
        choices=["json", "csv"],
        default="json",
        help="Output format (default: json)",
    )
    run_parser.add_argument(
        "--tolerance",
        type=float,
        default=DEFAULT_TOLERANCE,
        help=f"Continuity tolerance (default: {DEFAULT_TOLERANCE})",
    )
    run_parser.set_defaults(func=cmd_run)

    # Weeks command
    weeks_parser = subparsers.add_parser(
        "weeks", help="List the weekly windows of a month"
    )
    weeks_parser.add_argument("month", help="Month identifier (YYYY-MM)")
    weeks_parser.add_argument(
        "--json", action="store_true", help="Output in JSON format"
    )
    weeks_parser.set_defaults(func=cmd_weeks)

    # Verify command
    verify_parser = subparsers.add_parser(
        "verify", help="Re-verify an exported forecast result JSON"
    )
    verify_parser.add_argument(
        "-i", "--input", required=True, help="Result JSON written by 'run'"
    )
    verify_parser.add_argument(
        "--tolerance",
        type=float,
        default=DEFAULT_TOLERANCE,
        help=f"Continuity tolerance (default: {DEFAULT_TOLERANCE})",
    )
    verify_parser.set_defaults(func=cmd_verify)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args)
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
