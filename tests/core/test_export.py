"""
Tests for result export and the bulk-import payload.
"""

import csv
import json

import pytest

from rollforecast import (
    AnchorCheckpoint,
    InputError,
    Occurrence,
    build_forecast,
    export_balances_csv,
    export_forecast_json,
    import_payload,
    load_forecast_json,
    parse_import_payload,
)
from rollforecast.core.export import CSV_FIELDS


@pytest.fixture
def result():
    return build_forecast(
        months=["2025-01", "2025-02"],
        occurrences=[
            Occurrence.create("operating", 450, "2025-01-03T10:00:00Z"),
            Occurrence.create("operating", -220, "2025-01-20T15:45:00Z"),
            Occurrence.create("profit", 80, "2025-02-08T16:00:00Z"),
        ],
        checkpoints=[
            AnchorCheckpoint.create("cp-profit-feb", "profit", 430, "2025-02-18T13:30:00Z"),
        ],
        prior_ending_balances={"operating": 1250, "profit": 300},
    )


class TestJsonExport:
    """Test the full-result JSON file."""

    def test_round_trip(self, tmp_path, result):
        path = tmp_path / "result.json"
        export_forecast_json(path, result)

        assert load_forecast_json(path) == result

    def test_file_is_plain_json(self, tmp_path, result):
        path = tmp_path / "result.json"
        export_forecast_json(path, result)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["months"] == ["2025-01", "2025-02"]
        assert data["monthly"]["2025-02"]["profit"]["anchor"]["checkpoint_id"] == "cp-profit-feb"

    def test_load_rejects_other_documents(self, tmp_path):
        path = tmp_path / "other.json"
        path.write_text('{"hello": "world"}', encoding="utf-8")

        with pytest.raises(InputError, match="not a forecast result"):
            load_forecast_json(path)

    def test_load_rejects_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{", encoding="utf-8")

        with pytest.raises(InputError):
            load_forecast_json(path)


class TestCsvExport:
    """Test the flat balances CSV."""

    def test_rows(self, tmp_path, result):
        path = tmp_path / "balances.csv"
        export_balances_csv(path, result)

        with open(path, newline="", encoding="utf-8") as f:
            reader = csv.DictReader(f)
            assert reader.fieldnames == CSV_FIELDS
            rows = list(reader)

        monthly = [r for r in rows if r["granularity"] == "monthly"]
        weekly = [r for r in rows if r["granularity"] == "weekly"]
        assert len(monthly) == 4
        assert len(weekly) == 20
        # Monthly rows come first
        assert rows[: len(monthly)] == monthly

        feb_profit = next(
            r for r in monthly if r["ym"] == "2025-02" and r["account_slug"] == "profit"
        )
        assert float(feb_profit["ending_balance"]) == 430
        assert feb_profit["anchor_source"] == "checkpoint"
        assert feb_profit["checkpoint_id"] == "cp-profit-feb"
        assert feb_profit["is_interim"] == "True"

        jan_operating = monthly[0]
        assert jan_operating["checkpoint_id"] == ""
        assert jan_operating["anchor_source"] == "rollforward"


class TestImportPayload:
    """Test building and validating the bulk-import payload."""

    def test_payload_shape(self, result):
        payload = import_payload(result)

        assert set(payload) == {"monthly", "weekly"}
        assert len(payload["monthly"]) == 4
        assert len(payload["weekly"]) == 20
        assert payload["weekly"][0]["period_key"] == "2025-01-05"

    def test_parse_from_text(self, result):
        text = json.dumps(import_payload(result))

        monthly, weekly = parse_import_payload(text)

        assert monthly == result.monthly_cells()
        assert weekly == result.weekly_cells()

    def test_parse_from_mapping(self, result):
        monthly, weekly = parse_import_payload(import_payload(result))

        assert len(monthly) == 4
        assert len(weekly) == 20

    @pytest.mark.parametrize(
        "payload, message",
        [
            ("", "empty"),
            ("   ", "empty"),
            ("{oops", "not valid JSON"),
            ("[]", "monthly and weekly arrays"),
            ({"monthly": []}, "monthly and weekly arrays"),
            ({"monthly": [], "weekly": {}}, "monthly and weekly arrays"),
        ],
    )
    def test_rejects_malformed_payloads(self, payload, message):
        with pytest.raises(InputError, match=message):
            parse_import_payload(payload)

    def test_rejects_malformed_cell(self, result):
        payload = import_payload(result)
        del payload["weekly"][3]["anchor"]

        with pytest.raises(InputError, match=r"weekly\[3\]: malformed balance cell"):
            parse_import_payload(payload)

    def test_rejects_unknown_anchor_source(self, result):
        payload = import_payload(result)
        payload["monthly"][0]["anchor"]["source"] = "guess"

        with pytest.raises(InputError, match=r"monthly\[0\]"):
            parse_import_payload(payload)
