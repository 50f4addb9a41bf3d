"""
Tests for the rollforecast command-line interface.
"""

import json

import pytest

from rollforecast.cli import EXAMPLE_INPUTS, main
from rollforecast.core.export import export_forecast_json, load_forecast_json
from rollforecast.core.forecast import build_forecast
from rollforecast.core.loader import load_inputs


def run_cli(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


@pytest.fixture
def inputs_file(tmp_path):
    path = tmp_path / "inputs.json"
    path.write_text(json.dumps(EXAMPLE_INPUTS), encoding="utf-8")
    return path


class TestExampleCommand:
    def test_prints_loadable_inputs(self, capsys):
        assert run_cli(["example"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data == EXAMPLE_INPUTS
        assert load_inputs(data).months == ["2025-01", "2025-02"]


class TestRunCommand:
    def test_json_output(self, tmp_path, inputs_file, capsys):
        output = tmp_path / "result.json"

        assert run_cli(["run", "-i", str(inputs_file), "-o", str(output)]) == 0

        out = capsys.readouterr().out
        assert "Computed 4 monthly and 20 weekly cells" in out
        assert "operating: 1,200.00" in out
        assert "profit: 430.00" in out
        assert f"Results saved to {output}" in out

        result = load_forecast_json(output)
        assert result.cell("2025-01", "operating").balance == 1260

    def test_csv_output(self, tmp_path, inputs_file):
        output = tmp_path / "balances.csv"

        code = run_cli(
            ["run", "-i", str(inputs_file), "-o", str(output), "--format", "csv"]
        )

        assert code == 0
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0].startswith("granularity,ym,period_key")
        assert len(lines) == 1 + 4 + 20

    def test_yaml_input(self, tmp_path, capsys):
        inputs = tmp_path / "inputs.yaml"
        inputs.write_text(
            "months: ['2025-01']\nprior_ending_balances: {operating: 10}\n",
            encoding="utf-8",
        )

        code = run_cli(["run", "-i", str(inputs), "-o", str(tmp_path / "r.json")])

        assert code == 0
        assert "operating: 10.00" in capsys.readouterr().out

    def test_rejected_month(self, tmp_path, capsys):
        inputs = tmp_path / "inputs.json"
        inputs.write_text(json.dumps({"months": ["2025-1"]}), encoding="utf-8")

        code = run_cli(["run", "-i", str(inputs), "-o", str(tmp_path / "r.json")])

        assert code == 1
        err = capsys.readouterr().err
        assert "Rejected input" in err
        assert "2025-1" in err

    def test_missing_input_file(self, tmp_path, capsys):
        code = run_cli(
            ["run", "-i", str(tmp_path / "absent.json"), "-o", str(tmp_path / "r.json")]
        )

        assert code == 1
        assert "Error running forecast" in capsys.readouterr().err


class TestWeeksCommand:
    def test_plain_listing(self, capsys):
        assert run_cli(["weeks", "2025-06"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "2025-06-08: 2025-06-01 .. 2025-06-09 (8 days)"
        assert lines[-1] == "2025-06-30: 2025-06-30 .. 2025-07-01 (1 days)"

    def test_json_listing(self, capsys):
        assert run_cli(["weeks", "2025-01", "--json"]) == 0

        weeks = json.loads(capsys.readouterr().out)
        assert [w["week_key"] for w in weeks] == [
            "2025-01-05",
            "2025-01-12",
            "2025-01-19",
            "2025-01-26",
            "2025-01-31",
        ]
        assert weeks[0] == {
            "week_key": "2025-01-05",
            "start": "2025-01-01",
            "end_exclusive": "2025-01-06",
            "days": 5,
        }

    def test_invalid_month(self, capsys):
        assert run_cli(["weeks", "2025-13"]) == 1
        assert "Invalid month identifier" in capsys.readouterr().err

    def test_month_past_calendar_range(self, capsys):
        assert run_cli(["weeks", "9999-12"]) == 1
        assert "supported calendar range" in capsys.readouterr().err


class TestVerifyCommand:
    def test_exported_result_passes(self, tmp_path, capsys):
        path = tmp_path / "result.json"
        export_forecast_json(path, build_forecast(**load_inputs(EXAMPLE_INPUTS).as_kwargs()))

        assert run_cli(["verify", "-i", str(path)]) == 0
        assert "Verification passed" in capsys.readouterr().out

    def test_tampered_result_fails(self, tmp_path, capsys):
        data = build_forecast(**load_inputs(EXAMPLE_INPUTS).as_kwargs()).to_dict()
        feb = data["monthly"]["2025-02"]["operating"]
        feb["beginning_balance"] += 50
        feb["balance"] += 50
        feb["anchor"]["balance"] += 50
        path = tmp_path / "result.json"
        path.write_text(json.dumps(data), encoding="utf-8")

        assert run_cli(["verify", "-i", str(path)]) == 1
        out = capsys.readouterr().out
        assert "Verification failed" in out
        assert "operating" in out

    def test_not_a_result(self, tmp_path, capsys):
        path = tmp_path / "inputs.json"
        path.write_text(json.dumps(EXAMPLE_INPUTS), encoding="utf-8")

        assert run_cli(["verify", "-i", str(path)]) == 1
        assert "Rejected input" in capsys.readouterr().err


class TestParser:
    def test_command_required(self):
        assert run_cli([]) == 2

    def test_verbosity_flags_are_exclusive(self):
        assert run_cli(["-v", "-q", "weeks", "2025-01"]) == 2

    def test_verbose_run(self, tmp_path, inputs_file):
        code = run_cli(
            ["-v", "run", "-i", str(inputs_file), "-o", str(tmp_path / "r.json")]
        )
        assert code == 0

    def test_tolerance_defaults_follow_engine(self):
        from rollforecast.cli import build_parser
        from rollforecast.core.validation import DEFAULT_TOLERANCE

        parser = build_parser()
        run_args = parser.parse_args(["run", "-i", "in.json", "-o", "out.json"])
        verify_args = parser.parse_args(["verify", "-i", "out.json"])

        assert run_args.tolerance == DEFAULT_TOLERANCE
        assert verify_args.tolerance == DEFAULT_TOLERANCE
