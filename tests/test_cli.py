"""Tests for the command line interface."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from letting_scope.cli import app

runner = CliRunner()


@pytest.fixture
def dataset_file(tmp_path: Path, dataset_payload: list[dict]) -> Path:
    path = tmp_path / "rent-data.json"
    path.write_text(json.dumps(dataset_payload))
    return path


class TestValueCommand:
    """Tests for 'value'."""

    def test_default_property(self) -> None:
        result = runner.invoke(app, ["value"])
        assert result.exit_code == 0, result.output
        assert "£1,002" in result.output
        assert "£1,102" in result.output
        assert "10% over-list" in result.output

    def test_json_output(self) -> None:
        result = runner.invoke(app, ["value", "--location", "Leith", "--area", "60", "--beds", "2", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["fair_rent"] == 1002
        assert data["asking_price"] == 1102

    def test_unknown_location(self) -> None:
        result = runner.invoke(app, ["value", "--location", "Atlantis"])
        assert result.exit_code == 1
        assert "Unknown location" in result.output

    def test_out_of_range_area(self) -> None:
        result = runner.invoke(app, ["value", "--area", "5"])
        assert result.exit_code == 1
        assert "Invalid input" in result.output

    def test_calibrates_from_file(self, dataset_file: Path) -> None:
        result = runner.invoke(app, ["value", "--file", str(dataset_file), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output[result.output.index("{"):])
        assert data["base_rate"] != 16.7
        assert 15 < data["base_rate"] < 20


class TestCalibrateCommand:
    """Tests for 'calibrate'."""

    def test_from_file(self, dataset_file: Path) -> None:
        result = runner.invoke(app, ["calibrate", "--file", str(dataset_file)])
        assert result.exit_code == 0, result.output
        assert "Base Rate Calibration" in result.output

    def test_too_few_records(self, tmp_path: Path) -> None:
        path = tmp_path / "small.json"
        path.write_text(json.dumps([{"agreedRent": 1000, "area": 50}] * 3))
        result = runner.invoke(app, ["calibrate", "--file", str(path)])
        assert result.exit_code == 0, result.output
        assert "Calibration skipped" in result.output

    def test_no_dataset_configured(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LETTING_SCOPE_DATASET_URL", raising=False)
        result = runner.invoke(app, ["calibrate"])
        assert result.exit_code == 1
        assert "No dataset configured" in result.output


class TestOtherCommands:
    """Tests for the remaining commands."""

    def test_locations_group(self) -> None:
        result = runner.invoke(app, ["locations", "--group", "Southside & University"])
        assert result.exit_code == 0, result.output
        assert "Marchmont Road" in result.output
        assert "Leith" not in result.output

    def test_locations_unknown_group(self) -> None:
        result = runner.invoke(app, ["locations", "--group", "Narnia"])
        assert result.exit_code == 1

    def test_delusion(self) -> None:
        result = runner.invoke(app, ["delusion"])
        assert result.exit_code == 0, result.output
        assert "1.10" in result.output
        assert "10% over-list" in result.output

    def test_delusion_with_fair_rent(self) -> None:
        result = runner.invoke(app, ["delusion", "--anchoring", "0.15", "--fair-rent", "1000"])
        assert result.exit_code == 0, result.output
        assert "20% over-list" in result.output
        assert "£1,200" in result.output

    def test_pro_rata(self) -> None:
        result = runner.invoke(app, ["pro-rata", "1000", "2024-01-01", "2024-01-15"])
        assert result.exit_code == 0, result.output
        assert "£492.77" in result.output
        assert "15 days" in result.output

    def test_pro_rata_bad_dates(self) -> None:
        result = runner.invoke(app, ["pro-rata", "1000", "2024-01-15", "2024-01-01"])
        assert result.exit_code == 1

    def test_rent_increase(self) -> None:
        result = runner.invoke(app, ["rent-increase", "1000", "1150"])
        assert result.exit_code == 0, result.output
        assert "£1,090.00" in result.output

    def test_rent_increase_not_allowed(self) -> None:
        result = runner.invoke(app, ["rent-increase", "1000", "1030"])
        assert result.exit_code == 0, result.output
        assert "No increase allowed" in result.output

    def test_affordability(self) -> None:
        result = runner.invoke(app, ["affordability", "1000", "36000"])
        assert result.exit_code == 0, result.output
        assert "AFFORDABLE" in result.output
        assert "UNAFFORDABLE" not in result.output

    def test_bills(self) -> None:
        result = runner.invoke(app, ["bills", "--council-band", "D"])
        assert result.exit_code == 0, result.output
        assert "1,697.56" in result.output
        assert "3,691.64" in result.output

    def test_bills_council_only(self) -> None:
        result = runner.invoke(app, ["bills", "--council-only", "--council-band", "B"])
        assert result.exit_code == 0, result.output
        assert "£1,550.95" in result.output
        assert "£129.25" in result.output

    def test_bills_unknown_household(self) -> None:
        result = runner.invoke(app, ["bills", "--household", "9"])
        assert result.exit_code == 1
        assert "Unknown household size" in result.output
