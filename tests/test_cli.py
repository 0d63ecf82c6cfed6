"""
Tests for the command-line interface.
"""

import json
from datetime import date

import pytest
from typer.testing import CliRunner

from workingdays import __version__
from workingdays.adapters.json_holiday_store import JsonHolidayStore
from workingdays.cli import app as cli_app
from workingdays.domain.exceptions import HolidaySourceError
from workingdays.domain.models import Holiday
from workingdays.services.holiday_cache import HolidayCacheStrategy

runner = CliRunner()


class FakeRemote:
    def __init__(self, holidays=None, error=None):
        self.holidays = list(holidays or [])
        self.error = error
        self.find_calls = 0

    async def find_all(self):
        self.find_calls += 1
        if self.error is not None:
            raise self.error
        return list(self.holidays)

    async def save(self, holidays):
        pass


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "log_level: WARNING\n"
        "holidays:\n"
        f"  store_path: {tmp_path / 'holidays.json'}\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def remote(monkeypatch):
    """Replace the network-backed cache with one over a fake remote and the configured store."""
    fake = FakeRemote([Holiday(date(2025, 9, 29), "Test Holiday")])

    def build(config):
        return HolidayCacheStrategy(
            store=JsonHolidayStore(config.holidays.store_path),
            remote=fake,
            ttl_seconds=config.holidays.cache_ttl_seconds,
        )

    monkeypatch.setattr(cli_app, "build_holiday_cache", build)
    return fake


def _json_output(result):
    return json.loads(result.stdout)


def test_calculate_prints_resulting_date(config_file, remote):
    result = runner.invoke(cli_app.app, [
        "calculate", "--days", "1", "--hours", "2",
        "--date", "2025-09-26T20:00:00Z", "--config", str(config_file),
    ])

    assert result.exit_code == 0
    assert _json_output(result) == {"date": "2025-09-30T22:00:00Z"}
    assert remote.find_calls == 1


def test_calculate_persists_fetched_holidays(tmp_path, config_file, remote):
    runner.invoke(cli_app.app, [
        "calculate", "--hours", "1", "--date", "2025-09-26T22:00:00Z", "--config", str(config_file),
    ])

    stored = json.loads((tmp_path / "holidays.json").read_text(encoding="utf-8"))
    assert stored == [{"date": "2025-09-29", "name": "Test Holiday"}]


def test_calculate_without_counts_is_invalid(config_file, remote):
    result = runner.invoke(cli_app.app, ["calculate", "--config", str(config_file)])

    assert result.exit_code == 1
    assert _json_output(result) == {
        "error": "InvalidParameters",
        "message": "At least one of 'days' or 'hours' must be provided.",
    }
    assert remote.find_calls == 0


def test_calculate_rejects_non_utc_date(config_file, remote):
    result = runner.invoke(cli_app.app, [
        "calculate", "--hours", "1", "--date", "2025-09-26T17:00:00-05:00", "--config", str(config_file),
    ])

    assert result.exit_code == 1
    assert _json_output(result)["error"] == "InvalidParameters"


def test_calculate_with_unreachable_endpoint_ignores_holidays(config_file, remote):
    remote.error = HolidaySourceError("endpoint down")

    result = runner.invoke(cli_app.app, [
        "calculate", "--days", "1", "--date", "2025-09-26T20:00:00Z", "--config", str(config_file),
    ])

    assert result.exit_code == 0
    assert _json_output(result) == {"date": "2025-09-29T20:00:00Z"}


def test_missing_config_file_exits(tmp_path):
    result = runner.invoke(cli_app.app, ["calculate", "--hours", "1", "--config", str(tmp_path / "nope.yaml")])

    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_holidays_refresh_then_list(config_file, remote):
    refreshed = runner.invoke(cli_app.app, ["holidays", "refresh", "--config", str(config_file)])

    assert refreshed.exit_code == 0
    assert "1 holidays stored" in refreshed.output

    listed = runner.invoke(cli_app.app, ["holidays", "list", "--config", str(config_file)])

    assert listed.exit_code == 0
    assert "2025-09-29" in listed.output
    assert "Monday" in listed.output
    assert "Test Holiday" in listed.output


def test_holidays_refresh_failure_exits(config_file, remote):
    remote.error = HolidaySourceError("endpoint down")

    result = runner.invoke(cli_app.app, ["holidays", "refresh", "--config", str(config_file)])

    assert result.exit_code == 1
    assert "endpoint down" in result.output


def test_holidays_list_empty_store(config_file):
    result = runner.invoke(cli_app.app, ["holidays", "list", "--config", str(config_file)])

    assert result.exit_code == 0
    assert "No holidays stored yet" in result.output


def test_version():
    result = runner.invoke(cli_app.app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
