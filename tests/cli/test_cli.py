"""Tests for the CLI commands."""

from __future__ import annotations

import json
import logging

import pytest
from click.testing import CliRunner

from hotel_calendar.cli import cli

pytestmark = pytest.mark.unit


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_handlers():
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers[:] = original_handlers
    root.setLevel(original_level)


@pytest.fixture
def snapshot(tmp_path, sample_records):
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(sample_records))
    return path


@pytest.fixture
def config_dir(tmp_path):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "calendar.toml").write_text(
        '[calendar]\ntimezone = "UTC"\ndefault_view = "month"\n\n'
        "[calendar.domains]\ncrm_lead = false\n"
    )
    return config_dir


class TestVersion:
    def test_version_flag(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestShowCommand:
    def test_week_view(self, runner, snapshot):
        result = runner.invoke(cli, ["show", str(snapshot), "--date", "2024-06-10"])
        assert result.exit_code == 0, result.output
        assert "2024-06-10 Mon" in result.output
        assert "2024-06-16 Sun" in result.output
        assert "10:00 [240] Supplier meeting" in result.output
        assert "14:30 [600] Task: Check minibar" in result.output

    def test_month_view_from_config(self, runner, snapshot, config_dir):
        result = runner.invoke(
            cli, ["show", str(snapshot), "--date", "2024-06-10", "--config", str(config_dir)]
        )
        assert result.exit_code == 0, result.output
        assert "2024-06-30 Sun" in result.output
        assert "Wedding party (confirmed)" in result.output
        assert "Call back" not in result.output

    def test_view_option_overrides_config(self, runner, snapshot, config_dir):
        result = runner.invoke(
            cli,
            ["show", str(snapshot), "--view", "day", "--date", "2024-06-11"]
            + ["--config", str(config_dir)],
        )
        assert result.exit_code == 0, result.output
        assert "15:30 [680] Spa (duo): Marie Dupont" in result.output
        assert "2024-06-12" not in result.output

    def test_empty_snapshot(self, runner, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("{}")
        result = runner.invoke(cli, ["show", str(path), "--date", "2024-06-10"])
        assert result.exit_code == 0
        assert "No events to display" in result.output

    def test_invalid_snapshot_json(self, runner, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = runner.invoke(cli, ["show", str(path)])
        assert result.exit_code == 1
        assert "Invalid snapshot JSON" in result.output

    def test_invalid_config(self, runner, snapshot, tmp_path):
        bad = tmp_path / "bad.toml"
        bad.write_text('[calendar]\ndefault_view = "year"\n')
        result = runner.invoke(cli, ["show", str(snapshot), "--config", str(bad)])
        assert result.exit_code == 1
        assert "Config error" in result.output


class TestEventsCommand:
    def test_lists_events_in_start_order(self, runner, snapshot):
        result = runner.invoke(cli, ["events", str(snapshot)])
        assert result.exit_code == 0, result.output
        lines = [line.split()[0] for line in result.output.splitlines() if line.strip()]
        assert lines == ["group-g1", "agenda-evt-1", "spa-s1", "lead-42", "task-t1"]

    def test_reports_skipped_records(self, runner, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps({"tasks": [{"id": "t1", "text": "No date"}]}))
        result = runner.invoke(cli, ["events", str(path)])
        assert result.exit_code == 0
        assert "(1 record(s) without a usable date skipped)" in result.output

    def test_json_output(self, runner, snapshot):
        result = runner.invoke(cli, ["events", str(snapshot), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert [item["id"] for item in data][:2] == ["group-g1", "agenda-evt-1"]
        assert "original" not in data[0]
        assert data[0]["domain"] == "group_stay"


class TestCheckConfigCommand:
    def test_valid(self, runner, config_dir):
        result = runner.invoke(cli, ["check-config", str(config_dir)])
        assert result.exit_code == 0
        assert "OK: timezone=UTC view=month" in result.output
        assert "crm_lead" not in result.output

    def test_invalid(self, runner, tmp_path):
        bad = tmp_path / "calendar.toml"
        bad.write_text("[calendar.domains]\nrooms = true\n")
        result = runner.invoke(cli, ["check-config", str(bad)])
        assert result.exit_code == 1
        assert "ERROR: Unknown calendar domain(s): rooms" in result.output


class TestLoggingFromConfig:
    def test_property_name_reaches_log_file(self, runner, tmp_path):
        log_file = tmp_path / "logs" / "calendar.log"
        config = tmp_path / "calendar.toml"
        config.write_text(
            '[calendar]\nproperty = "Hotel du Lac"\n\n'
            f'[calendar.logging]\nlevel = "WARNING"\nlog_file = "{log_file.as_posix()}"\n'
        )
        snapshot = tmp_path / "snapshot.json"
        snapshot.write_text(
            json.dumps(
                {
                    "tasks": [
                        {"id": "t1", "text": "First", "dueDate": "2024-06-13"},
                        {"id": "t1", "text": "Again", "dueDate": "2024-06-14"},
                    ]
                }
            )
        )

        result = runner.invoke(cli, ["events", str(snapshot), "--config", str(config)])
        assert result.exit_code == 0, result.output
        for handler in logging.getLogger().handlers:
            handler.flush()

        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        duplicate = next(r for r in records if r["event"].startswith("Duplicate calendar id"))
        assert duplicate["property"] == "Hotel du Lac"
        assert duplicate["level"] == "warning"
