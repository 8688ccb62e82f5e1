"""Tests for the site-insight command line."""

import csv
import io
import json
import re

import pytest
from typer.testing import CliRunner

from site_insight import __version__
from site_insight.cli import app

runner = CliRunner()


@pytest.fixture
def cache_config(isolated_config):
    path = isolated_config / "cache.toml"
    path.write_text(f'cache_dir = "{(isolated_config / "cache").as_posix()}"\n', encoding="utf-8")
    return path


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


class TestAnalyze:
    def test_json_to_file(self, sample_site, isolated_config):
        out = isolated_config / "report.json"
        result = runner.invoke(
            app, ["analyze", str(sample_site), "--format", "json", "--output", str(out), "--no-cache"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["summary"]["units_total"] == 4
        assert data["metadata"]["target_version"] == "10"

    def test_csv_to_file(self, sample_site, isolated_config):
        out = isolated_config / "report.csv"
        result = runner.invoke(
            app,
            ["analyze", str(sample_site), "-f", "csv", "-o", str(out), "--no-cache", "-t", "11"],
        )
        assert result.exit_code == 0, result.output
        rows = list(csv.reader(io.StringIO(out.read_text(encoding="utf-8"))))
        assert rows[0] == ["section", "name", "metric", "value"]
        assert ["metadata", "", "target_version", "11"] in rows

    def test_rich_to_stdout(self, sample_site, isolated_config):
        result = runner.invoke(app, ["analyze", str(sample_site), "--no-cache", "-w", "2"])
        assert result.exit_code == 0, result.output
        assert "mymodule" in result.output

    def test_site_state(self, sample_site, isolated_config):
        state = isolated_config / "state.json"
        state.write_text(json.dumps({"performance": {"css_aggregation": False}}), encoding="utf-8")
        out = isolated_config / "report.json"
        result = runner.invoke(
            app,
            ["analyze", str(sample_site), "--site-state", str(state), "-f", "json", "-o", str(out), "--no-cache"],
        )
        assert result.exit_code == 0, result.output
        domains = {d["domain"]: d for d in json.loads(out.read_text(encoding="utf-8"))["domains"]}
        assert domains["performance"]["issues"] == 1

    def test_log_file(self, sample_site, isolated_config):
        log = isolated_config / "run.log"
        out = isolated_config / "report.json"
        result = runner.invoke(
            app,
            ["analyze", str(sample_site), "-f", "json", "-o", str(out), "--no-cache", "-v", "--log-file", str(log)],
        )
        assert result.exit_code == 0, result.output
        assert "Analyzing 4 units and 6 domains" in log.read_text(encoding="utf-8")

    def test_missing_root_exits_2(self, isolated_config):
        result = runner.invoke(app, ["analyze", str(isolated_config / "missing"), "--no-cache"])
        assert result.exit_code == 2

    def test_bad_site_state_exits_2(self, sample_site, isolated_config):
        state = isolated_config / "state.json"
        state.write_text("{broken", encoding="utf-8")
        result = runner.invoke(app, ["analyze", str(sample_site), "--site-state", str(state), "--no-cache"])
        assert result.exit_code == 2

    def test_bad_detector_table_exits_2(self, sample_site, isolated_config):
        table = isolated_config / "detectors.toml"
        table.write_text("[[detectors]]\nid = 'custom.x'\n", encoding="utf-8")
        result = runner.invoke(app, ["analyze", str(sample_site), "--detectors", str(table), "--no-cache"])
        assert result.exit_code == 2

    def test_unknown_format_rejected(self, sample_site, isolated_config):
        result = runner.invoke(app, ["analyze", str(sample_site), "--format", "xml"])
        assert result.exit_code != 0


class TestDetectors:
    def _counts(self, output):
        match = re.search(r"(\d+) of (\d+) detectors", output)
        assert match, output
        return int(match.group(1)), int(match.group(2))

    def test_lists_bundled(self, isolated_config):
        result = runner.invoke(app, ["detectors"])
        assert result.exit_code == 0, result.output
        shown, total = self._counts(result.output)
        assert shown == total > 0

    def test_family_filter(self, isolated_config):
        result = runner.invoke(app, ["detectors", "--family", "performance"])
        assert result.exit_code == 0
        shown, total = self._counts(result.output)
        assert 0 < shown < total


class TestCache:
    def test_info_and_clear(self, cache_config):
        info = runner.invoke(app, ["cache-info", "-c", str(cache_config)])
        assert info.exit_code == 0
        assert "Enabled" in info.output

        cleared = runner.invoke(app, ["cache-clear", "-c", str(cache_config)])
        assert cleared.exit_code == 0
        assert "Cache cleared successfully" in cleared.output

    def test_disabled(self, isolated_config):
        path = isolated_config / "nocache.toml"
        path.write_text("cache_enabled = false\n", encoding="utf-8")
        result = runner.invoke(app, ["cache-clear", "-c", str(path)])
        assert result.exit_code == 0
        assert "Cache is disabled" in result.output
