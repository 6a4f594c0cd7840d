"""Tests for the defect-intel command line."""

import json
from pathlib import Path

from click.testing import CliRunner

from defect_intel.cli import main

SAMPLE_HISTORY = Path(__file__).parent.parent / "examples" / "sample_history"


def test_markdown_to_file(tmp_path):
    out = tmp_path / "report.md"
    result = CliRunner().invoke(main, [str(SAMPLE_HISTORY), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert "Report written to" in result.output
    assert out.read_text().startswith("# Defect Intelligence Report")


def test_json_to_file(tmp_path):
    out = tmp_path / "report.json"
    result = CliRunner().invoke(main, [str(SAMPLE_HISTORY), "-f", "json", "-o", str(out)])
    assert result.exit_code == 0, result.output
    data = json.loads(out.read_text())
    assert set(data) == {"target", "graph", "matrix", "clusters", "readiness", "risk"}
    assert data["matrix"]["total"] == 5
    assert data["readiness"]["overallScore"] == 60
    assert data["graph"]["stats"]["edges"] == 16
    assert {"from", "to", "rel", "weight"} <= set(data["graph"]["edges"][0])


def test_page_option(tmp_path):
    out = tmp_path / "report.json"
    result = CliRunner().invoke(main, [
        str(SAMPLE_HISTORY), "-f", "json", "-o", str(out),
        "--page", "https://shop.example.com/login/",
    ])
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text())["target"] == "https://shop.example.com/login"


def test_invalid_config_is_usage_error(tmp_path):
    config = tmp_path / "bad.yaml"
    config.write_text("caps:\n  sessions: -1\n")
    result = CliRunner().invoke(main, [str(SAMPLE_HISTORY), "--config", str(config)])
    assert result.exit_code == 2
    assert "--config" in result.output


def test_missing_data_dir():
    result = CliRunner().invoke(main, ["/nonexistent/defect-intel-data"])
    assert result.exit_code == 2
