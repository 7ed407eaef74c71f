"""Tests for the smartroute command line."""

import json
import os

import pytest
from typer.testing import CliRunner

from smartroute import __version__
from smartroute.cli import app, parse_parameters

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("SMARTROUTE_"):
            monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert f"SmartRoute version {__version__}" in result.stdout


def test_suggest_code_tool():
    result = runner.invoke(app, ["suggest", "please debug this function", "--workspace", "code"])

    assert result.exit_code == 0
    assert "code_analysis" in result.stdout


def test_run_text_analysis():
    result = runner.invoke(app, ["run", "text_analysis", "-p", "text=Hello world.", "-m", "hi"])

    assert result.exit_code == 0
    assert "Word count: 2" in result.stdout


def test_run_unknown_tool_fails():
    result = runner.invoke(app, ["run", "ghost"])

    assert result.exit_code == 1
    assert "not available" in result.stdout


def test_run_bad_workspace():
    result = runner.invoke(app, ["run", "text_analysis", "--workspace", "garage"])

    assert result.exit_code == 2


def test_export_to_file(isolated_home):
    output = isolated_home / "export.json"

    result = runner.invoke(app, ["export", "--output", str(output)])

    assert result.exit_code == 0
    data = json.loads(output.read_text())
    assert [tool["id"] for tool in data["tool_registry"]][:2] == ["text_analysis", "code_analysis"]
    assert data["usage_history"] == []


def test_init_config(isolated_home):
    result = runner.invoke(app, ["init-config"])

    assert result.exit_code == 0
    assert (isolated_home / ".smartrouterc").exists()


def test_parse_parameters():
    assert parse_parameters(["count=3", "texts=[a, b]", "name=plain text", "empty="]) == {
        "count": 3,
        "texts": ["a", "b"],
        "name": "plain text",
        "empty": "",
    }


def test_analytics_dashboard():
    result = runner.invoke(app, ["analytics"])

    assert result.exit_code == 0
    assert "Tool Performance" in result.stdout
