"""Tests for the command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from gradient.cli import main
from gradient.exceptions import InvalidNotebookError

from .support.data import data_path, read_notebook_data


@pytest.fixture(autouse=True)
def config_file(monkeypatch: pytest.MonkeyPatch) -> Path:
    path = data_path("config", "config.yaml")
    monkeypatch.setenv("GRADIENT_NOTEBOOK_CONFIG_FILE", str(path))
    monkeypatch.delenv("GRADIENT_NOTEBOOK_ALERT_HOOK", raising=False)
    return path


def test_show() -> None:
    runner = CliRunner()
    path = data_path("notebooks", "list.yaml")
    result = runner.invoke(main, ["show", str(path)])
    assert result.exit_code == 0, result.output

    lines = [line.split() for line in result.output.splitlines()]
    table = [line for line in lines if line and line[0].startswith("nb-")]
    header = ["NAME", "STATE", "LASTUPDATEDAT", "AGE", "REPOHANDLE"]
    assert header in lines
    assert [row[0] for row in table] == ["nb-done", "nb-failed", "nb-new"]
    assert table[0][1] == "Finished"
    assert table[1][1] == "IngressCreateError"
    assert table[1][4] == "repo2"
    assert table[2][1:] == ["<none>", "<none>", "<none>", "<none>"]


def test_classify() -> None:
    runner = CliRunner()
    path = data_path("notebooks", "list.yaml")
    result = runner.invoke(main, ["classify", str(path)])
    assert result.exit_code == 0, result.output

    rows = {
        line.split()[0]: line.split()[-1]
        for line in result.output.splitlines()
        if line.startswith("nb-")
    }
    assert rows == {
        "nb-done": "success",
        "nb-failed": "errored",
        "nb-new": "new",
    }

    path = data_path("notebooks", "running.yaml")
    result = runner.invoke(main, ["classify", str(path)])
    assert result.exit_code == 0, result.output
    assert "active" in result.output


def test_check_gc(tmp_path: Path) -> None:
    runner = CliRunner()
    path = data_path("notebooks", "list.yaml")
    result = runner.invoke(main, ["check-gc", str(path)])
    assert result.exit_code == 1
    rows = {
        line.split()[0]: line.split()[1]
        for line in result.output.splitlines()
        if line.startswith("nb-")
    }
    assert rows == {"nb-done": "no", "nb-failed": "yes", "nb-new": "no"}

    # Only notebooks whose pods are all gone.
    data = read_notebook_data("list.yaml")
    data["items"] = [data["items"][0], data["items"][2]]
    path = tmp_path / "collected.yaml"
    path.write_text(yaml.safe_dump(data))
    result = runner.invoke(main, ["check-gc", str(path)])
    assert result.exit_code == 0, result.output


def test_single_json_notebook(tmp_path: Path) -> None:
    runner = CliRunner()
    notebook = read_notebook_data("running.yaml")
    path = tmp_path / "notebook.json"
    path.write_text(json.dumps(notebook))
    result = runner.invoke(main, ["check-gc", "--debug", str(path)])
    assert result.exit_code == 1
    assert "nb-abc123" in result.output


def test_invalid_notebook(tmp_path: Path) -> None:
    runner = CliRunner()
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump({"kind": "Notebook", "metadata": {}}))
    result = runner.invoke(main, ["show", str(path)])
    assert result.exit_code != 0
    assert isinstance(result.exception, InvalidNotebookError)

    path.write_text(yaml.safe_dump({"kind": "NotebookList", "items": [{}]}))
    result = runner.invoke(main, ["classify", str(path)])
    assert result.exit_code != 0
    assert isinstance(result.exception, InvalidNotebookError)


def test_missing_file() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["show", "/this/file/does/not/exist"])
    assert result.exit_code == 2


def test_help() -> None:
    runner = CliRunner()
    result = runner.invoke(main, ["help"])
    assert result.exit_code == 0
    assert "check-gc" in result.output

    result = runner.invoke(main, ["help", "show"])
    assert result.exit_code == 0
    assert "state" in result.output
