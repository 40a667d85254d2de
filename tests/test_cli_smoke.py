"""Smoke tests for the CLI entry point."""
from __future__ import annotations

import json
import runpy
import sys

import pandas as pd
import pytest

from lead_importer.cli import main


def _write_export(tmp_path):
    input_path = tmp_path / "kommo.csv"
    input_path.write_text(
        "Nome completo,Celular,Email comercial\n"
        "Ana Lima,(11) 98888-7777,ana@example.com\n"
        "Bruno,11977776666,\n"
        "Ana,11988887777,\n",
        encoding="utf-8",
    )
    return input_path


def test_cli_dry_run_writes_report(tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"import": {"batch_size": 2}}), encoding="utf-8")
    report_path = tmp_path / "report.csv"

    exit_code = main(
        [
            str(_write_export(tmp_path)),
            "--grouping",
            "camp-1",
            "--stage",
            "stage-1",
            "--auto-distribute",
            "--member",
            "sdr-a",
            "--member",
            "sdr-b",
            "--config",
            str(config_path),
            "--report",
            str(report_path),
            "--dry-run",
        ]
    )

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "Import complete: 3 leads, 2 imported, 0 updated, 1 duplicates, 0 invalid" in out
    assert "sdr-a: 1" in out
    report = pd.read_csv(report_path)
    summary = report[report["section"] == "summary"].set_index("metric")["value"]
    assert str(summary["imported"]) == "2"


def test_module_entry_point_delegates_to_cli(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    argv = [str(_write_export(tmp_path)), "--grouping", "camp-1", "--stage", "stage-1", "--dry-run"]
    monkeypatch.setattr(sys, "argv", ["lead_importer", *argv])

    with pytest.raises(SystemExit) as exit_info:
        runpy.run_module("lead_importer", run_name="__main__")

    assert exit_info.value.code == 0


def test_cli_reports_failure_for_unreadable_input(tmp_path) -> None:
    exit_code = main([str(tmp_path / "missing.csv"), "--grouping", "camp-1", "--stage", "stage-1", "--dry-run"])

    assert exit_code == 1


def test_cli_rejects_bad_configuration(tmp_path) -> None:
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"import": {"batch_size": 0}}), encoding="utf-8")

    exit_code = main(
        [str(_write_export(tmp_path)), "--grouping", "c", "--stage", "s", "--config", str(config_path), "--dry-run"]
    )

    assert exit_code == 1


def test_module_entry_point_without_arguments_shows_help(
    capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(sys, "argv", ["lead_importer"])

    with pytest.raises(SystemExit) as exit_info:
        runpy.run_module("lead_importer", run_name="__main__")

    assert "python -m lead_importer" in capsys.readouterr().out
    assert exit_info.value.code == 2


def test_cli_without_arguments_shows_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 2
    assert "--grouping" in capsys.readouterr().out
