"""
CLI tests: each command runs against an isolated snapshot file.
"""

import json
import re

import pytest
from click.testing import CliRunner
from PRT.__main__ import main


@pytest.fixture
def loaded(snapshot_path, fpath_patients_csv):
    """Snapshot pre-loaded with tests/data/patients.csv."""
    runner = CliRunner()
    result = runner.invoke(main, ["ingest", fpath_patients_csv, "-s", str(snapshot_path)])
    assert result.exit_code == 0, result.output
    return snapshot_path


def test_ingest_reports_count_and_warnings(snapshot_path, fpath_patients_csv):
    runner = CliRunner()
    result = runner.invoke(main, ["ingest", fpath_patients_csv, "-s", str(snapshot_path)])
    assert result.exit_code == 0, result.output
    assert "Loaded 4 records" in result.output
    assert "Warnings found in mapping" in result.output
    assert "'X'" in result.output
    assert snapshot_path.exists()


def test_ingest_empty_file_loads_nothing(tmp_path, snapshot_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("\n", encoding="utf-8")
    result = CliRunner().invoke(main, ["ingest", str(empty), "-s", str(snapshot_path)])
    assert result.exit_code == 0
    assert "nothing loaded" in result.output
    assert not snapshot_path.exists()


def test_ingest_unreadable_workbook_fails_cleanly(tmp_path, snapshot_path):
    bogus = tmp_path / "bogus.xlsx"
    bogus.write_bytes(b"not a workbook")
    result = CliRunner().invoke(main, ["ingest", str(bogus), "-s", str(snapshot_path)])
    assert result.exit_code != 0
    assert "Cannot read workbook" in result.output


def test_ingest_unknown_encoding_is_a_usage_error(snapshot_path, fpath_patients_csv):
    result = CliRunner().invoke(
        main, ["ingest", str(fpath_patients_csv), "--encoding", "nope", "-s", str(snapshot_path)]
    )
    assert result.exit_code == 2
    assert not isinstance(result.exception, LookupError)
    assert "unknown encoding" in result.output
    assert not snapshot_path.exists()


def test_summary_raw_json(loaded):
    result = CliRunner().invoke(main, ["summary", "-r", "-s", str(loaded)])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["total"] == 4
    assert [g["ageGroup"] for g in payload["ageGroups"]] == ["0-17", "40-49", "80+", "Unknown"]
    assert [(d["disease"], d["count"], d["percentage"]) for d in payload["diseases"]] == [
        ("Cardiovascular", 2, "50.0"),
        ("Renal", 2, "50.0"),
    ]
    assert "pediatric" not in payload


def test_summary_table_with_sub_reports(loaded):
    result = CliRunner().invoke(main, ["summary", "--pediatric", "--adult", "-s", str(loaded)])
    assert result.exit_code == 0, result.output
    assert "Total records: 4" in result.output
    assert re.search(r"Cardiovascular\s+2\s+50\.0", result.output)
    assert "PEDIATRIC (1 records)" in result.output
    assert "ADULT (2 records)" in result.output


def test_edit_commands_persist(loaded):
    runner = CliRunner()
    s = ["-s", str(loaded)]
    assert runner.invoke(main, ["set-age", "3", "30"] + s).exit_code == 0
    assert runner.invoke(main, ["set-date", "3", "22/10/2025"] + s).exit_code == 0
    assert runner.invoke(main, ["set-gender", "3", "f"] + s).exit_code == 0
    result = runner.invoke(main, ["toggle-disease", "3", "cardio"] + s)
    assert result.exit_code == 0, result.output
    assert "Cardiovascular added" in result.output

    payload = json.loads(loaded.read_text(encoding="utf-8"))
    kim = payload["patient-storage"]["csvData"][3]
    assert (kim["age"], kim["date"], kim["gender"], kim["diseases"]) == ("30", "2025-10-22", "F", ["Cardiovascular"])

    shown = runner.invoke(main, ["show"] + s)
    assert shown.exit_code == 0
    assert "Kim" in shown.output and "Cardio" in shown.output


def test_edit_commands_reject_bad_input(loaded):
    runner = CliRunner()
    s = ["-s", str(loaded)]
    assert runner.invoke(main, ["set-age", "99", "30"] + s).exit_code != 0
    assert runner.invoke(main, ["set-date", "0", "someday"] + s).exit_code != 0
    assert runner.invoke(main, ["set-gender", "0", "X"] + s).exit_code != 0
    assert runner.invoke(main, ["toggle-disease", "0", "Dermatology"] + s).exit_code != 0


def test_commands_without_records_fail(snapshot_path):
    result = CliRunner().invoke(main, ["show", "-s", str(snapshot_path)])
    assert result.exit_code != 0
    assert "No records loaded" in result.output


def test_export_and_template(loaded, tmp_path):
    runner = CliRunner()
    out = tmp_path / "export.xlsx"
    result = runner.invoke(main, ["export", "-o", str(out), "-s", str(loaded)])
    assert result.exit_code == 0, result.output
    assert out.exists()

    template = tmp_path / "template.xlsx"
    result = runner.invoke(main, ["template", "-o", str(template)])
    assert result.exit_code == 0, result.output
    assert "19 disease columns" in result.output
    assert template.exists()


def test_autofill_and_clear(loaded):
    runner = CliRunner()
    result = runner.invoke(main, ["autofill", "--seed", "1", "-s", str(loaded)])
    assert result.exit_code == 0, result.output

    result = runner.invoke(main, ["clear", "-s", str(loaded)], input="n\n")
    assert result.exit_code != 0
    assert loaded.exists()

    result = runner.invoke(main, ["clear", "--yes", "-s", str(loaded)])
    assert result.exit_code == 0
    assert not loaded.exists()


def test_verbose_logging_to_file(tmp_path, snapshot_path, fpath_patients_csv):
    log_file = tmp_path / "prt.log"
    result = CliRunner().invoke(
        main, ["--log-file-path", str(log_file), "ingest", fpath_patients_csv, "-s", str(snapshot_path)]
    )
    assert result.exit_code == 0, result.output
    assert "Ingested 4 records" in log_file.read_text(encoding="utf-8")
