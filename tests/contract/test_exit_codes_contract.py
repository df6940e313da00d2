from __future__ import annotations

from pathlib import Path

import pytest

from kta_importer.cli import EXIT_FATAL, EXIT_SUCCESS, EXIT_USAGE
from kta_importer.cli import main as cli_main

"""Exit code contract: 0 completed, 1 fatal, 2 usage."""


def test_missing_argument_is_usage_error(temp_workdir: Path, cli_db, capsys):
    with pytest.raises(SystemExit) as exc:
        cli_main([])
    assert exc.value.code == EXIT_USAGE
    assert "usage: kta-import" in capsys.readouterr().err
    assert cli_db.opened == 0


def test_missing_input_file(temp_workdir: Path, cli_db, capsys):
    code = cli_main(["data/nope.csv"])
    assert code == EXIT_FATAL
    assert "ERROR input file not found: data/nope.csv" in capsys.readouterr().out
    assert cli_db.opened == 0


def test_connection_failure(temp_workdir: Path, cli_db, make_row, make_csv, capsys):
    cli_db.refuse_connect = True
    code = cli_main([str(make_csv([make_row(1)]))])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR database: cannot connect" in out
    assert "SUMMARY" not in out


def test_connection_lost_mid_import(temp_workdir: Path, cli_db, make_row, make_csv, capsys):
    cli_db.drop_connection = True
    code = cli_main([str(make_csv([make_row(1), make_row(2)]))])
    out = capsys.readouterr().out
    assert code == EXIT_FATAL
    assert "ERROR database:" in out
    assert "SUMMARY" not in out


def test_invalid_config(temp_workdir: Path, cli_db, make_row, make_csv, capsys):
    (temp_workdir / "config" / "import.yml").write_text("batch_size: -3\n", encoding="utf-8")
    code = cli_main([str(make_csv([make_row(1)]))])
    assert code == EXIT_FATAL
    assert "ERROR config:" in capsys.readouterr().out
    assert cli_db.opened == 0


def test_invalid_batch_size_option(temp_workdir: Path, cli_db, make_row, make_csv, capsys):
    code = cli_main([str(make_csv([make_row(1)])), "--batch-size", "0"])
    assert code == EXIT_FATAL
    assert "ERROR config: --batch-size" in capsys.readouterr().out


def test_header_without_card_number_column(temp_workdir: Path, cli_db, make_row, make_csv, capsys):
    path = make_csv([make_row(1), make_row(2)], columns=["NIK", "Nama Lengkap"])
    code = cli_main([str(path)])
    out = capsys.readouterr().out
    assert code == EXIT_SUCCESS
    assert "WARN" in out
    assert "SUMMARY skipped=2" in out
    assert "SUMMARY inserted=0" in out
    assert cli_db.statements == []


def test_row_failures_still_exit_zero(temp_workdir: Path, cli_db, make_row, make_csv, capsys):
    cli_db.reject_nik.add(make_row(2)["NIK"])
    code = cli_main([str(make_csv([make_row(1), make_row(2)]))])
    assert code == EXIT_SUCCESS
    assert "SUMMARY failed=1" in capsys.readouterr().out
