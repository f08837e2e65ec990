from __future__ import annotations
from pathlib import Path
from unittest.mock import patch

import pandas as pd

from beneficiary_import.cli import main as cli_main
from beneficiary_import.config.loader import ENV_ACCESS_TOKEN
from beneficiary_import.crm.memory import InMemoryEntityStore
from beneficiary_import.crm.store import ACCOUNT, CONTACT, DEAL
from beneficiary_import.logging.init import reset_logging


def test_cli_imports_configured_source(write_config, write_csv, headers, make_row, store, capsys):
    reset_logging()
    write_csv([headers, make_row("ana@example.com"), make_row("luis@example.com")])

    with patch("beneficiary_import.cli.app._build_store", return_value=store):
        code = cli_main([])

    out = capsys.readouterr().out
    assert code == 0
    assert "INFO Importing beneficiaries.csv (store=memory)" in out
    assert "INFO Processed 2 of 2 records (2 succeeded, 0 failed)" in out
    assert "SUMMARY rows=2 success=2 failed=0 status=completed" in out
    assert store.count(CONTACT) == 2
    assert store.count(DEAL) == 2


def test_cli_file_option_overrides_config(write_config, write_csv, headers, make_row, capsys):
    reset_logging()
    path = write_csv([headers, make_row("ana@example.com")], name="april.csv")

    code = cli_main(["--file", str(path)])

    out = capsys.readouterr().out
    assert code == 0
    assert "Importing april.csv" in out


def test_cli_no_input_file(temp_workdir: Path, capsys):
    reset_logging()
    (temp_workdir / "config" / "import.yml").write_text("store:\n  mode: memory\n", encoding="utf-8")

    code = cli_main([])

    assert code == 1
    assert "ERROR no input file" in capsys.readouterr().out


def test_cli_source_file_missing(write_config, capsys):
    reset_logging()
    code = cli_main([])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR read: file not found" in out


def test_cli_unsupported_file_type(write_config, temp_workdir: Path, capsys):
    reset_logging()
    path = temp_workdir / "data" / "beneficiaries.json"
    path.write_text("[]", encoding="utf-8")

    code = cli_main(["--file", str(path)])

    assert code == 1
    assert "unsupported file type" in capsys.readouterr().out


def test_cli_email_column_missing_is_fatal(write_config, write_csv, capsys):
    reset_logging()
    write_csv([["Name", "Phone number:"], ["Ana", "787-555-0101"]])

    code = cli_main([])

    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR import blocked: email column not found in headers" in out
    assert "SUMMARY" not in out


def test_cli_strip_invalid_writes_rejected_rows(write_config, write_csv, headers, make_row, temp_workdir: Path, capsys):
    reset_logging()
    write_csv([headers, make_row("ana@example.com"), make_row("not-an-email"), make_row("luis@example.com")])

    code = cli_main(["--strip-invalid"])

    out = capsys.readouterr().out
    assert code == 0
    assert "WARN row=3 email=not-an-email invalid email format" in out
    assert "SUMMARY rows=2 success=2 failed=0 status=completed" in out

    invalid = temp_workdir / "logs" / "invalid-rows.xlsx"
    assert invalid.exists()
    df = pd.read_excel(invalid, header=None, dtype=str)
    assert len(df) == 2
    assert df.iloc[1, 4] == "not-an-email"
    # validation errors still land in the error log
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_cli_invalid_out_when_blocked(write_config, write_csv, headers, make_row, temp_workdir: Path, capsys):
    reset_logging()
    write_csv([headers, make_row("ana@example.com"), make_row("")])
    out_path = temp_workdir / "rejected.csv"

    code = cli_main(["--invalid-out", str(out_path)])

    out = capsys.readouterr().out
    assert code == 3
    assert "import blocked: 1 validation error(s)" in out
    assert out_path.exists()
    lines = out_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2


def test_cli_blocked_without_flags_writes_no_invalid_rows(write_config, write_csv, headers, make_row, temp_workdir: Path, capsys):
    reset_logging()
    write_csv([headers, make_row("broken")])

    code = cli_main([])

    assert code == 3
    assert not (temp_workdir / "logs" / "invalid-rows.xlsx").exists()


def test_cli_dry_run_uses_memory_store(write_config, write_csv, headers, make_row, capsys):
    reset_logging()
    text = write_config.read_text(encoding="utf-8").replace(
        "mode: memory", "mode: zoho\n  access_token: secret"
    )
    write_config.write_text(text, encoding="utf-8")
    write_csv([headers, make_row("ana@example.com")])

    code = cli_main(["--dry-run"])

    out = capsys.readouterr().out
    assert code == 0
    assert "(store=memory)" in out


def test_cli_zoho_mode_without_token(write_config, write_csv, headers, make_row, capsys):
    reset_logging()
    text = write_config.read_text(encoding="utf-8").replace("mode: memory", "mode: zoho")
    write_config.write_text(text, encoding="utf-8")
    write_csv([headers, make_row("ana@example.com")])

    code = cli_main([])

    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config:" in out and ENV_ACCESS_TOKEN in out


def test_cli_dotenv_overrides_environment(write_config, write_csv, headers, make_row, temp_workdir: Path, monkeypatch):
    reset_logging()
    monkeypatch.setenv(ENV_ACCESS_TOKEN, "from-shell")
    (temp_workdir / ".env").write_text(f"{ENV_ACCESS_TOKEN}=from-dotenv\n", encoding="utf-8")
    text = write_config.read_text(encoding="utf-8").replace("mode: memory", "mode: zoho")
    write_config.write_text(text, encoding="utf-8")
    write_csv([headers, make_row("ana@example.com")])

    seen = {}

    def fake_build_store(cfg, dry_run):
        seen["token"] = cfg.store.access_token
        return InMemoryEntityStore()

    with patch("beneficiary_import.cli.app._build_store", side_effect=fake_build_store):
        code = cli_main([])

    assert code == 0
    assert seen["token"] == "from-dotenv"


def test_cli_write_sample(temp_workdir: Path, capsys):
    reset_logging()
    target = temp_workdir / "sample.xlsx"

    code = cli_main(["--write-sample", str(target)])

    assert code == 0
    assert target.exists()
    assert "INFO sample file written:" in capsys.readouterr().out


def test_cli_write_sample_unsupported_suffix(temp_workdir: Path, capsys):
    reset_logging()
    target = temp_workdir / "sample.ods"

    code = cli_main(["--write-sample", str(target)])

    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR write-sample: unsupported output type '.ods'" in out
    assert not target.exists()


def test_cli_sample_file_imports_cleanly(write_config, temp_workdir: Path, store, capsys):
    reset_logging()
    sample = temp_workdir / "data" / "sample.xlsx"
    cli_main(["--write-sample", str(sample)])
    reset_logging()

    with patch("beneficiary_import.cli.app._build_store", return_value=store):
        code = cli_main(["--file", str(sample)])

    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY rows=1 success=1 failed=0" in out
    assert store.count(ACCOUNT) == 1


def test_cli_csv_rows_wider_than_header(write_config, write_csv, headers, make_row, store, capsys):
    reset_logging()
    write_csv([headers, make_row("ana@example.com") + ["note", "extra"], make_row("luis@example.com")])

    with patch("beneficiary_import.cli.app._build_store", return_value=store):
        code = cli_main([])

    out = capsys.readouterr().out
    assert code == 0
    assert "SUMMARY rows=2 success=2 failed=0 status=completed" in out
