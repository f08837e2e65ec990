from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..crm.memory import InMemoryEntityStore
from ..crm.store import EntityStore, StoreError
from ..crm.zoho import ZohoCrmStore
from ..excel.headers import StructuralError, resolve
from ..excel.normalize import cell_text, normalize
from ..excel.reader import read_matrix, write_matrix, write_sample_file
from ..logging.error_log import ErrorLogBuffer
from ..logging.init import enable_debug, log_summary, setup_logging
from ..models.config_models import ImportConfig
from ..models.outcome import BatchStatus
from ..services.batch import import_matrix
from ..services.progress import ProgressTracker
from ..services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env (overrides the process environment) and config/import.yml
- Decode the spreadsheet (.xlsx first sheet or .csv)
- Validate every row; stop with exit code 3 unless --strip-invalid
- Reconcile the remaining rows against the CRM store
- Print the SUMMARY line and flush the JSON Lines error log

Exit codes: 0 all rows imported, 2 some rows failed, 3 validation blocked
the import, 1 fatal (config, unreadable file, aborted batch).
"""

__all__ = [
    "EXIT_SUCCESS_ALL",
    "EXIT_FATAL",
    "EXIT_PARTIAL_FAILURE",
    "EXIT_VALIDATION_BLOCKED",
    "main",
]

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2
EXIT_VALIDATION_BLOCKED = 3

INVALID_ROWS_FILE = "invalid-rows.xlsx"
_INSPECT_SAMPLE_ROWS = 3


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="beneficiary-import",
        description="Beneficiary spreadsheet -> CRM importer",
    )
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    p.add_argument("--file", type=Path, help="Spreadsheet to import (overrides source_file)")
    p.add_argument("--dry-run", action="store_true", help="Reconcile against an in-memory store")
    p.add_argument(
        "--strip-invalid",
        action="store_true",
        help="Set rows failing validation aside and import the rest",
    )
    p.add_argument("--invalid-out", type=Path, help="Where to write rows failing validation")
    p.add_argument("--write-sample", type=Path, metavar="PATH", help="Write a sample spreadsheet and exit")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, resolved columns & first rows then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; its values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _build_store(cfg: ImportConfig, dry_run: bool) -> EntityStore:
    if dry_run or cfg.store.mode == "memory":
        return InMemoryEntityStore()
    return ZohoCrmStore(
        cfg.store.access_token or "",
        api_base_url=cfg.store.api_base_url,
        modules=cfg.store.modules,
        timeout_seconds=cfg.store.timeout_seconds,
    )


def _inspect_data(source: Path, matrix: list[list[object]]) -> int:
    rows = normalize(matrix)
    print(f"FILE: {source.name} rows={max(len(rows) - 1, 0)}")
    if not rows:
        print("  (empty)")
        return EXIT_SUCCESS_ALL
    column_map = resolve(rows[0])
    print(f"  headers={[cell_text(h) for h in rows[0]]}")
    for name, idx in column_map.items():
        if idx is not None:
            print(f"  {name} -> [{idx}] {column_map.header_of(name)}")
    if column_map.unresolved:
        print(f"  unresolved={column_map.unresolved}")
    for row in rows[1 : 1 + _INSPECT_SAMPLE_ROWS]:
        print("  sample_row=", [cell_text(v) for v in row])
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not fall back to the test runner's argv
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        enable_debug()
        logger.debug("debug mode enabled")

    if args.write_sample:
        try:
            path = write_sample_file(args.write_sample)
        except ValueError as e:
            logger.error(f"write-sample: {e}")
            return EXIT_FATAL
        logger.info(f"sample file written: {path}")
        return EXIT_SUCCESS_ALL

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    source = args.file or (Path(cfg.source_file) if cfg.source_file else None)
    if source is None:
        logger.error("no input file: pass --file or set source_file in the config")
        return EXIT_FATAL

    try:
        matrix = read_matrix(source)
    except StructuralError as e:
        logger.error(f"read: {e}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(source, matrix)

    logs_dir = Path(cfg.logs_directory)
    error_log = ErrorLogBuffer(logs_dir)
    try:
        store = _build_store(cfg, args.dry_run)
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL
    mode = "memory" if isinstance(store, InMemoryEntityStore) else cfg.store.mode
    logger.info(f"Importing {source.name} (store={mode})")

    try:
        with ProgressTracker(max(len(matrix) - 1, 0)) as progress:
            result = import_matrix(
                matrix,
                store,
                file_name=source.name,
                deal_settings=cfg.deal,
                on_progress=progress,
                error_log=error_log,
                strip_invalid=args.strip_invalid,
            )
    finally:
        if isinstance(store, ZohoCrmStore):
            store.close()

    if result.invalid_rows and (args.strip_invalid or args.invalid_out):
        out = args.invalid_out or logs_dir / INVALID_ROWS_FILE
        write_matrix(out, result.invalid_rows)
        logger.info(f"{len(result.invalid_rows) - 1} invalid row(s) written to {out}")

    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log: {log_path}")

    if result.report is None:
        file_level = [e for e in result.validation_errors if e.is_file_level]
        if file_level:
            logger.error(f"import blocked: {file_level[0].message}")
            return EXIT_FATAL
        logger.error(
            f"import blocked: {len(result.validation_errors)} validation error(s); "
            "fix the rows or re-run with --strip-invalid"
        )
        return EXIT_VALIDATION_BLOCKED

    report = result.report
    if report.status is BatchStatus.ABORTED:
        logger.error(f"batch aborted: {report.error}")
        log_summary(render_summary_line(report)[len("SUMMARY ") :])
        return EXIT_FATAL

    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(report)[len("SUMMARY ") :])

    if report.failed > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL
