from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from ..db.batch_insert import StorageConnectionError
from ..db.connection import db_cursor
from ..logging.init import log_summary, setup_logging
from ..services.orchestrator import ProcessingError, import_csv
from ..services.summary import render_metrics_line, render_summary_lines

"""CLI entrypoint: ``kta-import <file.csv>``.

Flow:
- parse arguments (exactly one positional: the CSV path)
- load .env, then config/import.yml (if present) + environment overrides
- open the database connection, run the import
- print the three SUMMARY lines

Exit codes: 0 import completed (row failures included), 1 fatal error,
2 usage error (argparse).
"""

__all__ = [
    "EXIT_FATAL",
    "EXIT_SUCCESS",
    "EXIT_USAGE",
    "main",
]

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_USAGE = 2


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="kta-import",
        description="Import a KTA membership CSV export into PostgreSQL",
    )
    p.add_argument("file", type=Path, help="semicolon separated membership file")
    p.add_argument("--config", type=Path, default=None, help=f"YAML config (default: {DEFAULT_CONFIG_PATH} if present)")
    p.add_argument("--batch-size", type=int, default=None, help="rows per bulk INSERT (default 300)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    # None -> real process arguments; [] stays [] (tests)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    logger = setup_logging(debug=args.debug)
    load_dotenv(dotenv_path=Path(".env"), override=True)

    config_path = args.config
    if config_path is None and DEFAULT_CONFIG_PATH.exists():
        config_path = DEFAULT_CONFIG_PATH
    try:
        cfg = load_config(config_path)
        if args.batch_size is not None:
            if args.batch_size < 1:
                raise ConfigError(f"--batch-size must be >= 1, got {args.batch_size}")
            cfg = replace(cfg, batch_size=args.batch_size)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if not args.file.is_file():
        logger.error(f"input file not found: {args.file}")
        return EXIT_FATAL

    try:
        with db_cursor(cfg.database) as cur:
            result = import_csv(args.file, cfg, cur)
    except ProcessingError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL
    except StorageConnectionError as e:
        logger.error(f"database: {e}")
        return EXIT_FATAL

    logger.info(render_metrics_line(result))
    for line in render_summary_lines(result):
        log_summary(line)
    return EXIT_SUCCESS
