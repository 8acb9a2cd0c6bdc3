from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from settlement_enricher.config.loader import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    default_config,
    load_config,
)
from settlement_enricher.errors import EnrichmentSetupError
from settlement_enricher.logging.init import log_summary, set_debug, setup_logging
from settlement_enricher.models.config_models import EnricherConfig
from settlement_enricher.report.reader import load_report
from settlement_enricher.services.pipeline import EnrichmentPipeline, default_output_path
from settlement_enricher.services.progress import log_progress
from settlement_enricher.services.summary import render_summary_line

"""CLI entrypoint.

    python -m settlement_enricher.cli REPORT.csv [--output PATH] [--config PATH]

Flow:
- load .env (REDIS_URL etc.), then the YAML config
- run the enrichment pipeline, logging every progress event
- print the SUMMARY line and the output path
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; values in the file win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="settlement-enricher",
        description="Enrich a settlement detail report with home transaction ids from Redis",
    )
    p.add_argument("input", type=Path, help="Settlement report CSV")
    p.add_argument("-o", "--output", type=Path, default=None, help="Output CSV path")
    p.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help=f"YAML config file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument(
        "--inspect-data",
        action="store_true",
        help="Print columns, section headers and the first rows, then exit",
    )
    return p.parse_args(argv)


def _resolve_config(config_path: Path | None) -> EnricherConfig:
    if config_path is not None:
        return load_config(config_path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def _inspect_data(input_path: Path) -> int:
    try:
        table = load_report(input_path)
    except EnrichmentSetupError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {input_path.name}")
    print(f"  columns={table.columns}")
    print(f"  section_headers={[h.label for h in table.header_rows]}")
    data_rows = table.data_rows
    print(f"  data_rows={len(data_rows)}")
    for row in data_rows[:3]:
        print(f"    row {row.row_number}: {row.values}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when called without arguments (tests pass [])
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        set_debug(logger)
        logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    input_path: Path = args.input
    if args.inspect_data:
        return _inspect_data(input_path)

    output_path: Path = args.output or default_output_path(cfg, input_path)
    logger.info(f"Processing report: {input_path}")

    pipeline = EnrichmentPipeline(cfg)
    try:
        stats = pipeline.run(input_path, output_path, reporter=log_progress)
    except EnrichmentSetupError as e:
        logger.error(f"processing: {e}")
        return EXIT_FATAL
    except OSError as e:
        logger.error(f"output: cannot write {output_path}: {e}")
        return EXIT_FATAL

    logger.info(f"output={output_path}")
    # log_summary adds the "SUMMARY " label itself
    log_summary(render_summary_line(stats)[len("SUMMARY "):])

    if stats.errors > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL
