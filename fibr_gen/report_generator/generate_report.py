# fibr_gen/report_generator/generate_report.py
import argparse
import logging
import sqlite3
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Union

from fibr_gen.logger_config import setup_logging
from fibr_gen.system_config import sys_config

from .config.config_loader import load_config_bundle, load_data_sources_bundle
from .config.models import DataSourceConfig
from .config.provider import ConfigRegistry
from .data.generation_context import GenerationContext
from .errors import ConfigError
from .fetchers.base import DataFetcher
from .fetchers.csv_fetcher import CsvDataFetcher
from .fetchers.sql_fetcher import SqlDataFetcher
from .generator import ReportGenerator
from .utils.generation_session import GenerationSession

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

FETCHER_TYPES = ("csv", "sqlite")
SQLITE_DRIVERS = {"sqlite", "sqlite3"}
DEFAULT_PARAMS = {"env": "dev"}


def _sqlite_dsn(db_dsn: Optional[str], data_sources: Mapping[str, DataSourceConfig]) -> str:
    if db_dsn:
        return db_dsn
    for source in data_sources.values():
        if source.driver.lower() in SQLITE_DRIVERS:
            logger.info(f"Using DSN of data source '{source.name}'")
            return source.dsn
    raise ConfigError("db-dsn is required for the sqlite fetcher")


def build_fetcher(fetcher_type: str, csv_dir: Optional[PathLike] = None, db_dsn: Optional[str] = None,
                  data_sources: Optional[Mapping[str, DataSourceConfig]] = None) -> DataFetcher:
    """Create the data fetcher selected on the command line."""
    if fetcher_type == "sqlite":
        dsn = _sqlite_dsn(db_dsn, data_sources or {})
        logger.info(f"Initializing SQL data fetcher (sqlite: {dsn})")
        try:
            connection = sqlite3.connect(dsn)
        except sqlite3.Error as e:
            raise ConfigError(f"failed to open database: {e}", dsn=dsn) from e
        return SqlDataFetcher(connection)

    if fetcher_type != "csv":
        raise ConfigError(f"unknown fetcher type: {fetcher_type}", fetcher=fetcher_type)

    if csv_dir is None:
        csv_dir = sys_config.csv_data_dir
    logger.info(f"Initializing CSV data fetcher ({csv_dir})")
    return CsvDataFetcher(csv_dir)


def run_report_generation(
    config_path: PathLike,
    template_dir: PathLike,
    output_dir: PathLike,
    fetcher_type: str = "csv",
    csv_dir: Optional[PathLike] = None,
    db_dsn: Optional[str] = None,
    data_sources_path: Optional[PathLike] = None,
    params: Optional[Dict[str, str]] = None,
) -> Path:
    """
    Load a configuration bundle, generate its workbook and return the output path.

    The run is wrapped in a GenerationSession, which logs start/end, duration
    and final status; any failure is re-raised to the caller.
    """
    params = dict(DEFAULT_PARAMS if params is None else params)

    with GenerationSession(config_path, params) as session:
        bundle = load_config_bundle(config_path)
        data_sources = bundle.data_sources
        if data_sources_path:
            logger.info(f"Loading data source bundle: {data_sources_path}")
            data_sources = load_data_sources_bundle(data_sources_path)
        if data_sources:
            logger.info(f"Loaded {len(data_sources)} data sources")

        fetcher = build_fetcher(fetcher_type, csv_dir, db_dsn, data_sources)
        try:
            registry = ConfigRegistry(bundle.data_views, data_sources)
            logger.info(f"Processing workbook '{bundle.workbook.name}' (id={bundle.workbook.id})")
            context = GenerationContext(bundle.workbook, registry, fetcher, params)
            session.output_path = ReportGenerator(context, session).generate(template_dir, output_dir)
        finally:
            connection = getattr(fetcher, "connection", None)
            if connection is not None:
                connection.close()

    logger.info(f"Successfully generated: {session.output_path}")
    return session.output_path


def parse_params(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Turn repeated `key=value` arguments into a dict; None yields the default parameters."""
    if not pairs:
        return dict(DEFAULT_PARAMS)
    params: Dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise argparse.ArgumentTypeError(f"parameter must be key=value: {pair!r}")
        key, value = pair.split("=", 1)
        params[key.strip()] = value
    return params


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fibr-gen", description="Generate spreadsheet reports from templates")
    parser.add_argument("--config", default=str(sys_config.config_path), help="Path to configuration bundle")
    parser.add_argument("--datasources", default=None, help="Path to data source bundle (optional)")
    parser.add_argument("--templates", default=str(sys_config.templates_dir), help="Template directory")
    parser.add_argument("--output", default=str(sys_config.output_dir), help="Directory for output files")
    parser.add_argument("--fetcher", choices=FETCHER_TYPES, default=sys_config.fetcher, help="Data fetcher type")
    parser.add_argument("--csv-dir", default=str(sys_config.csv_data_dir), help="Directory of <view>.csv files")
    parser.add_argument("--db-dsn", default=sys_config.db_dsn, help="Database path for the sqlite fetcher")
    parser.add_argument("--param", action="append", metavar="KEY=VALUE",
                        help="Run parameter, repeatable (default: env=dev)")
    parser.add_argument("--log-dir", default=None, help="Write a rotating debug log to this directory")
    parser.add_argument("--debug", action="store_true", help="Debug logging on the console")
    return parser


def main(argv: Optional[List[str]] = None):
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(log_dir=Path(args.log_dir) if args.log_dir else None,
                  level=logging.DEBUG if args.debug else logging.INFO)

    try:
        params = parse_params(args.param)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    try:
        output_path = run_report_generation(
            config_path=Path(args.config),
            template_dir=Path(args.templates),
            output_dir=Path(args.output),
            fetcher_type=args.fetcher,
            csv_dir=Path(args.csv_dir) if args.csv_dir else None,
            db_dsn=args.db_dsn,
            data_sources_path=Path(args.datasources) if args.datasources else None,
            params=params,
        )
        print(f"Successfully generated: {output_path}")
    except Exception as e:
        logger.error(f"Generation failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
