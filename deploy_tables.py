"""CLI entrypoint for athena-tables.

Drives the plugin's lifecycle hooks outside of a host deploy framework:

- ``validate``  check every table definition (pre-deploy hook)
- ``deploy``    create one table (``--table``) or all of them
- ``remove``    drop one table (``--table``) or all of them
- ``list``      show the tables Athena reports for a database
"""

import sys
import argparse
import logging
from pathlib import Path
from typing import List, Optional

from athena_tables import __version__
from athena_tables.config import load_service_config, resolve_poll_settings
from athena_tables.exceptions import AthenaTablesError
from athena_tables.logging_config import setup_logging
from athena_tables.plugin import AthenaTablesPlugin

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="athena-tables",
        description="Create and drop Athena tables declared in a service configuration",
    )
    parser.add_argument(
        "--config",
        default="serverless.yml",
        help="Path to the service YAML file (default: serverless.yml)",
    )
    parser.add_argument(
        "--region",
        help="AWS region override (default: provider.region from the config)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Seconds between query status checks (default: 1). Can also set via ATHENA_TABLES_POLL_INTERVAL",
    )
    parser.add_argument(
        "--poll-timeout",
        type=float,
        default=None,
        help="Give up waiting for a query after this many seconds (default: wait forever)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG level) logging",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true", help="Suppress all output except errors"
    )
    parser.add_argument(
        "--log-format",
        choices=["human", "json", "simple"],
        default=None,
        help="Log format (default: human). Can also set via ATHENA_TABLES_LOG_FORMAT env var",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"athena-tables {__version__}",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("validate", help="Validate all Athena table definitions")

    deploy = subparsers.add_parser("deploy", help="Create Athena tables")
    deploy.add_argument("--table", help="Table name to deploy")

    remove = subparsers.add_parser("remove", help="Remove Athena tables")
    remove.add_argument("--table", help="Table name to remove")

    list_cmd = subparsers.add_parser("list", help="List tables in an Athena database")
    list_cmd.add_argument("--database", required=True, help="Athena database name")
    list_cmd.add_argument(
        "--output-location", required=True, help="S3 URI for query results"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    log_level = (
        logging.DEBUG if args.verbose else logging.ERROR if args.quiet else logging.INFO
    )
    setup_logging(level=log_level, format_type=args.log_format, use_colors=sys.stdout.isatty())

    try:
        service_config = load_service_config(args.config)
    except (FileNotFoundError, ValueError) as exc:
        logger.error(f"Failed to load config {args.config}: {exc}")
        return 1

    if args.region:
        provider = dict(service_config.get("provider") or {})
        provider["region"] = args.region
        service_config["provider"] = provider

    try:
        poll_settings = resolve_poll_settings(args.poll_interval, args.poll_timeout)
    except ValueError as exc:
        parser.error(str(exc))

    plugin = AthenaTablesPlugin(
        service_config,
        {"table": getattr(args, "table", None)},
        base_dir=Path(args.config).resolve().parent,
        poll_settings=poll_settings,
    )

    try:
        return run_command(plugin, args)
    except AthenaTablesError as exc:
        logger.error(str(exc))
        return 1


def run_command(plugin: AthenaTablesPlugin, args: argparse.Namespace) -> int:
    if args.command == "validate":
        tables = plugin.validate_tables_global()
        logger.info(f"{len(tables)} Athena table definition(s) valid")
    elif args.command == "deploy":
        plugin.deploy_tables_command()
    elif args.command == "remove":
        plugin.remove_tables_command()
    elif args.command == "list":
        for name in plugin.get_operator().list_tables(args.database, args.output_location):
            print(name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
