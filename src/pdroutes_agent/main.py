"""Entry point for the pdroutes reconciler."""

from __future__ import annotations

import argparse
import dataclasses
import logging
import logging.handlers
import sys
from pathlib import Path

import yaml

from pdroutes.driver import DelegatedRouteDriver
from pdroutes.route_table import build_route_table

from .config import DEFAULT_CONFIG_PATH, AgentConfig, LoggingConfig, load_config

LOG = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _setup_logging(verbosity: int, settings: LoggingConfig) -> None:
    level = logging.DEBUG if verbosity else logging.INFO
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.file is not None:
        handlers.append(
            logging.handlers.TimedRotatingFileHandler(
                settings.file,
                when="D",
                interval=settings.rotate_days,
                backupCount=settings.backup_count,
            )
        )
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Add downlink IPv6 routes for DHCPv6 prefix delegations"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to the configuration file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    parser.add_argument(
        "--leases",
        type=Path,
        default=None,
        help="ISC-DHCPd DHCPv6 lease file, overrides the configuration",
    )
    parser.add_argument(
        "--state",
        type=Path,
        default=None,
        help="Route database file, overrides the configuration",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Reconcile even if the lease file did not change, and rewrite the database",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log decode progress; repeat to dump every lease including inactive ones",
    )
    return parser


def _load(path: Path | None) -> AgentConfig:
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return AgentConfig()
        path = DEFAULT_CONFIG_PATH
    return load_config(path)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        config = _load(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        parser.error(f"invalid configuration: {exc}")

    overrides = {"dump_identifiers": args.verbose >= 2}
    if args.leases is not None:
        overrides["lease_file"] = args.leases
    if args.state is not None:
        overrides["state_file"] = args.state
    reconciler_config = dataclasses.replace(config.reconciler, **overrides)

    _setup_logging(args.verbose, config.logging)

    table = build_route_table(
        config.route_table.backend,
        table=config.route_table.table,
        ip_binary=config.route_table.ip_binary,
    )
    try:
        result = DelegatedRouteDriver(reconciler_config, table).run(force=args.force)
    finally:
        table.close()

    LOG.debug("Run finished with status %s", result.status.value)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
