"""YAML configuration loader for the pdroutes agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from pdroutes.config import (
    DEFAULT_LEASE_FILE,
    DEFAULT_STATE_FILE,
    ReconcilerConfig,
    RouteTableConfig,
)
from pdroutes.matching import MATCHERS
from pdroutes.route_table import BACKENDS

DEFAULT_CONFIG_PATH = Path("/etc/pdroutes/pdroutes.yaml")


@dataclass
class LoggingConfig:
    file: Optional[Path] = None
    rotate_days: int = 1
    backup_count: int = 1


@dataclass
class AgentConfig:
    reconciler: ReconcilerConfig = field(default_factory=ReconcilerConfig)
    route_table: RouteTableConfig = field(default_factory=RouteTableConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _section(data: dict, name: str) -> dict:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' section must be a mapping")
    return section


def _parse_reconciler(section: dict) -> ReconcilerConfig:
    duid_match = str(section.get("duid_match", "tolerant"))
    if duid_match not in MATCHERS:
        raise ValueError(f"Unsupported duid_match '{duid_match}'")
    return ReconcilerConfig(
        lease_file=Path(section.get("lease_file", DEFAULT_LEASE_FILE)),
        state_file=Path(section.get("state_file", DEFAULT_STATE_FILE)),
        duid_match=duid_match,
    )


def _parse_route_table(section: dict) -> RouteTableConfig:
    backend = str(section.get("backend", "netlink"))
    if backend not in BACKENDS:
        raise ValueError(f"Unsupported route table backend '{backend}'")
    return RouteTableConfig(
        backend=backend,
        table=int(section.get("table", 254)),
        ip_binary=str(section.get("ip_binary", "ip")),
    )


def _parse_logging(section: dict) -> LoggingConfig:
    log_file = section.get("file")
    return LoggingConfig(
        file=Path(log_file) if log_file else None,
        rotate_days=int(section.get("rotate_days", 1)),
        backup_count=int(section.get("backup_count", 1)),
    )


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(path.read_text())
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    return AgentConfig(
        reconciler=_parse_reconciler(_section(data, "reconciler")),
        route_table=_parse_route_table(_section(data, "route_table")),
        logging=_parse_logging(_section(data, "logging")),
    )
