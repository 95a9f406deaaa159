"""Configuration data structures for the reconciliation engine.

These dataclasses describe where the engine reads and writes its files and
how it talks to the routing table, independently of how the values were
obtained (YAML file, command-line flags or test fixtures).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

DEFAULT_LEASE_FILE = Path("/var/run/dhcpdv6.leases")
DEFAULT_STATE_FILE = Path("/tmp/delegated.db")


@dataclass(frozen=True)
class ReconcilerConfig:
    """Engine level settings.

    Attributes
    ----------
    lease_file:
        ISC-DHCPd DHCPv6 lease store to read.
    state_file:
        Database of the routes applied by the previous run.
    duid_match:
        Name of the matcher used when the exact DUID lookup fails, see
        :mod:`pdroutes.matching`.
    dump_identifiers:
        Log every lease, inactive ones included, with its escaped and
        decoded DUID.
    """

    lease_file: Path = DEFAULT_LEASE_FILE
    state_file: Path = DEFAULT_STATE_FILE
    duid_match: str = "tolerant"
    dump_identifiers: bool = False


@dataclass(frozen=True)
class RouteTableConfig:
    backend: str = "netlink"
    table: int = 254
    ip_binary: str = "ip"
