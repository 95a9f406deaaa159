"""Route table client driving the iproute2 ``ip`` command."""

from __future__ import annotations

import logging
import subprocess
from typing import List, Set

from ..exceptions import RouteTableError
from ..routes import Route, normalize_prefix
from .base import RouteTableClient

LOG = logging.getLogger(__name__)


class IpCommandRouteTable(RouteTableClient):
    """Run ``ip -6 route`` for every query and mutation."""

    def __init__(self, ip_binary: str = "ip", table: int = 254) -> None:
        self._ip = ip_binary
        self._table = table

    def _run(self, *args: str) -> subprocess.CompletedProcess[str]:
        cmd: List[str] = [self._ip, "-6", "route", *args, "table", str(self._table)]
        LOG.debug("Executing: %s", " ".join(cmd))
        try:
            return subprocess.run(cmd, check=False, text=True, capture_output=True)
        except OSError as exc:
            raise RouteTableError(f"cannot execute {self._ip}: {exc}") from exc

    def list_routes(self, prefix: str) -> Set[Route]:
        prefix = normalize_prefix(prefix)
        result = self._run("show", "exact", prefix)
        if result.returncode != 0:
            raise RouteTableError(
                f"cannot list routes for {prefix}: {result.stderr.strip()}"
            )

        routes: Set[Route] = set()
        for line in result.stdout.splitlines():
            tokens = line.split()
            if len(tokens) < 3 or "via" not in tokens:
                continue
            via_index = tokens.index("via")
            if via_index + 1 >= len(tokens):
                continue
            try:
                routes.add(Route.create(tokens[0], tokens[via_index + 1]))
            except ValueError:
                LOG.debug("Ignoring unparsable route line %r", line)
        return {route for route in routes if route.prefix == prefix}

    def add(self, route: Route) -> None:
        result = self._run("add", route.prefix, "via", route.via)
        if result.returncode != 0:
            raise RouteTableError(f"cannot add route {route}: {result.stderr.strip()}")

    def delete(self, route: Route) -> bool:
        result = self._run("del", route.prefix, "via", route.via)
        if result.returncode == 0:
            return True
        if "No such process" in result.stderr:
            return False
        raise RouteTableError(f"cannot delete route {route}: {result.stderr.strip()}")
