"""Route table client talking netlink through pyroute2."""

from __future__ import annotations

import errno
import logging
import socket
from typing import Optional, Set

import pyroute2
from pyroute2.netlink.exceptions import NetlinkError

from ..exceptions import RouteTableError
from ..routes import Route, normalize_prefix
from .base import RouteTableClient

LOG = logging.getLogger(__name__)

# From /usr/include/linux/rtnetlink.h: RT_TABLE_MAIN = 254
RT_TABLE_MAIN = 254


class NetlinkRouteTable(RouteTableClient):
    """Manage IPv6 routes of one kernel routing table via ``IPRoute``."""

    def __init__(self, table: int = RT_TABLE_MAIN, ipr: Optional[pyroute2.IPRoute] = None) -> None:
        self._table = table
        self._ipr = ipr

    def _socket(self) -> pyroute2.IPRoute:
        if self._ipr is None:
            self._ipr = pyroute2.IPRoute()
        return self._ipr

    def list_routes(self, prefix: str) -> Set[Route]:
        prefix = normalize_prefix(prefix)
        routes: Set[Route] = set()
        try:
            dump = self._socket().get_routes(family=socket.AF_INET6, table=self._table)
        except NetlinkError as exc:
            raise RouteTableError(f"cannot list routes for {prefix}: {exc}") from exc

        for entry in dump:
            dst = entry.get_attr("RTA_DST")
            gateway = entry.get_attr("RTA_GATEWAY")
            if dst and not gateway and entry.get_attr("RTA_MULTIPATH"):
                # Multipath routes are never treated as matching a single next hop.
                LOG.debug(
                    "Skipping multipath route %s/%s",
                    dst,
                    entry.get("dst_len", 128),
                )
                continue
            if not dst or not gateway:
                continue
            try:
                live = Route.create(f"{dst}/{entry.get('dst_len', 128)}", str(gateway))
            except ValueError:
                continue
            if live.prefix == prefix:
                routes.add(live)
        return routes

    def add(self, route: Route) -> None:
        LOG.debug("netlink: add %s (table %s)", route, self._table)
        try:
            self._socket().route(
                "add",
                family=socket.AF_INET6,
                dst=route.prefix,
                gateway=route.via,
                table=self._table,
            )
        except NetlinkError as exc:
            raise RouteTableError(f"cannot add route {route}: {exc}") from exc

    def delete(self, route: Route) -> bool:
        LOG.debug("netlink: del %s (table %s)", route, self._table)
        try:
            self._socket().route(
                "del",
                family=socket.AF_INET6,
                dst=route.prefix,
                gateway=route.via,
                table=self._table,
            )
        except NetlinkError as exc:
            if exc.code == errno.ESRCH:
                return False
            raise RouteTableError(f"cannot delete route {route}: {exc}") from exc
        return True

    def close(self) -> None:
        if self._ipr is not None:
            self._ipr.close()
            self._ipr = None
