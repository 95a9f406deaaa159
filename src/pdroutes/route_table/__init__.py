"""Route table clients and the factory selecting one from configuration."""

from .base import RouteTableClient  # noqa: F401
from .iproute import IpCommandRouteTable  # noqa: F401
from .netlink import RT_TABLE_MAIN, NetlinkRouteTable  # noqa: F401

BACKENDS = ("netlink", "iproute2")


def build_route_table(backend: str, *, table: int = RT_TABLE_MAIN, ip_binary: str = "ip") -> RouteTableClient:
    if backend == "netlink":
        return NetlinkRouteTable(table=table)
    if backend == "iproute2":
        return IpCommandRouteTable(ip_binary=ip_binary, table=table)
    raise ValueError(f"Unsupported route table backend '{backend}'")


__all__ = [
    "BACKENDS",
    "IpCommandRouteTable",
    "NetlinkRouteTable",
    "RouteTableClient",
    "build_route_table",
]
