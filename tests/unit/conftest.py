from pathlib import Path
from typing import Iterable, List, Set, Tuple

import pytest

from pdroutes.duid import encode_identifier
from pdroutes.exceptions import RouteTableError
from pdroutes.route_table import RouteTableClient
from pdroutes.routes import Route


class InMemoryRouteTable(RouteTableClient):
    """Routing table fake that records every call."""

    def __init__(self, routes: Iterable[Route] = ()) -> None:
        self.routes: Set[Route] = set(routes)
        self.calls: List[Tuple[str, object]] = []
        self.fail_on: Set[Route] = set()

    def list_routes(self, prefix: str) -> Set[Route]:
        self.calls.append(("list", prefix))
        return {route for route in self.routes if route.prefix == prefix}

    def add(self, route: Route) -> None:
        self.calls.append(("add", route))
        if route in self.fail_on:
            raise RouteTableError(f"RTNETLINK answers: Network is unreachable ({route})")
        self.routes.add(route)

    def delete(self, route: Route) -> bool:
        self.calls.append(("delete", route))
        if route in self.fail_on:
            raise RouteTableError(f"RTNETLINK answers: Operation not permitted ({route})")
        if route not in self.routes:
            return False
        self.routes.remove(route)
        return True

    @property
    def mutations(self) -> List[Tuple[str, object]]:
        return [call for call in self.calls if call[0] != "list"]


HEADER = """# The format of this file is documented in the dhcpd.leases(5) manual page.
# This lease file was written by isc-dhcp-4.3.3

# authoring-byte-order entry is generated, DO NOT DELETE
authoring-byte-order little-endian;

server-duid "\\000\\001\\000\\001\\037\\304\\210\\030\\000PV\\226\\303\\002";

"""


def lease_block(keyword: str, duid: bytes, value: str, state: str = "active") -> str:
    subrecord = "iaaddr" if keyword == "ia-na" else "iaprefix"
    return (
        f'{keyword} "{encode_identifier(duid)}" {{\n'
        "  cltt 4 2024/05/15 10:00:00;\n"
        f"  {subrecord} {value} {{\n"
        f"    binding state {state};\n"
        "    preferred-life 375;\n"
        "    max-life 600;\n"
        "    ends 4 2024/05/15 10:10:00;\n"
        "  }\n"
        "}\n"
    )


def lease_store(*blocks: str) -> str:
    return HEADER + "\n".join(blocks)


@pytest.fixture
def route_table() -> InMemoryRouteTable:
    return InMemoryRouteTable()


@pytest.fixture
def write_leases(tmp_path: Path):
    path = tmp_path / "dhcpdv6.leases"

    def _write(*blocks: str) -> Path:
        path.write_text(lease_store(*blocks))
        return path

    return _write
