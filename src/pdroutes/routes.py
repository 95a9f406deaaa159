"""Route value type and its textual form in the persisted database."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from typing import Iterable, List


def normalize_prefix(value: str) -> str:
    """Return ``value`` as a canonical IPv6 network string.

    Host bits are tolerated and masked off, so ``2001:db8::1/64`` becomes
    ``2001:db8::/64``.  A bare address is treated as a ``/128``.
    """

    if not value:
        raise ValueError("Prefix value cannot be empty")
    network = ipaddress.IPv6Network(value, strict=False)
    return str(network)


def normalize_address(value: str) -> str:
    if not value:
        raise ValueError("Address value cannot be empty")
    return str(ipaddress.IPv6Address(value))


@dataclass(frozen=True)
class Route:
    """A downlink route: ``prefix`` reachable through ``via``.

    Equality is structural.  Use :meth:`create` or :meth:`parse` to get
    canonical spellings so routes from different sources compare equal.
    """

    prefix: str
    via: str

    @classmethod
    def create(cls, prefix: str, via: str) -> "Route":
        return cls(prefix=normalize_prefix(prefix), via=normalize_address(via))

    @classmethod
    def parse(cls, line: str) -> "Route":
        """Parse the ``<prefix> via <address>`` form."""

        tokens = line.split()
        if len(tokens) != 3 or tokens[1] != "via":
            raise ValueError(f"Malformed route line {line!r}")
        return cls.create(tokens[0], tokens[2])

    def __str__(self) -> str:
        return f"{self.prefix} via {self.via}"


def unique_routes(routes: Iterable[Route]) -> List[Route]:
    """De-duplicate ``routes`` preserving first appearance."""

    return list(dict.fromkeys(routes))
