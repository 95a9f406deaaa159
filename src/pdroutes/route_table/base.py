"""Abstract interface for the live kernel routing table."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Set

from ..routes import Route


class RouteTableClient(ABC):
    """Query and mutate IPv6 routes in the live routing table."""

    @abstractmethod
    def list_routes(self, prefix: str) -> Set[Route]:
        """Return the live routes whose destination is exactly ``prefix``."""

    @abstractmethod
    def add(self, route: Route) -> None:
        """Install ``route``; raise :class:`RouteTableError` on failure."""

    @abstractmethod
    def delete(self, route: Route) -> bool:
        """Remove ``route``.

        Returns ``False`` when the route was not present, which is not an
        error.  Any other failure raises :class:`RouteTableError`.
        """

    def contains(self, route: Route) -> bool:
        return route in self.list_routes(route.prefix)

    def close(self) -> None:
        """Release any resources held by the client."""
