"""Assemble the desired route set from correlation results."""

from __future__ import annotations

from typing import Iterable, List

from .correlator import Correlation
from .routes import Route


def build_route_set(correlations: Iterable[Correlation]) -> List[Route]:
    """Return one route per resolved delegation, in correlation order."""

    routes: List[Route] = []
    seen = set()
    for correlation in correlations:
        if correlation.assignment is None:
            continue
        prefix = correlation.delegation.prefix
        if prefix in seen:
            continue
        seen.add(prefix)
        routes.append(Route.create(prefix, correlation.assignment.address))
    return routes
