"""Identifier matching strategies used when correlating leases.

Clients are expected to use one DUID for all their requests.  Some firmware
does not: recent Linux and VxWorks based TP-Link routers send a DUID whose
first (type) byte is off by one between their address and prefix requests.
:class:`FirstByteTolerantMatcher` accommodates them.  The heuristic lives here
so it can be replaced or disabled through configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

from .duid import Identifier


class IdentifierMatcher(ABC):
    """Derive the lookup key two identifiers must share to match."""

    name = ""

    @abstractmethod
    def key(self, identifier: Identifier) -> Optional[bytes]:
        """Return the matching key or ``None`` if ``identifier`` never matches."""


class ExactMatcher(IdentifierMatcher):
    name = "exact"

    def key(self, identifier: Identifier) -> Optional[bytes]:
        return identifier.exact or None


class FirstByteTolerantMatcher(IdentifierMatcher):
    name = "tolerant"

    def key(self, identifier: Identifier) -> Optional[bytes]:
        # An identifier of one byte or less would match everything of that
        # length; it has nothing left to compare once the type is dropped.
        return identifier.tolerant or None


MATCHERS: Dict[str, Type[IdentifierMatcher]] = {
    ExactMatcher.name: ExactMatcher,
    FirstByteTolerantMatcher.name: FirstByteTolerantMatcher,
}


def build_matcher(name: str) -> IdentifierMatcher:
    try:
        return MATCHERS[name]()
    except KeyError:
        raise ValueError(
            f"Unsupported DUID matcher '{name}' (expected one of {sorted(MATCHERS)})"
        ) from None
