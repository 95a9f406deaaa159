"""Correlation of prefix delegations with the address leases of their owner."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .duid import Identifier, IdentifierDecoder
from .leases import LeaseKind, LeaseRecord
from .matching import ExactMatcher, FirstByteTolerantMatcher, IdentifierMatcher

LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class Delegation:
    prefix: str
    requester: Identifier


@dataclass(frozen=True)
class Assignment:
    requester: Identifier
    address: str


class MatchKind(Enum):
    EXACT = "exact"
    TOLERANT = "tolerant"
    NONE = "none"


@dataclass(frozen=True)
class Correlation:
    """Outcome of looking up a next hop for one delegation."""

    delegation: Delegation
    assignment: Optional[Assignment]
    match: MatchKind

    @property
    def resolved(self) -> bool:
        return self.assignment is not None


def split_records(
    records: Iterable[LeaseRecord],
    decoder: Optional[IdentifierDecoder] = None,
) -> Tuple[List[Assignment], List[Delegation]]:
    """Decode active records into assignments and delegations.

    Inactive records are ignored.  Input order is preserved, which is what
    gives "last record wins" its meaning further down.
    """

    decoder = decoder or IdentifierDecoder()
    assignments: List[Assignment] = []
    delegations: List[Delegation] = []
    for record in records:
        if not record.active:
            continue
        identifier = decoder.decode(record.requester_id)
        if record.kind is LeaseKind.ADDRESS:
            assignments.append(Assignment(requester=identifier, address=record.value))
            LOG.debug("Address %s leased to DUID %s", record.value, identifier)
        else:
            delegations.append(Delegation(prefix=record.value, requester=identifier))
            LOG.debug("Prefix %s delegated to DUID %s", record.value, identifier)
    return assignments, delegations


class LeaseCorrelator:
    """Match every delegation to an address lease of the same requester.

    An exact DUID match is preferred; otherwise the configured tolerant
    matcher is consulted.  Within each index the last assignment seen for a
    key wins, and a prefix delegated more than once keeps only its last
    delegation.
    """

    def __init__(self, matcher: Optional[IdentifierMatcher] = None) -> None:
        self._exact = ExactMatcher()
        self._tolerant = matcher or FirstByteTolerantMatcher()

    @staticmethod
    def _index(
        matcher: IdentifierMatcher, assignments: Sequence[Assignment]
    ) -> Dict[bytes, Assignment]:
        index: Dict[bytes, Assignment] = {}
        for assignment in assignments:
            key = matcher.key(assignment.requester)
            if key is None:
                continue
            previous = index.get(key)
            if previous is not None and previous.address != assignment.address:
                LOG.debug(
                    "DUID key %s: address %s supersedes %s",
                    key.hex(),
                    assignment.address,
                    previous.address,
                )
            index[key] = assignment
        return index

    def correlate(
        self,
        assignments: Sequence[Assignment],
        delegations: Sequence[Delegation],
    ) -> List[Correlation]:
        exact_index = self._index(self._exact, assignments)
        tolerant_index = self._index(self._tolerant, assignments)

        latest: Dict[str, Delegation] = {}
        for delegation in delegations:
            latest.pop(delegation.prefix, None)
            latest[delegation.prefix] = delegation

        correlations: List[Correlation] = []
        for delegation in latest.values():
            correlations.append(
                self._match(delegation, exact_index, tolerant_index)
            )
        return correlations

    def _match(
        self,
        delegation: Delegation,
        exact_index: Dict[bytes, Assignment],
        tolerant_index: Dict[bytes, Assignment],
    ) -> Correlation:
        exact_key = self._exact.key(delegation.requester)
        if exact_key is not None and exact_key in exact_index:
            return Correlation(delegation, exact_index[exact_key], MatchKind.EXACT)

        tolerant_key = self._tolerant.key(delegation.requester)
        if tolerant_key is not None and tolerant_key in tolerant_index:
            return Correlation(
                delegation, tolerant_index[tolerant_key], MatchKind.TOLERANT
            )

        LOG.info(
            "# %s (ignoring, no DHCPv6 lease found for DUID %s)",
            delegation.prefix,
            delegation.requester,
        )
        return Correlation(delegation, None, MatchKind.NONE)
