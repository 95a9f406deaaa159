"""Run orchestration for one reconciliation pass.

:class:`DelegatedRouteDriver` wires the pipeline stages together: it reads
the lease store, decodes and correlates leases, builds the desired route set
and hands it to :class:`~pdroutes.reconciler.RouteReconciler`.  Nothing
survives a run except the persisted route database.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .builder import build_route_set
from .config import ReconcilerConfig
from .correlator import Correlation, LeaseCorrelator, split_records
from .duid import IdentifierDecoder
from .exceptions import LeaseStoreError, StateStoreError
from .leases import LeaseRecord, LeaseRecordParser, LeaseStoreReader
from .matching import build_matcher
from .reconciler import ReconcileResult, RouteReconciler
from .route_table import RouteTableClient
from .routes import Route
from .state import PersistedStateStore

LOG = logging.getLogger(__name__)


class RunStatus(Enum):
    SKIPPED = "skipped"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RunResult:
    status: RunStatus
    desired: List[Route] = field(default_factory=list)
    correlations: List[Correlation] = field(default_factory=list)
    reconcile: Optional[ReconcileResult] = None
    error: Optional[str] = None


class DelegatedRouteDriver:
    """Keep routes towards DHCPv6-PD clients in line with the lease store."""

    def __init__(
        self,
        config: ReconcilerConfig,
        table: RouteTableClient,
        *,
        reader: Optional[LeaseStoreReader] = None,
        store: Optional[PersistedStateStore] = None,
    ) -> None:
        self._config = config
        self._table = table
        self._reader = reader or LeaseStoreReader(config.lease_file)
        self._store = store or PersistedStateStore(config.state_file)
        self._parser = LeaseRecordParser()
        self._decoder = IdentifierDecoder()
        self._correlator = LeaseCorrelator(build_matcher(config.duid_match))

    # ------------------------------------------------------------------
    # Pipeline stages
    # ------------------------------------------------------------------
    def is_up_to_date(self) -> bool:
        """True when the lease store has not changed since the last write."""

        state_mtime = self._store.mtime()
        if state_mtime is None:
            return False
        return self._reader.mtime() <= state_mtime

    def read_leases(self) -> List[LeaseRecord]:
        records = list(self._parser.parse(self._reader.blocks()))
        if self._config.dump_identifiers:
            self._dump(records)
        return records

    def _dump(self, records: List[LeaseRecord]) -> None:
        for record in records:
            identifier = self._decoder.decode(record.requester_id)
            LOG.debug(
                "IA-%s %s state=%s DUID \"%s\" == %s",
                record.kind.value.upper(),
                record.value,
                record.state,
                record.requester_id,
                identifier.hex(),
            )

    def _desired(
        self, records: List[LeaseRecord]
    ) -> Tuple[List[Route], List[Correlation]]:
        assignments, delegations = split_records(records, self._decoder)
        LOG.info(
            "- We have %d active address leases and %d active prefix delegations",
            len(assignments),
            len(delegations),
        )
        correlations = self._correlator.correlate(assignments, delegations)
        routes = build_route_set(correlations)
        LOG.info("- We currently need the following routes:")
        for route in routes:
            LOG.info("%s", route)
        return routes, correlations

    # ------------------------------------------------------------------
    # Orchestration
    # ------------------------------------------------------------------
    def run(self, force: bool = False) -> RunResult:
        LOG.info("--- Starting setup/cleanup of routes for delegated prefixes")
        try:
            if not force and self.is_up_to_date():
                LOG.info("Lease file unchanged since last run, nothing to do")
                return RunResult(status=RunStatus.SKIPPED)

            records = self.read_leases()
            routes, correlations = self._desired(records)
            outcome = RouteReconciler(self._table, self._store).reconcile(
                routes, force=force
            )
        except (LeaseStoreError, StateStoreError) as exc:
            LOG.critical("Aborting reconciliation: %s", exc)
            return RunResult(status=RunStatus.FAILED, error=str(exc))
        finally:
            LOG.info("--- Finished setup/cleanup of routes for delegated prefixes")

        return RunResult(
            status=RunStatus.COMPLETED,
            desired=routes,
            correlations=correlations,
            reconcile=outcome,
        )
