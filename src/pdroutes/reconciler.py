"""Three phase synchronisation of desired, persisted and live routes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from .exceptions import RouteTableError
from .route_table import RouteTableClient
from .routes import Route, unique_routes
from .state import PersistedStateStore

LOG = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """What a reconciliation pass did to the live table and the database."""

    removed: List[Route] = field(default_factory=list)
    absent: List[Route] = field(default_factory=list)
    added: List[Route] = field(default_factory=list)
    present: List[Route] = field(default_factory=list)
    failed: List[Route] = field(default_factory=list)
    persisted: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.added)


class RouteReconciler:
    """Converge the live table on the desired routes.

    The phases run strictly in order: remove routes the database knows about
    but which are no longer desired, add desired routes missing from the live
    table, then rewrite the database.  Each route is handled independently;
    a failing mutation is logged and the pass carries on.
    """

    def __init__(self, table: RouteTableClient, store: PersistedStateStore) -> None:
        self._table = table
        self._store = store

    def reconcile(self, desired: Sequence[Route], *, force: bool = False) -> ReconcileResult:
        desired = unique_routes(desired)
        persisted = self._store.load()
        LOG.info("- Database of routes for prefixes we've delegated before:")
        if persisted:
            for route in persisted:
                LOG.info("%s", route)
        else:
            LOG.info("<< empty >>")

        result = ReconcileResult()
        self._remove_stale(persisted, desired, result)
        self._add_missing(desired, result)

        # Removals that failed stay on record so the next run retries them.
        snapshot = desired + [r for r in result.failed if r not in desired]
        if result.changed or force or set(persisted) != set(snapshot):
            LOG.info("- Writing current routes for delegated prefixes to database:")
            self._store.save(snapshot)
            for route in snapshot:
                LOG.info("%s", route)
            result.persisted = True
        else:
            LOG.info("- No route changes, leaving database untouched")
        return result

    def _remove_stale(
        self,
        persisted: Sequence[Route],
        desired: Sequence[Route],
        result: ReconcileResult,
    ) -> None:
        LOG.info("- Checking for routes we don't need anymore (deleting as necessary):")
        wanted = set(desired)
        for route in persisted:
            if route in wanted:
                LOG.info("# %s (still delegating)", route)
                continue
            LOG.info("Deleting route: %s", route)
            try:
                if self._table.delete(route):
                    result.removed.append(route)
                else:
                    LOG.info("# %s (already gone from routing table)", route)
                    result.absent.append(route)
            except RouteTableError as exc:
                LOG.error("Failed to delete route %s: %s", route, exc)
                result.failed.append(route)

    def _add_missing(self, desired: Sequence[Route], result: ReconcileResult) -> None:
        LOG.info("- Checking for missing routes (adding as necessary):")
        for route in desired:
            try:
                live = self._table.contains(route)
            except RouteTableError as exc:
                LOG.warning("Could not query routing table for %s: %s", route, exc)
                live = False
            if live:
                LOG.info("# %s (already present)", route)
                result.present.append(route)
                continue

            LOG.info("Adding route: %s", route)
            try:
                self._table.add(route)
            except RouteTableError as exc:
                LOG.error("Failed to add route %s: %s", route, exc)
                result.failed.append(route)
            else:
                result.added.append(route)
