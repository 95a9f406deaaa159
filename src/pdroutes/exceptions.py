"""Exception hierarchy shared by the reconciliation pipeline."""

from __future__ import annotations


class PdRoutesError(Exception):
    """Base class for all reconciler errors."""


class LeaseStoreError(PdRoutesError):
    """The lease store could not be read."""


class StateStoreError(PdRoutesError):
    """The persisted route database could not be read or written."""


class RouteTableError(PdRoutesError):
    """A single route-table query or mutation failed."""
