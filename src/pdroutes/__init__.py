"""Routes towards DHCPv6 prefix delegation clients.

ISC-DHCPd happily delegates IPv6 prefixes (IA-PD) but never installs a route
towards the downlink router that received them, which leaves the delegated
networks unreachable.  This package fills that gap in a single batch pass:

* parse the DHCPv6 lease store and decode each requester's escaped DUID;
* correlate every active delegation with an active address lease (IA-NA) of
  the same client, tolerating clients whose DUID type byte differs between
  the two requests;
* derive the routes that should exist (``<prefix> via <address>``); and
* converge the kernel routing table on that set, remembering what was applied
  so expired delegations can be cleaned up on the next run.

Link-local next hops are not supported because the lease store never records
them, and clients without an address lease cannot be routed to.
"""

from .driver import DelegatedRouteDriver  # noqa: F401
from .routes import Route  # noqa: F401

__all__ = ["DelegatedRouteDriver", "Route"]
