"""Persisted database of the routes applied by the previous run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from .exceptions import StateStoreError
from .routes import Route, unique_routes

LOG = logging.getLogger(__name__)


class PersistedStateStore:
    """One ``<prefix> via <address>`` line per route, fully rewritten on save."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def mtime(self) -> Optional[float]:
        """Modification time of the database, ``None`` if it does not exist."""

        try:
            return self._path.stat().st_mtime
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StateStoreError(f"cannot stat route database {self._path}: {exc}") from exc

    def load(self) -> List[Route]:
        try:
            text = self._path.read_text()
        except FileNotFoundError:
            LOG.debug("Route database %s does not exist yet", self._path)
            return []
        except UnicodeDecodeError as exc:
            raise StateStoreError(f"corrupt route database {self._path}: {exc}") from exc
        except OSError as exc:
            raise StateStoreError(f"cannot read route database {self._path}: {exc}") from exc

        routes: List[Route] = []
        for number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                routes.append(Route.parse(line))
            except ValueError as exc:
                LOG.warning("Ignoring %s line %d: %s", self._path, number, exc)
        return unique_routes(routes)

    def save(self, routes: Iterable[Route]) -> None:
        body = "".join(f"{route}\n" for route in routes)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(body)
        except OSError as exc:
            raise StateStoreError(f"cannot write route database {self._path}: {exc}") from exc
