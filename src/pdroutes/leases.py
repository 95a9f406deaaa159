"""Reading and parsing of the ISC-DHCPd DHCPv6 lease store.

A lease store is a sequence of top level statements.  The ones we care about
look like::

    ia-pd "\\001\\000\\000\\000\\000\\001..." {
      cltt 4 2024/05/15 10:00:00;
      iaprefix 2001:db8:0:100::/56 {
        binding state active;
        preferred-life 375;
        max-life 600;
        ends 4 2024/05/15 10:10:00;
      }
    }

:class:`LeaseStoreReader` cuts the file into such blocks without judging
them, :class:`LeaseRecordParser` turns each block into a
:class:`LeaseRecord` or drops it with a diagnostic.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, Optional, Tuple

from .duid import normalize_escaped
from .exceptions import LeaseStoreError
from .routes import normalize_address, normalize_prefix

LOG = logging.getLogger(__name__)


class LeaseKind(Enum):
    ADDRESS = "na"
    PREFIX = "pd"


# block keyword -> (lease kind, sub-record keyword carrying value and state)
_BLOCK_KINDS = {
    "ia-na": (LeaseKind.ADDRESS, "iaaddr"),
    "ia-pd": (LeaseKind.PREFIX, "iaprefix"),
}

_SUBRECORD_RE = re.compile(r"\b(iaaddr|iaprefix)\s+([^\s{;]+)\s*\{([^{}]*)")
_STATE_RE = re.compile(r"\bbinding\s+state\s+([\w-]+)\s*;")


@dataclass(frozen=True)
class RawBlock:
    """A top level statement of the lease store and the line it starts on."""

    text: str
    line: int


@dataclass(frozen=True)
class LeaseRecord:
    """One parsed lease transaction.

    ``requester_id`` is the normalised escaped DUID text; decode it with
    :class:`~pdroutes.duid.IdentifierDecoder`.
    """

    kind: LeaseKind
    requester_id: str
    value: str
    active: bool
    state: str


def split_blocks(text: str) -> Iterator[RawBlock]:
    """Yield the top level statements in ``text``.

    A statement ends at the ``}`` closing its outermost brace or at a ``;``
    outside any brace.  Quoted strings (with backslash escapes) and ``#``
    comments between statements are honoured.  An unterminated trailing
    statement is still yielded so the parser can report it.
    """

    depth = 0
    in_quote = False
    escaped = False
    in_comment = False
    start: Optional[int] = None
    start_line = 1
    line = 1

    for index, char in enumerate(text):
        if char == "\n":
            line += 1
        if in_comment:
            if char == "\n":
                in_comment = False
            continue
        if in_quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_quote = False
            continue

        if start is None:
            if char.isspace():
                continue
            if char == "#":
                in_comment = True
                continue
            start = index
            start_line = line

        if char == '"':
            in_quote = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth <= 0:
                yield RawBlock(text[start : index + 1], start_line)
                start = None
                depth = 0
        elif char == ";" and depth == 0:
            yield RawBlock(text[start : index + 1], start_line)
            start = None

    if start is not None:
        yield RawBlock(text[start:], start_line)


class LeaseStoreReader:
    """Expose the lease store at ``path`` as a sequence of raw blocks."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def mtime(self) -> float:
        try:
            return self._path.stat().st_mtime
        except OSError as exc:
            raise LeaseStoreError(f"cannot stat lease store {self._path}: {exc}") from exc

    def read_text(self) -> str:
        try:
            return self._path.read_text(encoding="utf-8", errors="surrogateescape")
        except OSError as exc:
            raise LeaseStoreError(f"cannot read lease store {self._path}: {exc}") from exc

    def blocks(self) -> Iterator[RawBlock]:
        return split_blocks(self.read_text())


def _read_quoted(text: str, start: int) -> Optional[Tuple[str, int]]:
    """Return the content of the quoted string opening at ``start``."""

    escaped = False
    for index in range(start + 1, len(text)):
        char = text[index]
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == '"':
            return text[start + 1 : index], index + 1
    return None


class LeaseRecordParser:
    """Extract :class:`LeaseRecord` values from raw lease store blocks."""

    def parse_block(self, block: RawBlock) -> Optional[LeaseRecord]:
        keyword = block.text.split(None, 1)[0] if block.text.strip() else ""
        if keyword not in _BLOCK_KINDS:
            LOG.debug("Ignoring '%s' statement at line %d", keyword, block.line)
            return None
        kind, subrecord = _BLOCK_KINDS[keyword]

        quote = block.text.find('"', len(keyword))
        if quote < 0 or block.text[len(keyword) : quote].strip():
            LOG.warning("Skipping %s block at line %d: no quoted DUID", keyword, block.line)
            return None
        quoted = _read_quoted(block.text, quote)
        if quoted is None:
            LOG.warning("Skipping %s block at line %d: unterminated DUID", keyword, block.line)
            return None
        escaped_id, body_start = quoted

        # Stores may append historical sub-records; the last one is current.
        matches = [
            match
            for match in _SUBRECORD_RE.finditer(block.text, body_start)
            if match.group(1) == subrecord
        ]
        if not matches:
            LOG.warning(
                "Skipping %s block at line %d: no %s sub-record",
                keyword,
                block.line,
                subrecord,
            )
            return None
        current = matches[-1]

        try:
            if kind is LeaseKind.ADDRESS:
                value = normalize_address(current.group(2))
            else:
                value = normalize_prefix(current.group(2))
        except ValueError as exc:
            LOG.warning("Skipping %s block at line %d: %s", keyword, block.line, exc)
            return None

        states = _STATE_RE.findall(current.group(3))
        state = states[-1] if states else "unknown"

        try:
            requester_id = normalize_escaped(escaped_id)
        except UnicodeError as exc:
            LOG.warning("Skipping %s block at line %d: bad DUID: %s", keyword, block.line, exc)
            return None

        return LeaseRecord(
            kind=kind,
            requester_id=requester_id,
            value=value,
            active=state == "active",
            state=state,
        )

    def parse(self, blocks: Iterable[RawBlock]) -> Iterator[LeaseRecord]:
        """Yield a record for every well formed lease block, active or not."""

        for block in blocks:
            record = self.parse_block(block)
            if record is not None:
                yield record
