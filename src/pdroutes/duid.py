"""Decoding of the escaped DUID strings written by ISC-DHCPd.

The lease store records each requester's DUID as a quoted string in which
printable ASCII is kept verbatim, ``" ' $ ` \\`` are backslash-escaped and
every other byte is written as a three digit octal escape (``\\ooo``).  The
scanner below walks such a string one character at a time and classifies
every piece into a token, so decoding and normalisation share a single
definition of the escaping rules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Tuple

LOG = logging.getLogger(__name__)

_OCTAL_DIGITS = "01234567"
_HEX_DIGITS = "0123456789abcdefABCDEF"
_DECIMAL_DIGITS = "0123456789"
# Characters the lease store escapes with a plain backslash, plus the space
# which some tooling escapes the same way.
_BACKSLASH_ESCAPED = "\"'$`\\ "
_NUMERIC_ESCAPED = (b'"', b" ")


class _State(Enum):
    LITERAL = auto()
    ESCAPE = auto()
    OCTAL = auto()
    HEX = auto()


@dataclass(frozen=True)
class EscapeToken:
    """One decoded unit of an escaped identifier.

    ``kind`` is one of ``literal``, ``escape`` (backslash + punctuation),
    ``octal``, ``hex`` or ``invalid``.  ``source`` is the exact text the token
    was read from.
    """

    kind: str
    data: bytes
    source: str


def _numeric_token(kind: str, digits: str, warnings: List[str]) -> EscapeToken:
    prefix = "\\" if kind == "octal" else "\\x"
    source = prefix + digits
    if not digits:
        warnings.append(f"escape {source!r} has no digits, kept literally")
        return EscapeToken("invalid", source.encode("utf-8", "surrogateescape"), source)

    value = int(digits, 8 if kind == "octal" else 16)
    if value > 0xFF:
        warnings.append(f"escape {source!r} exceeds one byte, truncated")
        value &= 0xFF
    return EscapeToken(kind, bytes([value]), source)


def scan_escaped(text: str) -> Tuple[List[EscapeToken], List[str]]:
    """Tokenise ``text`` and return the tokens plus any diagnostics.

    Octal escapes consume at most three digits, so a digit directly following
    a complete ``\\ooo`` escape is always a literal character.  The scan never
    fails: malformed escapes become ``invalid`` tokens carrying their source
    text as bytes.
    """

    tokens: List[EscapeToken] = []
    warnings: List[str] = []
    state = _State.LITERAL
    pending = ""

    for char in text:
        if state is _State.OCTAL:
            if char in _OCTAL_DIGITS and len(pending) < 3:
                pending += char
                continue
            tokens.append(_numeric_token("octal", pending, warnings))
            pending = ""
            state = _State.LITERAL
        elif state is _State.HEX:
            if char in _HEX_DIGITS and len(pending) < 2:
                pending += char
                continue
            tokens.append(_numeric_token("hex", pending, warnings))
            pending = ""
            state = _State.LITERAL

        if state is _State.LITERAL:
            if char == "\\":
                state = _State.ESCAPE
            else:
                data = char.encode("utf-8", "surrogateescape")
                tokens.append(EscapeToken("literal", data, char))
        elif state is _State.ESCAPE:
            if char in _OCTAL_DIGITS:
                pending = char
                state = _State.OCTAL
            elif char == "x":
                state = _State.HEX
            elif char in _BACKSLASH_ESCAPED:
                tokens.append(EscapeToken("escape", char.encode("ascii"), "\\" + char))
                state = _State.LITERAL
            else:
                source = "\\" + char
                warnings.append(f"unknown escape {source!r}, kept literally")
                data = source.encode("utf-8", "surrogateescape")
                tokens.append(EscapeToken("invalid", data, source))
                state = _State.LITERAL

    if state is _State.OCTAL:
        tokens.append(_numeric_token("octal", pending, warnings))
    elif state is _State.HEX:
        tokens.append(_numeric_token("hex", pending, warnings))
    elif state is _State.ESCAPE:
        warnings.append("dangling backslash at end of identifier")
        tokens.append(EscapeToken("invalid", b"\\", "\\"))

    return tokens, warnings


def normalize_escaped(text: str) -> str:
    """Rewrite ``text`` so it survives whitespace and quote splitting.

    Quotes and spaces, escaped or not, become ``\\042`` and ``\\040``.  A
    decimal digit that directly follows an octal escape is itself written as
    an octal escape so no decoder can read it as a fourth escape digit.  Raw
    non-ASCII bytes are written as octal escapes too.  The decoded bytes are
    unchanged.
    """

    tokens, _ = scan_escaped(text)
    parts: List[str] = []
    after_octal = False
    for token in tokens:
        if token.kind in ("literal", "escape") and token.data in _NUMERIC_ESCAPED:
            parts.append(f"\\{token.data[0]:03o}")
            after_octal = True
        elif token.kind == "literal" and after_octal and token.source in _DECIMAL_DIGITS:
            parts.append(f"\\{ord(token.source):03o}")
        elif token.kind == "literal" and not token.source.isascii():
            parts.extend(f"\\{byte:03o}" for byte in token.data)
            after_octal = True
        else:
            parts.append(token.source)
            after_octal = token.kind == "octal"
    return "".join(parts)


def encode_identifier(data: bytes) -> str:
    """Escape ``data`` the way the lease store writes DUIDs."""

    parts: List[str] = []
    for byte in data:
        char = chr(byte)
        if byte == 0x20:
            parts.append(char)
        elif byte < 0x20 or byte >= 0x7F:
            parts.append(f"\\{byte:03o}")
        elif char in "\"'$`\\":
            parts.append("\\" + char)
        else:
            parts.append(char)
    return "".join(parts)


@dataclass(frozen=True)
class Identifier:
    """Canonical byte form of a requester DUID."""

    raw: bytes

    @property
    def exact(self) -> bytes:
        return self.raw

    @property
    def tolerant(self) -> bytes:
        """The DUID without its first byte.

        The first byte only carries the DUID type, which some clients set
        differently for their address and prefix requests.
        """

        return self.raw[1:]

    @property
    def escaped(self) -> str:
        return encode_identifier(self.raw)

    def hex(self) -> str:
        return self.raw.hex()

    def __str__(self) -> str:
        return self.hex()


class IdentifierDecoder:
    """Turn escaped identifier text into :class:`Identifier` values."""

    def decode(self, escaped: str) -> Identifier:
        tokens, warnings = scan_escaped(escaped)
        for warning in warnings:
            LOG.warning("Identifier %r: %s", escaped, warning)
        return Identifier(b"".join(token.data for token in tokens))


def decode_identifier(escaped: str) -> Identifier:
    return IdentifierDecoder().decode(escaped)
