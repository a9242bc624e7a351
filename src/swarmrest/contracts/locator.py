# src/swarmrest/contracts/locator.py
"""Locator: the canonical specifier naming an object or an operation on it.

A locator is a sequence of sigil-prefixed tokens:

    /Type      object type
    #id        object id
    !version   version stamp (e.g. "2Ax9J01+alice~api~host")
    .op        operation name

Token bodies are runs of ``[0-9A-Za-z_~]``, optionally followed by ``+`` and
a second run (the source part of a version or id).

Usage:
    from swarmrest.contracts.locator import Locator

    loc = Locator.parse("/Mouse#A~GoImd.set")
    loc.type_id                          # "/Mouse#A~GoImd"
    str(loc.with_version("2Ax9J01+u"))   # "/Mouse#A~GoImd!2Ax9J01+u.set"
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, replace

from swarmrest.contracts.errors import MalformedSpecifier

TYPE_SIGIL = "/"
ID_SIGIL = "#"
VERSION_SIGIL = "!"
OP_SIGIL = "."

# Canonical output order
SIGILS = (TYPE_SIGIL, ID_SIGIL, VERSION_SIGIL, OP_SIGIL)

TOKEN_BODY = r"[0-9A-Za-z_~]+(?:\+[0-9A-Za-z_~]+)?"
_TOKEN_RE = re.compile(r"([/#!.])(" + TOKEN_BODY + r")")
_SIMPLE_BODY_RE = re.compile(r"[0-9A-Za-z_~]+")


def iter_tokens(text: str) -> Iterator[tuple[str, str]]:
    """Yield ``(sigil, body)`` pairs covering the whole of ``text``.

    Raises:
        MalformedSpecifier: If any part of the text is not a token.
    """
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise MalformedSpecifier(f"malformed specifier at offset {pos}: {text[pos:]!r}")
        yield match.group(1), match.group(2)
        pos = match.end()


def is_simple_token(value: str) -> bool:
    """True if value is a token body without a ``+`` source part."""
    return _SIMPLE_BODY_RE.fullmatch(value) is not None


@dataclass(frozen=True, slots=True)
class Locator:
    """Immutable specifier value.

    Equality is field equality; ``str()`` always renders tokens in the
    canonical order type, id, version, op.
    """

    type: str | None = None
    id: str | None = None
    version: str | None = None
    op: str | None = None

    @classmethod
    def parse(cls, text: str) -> Locator:
        """Parse a specifier string.

        Tokens may appear in any order, but each sigil at most once.

        Raises:
            MalformedSpecifier: On text outside the grammar or repeated sigils.
        """
        parts: dict[str, str] = {}
        for sigil, body in iter_tokens(text):
            if sigil in parts:
                raise MalformedSpecifier(f"duplicate {sigil!r} token in specifier {text!r}")
            parts[sigil] = body
        return cls(
            type=parts.get(TYPE_SIGIL),
            id=parts.get(ID_SIGIL),
            version=parts.get(VERSION_SIGIL),
            op=parts.get(OP_SIGIL),
        )

    @property
    def type_id(self) -> str:
        """The ``/Type#id`` grouping key (target id)."""
        return _render(((TYPE_SIGIL, self.type), (ID_SIGIL, self.id)))

    def with_version(self, version: str) -> Locator:
        return replace(self, version=version)

    def with_op(self, op: str) -> Locator:
        return replace(self, op=op)

    def __str__(self) -> str:
        return _render(
            (
                (TYPE_SIGIL, self.type),
                (ID_SIGIL, self.id),
                (VERSION_SIGIL, self.version),
                (OP_SIGIL, self.op),
            )
        )


def _render(pairs: tuple[tuple[str, str | None], ...]) -> str:
    return "".join(sigil + body for sigil, body in pairs if body)
