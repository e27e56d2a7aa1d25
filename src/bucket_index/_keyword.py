"""Search keyword parsing and LIKE pattern construction."""

from __future__ import annotations

import dataclasses

NEGATION_MARKER = "-"
LIKE_ESCAPE = "\\"


@dataclasses.dataclass(frozen=True)
class Keyword:
    """Parsed free-text search input.

    :param plus: Terms every match must contain.
    :param minus: Terms no match may contain.
    """

    plus: tuple[str, ...] = ()
    minus: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.plus or self.minus)


def parse_keyword(text: str | None) -> Keyword:
    """Split search input into required and excluded terms.

    Terms are separated by whitespace. A term prefixed with ``-`` is
    excluded; the marker is stripped. Repeated terms are kept once.

    >>> parse_keyword("report -draft 2024")
    Keyword(plus=('report', '2024'), minus=('draft',))
    """
    plus: list[str] = []
    minus: list[str] = []
    for term in (text or "").split():
        if term.startswith(NEGATION_MARKER):
            term = term[len(NEGATION_MARKER) :]
            if term and term not in minus:
                minus.append(term)
        elif term not in plus:
            plus.append(term)
    return Keyword(plus=tuple(plus), minus=tuple(minus))


def escape_like(fragment: str) -> str:
    """Escape LIKE wildcards so ``fragment`` matches literally."""
    return (
        fragment.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def like_pattern(fragment: str, *, start: str = "%", end: str = "%") -> str:
    """Build a LIKE pattern around an escaped ``fragment``.

    The default matches ``fragment`` anywhere; ``start=""`` anchors it at the
    beginning of the value.
    """
    return f"{start}{escape_like(fragment)}{end}"
