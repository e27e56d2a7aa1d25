"""Structured filter expressions for index queries.

Filters are plain immutable objects combined with ``&``, ``|`` and ``~`` (or
the :func:`and_` / :func:`or_` helpers) and compiled to a parameterised SQL
``WHERE`` fragment by :func:`compile_filter`.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from bucket_index._keyword import LIKE_ESCAPE

COLUMNS = frozenset(
    {
        "id",
        "type",
        "path",
        "dirname",
        "basename",
        "size",
        "storage_class",
        "last_modified",
        "created_at",
        "updated_at",
    }
)

_SQL_OPS = {"==": "=", "!=": "!=", ">": ">", ">=": ">=", "<": "<", "<=": "<="}


class Filter:
    """Base class for filter expressions."""

    def __and__(self, other: Filter) -> Logical:
        return Logical(op="AND", children=(self, other))

    def __or__(self, other: Filter) -> Logical:
        return Logical(op="OR", children=(self, other))

    def __invert__(self) -> Logical:
        return Logical(op="NOT", children=(self,))


@dataclasses.dataclass(frozen=True)
class Comparison(Filter):
    """A comparison between a column and a value.

    ``op`` is one of ``==``, ``!=``, ``>``, ``>=``, ``<``, ``<=``, ``IN``,
    ``LIKE``, ``NOT_LIKE``, ``STARTS_WITH``.
    """

    column: str
    op: str
    value: Any = None

    def __post_init__(self) -> None:
        if self.column not in COLUMNS:
            raise ValueError(f"Unknown column {self.column!r}. Available: {sorted(COLUMNS)}")


@dataclasses.dataclass(frozen=True)
class Logical(Filter):
    """``AND`` / ``OR`` over children, or ``NOT`` over a single child."""

    op: str
    children: tuple[Filter, ...]


def eq(column: str, value: Any) -> Comparison:
    return Comparison(column, "==", value)


def gt(column: str, value: Any) -> Comparison:
    return Comparison(column, ">", value)


def in_(column: str, values: Any) -> Comparison:
    return Comparison(column, "IN", tuple(values))


def like(column: str, pattern: str) -> Comparison:
    return Comparison(column, "LIKE", pattern)


def not_like(column: str, pattern: str) -> Comparison:
    return Comparison(column, "NOT_LIKE", pattern)


def starts_with(column: str, prefix: str) -> Comparison:
    """Exact, case-sensitive prefix test (no wildcard interpretation)."""
    return Comparison(column, "STARTS_WITH", prefix)


def and_(*children: Filter | None) -> Filter | None:
    """Conjunction of the non-``None`` children; ``None`` if there are none."""
    kept = tuple(c for c in children if c is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return Logical(op="AND", children=kept)


def or_(*children: Filter | None) -> Filter | None:
    """Disjunction of the non-``None`` children; ``None`` if there are none."""
    kept = tuple(c for c in children if c is not None)
    if not kept:
        return None
    if len(kept) == 1:
        return kept[0]
    return Logical(op="OR", children=kept)


def _sql_value(value: Any) -> Any:
    # Enums are stored by value (ObjectType is an IntEnum, StorageClass a str Enum).
    if hasattr(value, "value") and not isinstance(value, (int, str)):
        return value.value
    if isinstance(value, int):
        return int(value)
    return value


def compile_filter(expr: Filter, params: list[Any]) -> str:
    """Compile ``expr`` into a SQL fragment, appending bound values to ``params``."""
    if isinstance(expr, Comparison):
        return _compile_comparison(expr, params)
    if isinstance(expr, Logical):
        if expr.op == "NOT":
            return f"NOT ({compile_filter(expr.children[0], params)})"
        if expr.op in ("AND", "OR"):
            parts = [compile_filter(c, params) for c in expr.children]
            return f"({f' {expr.op} '.join(parts)})"
    raise ValueError(f"Unknown filter expression: {expr!r}")


def _compile_comparison(expr: Comparison, params: list[Any]) -> str:
    col = expr.column
    op = expr.op
    if op == "IN":
        if not expr.value:
            return "0"
        params.extend(_sql_value(v) for v in expr.value)
        return f"{col} IN ({', '.join('?' for _ in expr.value)})"
    if op == "LIKE":
        params.append(expr.value)
        return f"{col} LIKE ? ESCAPE '{LIKE_ESCAPE}'"
    if op == "NOT_LIKE":
        params.append(expr.value)
        return f"{col} NOT LIKE ? ESCAPE '{LIKE_ESCAPE}'"
    if op == "STARTS_WITH":
        params.extend((len(expr.value), expr.value))
        return f"substr({col}, 1, ?) = ?"
    try:
        sql_op = _SQL_OPS[op]
    except KeyError:
        raise ValueError(f"Unknown comparison operator {op!r}") from None
    params.append(_sql_value(expr.value))
    return f"{col} {sql_op} ?"
