"""
Incremental SELECT builder with positional parameters.

Conditions are appended as ``(fragment, values)`` pairs where every
``?`` in the fragment stands for the next value.  When the statement
is rendered each ``?`` becomes an asyncpg ``$N`` placeholder numbered
by its final position in the SQL text, and the values are returned in
that same order.  Caller values never end up in the SQL string.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple


class QueryBuilder:
    """Assemble ``base [WHERE ...] [ORDER BY ...] [LIMIT ?] [OFFSET ?]``."""

    def __init__(self, base: str) -> None:
        self._base = base
        self._conditions: List[Tuple[str, Tuple[Any, ...]]] = []
        self._order_by: Optional[str] = None
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None

    def where(self, fragment: str, *values: Any) -> "QueryBuilder":
        """Add a predicate joined to the others with ``AND``."""
        if fragment.count("?") != len(values):
            raise ValueError(
                f"fragment {fragment!r} has {fragment.count('?')} placeholders "
                f"but {len(values)} values were given"
            )
        self._conditions.append((fragment, values))
        return self

    def order_by(self, clause: str) -> "QueryBuilder":
        self._order_by = clause
        return self

    def limit(self, value: int) -> "QueryBuilder":
        """Bound the row count; zero or negative leaves it unbounded."""
        self._limit = value if value > 0 else None
        return self

    def offset(self, value: int) -> "QueryBuilder":
        """Skip rows; zero or negative skips nothing."""
        self._offset = value if value > 0 else None
        return self

    def build(self) -> Tuple[str, List[Any]]:
        """Render the SQL text and the matching parameter list."""
        params: List[Any] = []
        query = self._base

        if self._conditions:
            rendered = [self._render(fragment, values, params) for fragment, values in self._conditions]
            query += " WHERE " + " AND ".join(rendered)
        if self._order_by:
            query += " ORDER BY " + self._order_by
        if self._limit is not None:
            query += " LIMIT " + self._render("?", (self._limit,), params)
        if self._offset is not None:
            query += " OFFSET " + self._render("?", (self._offset,), params)
        return query, params

    @staticmethod
    def _render(fragment: str, values: Tuple[Any, ...], params: List[Any]) -> str:
        pieces = fragment.split("?")
        out = [pieces[0]]
        for value, piece in zip(values, pieces[1:]):
            params.append(value)
            out.append(f"${len(params)}")
            out.append(piece)
        return "".join(out)
