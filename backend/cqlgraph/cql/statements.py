"""
Immutable CQL statement model.

Statements are built by the planner and the entry codec, executed by a
Session, and rendered to parameterized CQL for the driver:
- Clause: Comparison, In, Conjunction
- Select, Insert, Delete: single-table statements
- Batch: statements submitted as one atomic unit

Invariants:
    - Builders return new objects; a statement is never mutated once shared
    - Values are passed as positional parameters (%s), never interpolated
    - Conjunctions are flattened, so statements only hold leaf clauses
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Iterable

# CQL LIMIT is a 32-bit signed int and must be strictly positive
MAX_LIMIT = 2**31 - 1


def literal(value: Any) -> str:
    """Render a value as a CQL literal (for logs and diagnostics only)."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (tuple, list)):
        return "(" + ", ".join(literal(v) for v in value) + ")"
    return "'" + str(value).replace("'", "''") + "'"


def inline(text: str, params: Iterable[Any]) -> str:
    """Substitute rendered literals for the %s markers of a statement."""
    pieces = text.split("%s")
    out = [pieces[0]]
    for piece, param in zip(pieces[1:], params):
        out.append(literal(param))
        out.append(piece)
    return "".join(out)


class Clause(ABC):
    """A WHERE restriction."""

    def flatten(self) -> tuple[Clause, ...]:
        return (self,)

    @abstractmethod
    def render(self, params: list[Any]) -> str:
        """Render the clause, appending its parameters to params."""
        ...

    def __str__(self) -> str:
        params: list[Any] = []
        return inline(self.render(params), params)


@dataclass(frozen=True)
class Comparison(Clause):
    column: str
    operator: str
    value: Any

    def render(self, params: list[Any]) -> str:
        params.append(self.value)
        return f"{self.column} {self.operator} %s"


@dataclass(frozen=True)
class In(Clause):
    column: str
    values: tuple[Any, ...]

    def render(self, params: list[Any]) -> str:
        params.append(tuple(self.values))
        return f"{self.column} IN %s"


@dataclass(frozen=True)
class Conjunction(Clause):
    clauses: tuple[Clause, ...]

    def flatten(self) -> tuple[Clause, ...]:
        return self.clauses

    def render(self, params: list[Any]) -> str:
        return " AND ".join(c.render(params) for c in self.clauses)


def eq(column: str, value: Any) -> Comparison:
    return Comparison(column, "=", value)


def gt(column: str, value: Any) -> Comparison:
    return Comparison(column, ">", value)


def gte(column: str, value: Any) -> Comparison:
    return Comparison(column, ">=", value)


def lt(column: str, value: Any) -> Comparison:
    return Comparison(column, "<", value)


def lte(column: str, value: Any) -> Comparison:
    return Comparison(column, "<=", value)


def in_(column: str, values: Iterable[Any]) -> In:
    return In(column, tuple(values))


def and_(*clauses: Clause) -> Conjunction:
    """Conjoin clauses, flattening nested conjunctions."""
    flat: list[Clause] = []
    for clause in clauses:
        flat.extend(clause.flatten())
    return Conjunction(tuple(flat))


class Statement(ABC):
    """Base of executable statements."""

    @abstractmethod
    def to_cql(self) -> tuple[str, tuple[Any, ...]]:
        """Return the parameterized CQL text and its parameters."""
        ...

    def __str__(self) -> str:
        return inline(*self.to_cql())


def _render_where(clauses: tuple[Clause, ...], params: list[Any]) -> str:
    if not clauses:
        return ""
    return " WHERE " + " AND ".join(c.render(params) for c in clauses)


@dataclass(frozen=True)
class Select(Statement):
    """SELECT * FROM a single table.

    Example:
        >>> s = Select("vertices").where(eq("id", "v1")).with_limit(100)
        >>> s.to_cql()
        ('SELECT * FROM vertices WHERE id = %s LIMIT 100', ('v1',))
    """

    table: str
    clauses: tuple[Clause, ...] = ()
    orderings: tuple[tuple[str, bool], ...] = ()
    limit: int | None = None
    paged: bool = True

    def where(self, clause: Clause) -> Select:
        return replace(self, clauses=self.clauses + clause.flatten())

    def order_by(self, column: str, descending: bool = False) -> Select:
        return replace(self, orderings=self.orderings + ((column, descending),))

    def with_limit(self, limit: int) -> Select:
        return replace(self, limit=limit)

    def unpaged(self) -> Select:
        """Fetch every row in a single page."""
        return replace(self, paged=False)

    @property
    def orders_across_partitions(self) -> bool:
        """True when ORDER BY is combined with an IN restriction.

        Cassandra can only serve this shape unpaged.
        """
        return bool(self.orderings) and any(isinstance(c, In) for c in self.clauses)

    def to_cql(self) -> tuple[str, tuple[Any, ...]]:
        params: list[Any] = []
        text = f"SELECT * FROM {self.table}"
        text += _render_where(self.clauses, params)
        if self.orderings:
            text += " ORDER BY " + ", ".join(
                f"{col} {'DESC' if desc else 'ASC'}" for col, desc in self.orderings
            )
        if self.limit is not None:
            text += f" LIMIT {self.limit}"
        return text, tuple(params)


@dataclass(frozen=True)
class Insert(Statement):
    """INSERT INTO a single table; values keep insertion order."""

    table: str
    values: tuple[tuple[str, Any], ...] = ()

    def value(self, column: str, value: Any) -> Insert:
        return replace(self, values=self.values + ((column, value),))

    def columns(self) -> dict[str, Any]:
        return dict(self.values)

    def to_cql(self) -> tuple[str, tuple[Any, ...]]:
        names = ", ".join(col for col, _ in self.values)
        marks = ", ".join("%s" for _ in self.values)
        text = f"INSERT INTO {self.table} ({names}) VALUES ({marks})"
        return text, tuple(v for _, v in self.values)


@dataclass(frozen=True)
class Delete(Statement):
    """DELETE FROM a single table restricted by equality clauses."""

    table: str
    clauses: tuple[Clause, ...] = ()

    def where(self, clause: Clause) -> Delete:
        return replace(self, clauses=self.clauses + clause.flatten())

    def to_cql(self) -> tuple[str, tuple[Any, ...]]:
        params: list[Any] = []
        text = f"DELETE FROM {self.table}" + _render_where(self.clauses, params)
        return text, tuple(params)


@dataclass(frozen=True)
class Batch(Statement):
    """Mutations submitted as one atomic (logged) batch."""

    statements: tuple[Statement, ...] = ()

    def to_cql(self) -> tuple[str, tuple[Any, ...]]:
        params: list[Any] = []
        lines = ["BEGIN BATCH"]
        for stmt in self.statements:
            text, stmt_params = stmt.to_cql()
            lines.append(text + ";")
            params.extend(stmt_params)
        lines.append("APPLY BATCH;")
        return "\n".join(lines), tuple(params)

    def __len__(self) -> int:
        return len(self.statements)
