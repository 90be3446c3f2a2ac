"""Build SQLAlchemy conditions from the domain filter tree.

Placeholders are numbered exactly like ``WhereClauses.render``: one named
bind parameter per literal value, shared by every location of its clause.
JSON paths are bound by SQLAlchemy itself and are not literal values.

Two constructs depend on the dialect. Free-text search over a whole JSON
document matches string values only: MySQL and MariaDB use ``json_search``,
SQLite walks ``json_tree``. SQLite's ``json_extract`` also returns ``1`` / ``0``
for JSON booleans, so values read from a path are rendered as ``true`` /
``false`` there, as MariaDB does.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from sqlalchemy import (
    String,
    and_,
    bindparam,
    case,
    cast,
    func,
    literal_column,
    not_,
    or_,
    select,
)

from hostdb.adapters.sqlalchemy.tables import record_table
from hostdb.domain.model import LocationKind, Operator, Relativity

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from sqlalchemy import BindParameter, ColumnElement

    from hostdb.domain.model import FieldLocation, JsonPath, WhereClause, WhereClauses

    type Condition = ColumnElement[bool]
    type Binds = Sequence[BindParameter[str]]

SQLITE: Final[str] = "sqlite"

_TRUE = literal_column("'true'", String)
_FALSE = literal_column("'false'", String)


def _sqlite_path(path: JsonPath) -> str:
    parts = ["$"]
    for element in path:
        parts.append(f"[{element}]" if isinstance(element, int) else f'."{element}"')
    return "".join(parts)


def value_expression(location: FieldLocation, dialect_name: str = SQLITE) -> ColumnElement[str]:
    """Textual SQL expression for the value stored at ``location``."""

    if location.kind is LocationKind.COLUMN:
        return record_table.c[location.column]
    document = record_table.c[location.kind.value]
    if not location.path:
        return cast(document, String)
    extracted = cast(document[location.path].as_string(), String)
    if dialect_name != SQLITE:
        return extracted
    kind = func.json_type(document, _sqlite_path(location.path))
    return case(
        (kind == _TRUE, _TRUE),
        (kind == _FALSE, _FALSE),
        else_=extracted,
    )


def document_search(
    location: FieldLocation,
    pattern: BindParameter[str],
    *,
    negated: bool = False,
    dialect_name: str = SQLITE,
) -> Condition:
    """``LIKE`` against the string values of a whole JSON document, keys excluded."""

    document = record_table.c[location.kind.value]
    if dialect_name == SQLITE:
        nodes = func.json_tree(document).table_valued("type", "atom")
        found = (
            select(literal_column("1"))
            .select_from(nodes)
            .where(nodes.c.type == literal_column("'text'"), nodes.c.atom.like(pattern))
            .exists()
        )
        return not_(found) if negated else found
    located = func.json_search(document, literal_column("'one'"), pattern)
    return located.is_(None) if negated else located.is_not(None)


_CONDITIONS: Final[dict[Operator, Callable[[ColumnElement[str], Binds], Condition]]] = {
    Operator.EQ: lambda expr, binds: expr == binds[0],
    Operator.NE: lambda expr, binds: expr != binds[0],
    Operator.LIKE: lambda expr, binds: expr.like(binds[0]),
    Operator.NOT_LIKE: lambda expr, binds: expr.not_like(binds[0]),
    Operator.RLIKE: lambda expr, binds: expr.regexp_match(binds[0]),
    Operator.NOT_RLIKE: lambda expr, binds: not_(expr.regexp_match(binds[0])),
    Operator.IN: lambda expr, binds: expr.in_(list(binds)),
    Operator.NOT_IN: lambda expr, binds: expr.not_in(list(binds)),
    Operator.IS_NULL: lambda expr, _binds: expr.is_(None),
    Operator.IS_NOT_NULL: lambda expr, _binds: expr.is_not(None),
}


@dataclass(slots=True)
class CompiledFilter:
    """A ``WHERE`` condition (``None`` matches everything) and its bound values."""

    condition: Condition | None = None
    params: dict[str, str] = field(default_factory=dict[str, str])


def compile_where(where: WhereClauses, *, dialect_name: str = SQLITE) -> CompiledFilter:
    compiled = CompiledFilter()
    groups: list[Condition] = []
    for group in where.groups:
        condition: Condition | None = None
        for clause in group.clauses:
            fragment = _clause_condition(clause, compiled, dialect_name)
            if condition is None:
                condition = fragment
            elif clause.relativity is Relativity.OR:
                condition = or_(condition, fragment)
            else:
                condition = and_(condition, fragment)
        if condition is not None:
            groups.append(condition)
    if groups:
        compiled.condition = and_(*groups)
    return compiled


def _clause_condition(
    clause: WhereClause,
    compiled: CompiledFilter,
    dialect_name: str,
) -> Condition:
    binds: list[BindParameter[str]] = []
    for value in clause.values:
        name = f"p{len(compiled.params)}"
        compiled.params[name] = value
        binds.append(bindparam(name, value, type_=String))

    build = _CONDITIONS[clause.operator]
    fragments: list[Condition] = []
    for key in clause.keys:
        if key.is_document and clause.operator in {Operator.LIKE, Operator.NOT_LIKE}:
            fragments.append(
                document_search(
                    key,
                    binds[0],
                    negated=clause.operator is Operator.NOT_LIKE,
                    dialect_name=dialect_name,
                )
            )
        else:
            fragments.append(build(value_expression(key, dialect_name), binds))
    if len(fragments) == 1:
        return fragments[0]
    return or_(*fragments)
