"""
Filter tree and filter builder for the deterministic query path.

A Filter is an immutable predicate over EmployeeRef records. The same tree
can be evaluated in memory (matches) against the authorized snapshot, or
compiled to a SQLAlchemy clause (to_clause) for a scoped store query.

Record fields use the API names: id, name, position, department, salary,
createdBy.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import and_, or_, true

from hrchat.core.intents import Requester
from hrchat.parsing.patterns import Signals, match_signals

TEXT_FIELDS = ("name", "department", "position")

_COMPARATORS = {
    "gt": operator.gt,
    "lt": operator.lt,
    "gte": operator.ge,
    "lte": operator.le,
}


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class Filter:
    """Base predicate node."""

    def matches(self, record: Mapping[str, Any]) -> bool:
        raise NotImplementedError

    def to_clause(self, columns: Mapping[str, Any]):
        raise NotImplementedError


@dataclass(frozen=True)
class MatchAll(Filter):
    """Unscoped, unfiltered (admin snapshot)."""

    def matches(self, record: Mapping[str, Any]) -> bool:
        return True

    def to_clause(self, columns: Mapping[str, Any]):
        return true()


@dataclass(frozen=True)
class Equals(Filter):
    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) == self.value

    def to_clause(self, columns: Mapping[str, Any]):
        return columns[self.field] == self.value


@dataclass(frozen=True)
class Compare(Filter):
    """Strict or inclusive numeric comparison: op is gt, lt, gte or lte."""
    field: str
    op: str
    value: float

    def matches(self, record: Mapping[str, Any]) -> bool:
        actual = _number(record.get(self.field))
        return actual is not None and _COMPARATORS[self.op](actual, self.value)

    def to_clause(self, columns: Mapping[str, Any]):
        return _COMPARATORS[self.op](columns[self.field], self.value)


@dataclass(frozen=True)
class Range(Filter):
    """Inclusive numeric range, low <= value <= high."""
    field: str
    low: float
    high: float

    def matches(self, record: Mapping[str, Any]) -> bool:
        actual = _number(record.get(self.field))
        return actual is not None and self.low <= actual <= self.high

    def to_clause(self, columns: Mapping[str, Any]):
        return columns[self.field].between(self.low, self.high)


@dataclass(frozen=True)
class Contains(Filter):
    """Case-insensitive literal substring match (no pattern metacharacters)."""
    field: str
    text: str

    def matches(self, record: Mapping[str, Any]) -> bool:
        actual = record.get(self.field)
        if actual is None:
            return False
        return self.text.lower() in str(actual).lower()

    def to_clause(self, columns: Mapping[str, Any]):
        # autoescape keeps user-supplied % and _ literal
        return columns[self.field].icontains(self.text, autoescape=True)


@dataclass(frozen=True)
class AllOf(Filter):
    clauses: Tuple[Filter, ...]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(c.matches(record) for c in self.clauses)

    def to_clause(self, columns: Mapping[str, Any]):
        return and_(*(c.to_clause(columns) for c in self.clauses))


@dataclass(frozen=True)
class AnyOf(Filter):
    clauses: Tuple[Filter, ...]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return any(c.matches(record) for c in self.clauses)

    def to_clause(self, columns: Mapping[str, Any]):
        return or_(*(c.to_clause(columns) for c in self.clauses))


def all_of(*filters: Filter) -> Filter:
    """AND-combine, dropping MatchAll and collapsing single clauses."""
    parts = tuple(f for f in filters if not isinstance(f, MatchAll))
    if not parts:
        return MatchAll()
    if len(parts) == 1:
        return parts[0]
    return AllOf(parts)


def any_of(*filters: Filter) -> Filter:
    if len(filters) == 1:
        return filters[0]
    return AnyOf(tuple(filters))


#  Filter builder

def scope_filter(requester: Requester) -> Filter:
    """Ownership predicate: non-admins only ever see what they created."""
    if requester.is_admin:
        return MatchAll()
    return Equals("createdBy", requester.username)


def broad_filter(signals: Signals) -> Filter:
    """Per-token OR across the text fields, AND across tokens."""
    if signals.broad_terms:
        return all_of(*(
            any_of(*(Contains(f, term) for f in TEXT_FIELDS))
            for term in signals.broad_terms
        ))
    return any_of(*(Contains(f, signals.broad_text or "") for f in TEXT_FIELDS))


def build_filter(signals: Signals, requester: Requester) -> Filter:
    """
    Combine the role scope with the extracted signals.

    The scope clause is always the first AND operand for non-admins,
    including when the broad-search fallback is used.
    """
    parts: List[Filter] = [scope_filter(requester)]

    for field_name in ("department", "name", "position"):
        value = signals.attributes.get(field_name)
        if value:
            parts.append(Contains(field_name, value))

    if signals.salary_range is not None:
        low, high = signals.salary_range
        parts.append(Range("salary", low, high))
    else:
        for op, amount in signals.comparisons:
            parts.append(Compare("salary", op, amount))

    if not signals.narrowed:
        parts.append(broad_filter(signals))

    return all_of(*parts)


#  Query plans

# (field, descending)
SortSpec = Tuple[Tuple[str, bool], ...]


@dataclass(frozen=True)
class QueryPlan:
    filter: Filter
    sort: SortSpec = ()
    limit: Optional[int] = None
    superlative: Optional[str] = None


def plan_query(text: str, requester: Requester) -> QueryPlan:
    """Turn raw query text into a filter plus ordering/limit."""
    signals = match_signals((text or "").strip().lower())
    predicate = build_filter(signals, requester)
    if signals.superlative:
        descending = signals.superlative == "highest"
        # id breaks salary ties so equal salaries give a stable answer
        return QueryPlan(
            filter=predicate,
            sort=(("salary", descending), ("id", False)),
            limit=1,
            superlative=signals.superlative,
        )
    return QueryPlan(filter=predicate)


def _id_key(value: Any) -> Tuple[int, Any]:
    text = str(value)
    return (0, int(text)) if text.isdigit() else (1, text)


def _sort_key(field_name: str, descending: bool):
    if field_name == "id":
        return lambda r: _id_key(r.get("id"))

    def key(record: Mapping[str, Any]):
        value = _number(record.get(field_name))
        # Missing values sort last in either direction
        missing = value is None
        return (not missing, value or 0.0) if descending else (missing, value or 0.0)
    return key


def apply_plan(plan: QueryPlan, records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Evaluate a plan against in-memory records (the authorized snapshot)."""
    rows = [r for r in records if plan.filter.matches(r)]
    # Stable sorts applied last key first
    for field_name, descending in reversed(plan.sort):
        rows.sort(key=_sort_key(field_name, descending), reverse=descending)
    if plan.limit is not None:
        rows = rows[:plan.limit]
    return rows
