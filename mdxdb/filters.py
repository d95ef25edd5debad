"""
Filter queries over documents.

A filter is a plain dict such as::

    {"metadata.version": {"$gte": 1}, "data": {"status": "draft"}}

``parse_filter`` turns it into a small expression tree which is then
evaluated against a document's dict view. Field keys may be dotted paths;
nested dicts without operator keys are flattened into dotted paths. Top
level keys are ANDed, and ``$and``/``$or``/``$not`` combine sub-filters.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from mdxdb.errors import InvalidFilterError
from mdxdb.models.document import Document


MISSING = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Eq:
    value: Any

    def test(self, actual: Any) -> bool:
        return actual is not MISSING and actual == self.value


@dataclass(frozen=True)
class Gt:
    value: Any

    def test(self, actual: Any) -> bool:
        return _is_number(actual) and _is_number(self.value) and actual > self.value


@dataclass(frozen=True)
class Gte:
    value: Any

    def test(self, actual: Any) -> bool:
        return _is_number(actual) and _is_number(self.value) and actual >= self.value


@dataclass(frozen=True)
class Lt:
    value: Any

    def test(self, actual: Any) -> bool:
        return _is_number(actual) and _is_number(self.value) and actual < self.value


@dataclass(frozen=True)
class Lte:
    value: Any

    def test(self, actual: Any) -> bool:
        return _is_number(actual) and _is_number(self.value) and actual <= self.value


@dataclass(frozen=True)
class In:
    value: Any

    def test(self, actual: Any) -> bool:
        return actual is not MISSING and isinstance(self.value, (list, tuple)) and actual in self.value


@dataclass(frozen=True)
class Nin:
    value: Any

    def test(self, actual: Any) -> bool:
        return (
            actual is not MISSING
            and isinstance(self.value, (list, tuple))
            and actual not in self.value
        )


OPERATORS = {
    "$eq": Eq,
    "$gt": Gt,
    "$gte": Gte,
    "$lt": Lt,
    "$lte": Lte,
    "$in": In,
    "$nin": Nin,
}

COMBINATORS = {"$and", "$or", "$not"}


def resolve_path(record: Mapping[str, Any], path: str) -> Any:
    """Look up a dotted path in nested dicts, returning MISSING if absent."""
    current: Any = record
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return MISSING
    return current


@dataclass(frozen=True)
class Field:
    path: str
    predicates: tuple

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        actual = resolve_path(record, self.path)
        return all(p.test(actual) for p in self.predicates)


@dataclass(frozen=True)
class And:
    clauses: tuple

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        return all(c.evaluate(record) for c in self.clauses)


@dataclass(frozen=True)
class Or:
    clauses: tuple

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        return any(c.evaluate(record) for c in self.clauses)


@dataclass(frozen=True)
class Not:
    clause: Any

    def evaluate(self, record: Mapping[str, Any]) -> bool:
        return not self.clause.evaluate(record)


def _sub_filters(key: str, value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, Mapping) for v in value):
        raise InvalidFilterError(f"{key} expects a list of filter objects")
    return list(value)


def _parse_field(path: str, value: Any) -> list[Field]:
    if not isinstance(value, Mapping) or not value:
        return [Field(path, (Eq(value),))]

    operator_keys = [k for k in value if k in OPERATORS]
    if len(operator_keys) == len(value):
        return [Field(path, tuple(OPERATORS[k](v) for k, v in value.items()))]
    if operator_keys:
        raise InvalidFilterError(
            f"Cannot mix operators and fields under {path!r}",
            details={"path": path, "operators": operator_keys},
        )

    fields: list[Field] = []
    for key, sub_value in value.items():
        fields.extend(_parse_field(f"{path}.{key}", sub_value))
    return fields


def parse_filter(query: Mapping[str, Any] | None):
    """Parse a filter dict into an expression tree."""
    if query is None:
        return And(())
    if not isinstance(query, Mapping):
        raise InvalidFilterError(f"Filter must be an object, got {type(query).__name__}")

    clauses: list = []
    for key, value in query.items():
        if key == "$and":
            clauses.append(And(tuple(parse_filter(q) for q in _sub_filters(key, value))))
        elif key == "$or":
            clauses.append(Or(tuple(parse_filter(q) for q in _sub_filters(key, value))))
        elif key == "$not":
            if not isinstance(value, Mapping):
                raise InvalidFilterError("$not expects a filter object")
            clauses.append(Not(parse_filter(value)))
        elif key in OPERATORS:
            raise InvalidFilterError(f"Operator {key} must be applied to a field")
        else:
            clauses.extend(_parse_field(key, value))
    return And(tuple(clauses))


def matches(query: Mapping[str, Any] | None, document: Document | Mapping[str, Any]) -> bool:
    """Check whether a document satisfies a filter."""
    record = document.to_record() if isinstance(document, Document) else document
    return parse_filter(query).evaluate(record)
