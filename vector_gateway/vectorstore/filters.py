"""Filter expressions for similarity search.

A filter is a tree of field predicates (equality, range, membership)
combined with AND / OR. Trees are built independently of queries and
are immutable once constructed:

    >>> expr = match("category", "tech") & between("year", gte=2020)
    >>> expr = any_of(match("lang", "en"), one_of("lang", ["de", "fr"]))

Every node can evaluate itself against a payload (used by the in-memory
index) and translate itself to a Qdrant filter.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from qdrant_client import models

from vector_gateway.exceptions import ValidationError

MatchScalar = bool | int | str


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _scalar_equal(actual: Any, expected: MatchScalar) -> bool:
    # Python treats True == 1; payload matching must not.
    if isinstance(actual, bool) or isinstance(expected, bool):
        return isinstance(actual, bool) and isinstance(expected, bool) and actual == expected
    return type(actual) is type(expected) and actual == expected


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValidationError("Filter key must be a non-empty string", details={"key": key})


class _FilterNode:
    """Operator support shared by all filter nodes."""

    def __and__(self, other: "FilterExpression") -> "AllOf":
        return AllOf((self, other))  # type: ignore[arg-type]

    def __or__(self, other: "FilterExpression") -> "AnyOf":
        return AnyOf((self, other))  # type: ignore[arg-type]


@dataclass(frozen=True)
class FieldMatch(_FilterNode):
    """Payload field equals ``value``."""

    key: str
    value: MatchScalar

    def __post_init__(self) -> None:
        _check_key(self.key)
        if not isinstance(self.value, (bool, int, str)):
            raise ValidationError(
                f"Match value for '{self.key}' must be a string, integer or bool",
                details={"key": self.key, "type": type(self.value).__name__},
            )

    def matches(self, payload: Mapping[str, Any]) -> bool:
        return self.key in payload and _scalar_equal(payload[self.key], self.value)

    def to_qdrant(self) -> models.FieldCondition:
        return models.FieldCondition(
            key=self.key,
            match=models.MatchValue(value=self.value),
        )


@dataclass(frozen=True)
class FieldRange(_FilterNode):
    """Numeric payload field within the given bounds."""

    key: str
    gt: float | None = None
    gte: float | None = None
    lt: float | None = None
    lte: float | None = None

    def __post_init__(self) -> None:
        _check_key(self.key)
        bounds = (self.gt, self.gte, self.lt, self.lte)
        if all(b is None for b in bounds):
            raise ValidationError(
                f"Range on '{self.key}' needs at least one bound",
                details={"key": self.key},
            )
        if not all(b is None or _is_number(b) for b in bounds):
            raise ValidationError(
                f"Range bounds on '{self.key}' must be numbers",
                details={"key": self.key},
            )

    def matches(self, payload: Mapping[str, Any]) -> bool:
        value = payload.get(self.key)
        if not _is_number(value):
            return False
        if self.gt is not None and not value > self.gt:
            return False
        if self.gte is not None and not value >= self.gte:
            return False
        if self.lt is not None and not value < self.lt:
            return False
        if self.lte is not None and not value <= self.lte:
            return False
        return True

    def to_qdrant(self) -> models.FieldCondition:
        return models.FieldCondition(
            key=self.key,
            range=models.Range(gt=self.gt, gte=self.gte, lt=self.lt, lte=self.lte),
        )


@dataclass(frozen=True)
class FieldIn(_FilterNode):
    """Payload field equals one of ``values``."""

    key: str
    values: tuple[int, ...] | tuple[str, ...]

    def __post_init__(self) -> None:
        _check_key(self.key)
        if not self.values:
            raise ValidationError(
                f"Membership filter on '{self.key}' needs at least one value",
                details={"key": self.key},
            )
        all_str = all(isinstance(v, str) for v in self.values)
        all_int = all(isinstance(v, int) and not isinstance(v, bool) for v in self.values)
        if not (all_str or all_int):
            raise ValidationError(
                f"Membership values on '{self.key}' must be all strings or all integers",
                details={"key": self.key},
            )

    def matches(self, payload: Mapping[str, Any]) -> bool:
        if self.key not in payload:
            return False
        actual = payload[self.key]
        return any(_scalar_equal(actual, v) for v in self.values)

    def to_qdrant(self) -> models.FieldCondition:
        return models.FieldCondition(
            key=self.key,
            match=models.MatchAny(any=list(self.values)),
        )


@dataclass(frozen=True)
class AllOf(_FilterNode):
    """Conjunction: every condition must hold."""

    conditions: tuple["FilterExpression", ...]

    def __post_init__(self) -> None:
        if not self.conditions:
            raise ValidationError("AllOf needs at least one condition")

    def matches(self, payload: Mapping[str, Any]) -> bool:
        return all(c.matches(payload) for c in self.conditions)

    def to_qdrant(self) -> models.Filter:
        return models.Filter(must=[c.to_qdrant() for c in self.conditions])


@dataclass(frozen=True)
class AnyOf(_FilterNode):
    """Disjunction: at least one condition must hold."""

    conditions: tuple["FilterExpression", ...]

    def __post_init__(self) -> None:
        if not self.conditions:
            raise ValidationError("AnyOf needs at least one condition")

    def matches(self, payload: Mapping[str, Any]) -> bool:
        return any(c.matches(payload) for c in self.conditions)

    def to_qdrant(self) -> models.Filter:
        return models.Filter(should=[c.to_qdrant() for c in self.conditions])


FilterExpression = Union[FieldMatch, FieldRange, FieldIn, AllOf, AnyOf]


def match(key: str, value: MatchScalar) -> FieldMatch:
    """Equality predicate."""
    return FieldMatch(key, value)


def between(
    key: str,
    *,
    gt: float | None = None,
    gte: float | None = None,
    lt: float | None = None,
    lte: float | None = None,
) -> FieldRange:
    """Range predicate; at least one bound is required."""
    return FieldRange(key, gt=gt, gte=gte, lt=lt, lte=lte)


def one_of(key: str, values: Iterable[int] | Iterable[str]) -> FieldIn:
    """Membership predicate."""
    return FieldIn(key, tuple(values))


def all_of(*conditions: FilterExpression) -> AllOf:
    """AND of the given conditions."""
    return AllOf(tuple(conditions))


def any_of(*conditions: FilterExpression) -> AnyOf:
    """OR of the given conditions."""
    return AnyOf(tuple(conditions))


def to_qdrant_filter(expression: FilterExpression | None) -> models.Filter | None:
    """Translate a filter tree into a top-level Qdrant filter."""
    if expression is None:
        return None
    translated = expression.to_qdrant()
    if isinstance(translated, models.Filter):
        return translated
    return models.Filter(must=[translated])
