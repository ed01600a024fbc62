"""Tests for filter expressions."""

import pytest
from qdrant_client import models

from vector_gateway.exceptions import ValidationError
from vector_gateway.vectorstore.filters import (
    AllOf,
    AnyOf,
    FieldMatch,
    all_of,
    any_of,
    between,
    match,
    one_of,
    to_qdrant_filter,
)


class TestFieldMatch:
    """Tests for equality predicates."""

    def test_matches_equal_value(self) -> None:
        """Equal values match."""
        assert match("category", "tech").matches({"category": "tech"})

    def test_missing_key_does_not_match(self) -> None:
        """Absent fields never match."""
        assert not match("category", "tech").matches({})

    def test_bool_and_int_are_distinct(self) -> None:
        """True does not match 1 and vice versa."""
        assert not match("flag", True).matches({"flag": 1})
        assert not match("flag", 1).matches({"flag": True})
        assert match("flag", True).matches({"flag": True})

    def test_rejects_float_value(self) -> None:
        """Float equality is not supported."""
        with pytest.raises(ValidationError):
            match("score", 1.5)  # type: ignore[arg-type]

    def test_rejects_empty_key(self) -> None:
        """Keys must be non-empty."""
        with pytest.raises(ValidationError):
            FieldMatch("", "x")

    def test_is_immutable(self) -> None:
        """Filter nodes cannot be mutated after construction."""
        expr = match("category", "tech")
        with pytest.raises(AttributeError):
            expr.value = "news"  # type: ignore[misc]


class TestFieldRange:
    """Tests for range predicates."""

    def test_inclusive_and_exclusive_bounds(self) -> None:
        """gte/lt bounds behave as documented."""
        expr = between("year", gte=2020, lt=2024)
        assert expr.matches({"year": 2020})
        assert expr.matches({"year": 2023.5})
        assert not expr.matches({"year": 2024})
        assert not expr.matches({"year": 2019})

    def test_non_numeric_value_does_not_match(self) -> None:
        """Strings and bools are never in range."""
        expr = between("year", gt=0)
        assert not expr.matches({"year": "2021"})
        assert not expr.matches({"year": True})

    def test_requires_a_bound(self) -> None:
        """A range without bounds is rejected."""
        with pytest.raises(ValidationError):
            between("year")


class TestFieldIn:
    """Tests for membership predicates."""

    def test_matches_any_value(self) -> None:
        """Any listed value matches."""
        expr = one_of("lang", ["de", "fr"])
        assert expr.matches({"lang": "fr"})
        assert not expr.matches({"lang": "en"})

    def test_rejects_empty_values(self) -> None:
        """At least one value is required."""
        with pytest.raises(ValidationError):
            one_of("lang", [])

    def test_rejects_mixed_types(self) -> None:
        """Values must be homogeneous."""
        with pytest.raises(ValidationError):
            one_of("lang", ["de", 1])  # type: ignore[list-item]


class TestComposition:
    """Tests for AND / OR composition."""

    def test_operators_build_nodes(self) -> None:
        """& and | produce AllOf and AnyOf."""
        a = match("category", "tech")
        b = between("year", gte=2020)
        assert isinstance(a & b, AllOf)
        assert isinstance(a | b, AnyOf)

    def test_all_of_requires_every_condition(self) -> None:
        """Conjunction matches only when all hold."""
        expr = all_of(match("category", "tech"), between("year", gte=2020))
        assert expr.matches({"category": "tech", "year": 2021})
        assert not expr.matches({"category": "tech", "year": 2019})

    def test_any_of_requires_one_condition(self) -> None:
        """Disjunction matches when any holds."""
        expr = any_of(match("lang", "en"), one_of("lang", ["de", "fr"]))
        assert expr.matches({"lang": "de"})
        assert not expr.matches({"lang": "es"})

    def test_empty_composition_rejected(self) -> None:
        """Empty AND/OR nodes are rejected."""
        with pytest.raises(ValidationError):
            all_of()
        with pytest.raises(ValidationError):
            any_of()


class TestQdrantTranslation:
    """Tests for translation into Qdrant filters."""

    def test_none_translates_to_none(self) -> None:
        """No filter stays None."""
        assert to_qdrant_filter(None) is None

    def test_bare_condition_wrapped_in_must(self) -> None:
        """A single predicate becomes Filter(must=[...])."""
        result = to_qdrant_filter(match("category", "tech"))

        assert isinstance(result, models.Filter)
        assert result.must == [
            models.FieldCondition(key="category", match=models.MatchValue(value="tech"))
        ]

    def test_nested_tree(self) -> None:
        """AND of OR keeps its structure."""
        expr = match("category", "tech") & (
            match("lang", "en") | one_of("lang", ["de"])
        )

        result = to_qdrant_filter(expr)

        assert isinstance(result, models.Filter)
        assert len(result.must) == 2
        nested = result.must[1]
        assert isinstance(nested, models.Filter)
        assert len(nested.should) == 2

    def test_range_translation(self) -> None:
        """Range bounds are carried over."""
        condition = between("year", gte=2020, lt=2024).to_qdrant()
        assert condition.range == models.Range(gte=2020, lt=2024)
