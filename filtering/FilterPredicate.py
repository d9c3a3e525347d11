# -----------------------------------------------------------------------------
# Author: Frank Campbell Bogle
# Created: 2026-02-05
# Description: FilterPredicate
# -----------------------------------------------------------------------------
"""
Filter predicate tree.

Build it directly:

    And(Equals("category", "AI"), Compare("year", ">=", 2020))

or with the builder:

    (where("category") == "AI") & (where("year") >= 2020)

Predicates reference *property* names; FilterCompiler resolves them to
storage names against a SchemaDescriptor.
"""
from dataclasses import dataclass
from typing import Any, Tuple, Union

COMPARE_OPERATORS = ("<", "<=", ">", ">=")


class _Combinable:
    def __and__(self, other: "FilterPredicate") -> "And":
        return And(self, other)

    def __or__(self, other: "FilterPredicate") -> "Or":
        return Or(self, other)

    def __invert__(self) -> "Not":
        return Not(self)


@dataclass(frozen=True)
class Equals(_Combinable):
    """`field = value`; a value of None matches null or missing."""
    field: str
    value: Any


@dataclass(frozen=True)
class Compare(_Combinable):
    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in COMPARE_OPERATORS:
            raise ValueError(f"Unsupported comparison operator {self.op!r}")


@dataclass(frozen=True)
class In(_Combinable):
    field: str
    values: Tuple[Any, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(self.values))


@dataclass(frozen=True)
class And(_Combinable):
    left: "FilterPredicate"
    right: "FilterPredicate"


@dataclass(frozen=True)
class Or(_Combinable):
    left: "FilterPredicate"
    right: "FilterPredicate"


@dataclass(frozen=True)
class Not(_Combinable):
    operand: "FilterPredicate"


FilterPredicate = Union[Equals, Compare, In, And, Or, Not]


class FieldRef:
    """Left-hand side of a builder expression; comparison operators produce predicates."""

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, field: str) -> None:
        self.field = field

    def __eq__(self, value: Any) -> Equals:  # type: ignore[override]
        return Equals(self.field, value)

    def __ne__(self, value: Any) -> Not:  # type: ignore[override]
        return Not(Equals(self.field, value))

    def __lt__(self, value: Any) -> Compare:
        return Compare(self.field, "<", value)

    def __le__(self, value: Any) -> Compare:
        return Compare(self.field, "<=", value)

    def __gt__(self, value: Any) -> Compare:
        return Compare(self.field, ">", value)

    def __ge__(self, value: Any) -> Compare:
        return Compare(self.field, ">=", value)

    def is_in(self, *values: Any) -> In:
        if len(values) == 1 and isinstance(values[0], (list, tuple, set, frozenset)):
            values = tuple(values[0])
        return In(self.field, values)

    def __repr__(self) -> str:
        return f"where({self.field!r})"


def where(field: str) -> FieldRef:
    return FieldRef(field)


def all_of(*predicates: FilterPredicate) -> FilterPredicate:
    """Left-fold predicates with AND."""
    if not predicates:
        raise ValueError("all_of() needs at least one predicate")
    result = predicates[0]
    for p in predicates[1:]:
        result = And(result, p)
    return result


def depth(predicate: FilterPredicate) -> int:
    """Combinator nesting depth (leaves are 0)."""
    if isinstance(predicate, (And, Or)):
        return 1 + max(depth(predicate.left), depth(predicate.right))
    if isinstance(predicate, Not):
        return 1 + depth(predicate.operand)
    return 0
