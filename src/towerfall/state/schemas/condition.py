"""
Condition expression documents.

A condition is a tree. Inner nodes are ``{"$and": [...]}`` or
``{"$or": [...]}`` (``AND``/``OR`` are accepted too); leaves are atomic
predicates mapping a category to a constraint:

    {"$and": [
        {"health": {"min": 1}},
        {"$or": [{"strength": {"min": 5}}, {"flags": {"in": ["has_key"]}}]}
    ]}

There is no NOT node. Negation is written with ``not_in`` or a range.
"""

from __future__ import annotations

from typing import Annotated, Any, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    ValidationError,
    model_validator,
)

from ...errors import DocumentError


class Range(BaseModel):
    """Inclusive bounds; a missing bound is open, but one must be given."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    min: float | None = None
    max: float | None = None

    @model_validator(mode="after")
    def _has_bound(self) -> Range:
        if self.min is None and self.max is None:
            raise ValueError("range needs min or max")
        return self

    def contains(self, value: float) -> bool:
        if self.min is not None and value < self.min:
            return False
        if self.max is not None and value > self.max:
            return False
        return True


# A literal means exact equality
NumericConstraint = Union[int, float, Range]


class SetConstraint(BaseModel):
    """Membership constraint over buffs, flags or completed scenes."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    in_: list[str] = Field(default_factory=list, alias="in")
    not_in: list[str] = Field(default_factory=list)


class AtomicCondition(BaseModel):
    """
    Leaf predicate. Every category present must hold (implicit AND).

    ``buffs``/``flags`` also accept the legacy array form so it can be
    recognised and rejected at evaluation time.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    # Stats
    strength: NumericConstraint | None = None
    agility: NumericConstraint | None = None
    wisdom: NumericConstraint | None = None
    charisma: NumericConstraint | None = None

    # Resources
    health: NumericConstraint | None = None
    mind: NumericConstraint | None = None
    gold: NumericConstraint | None = None

    buffs: SetConstraint | list[str] | None = None
    flags: SetConstraint | list[str] | None = None
    items: dict[str, NumericConstraint] = Field(default_factory=dict)
    variables: dict[str, NumericConstraint] = Field(default_factory=dict)
    skills: dict[str, NumericConstraint] = Field(default_factory=dict)
    can_level_up: str | None = None

    # Progress
    current_floor: NumericConstraint | None = None
    death_count: NumericConstraint | None = None
    death_count_by_floor: dict[int, NumericConstraint] = Field(default_factory=dict)
    current_floor_death_count: NumericConstraint | None = None
    completed_scenes: SetConstraint | None = None
    scene_count: NumericConstraint | None = None


class AllOf(BaseModel):
    """True iff every child holds. Empty is true."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    conditions: list[Condition] = Field(
        default_factory=list, validation_alias=AliasChoices("$and", "AND", "conditions")
    )


class AnyOf(BaseModel):
    """True iff some child holds. Empty is false."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    conditions: list[Condition] = Field(
        default_factory=list, validation_alias=AliasChoices("$or", "OR", "conditions")
    )


AND_KEYS = ("$and", "AND")
OR_KEYS = ("$or", "OR")


def _condition_kind(value: Any) -> str:
    if isinstance(value, dict):
        if any(key in value for key in AND_KEYS):
            return "all"
        if any(key in value for key in OR_KEYS):
            return "any"
        return "atomic"
    if isinstance(value, AllOf):
        return "all"
    if isinstance(value, AnyOf):
        return "any"
    return "atomic"


Condition = Annotated[
    Union[
        Annotated[AllOf, Tag("all")],
        Annotated[AnyOf, Tag("any")],
        Annotated[AtomicCondition, Tag("atomic")],
    ],
    Discriminator(_condition_kind),
]

AllOf.model_rebuild()
AnyOf.model_rebuild()

_condition_adapter: TypeAdapter = TypeAdapter(Condition)


def parse_condition(raw: Any) -> AllOf | AnyOf | AtomicCondition:
    """
    Parse a raw condition document.

    Raises:
        DocumentError: If the document does not have a condition shape.
    """
    if isinstance(raw, (AllOf, AnyOf, AtomicCondition)):
        return raw
    try:
        return _condition_adapter.validate_python(raw)
    except ValidationError as e:
        raise DocumentError("condition", str(e)) from e
