"""
Document schemas consumed and produced by the rule engine.

    condition  -> gates scenes and choices
    scene      -> choices, probability blocks, effect bundles
    effects    -> declarative state mutations
    change     -> player-visible deltas (output)

All schemas are Pydantic BaseModel for validation and JSON serialization.
"""

from .condition import (
    AllOf,
    AnyOf,
    AtomicCondition,
    Condition,
    Range,
    SetConstraint,
    parse_condition,
)
from .effects import (
    EffectBundle,
    SpecialEffectId,
    VariableEffect,
    VariableOperator,
    parse_effects,
)
from .scene import (
    Chapter,
    Choice,
    Next,
    Probability,
    ProbabilityModifier,
    ProbabilityModifiers,
    Scene,
)
from .change import ChangeCategory, ChangeRecord, ChangeSet, ChangeType

__all__ = [
    # Conditions
    "AllOf",
    "AnyOf",
    "AtomicCondition",
    "Condition",
    "Range",
    "SetConstraint",
    "parse_condition",
    # Effects
    "EffectBundle",
    "SpecialEffectId",
    "VariableEffect",
    "VariableOperator",
    "parse_effects",
    # Scenes
    "Chapter",
    "Choice",
    "Next",
    "Probability",
    "ProbabilityModifier",
    "ProbabilityModifiers",
    "Scene",
    # Changes
    "ChangeCategory",
    "ChangeRecord",
    "ChangeSet",
    "ChangeType",
]
