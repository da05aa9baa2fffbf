"""
Scene, choice and probability documents.

Chapters and scenes are stored and selected by the surrounding game;
the engine only reads the conditions, probability blocks and effect
bundles they carry.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .condition import Condition
from .effects import EffectBundle


class Next(BaseModel):
    """Navigation target. No ids means a random scene in the current chapter."""
    model_config = ConfigDict(frozen=True)

    chapter_id: str | None = None
    scene_id: str | None = None


class ProbabilityModifier(BaseModel):
    model_config = ConfigDict(frozen=True)

    per_unit: float = 0.0
    max: float | None = None  # cap on this entry's contribution


class ProbabilityModifiers(BaseModel):
    """Per-category modifier tables, keyed by stat/buff/flag/item/variable/skill id."""
    model_config = ConfigDict(frozen=True)

    stats: dict[str, ProbabilityModifier] = Field(default_factory=dict)
    buffs: dict[str, ProbabilityModifier] = Field(default_factory=dict)
    flags: dict[str, ProbabilityModifier] = Field(default_factory=dict)
    items: dict[str, ProbabilityModifier] = Field(default_factory=dict)
    variables: dict[str, ProbabilityModifier] = Field(default_factory=dict)
    skills: dict[str, ProbabilityModifier] = Field(default_factory=dict)


class Probability(BaseModel):
    """Risky-choice block: success odds plus both outcomes."""
    model_config = ConfigDict(frozen=True)

    base_rate: float
    max_rate: float | None = None
    modifier: ProbabilityModifiers | None = None
    success_next: Next = Field(default_factory=Next)
    failure_next: Next = Field(default_factory=Next)


class Choice(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    text: str
    condition: Condition | None = None
    visible_if_failed_condition: bool | None = None
    probability: Probability | None = None
    next: Next | None = None


class Scene(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    text: str = ""
    type: Literal["main", "side", "event"] | None = None
    condition: Condition | None = None
    choices: list[Choice] = Field(default_factory=list)
    effects: EffectBundle | None = None
    initial_effects: EffectBundle | None = None  # first visit only
    random_selectable: bool = False
    repeatable: bool = False


class Chapter(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    name: str = ""
    type: Literal["rest", "story"] = "story"
    floor: int = 1
    next_chapter_id: str | None = None
    scenes: list[Scene] = Field(default_factory=list)
