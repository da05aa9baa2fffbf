"""
Success probability for risky choices.

A probability block has a base rate plus per-category modifier tables.
Each entry contributes ``per_unit * magnitude``, where the magnitude is
the stat value, buff/flag presence (1 or 0), held item quantity, variable
value or skill level. An entry's ``max`` caps its own contribution.

Resolution is pure and deterministic; only ``roll`` and ``process`` use
randomness, through an injectable ``random.Random``.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from pydantic import ValidationError

from ..errors import DocumentError
from ..state.catalog import Catalog
from ..state.schema import STAT_KEYS, GameState
from ..state.schemas.scene import Next, Probability, ProbabilityModifier, ProbabilityModifiers

logger = logging.getLogger(__name__)


# ─── Configuration ───────────────────────────────────────────

# Upper percentage bound -> description
DESCRIPTION_BANDS: list[tuple[int, str]] = [
    (10, "very low"),
    (25, "low"),
    (40, "below average"),
    (60, "average"),
    (75, "above average"),
    (90, "high"),
]
TOP_BAND = "very high"


@dataclass
class ProbabilityDisplay:
    """Presentation metadata for a probability block."""
    percentage: int
    stat_icons: list[str] = field(default_factory=list)        # stat keys
    other_modifiers: list[str] = field(default_factory=list)   # display names

    def model_dump(self) -> dict:
        return {
            "percentage": self.percentage,
            "stat_icons": list(self.stat_icons),
            "other_modifiers": list(self.other_modifiers),
        }


def clamp_unit(value: float, upper: float = 1.0) -> float:
    return max(0.0, min(upper, value))


def contribution(modifier: ProbabilityModifier, magnitude: float) -> float:
    bonus = magnitude * modifier.per_unit
    # A zero or missing cap means uncapped
    if modifier.max:
        bonus = min(bonus, modifier.max)
    return bonus


class ProbabilityCalculator:
    """Resolves probability blocks against snapshots."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def _magnitudes(
        self, modifiers: ProbabilityModifiers, state: GameState
    ) -> Iterator[tuple[str, str, ProbabilityModifier, float]]:
        """Yield (category, id, modifier, magnitude) for every recognised entry."""
        tables: list[tuple[str, dict, Callable[[str], bool], Callable[[str], float]]] = [
            ("stats", modifiers.stats, lambda k: k in STAT_KEYS, state.stat),
            ("buffs", modifiers.buffs, self.catalog.is_buff, lambda k: 1 if state.has_buff(k) else 0),
            ("flags", modifiers.flags, self.catalog.is_flag, lambda k: 1 if state.has_flag(k) else 0),
            ("items", modifiers.items, self.catalog.is_item, state.item_quantity),
            ("variables", modifiers.variables, self.catalog.is_variable, state.variable),
            ("skills", modifiers.skills, self.catalog.is_skill, state.level),
        ]
        for category, table, is_known, magnitude in tables:
            for key, modifier in table.items():
                if not is_known(key):
                    logger.debug(f"Ignoring unknown {category} modifier: {key}")
                    continue
                yield category, key, modifier, magnitude(key)

    def calculate(
        self, base_rate: float, modifiers: ProbabilityModifiers | None, state: GameState
    ) -> float:
        """Base rate plus every modifier contribution, clamped to [0, 1]."""
        rate = base_rate
        if modifiers is not None:
            for _, _, modifier, magnitude in self._magnitudes(modifiers, state):
                rate += contribution(modifier, magnitude)
        return clamp_unit(rate)

    def resolve(
        self,
        base_rate: float,
        modifiers: ProbabilityModifiers | None,
        state: GameState,
        max_rate: float | None = None,
    ) -> float:
        """
        Resolve a success probability.

        Returns:
            Probability in [0, max_rate] when max_rate is given, else [0, 1]
        """
        rate = self.calculate(base_rate, modifiers, state)
        if max_rate is not None:
            return clamp_unit(rate, max_rate)
        return rate

    def resolve_block(self, block: Probability | dict, state: GameState) -> float:
        block = _as_probability(block)
        return self.resolve(block.base_rate, block.modifier, state, block.max_rate)

    def process(self, block: Probability | dict, state: GameState, rng: random.Random | None = None) -> Next:
        """Roll a probability block and return the outcome's target."""
        block = _as_probability(block)
        if roll(self.resolve_block(block, state), rng):
            return block.success_next
        return block.failure_next

    def display_info(self, block: Probability | dict, state: GameState) -> ProbabilityDisplay:
        """
        Percentage plus which modifiers are currently active.

        Stats with a positive value become icons. Present buffs and flags,
        held items, positive variables and learned skills become text.
        """
        block = _as_probability(block)
        display = ProbabilityDisplay(percentage=to_percentage(self.resolve_block(block, state)))
        if block.modifier is None:
            return display

        mods = block.modifier
        for key in mods.stats:
            if key in STAT_KEYS and state.stat(key) > 0:
                display.stat_icons.append(key)
        for key in mods.buffs:
            if state.has_buff(key):
                buff = self.catalog.buff(key)
                display.other_modifiers.append(buff.display_name if buff else key)
        for key in mods.flags:
            if state.has_flag(key):
                flag = self.catalog.flag(key)
                display.other_modifiers.append(flag.display_name if flag else key)
        for key in mods.items:
            if state.item_quantity(key) > 0:
                item = self.catalog.item(key)
                display.other_modifiers.append(item.name if item else key)
        for key in mods.variables:
            if state.variable(key) > 0:
                display.other_modifiers.append(key)
        for key in mods.skills:
            level = state.level(key)
            if level > 0:
                skill = self.catalog.skill(key)
                display.other_modifiers.append(skill.rank_name(level) if skill else f"Lv.{level}")
        return display


def _as_probability(block: Any) -> Probability:
    if isinstance(block, Probability):
        return block
    try:
        return Probability.model_validate(block)
    except ValidationError as e:
        raise DocumentError("probability", str(e)) from e


# ─── Helpers ─────────────────────────────────────────────────

def roll(probability: float, rng: random.Random | None = None) -> bool:
    """True with the given probability."""
    return (rng or random).random() < probability


def to_percentage(probability: float) -> int:
    """Nearest whole percent, halves rounded up."""
    return math.floor(probability * 100 + 0.5)


def from_percentage(percentage: float) -> float:
    return clamp_unit(percentage / 100)


def describe(probability: float) -> str:
    percentage = to_percentage(probability)
    for upper, label in DESCRIPTION_BANDS:
        if percentage <= upper:
            return label
    return TOP_BAND
