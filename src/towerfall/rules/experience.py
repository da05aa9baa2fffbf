"""
Experience and leveling as pure functions over GameState.

Every experience type (each stat, the overall "level", each catalog skill)
owns an experience/level pair in the snapshot. Automatic types convert
experience into levels as soon as it accrues, chaining through several
thresholds in one call. Manual types wait for an explicit request and then
advance exactly one level.

Levels never go down. Experience may go negative as a penalty.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping

from ..state.catalog import Catalog, SkillData
from ..state.schema import (
    LEVEL_KEY,
    STAT_CONFIG,
    STAT_KEYS,
    STAT_LEVEL_CAP,
    STAT_MAX,
    GameState,
    Resource,
    resource_max,
)

logger = logging.getLogger(__name__)

UNREACHABLE = math.inf

ExpCurve = Callable[[int], float]
LevelUpHook = Callable[[GameState, int, str], GameState]


@dataclass(frozen=True)
class ExperienceType:
    """Static configuration for one experience type."""
    id: str
    display_name: str
    auto_level_up: bool
    exp_to_level: ExpCurve          # current level -> experience needed for the next
    max_level: int | None = None
    on_level_up: LevelUpHook | None = None
    category: str = "skill"         # stat | level | skill

    def required(self, level: int) -> float:
        return self.exp_to_level(level)


# ─── Default type table ─────────────────────────────────────

def stat_curve(level: int) -> float:
    return max(10, min(100, level * 10))


def level_curve(level: int) -> float:
    return 200 + level * 100


def restore_on_level_up(state: GameState, new_level: int, type_id: str) -> GameState:
    """Overall level-up restores one health and one mind."""
    resources = dict(state.resources)
    for key in (Resource.HEALTH.value, Resource.MIND.value):
        resources[key] = min(resource_max(key), resources.get(key, 0) + 1)
    return state.model_copy(update={"resources": resources})


def skill_curve(skill: SkillData) -> ExpCurve:
    """Curve read off a skill's rank table. Past the last rank is unreachable."""
    max_level = len(skill.ranks)

    def curve(level: int) -> float:
        if level < 0 or level >= max_level:
            return UNREACHABLE
        exp = skill.ranks[level].exp
        if exp <= 0:
            return UNREACHABLE
        return exp

    return curve


def default_experience_types(catalog: Catalog | None = None) -> dict[str, ExperienceType]:
    types: dict[str, ExperienceType] = {}
    for key in STAT_KEYS:
        types[key] = ExperienceType(
            id=key,
            display_name=STAT_CONFIG[key]["display_name"],
            auto_level_up=False,
            exp_to_level=stat_curve,
            max_level=STAT_LEVEL_CAP,
            category="stat",
        )
    types[LEVEL_KEY] = ExperienceType(
        id=LEVEL_KEY,
        display_name="Level",
        auto_level_up=True,
        exp_to_level=level_curve,
        on_level_up=restore_on_level_up,
        category="level",
    )
    if catalog is not None:
        for skill_id, skill in catalog.skills.items():
            types[skill_id] = ExperienceType(
                id=skill_id,
                display_name=skill.label,
                auto_level_up=True,
                exp_to_level=skill_curve(skill),
                max_level=len(skill.ranks),
                category="skill",
            )
    return types


# ─── Engine ─────────────────────────────────────────────────

class ExperienceEngine:
    """
    Stateless leveling rules over an injected type table.

    Every method takes a snapshot and returns a new one; inputs are never
    modified. Pass ``silent=True`` to suppress logging when replaying
    the rules for a preview.
    """

    def __init__(self, catalog: Catalog | None = None, types: Mapping[str, ExperienceType] | None = None):
        self.catalog = catalog
        self.types: dict[str, ExperienceType] = (
            dict(types) if types is not None else default_experience_types(catalog)
        )

    # --- lookups ---

    def get_type(self, type_id: str) -> ExperienceType | None:
        return self.types.get(type_id)

    def is_valid_type(self, type_id: str) -> bool:
        return type_id in self.types

    @property
    def auto_types(self) -> list[str]:
        return [t.id for t in self.types.values() if t.auto_level_up]

    @property
    def manual_types(self) -> list[str]:
        return [t.id for t in self.types.values() if not t.auto_level_up]

    def types_in_category(self, category: str) -> list[str]:
        return [t.id for t in self.types.values() if t.category == category]

    def exp_to_level(self, type_id: str, level: int = 0) -> float:
        config = self.types.get(type_id)
        if config is None:
            logger.warning(f"Unknown experience type: {type_id}")
            return UNREACHABLE
        return config.required(level)

    # --- single step ---

    def can_level_up(self, type_id: str, state: GameState) -> bool:
        config = self.types.get(type_id)
        if config is None:
            logger.warning(f"Unknown experience type: {type_id}")
            return False

        level = state.level(type_id)
        if config.max_level is not None and level >= config.max_level:
            return False
        return state.exp(type_id) >= config.required(level)

    def process_level_up(self, type_id: str, state: GameState, *, silent: bool = False) -> GameState:
        """
        Advance one level, spending the experience it costs.

        Leftover experience rolls toward the next level. A stat-backed type
        also raises the stat itself, capped at STAT_MAX. Returns the input
        snapshot unchanged if the level-up is not allowed.
        """
        if not self.can_level_up(type_id, state):
            if not silent:
                logger.warning(f"Level-up requirements not met: {type_id}")
            return state

        config = self.types[type_id]
        level = state.level(type_id)
        required = config.required(level)
        new_level = level + 1

        levels = dict(state.levels)
        experience = dict(state.experience)
        levels[type_id] = new_level
        experience[type_id] = int(state.exp(type_id) - required)
        update: dict = {"levels": levels, "experience": experience}

        if type_id in STAT_CONFIG:
            stats = dict(state.stats)
            stats[type_id] = min(STAT_MAX, stats.get(type_id, 0) + 1)
            update["stats"] = stats

        new_state = state.model_copy(update=update)
        if config.on_level_up is not None:
            new_state = config.on_level_up(new_state, new_level, type_id)

        if not silent:
            logger.debug(f"{config.display_name} level up: Lv.{level} -> Lv.{new_level}")
        return new_state

    # --- batch ---

    def apply_experience(
        self, deltas: Mapping[str, int], state: GameState, *, silent: bool = False
    ) -> GameState:
        """
        Apply signed experience deltas, then resolve automatic level-ups.

        Additions are applied before subtractions so that a bundle adding
        and removing the same type nets the same way in any key order.
        Automatic level-ups run only when at least one addition happened.

        Args:
            deltas: Experience type id -> signed amount
            state: Snapshot to start from

        Returns:
            New snapshot with updated experience and levels
        """
        additions = [(t, amount) for t, amount in deltas.items() if amount > 0]
        subtractions = [(t, -amount) for t, amount in deltas.items() if amount < 0]

        experience = dict(state.experience)
        for type_id, amount in additions:
            if type_id not in self.types:
                if not silent:
                    logger.warning(f"Unknown experience type: {type_id}")
                continue
            experience[type_id] = experience.get(type_id, 0) + amount

        for type_id, amount in subtractions:
            if type_id not in self.types:
                if not silent:
                    logger.warning(f"Unknown experience type: {type_id}")
                continue
            experience[type_id] = experience.get(type_id, 0) - amount
            if experience[type_id] < 0 and not silent:
                logger.warning(
                    f"{self.types[type_id].display_name} experience went negative: "
                    f"{experience[type_id]} (level kept)"
                )

        new_state = state.model_copy(update={"experience": experience})
        if additions:
            new_state = self.check_and_process_level_ups(new_state, silent=silent)
        return new_state

    def check_and_process_level_ups(
        self,
        state: GameState,
        type_ids: Iterable[str] | None = None,
        *,
        chain: bool | None = None,
        silent: bool = False,
    ) -> GameState:
        """
        Level up the given types while they qualify.

        With ``type_ids=None`` every automatic type is resolved, each one
        chaining through as many levels as its experience covers. With an
        explicit list the request is manual: automatic types are refused,
        and each requested type advances at most one level unless
        ``chain=True``.
        """
        manual = type_ids is not None
        if chain is None:
            chain = not manual
        targets = list(type_ids) if manual else self.auto_types

        new_state = state
        for type_id in targets:
            config = self.types.get(type_id)
            if config is None:
                if not silent:
                    logger.warning(f"Unknown experience type: {type_id}")
                continue
            if manual and config.auto_level_up:
                if not silent:
                    logger.warning(f"{config.display_name} levels up automatically; manual level-up skipped")
                continue

            count = 0
            while self.can_level_up(type_id, new_state):
                new_state = self.process_level_up(type_id, new_state, silent=silent)
                count += 1
                if not chain:
                    break

            if count and not silent:
                logger.info(f"{config.display_name} reached Lv.{new_state.level(type_id)} (+{count})")
            elif manual and not silent:
                logger.warning(f"{config.display_name} cannot level up: not enough experience or max level")

        return new_state

    def manual_level_up(self, type_ids: Iterable[str], state: GameState, *, silent: bool = False) -> GameState:
        """Each requested type advances exactly one level if eligible."""
        return self.check_and_process_level_ups(state, list(type_ids), chain=False, silent=silent)

    # --- queries ---

    def available_level_ups(self, state: GameState) -> list[str]:
        """Manual types that can level up right now."""
        return [t for t in self.manual_types if self.can_level_up(t, state)]

    def level_up_progress(self, type_id: str, state: GameState) -> float:
        """Fraction of the way to the next level, 0.0 to 1.0."""
        config = self.types.get(type_id)
        if config is None:
            return 0.0
        exp = state.exp(type_id)
        if exp < 0:
            return 0.0
        required = config.required(state.level(type_id))
        if required == 0:
            return 1.0
        if required == UNREACHABLE:
            return 0.0
        return min(1.0, max(0.0, exp / required))
