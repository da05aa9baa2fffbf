"""
Pydantic models for the towerfall player state.

A GameState is an immutable snapshot. Rules and systems never assign to
a snapshot; they build new containers and return
``state.model_copy(update=...)``.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .catalog import Catalog


# -----------------------------------------------------------------------------
# Fixed key sets
# -----------------------------------------------------------------------------

class Stat(str, Enum):
    STRENGTH = "strength"
    AGILITY = "agility"
    WISDOM = "wisdom"
    CHARISMA = "charisma"


class Resource(str, Enum):
    HEALTH = "health"
    MIND = "mind"
    GOLD = "gold"


STAT_MAX = 10
STAT_MIN = 0

# Upper bound for the stat-backed experience types
STAT_LEVEL_CAP = 100

STAT_CONFIG: dict[str, dict] = {
    Stat.STRENGTH.value: {"display_name": "Strength", "initial": 1},
    Stat.AGILITY.value: {"display_name": "Agility", "initial": 1},
    Stat.WISDOM.value: {"display_name": "Wisdom", "initial": 1},
    Stat.CHARISMA.value: {"display_name": "Charisma", "initial": 1},
}

RESOURCE_CONFIG: dict[str, dict] = {
    Resource.HEALTH.value: {"display_name": "Health", "initial": 3, "max": 3},
    Resource.MIND.value: {"display_name": "Mind", "initial": 3, "max": 3},
    Resource.GOLD.value: {"display_name": "Gold", "initial": 0, "max": 4},
}

STAT_KEYS: tuple[str, ...] = tuple(s.value for s in Stat)
RESOURCE_KEYS: tuple[str, ...] = tuple(r.value for r in Resource)

# Resources whose depletion ends the run (gold never does)
SURVIVAL_RESOURCES: tuple[str, ...] = (Resource.HEALTH.value, Resource.MIND.value)

# The overall character level shares the experience/levels maps with stats and skills
LEVEL_KEY = "level"

# Flag set by the force_gameover special effect
FORCE_GAMEOVER_FLAG = "force_gameover"


def resource_max(resource: str) -> int:
    """Upper clamp for a resource."""
    return RESOURCE_CONFIG[resource]["max"]


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


# -----------------------------------------------------------------------------
# Snapshot
# -----------------------------------------------------------------------------

class Item(BaseModel):
    """A held inventory entry."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    persist: bool = True    # False: removed by rest room cleanup
    quantity: int = 1


class GameState(BaseModel):
    """
    Full player state at one point in time.

    Buffs and flags are lists with set semantics (no duplicates, order is
    kept only for display). Items merge by id.
    """
    model_config = ConfigDict(frozen=True)

    stats: dict[str, int] = Field(
        default_factory=lambda: {k: v["initial"] for k, v in STAT_CONFIG.items()}
    )
    resources: dict[str, int] = Field(
        default_factory=lambda: {k: v["initial"] for k, v in RESOURCE_CONFIG.items()}
    )
    buffs: list[str] = Field(default_factory=list)
    flags: list[str] = Field(default_factory=list)
    items: list[Item] = Field(default_factory=list)
    variables: dict[str, int] = Field(default_factory=dict)

    # One entry per experience type (stats, "level", skills)
    experience: dict[str, int] = Field(default_factory=dict)  # may go negative
    levels: dict[str, int] = Field(default_factory=dict)

    # Progress
    current_floor: int = 1
    death_count: int = 0
    death_count_by_floor: dict[int, int] = Field(default_factory=dict)
    completed_scenes: list[str] = Field(default_factory=list)  # cleared per chapter
    visited_scenes: list[str] = Field(default_factory=list)
    scene_count: int = 0

    def stat(self, key: str) -> int:
        return self.stats.get(key, 0)

    def resource(self, key: str) -> int:
        return self.resources.get(key, 0)

    def has_buff(self, buff_id: str) -> bool:
        return buff_id in self.buffs

    def has_flag(self, flag_id: str) -> bool:
        return flag_id in self.flags

    def item_quantity(self, item_id: str) -> int:
        """Held quantity, 0 when the item is not held."""
        for item in self.items:
            if item.id == item_id:
                return item.quantity
        return 0

    def variable(self, key: str) -> int:
        return self.variables.get(key, 0)

    def level(self, key: str) -> int:
        return self.levels.get(key, 0)

    def exp(self, key: str) -> int:
        return self.experience.get(key, 0)

    @property
    def current_floor_death_count(self) -> int:
        return self.death_count_by_floor.get(self.current_floor, 0)


def new_game_state(catalog: Catalog | None = None) -> GameState:
    """
    Build the snapshot a new run starts from.

    Variables start at their catalog default; every catalog skill starts
    at level 0 with no experience.
    """
    experience = {key: 0 for key in STAT_KEYS}
    experience[LEVEL_KEY] = 0
    levels = {key: STAT_CONFIG[key]["initial"] for key in STAT_KEYS}
    levels[LEVEL_KEY] = 1

    variables: dict[str, int] = {}
    if catalog is not None:
        for skill_id in catalog.skills:
            experience[skill_id] = 0
            levels[skill_id] = 0
        variables = {
            var_id: var.default_value for var_id, var in catalog.variables.items()
        }

    return GameState(experience=experience, levels=levels, variables=variables)
