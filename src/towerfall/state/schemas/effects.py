"""
Effect bundle documents.

An effect bundle is a flat document describing a batch of state changes:

    {
        "strength": 1, "health": -1,
        "add_buffs": ["injured"], "set_flags": ["met_merchant"],
        "items": {"health_potion": 2, "bread": -1},
        "variables": [{"id": "score", "operator": "add", "value": 10}],
        "exp": {"strength": 25, "skills": {"swordsmanship": 5}},
        "manual_level_up": ["wisdom"],
        "current_floor": 3,
        "special_effects": {"rest_room_cleanup": true, "complete_scene": "scn_x"}
    }
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ..schema import RESOURCE_KEYS, STAT_KEYS

logger = logging.getLogger(__name__)


class VariableOperator(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"
    MULTIPLY = "multiply"


class VariableEffect(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    operator: str  # VariableOperator value; unknown operators are skipped at apply time
    value: float


class SpecialEffectId(str, Enum):
    FORCE_GAMEOVER = "force_gameover"
    REST_ROOM_CLEANUP = "rest_room_cleanup"
    RESET_GAME = "reset_game"
    RESET_HEALTH = "reset_health"
    RESET_MIND = "reset_mind"
    COMPLETE_SCENE = "complete_scene"      # payload: scene id
    INCREMENT_DEATH_COUNT = "increment_death_count"
    SET_FLOOR = "set_floor"                # payload: floor number
    CLEAR_VISITED_SCENES = "clear_visited_scenes"


class EffectBundle(BaseModel):
    """
    A declarative batch of state mutations.

    Stat and resource deltas are top-level keys named after the stat or
    resource. Unknown keys are ignored.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    # Stat deltas
    strength: int | None = None
    agility: int | None = None
    wisdom: int | None = None
    charisma: int | None = None

    # Resource deltas
    health: int | None = None
    mind: int | None = None
    gold: int | None = None

    add_buffs: list[str] = Field(default_factory=list)
    remove_buffs: list[str] = Field(default_factory=list)
    set_flags: list[str] = Field(default_factory=list)
    unset_flags: list[str] = Field(default_factory=list)
    items: dict[str, int] = Field(default_factory=dict)  # id -> signed quantity
    variables: list[VariableEffect] = Field(default_factory=list)
    exp: dict[str, Union[int, dict[str, int]]] = Field(default_factory=dict)
    manual_level_up: list[str] = Field(default_factory=list)

    # Progress overrides
    current_floor: int | None = None
    death_count: int | None = None
    death_count_by_floor: dict[int, int] = Field(default_factory=dict)
    completed_scenes: list[str] = Field(default_factory=list)

    # Dispatched in document key order
    special_effects: dict[str, Any] = Field(default_factory=dict)

    def stat_deltas(self) -> dict[str, int]:
        """Stat deltas present in the bundle, in stat order."""
        return {
            key: getattr(self, key) for key in STAT_KEYS
            if getattr(self, key) is not None
        }

    def resource_deltas(self) -> dict[str, int]:
        return {
            key: getattr(self, key) for key in RESOURCE_KEYS
            if getattr(self, key) is not None
        }

    def experience_deltas(self) -> dict[str, int]:
        """
        Flatten ``exp`` into one ``{type: amount}`` table.

        Top-level numeric entries and the nested ``skills`` mapping merge,
        summing on collision.
        """
        flat: dict[str, int] = {}
        for key, amount in self.exp.items():
            if key == "skills" and isinstance(amount, dict):
                continue
            if isinstance(amount, int):
                flat[key] = flat.get(key, 0) + amount
        skills = self.exp.get("skills")
        if isinstance(skills, dict):
            for skill_id, amount in skills.items():
                flat[skill_id] = flat.get(skill_id, 0) + amount
        return flat

    def skill_experience_deltas(self) -> dict[str, int]:
        skills = self.exp.get("skills")
        return dict(skills) if isinstance(skills, dict) else {}

    @property
    def has_progress_overrides(self) -> bool:
        return (
            self.current_floor is not None
            or self.death_count is not None
            or bool(self.death_count_by_floor)
            or bool(self.completed_scenes)
        )


# ─── Lenient parsing ────────────────────────────────────────

LIST_FIELDS = ("add_buffs", "remove_buffs", "set_flags", "unset_flags", "manual_level_up", "completed_scenes")

_int_adapter: TypeAdapter = TypeAdapter(int)
_str_adapter: TypeAdapter = TypeAdapter(str)
_variable_adapter: TypeAdapter = TypeAdapter(VariableEffect)


def _readable(adapter: TypeAdapter, value: Any) -> bool:
    try:
        adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def _keep_list(field: str, entries: list, adapter: TypeAdapter) -> list:
    kept = []
    for entry in entries:
        if _readable(adapter, entry):
            kept.append(entry)
        else:
            logger.warning(f"Malformed {field} entry skipped: {entry!r}")
    return kept


def _keep_mapping(field: str, entries: dict, key_adapter: TypeAdapter | None = None) -> dict:
    kept = {}
    for key, amount in entries.items():
        if (key_adapter is None or _readable(key_adapter, key)) and _readable(_int_adapter, amount):
            kept[key] = amount
        else:
            logger.warning(f"Malformed {field} entry skipped: {key}={amount!r}")
    return kept


def salvage_effects(raw: dict) -> dict:
    """
    Drop the entries of a bundle document that cannot be read.

    Works entry by entry inside the list and mapping fields, so one bad
    item quantity or variable effect does not cost the rest of the bundle.
    """
    cleaned = dict(raw)
    for field in LIST_FIELDS:
        if isinstance(cleaned.get(field), list):
            cleaned[field] = _keep_list(field, cleaned[field], _str_adapter)
    if isinstance(cleaned.get("variables"), list):
        cleaned["variables"] = _keep_list("variables", cleaned["variables"], _variable_adapter)
    if isinstance(cleaned.get("items"), dict):
        cleaned["items"] = _keep_mapping("items", cleaned["items"])
    if isinstance(cleaned.get("death_count_by_floor"), dict):
        cleaned["death_count_by_floor"] = _keep_mapping(
            "death_count_by_floor", cleaned["death_count_by_floor"], _int_adapter
        )
    if isinstance(cleaned.get("exp"), dict):
        exp = {}
        for key, amount in cleaned["exp"].items():
            if isinstance(amount, dict):
                exp[key] = _keep_mapping(f"exp.{key}", amount)
            elif _readable(_int_adapter, amount):
                exp[key] = amount
            else:
                logger.warning(f"Malformed exp entry skipped: {key}={amount!r}")
        cleaned["exp"] = exp
    return cleaned


def parse_effects(raw: Any) -> EffectBundle:
    """
    Parse a raw effect bundle, skipping whatever cannot be read.

    Malformed entries are dropped one by one; a top-level field that
    still fails (``"strength": "lots"``) is dropped whole. Each drop is
    logged. A document that is not a mapping gives an empty bundle.
    """
    if isinstance(raw, EffectBundle):
        return raw
    if raw is None:
        return EffectBundle()
    if not isinstance(raw, dict):
        logger.warning(f"Effect bundle is not a mapping, ignored: {type(raw).__name__}")
        return EffectBundle()

    try:
        return EffectBundle.model_validate(raw)
    except ValidationError:
        cleaned = salvage_effects(raw)

    try:
        return EffectBundle.model_validate(cleaned)
    except ValidationError as e:
        broken = {error["loc"][0] for error in e.errors() if error["loc"]}

    for field in sorted(broken, key=str):
        logger.warning(f"Malformed effect field skipped: {field}={cleaned[field]!r}")
    return EffectBundle.model_validate({k: v for k, v in cleaned.items() if k not in broken})
