"""
Special effect handlers.

Special effects are game-flow actions (forcing game over, cleaning up on
arrival in a rest room, resetting the run) rather than plain numeric or
set mutations. The vocabulary is fixed: every id maps to exactly one
handler in SPECIAL_EFFECTS. Documents cannot add handlers.

Handlers run in document key order. Except where a handler replaces the
whole snapshot (reset_game), each one touches a disjoint part of the
state or performs a documented compound update (force_gameover flags the
run and counts the death as one unit).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from ..rules.gameover import set_game_over_flag
from ..rules.progress import complete_scene, increment_death_count, set_floor
from ..state.catalog import Catalog
from ..state.schema import GameState, Resource, new_game_state, resource_max
from ..state.schemas.effects import SpecialEffectId

logger = logging.getLogger(__name__)

Handler = Callable[[GameState, Any, Catalog], GameState]


@dataclass(frozen=True)
class SpecialEffect:
    """One entry of the fixed special-effect vocabulary."""
    id: SpecialEffectId
    description: str
    handler: Handler
    value_type: type | None = None  # payload type; None means a boolean switch

    def accepts(self, value: Any) -> bool:
        if self.value_type is None:
            return True
        if self.value_type is int:
            return isinstance(value, int) and not isinstance(value, bool)
        return isinstance(value, self.value_type)


# ─── Handlers ───────────────────────────────────────────────

def force_gameover(state: GameState, value: Any, catalog: Catalog) -> GameState:
    """Flag the run as over and count the death, globally and on this floor."""
    new_state = increment_death_count(set_game_over_flag(state))
    logger.info(
        f"Forced game over: {new_state.death_count} deaths, "
        f"{new_state.current_floor_death_count} on floor {new_state.current_floor}"
    )
    return new_state


def rest_room_cleanup(state: GameState, value: Any, catalog: Catalog) -> GameState:
    """
    Clear temporary state on arrival in a rest room.

    Drops temporary buffs (and buffs no longer in the catalog), items that
    do not persist, resets non-persistent variables to their default and
    non-persistent skills to level 0. Completed scenes and the scene
    counter restart so the next chapter's random selection starts clean.
    """
    buffs = []
    for buff_id in state.buffs:
        buff = catalog.buff(buff_id)
        if buff is not None and not buff.temporary:
            buffs.append(buff_id)
    items = [item for item in state.items if item.persist]

    variables = dict(state.variables)
    for variable_id, variable in catalog.variables.items():
        if not variable.persist:
            variables[variable_id] = variable.default_value

    levels = dict(state.levels)
    experience = dict(state.experience)
    for skill_id, skill in catalog.skills.items():
        if skill.persist:
            continue
        levels[skill_id] = 0
        experience[skill_id] = 0

    logger.info(
        f"Rest room cleanup: removed {len(state.buffs) - len(buffs)} buffs, "
        f"{len(state.items) - len(items)} items"
    )
    return state.model_copy(
        update={
            "buffs": buffs,
            "items": items,
            "variables": variables,
            "levels": levels,
            "experience": experience,
            "completed_scenes": [],
            "scene_count": 0,
        }
    )


def reset_game(state: GameState, value: Any, catalog: Catalog) -> GameState:
    logger.info("Game state reset")
    return new_game_state(catalog)


def _refill(resource: str) -> Handler:
    def handler(state: GameState, value: Any, catalog: Catalog) -> GameState:
        resources = dict(state.resources)
        resources[resource] = resource_max(resource)
        return state.model_copy(update={"resources": resources})

    handler.__name__ = f"reset_{resource}"
    handler.__doc__ = f"Restore {resource} to its maximum."
    return handler


reset_health = _refill(Resource.HEALTH.value)
reset_mind = _refill(Resource.MIND.value)


def complete_scene_effect(state: GameState, value: Any, catalog: Catalog) -> GameState:
    return complete_scene(state, value)


def increment_death_count_effect(state: GameState, value: Any, catalog: Catalog) -> GameState:
    """Count a death globally only; the floor counter is left alone."""
    return state.model_copy(update={"death_count": state.death_count + 1})


def set_floor_effect(state: GameState, value: Any, catalog: Catalog) -> GameState:
    return set_floor(state, value)


def clear_visited_scenes(state: GameState, value: Any, catalog: Catalog) -> GameState:
    return state.model_copy(update={"visited_scenes": []})


# ─── Registry ───────────────────────────────────────────────

SPECIAL_EFFECTS: dict[str, SpecialEffect] = {
    effect.id.value: effect
    for effect in (
        SpecialEffect(SpecialEffectId.FORCE_GAMEOVER, "End the run immediately", force_gameover),
        SpecialEffect(SpecialEffectId.REST_ROOM_CLEANUP, "Clear temporary state in a rest room", rest_room_cleanup),
        SpecialEffect(SpecialEffectId.RESET_GAME, "Reset to a new game", reset_game),
        SpecialEffect(SpecialEffectId.RESET_HEALTH, "Restore health to max", reset_health),
        SpecialEffect(SpecialEffectId.RESET_MIND, "Restore mind to max", reset_mind),
        SpecialEffect(SpecialEffectId.COMPLETE_SCENE, "Mark a scene completed", complete_scene_effect, str),
        SpecialEffect(SpecialEffectId.INCREMENT_DEATH_COUNT, "Count one death", increment_death_count_effect),
        SpecialEffect(SpecialEffectId.SET_FLOOR, "Move to a floor", set_floor_effect, int),
        SpecialEffect(SpecialEffectId.CLEAR_VISITED_SCENES, "Forget visited scenes", clear_visited_scenes),
    )
}


def apply_special_effects(special_effects: dict[str, Any], state: GameState, catalog: Catalog) -> GameState:
    """
    Dispatch each present special effect through the registry.

    Falsy payloads are skipped. Unknown ids, payloads of the wrong type
    and handlers that raise are logged; the remaining effects still run.
    """
    new_state = state
    for effect_id, value in special_effects.items():
        if not value:
            continue

        effect = SPECIAL_EFFECTS.get(effect_id)
        if effect is None:
            logger.warning(f"Unknown special effect: {effect_id}")
            continue
        if not effect.accepts(value):
            logger.warning(
                f"Special effect {effect_id} expects a {effect.value_type.__name__} payload, "
                f"got {type(value).__name__}"
            )
            continue

        try:
            new_state = effect.handler(new_state, value, catalog)
        except Exception:
            logger.exception(f"Special effect {effect_id} failed")
    return new_state
