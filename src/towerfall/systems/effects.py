"""
Effects interpreter for towerfall.

Applies an effect bundle to a snapshot and returns the new snapshot.

Pure function design: (effects, state) -> state
No globals, no side effects, no mutation of input state.

Processing order is fixed:
 1. stat deltas, clamped to [0, STAT_MAX]
 2. resource deltas, clamped to [0, resource max]
 3. buff add/remove
 4. flag set/unset
 5. item quantity deltas
 6. progress counter overrides
 7. variable effects, clamped to the catalog bounds
 8. experience deltas (automatic level-ups included)
 9. manual level-up requests, one level each
10. special effects

Bad entries (ids missing from the catalog, unknown operators, unknown
special effects) are logged and skipped one by one; the rest of the
bundle still applies.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from ..rules.experience import ExperienceEngine
from ..state.catalog import Catalog
from ..state.schema import (
    STAT_MAX,
    STAT_MIN,
    GameState,
    Item,
    clamp,
    resource_max,
)
from ..state.schemas.effects import EffectBundle, VariableEffect, VariableOperator, parse_effects
from .special_effects import apply_special_effects

logger = logging.getLogger(__name__)


class EffectsInterpreter:
    """
    Applies effect bundles.

    Holds only the catalog and the experience rules; every call takes the
    snapshot explicitly.
    """

    def __init__(self, catalog: Catalog, experience: ExperienceEngine | None = None):
        self.catalog = catalog
        self.experience = experience or ExperienceEngine(catalog)

    def apply(self, effects: EffectBundle | dict | None, state: GameState) -> GameState:
        """
        Apply an effect bundle.

        Args:
            effects: Parsed bundle or raw document
            state: Snapshot to start from (not modified)

        Returns:
            The resulting snapshot
        """
        bundle = parse_effects(effects)

        new_state = self.apply_general(bundle, state)
        new_state = self.apply_variables(bundle, new_state)
        new_state = self.apply_experience(bundle, new_state)
        if bundle.manual_level_up:
            new_state = self.experience.manual_level_up(bundle.manual_level_up, new_state)
        if bundle.special_effects:
            new_state = apply_special_effects(bundle.special_effects, new_state, self.catalog)
        return new_state

    # ─── Steps 1-6 ──────────────────────────────────────────

    def apply_general(self, bundle: EffectBundle, state: GameState) -> GameState:
        update: dict[str, Any] = {}

        stat_deltas = bundle.stat_deltas()
        if stat_deltas:
            stats = dict(state.stats)
            for key, delta in stat_deltas.items():
                stats[key] = clamp(stats.get(key, 0) + delta, STAT_MIN, STAT_MAX)
            update["stats"] = stats

        resource_deltas = bundle.resource_deltas()
        if resource_deltas:
            resources = dict(state.resources)
            for key, delta in resource_deltas.items():
                resources[key] = clamp(resources.get(key, 0) + delta, 0, resource_max(key))
            update["resources"] = resources

        if bundle.add_buffs or bundle.remove_buffs:
            update["buffs"] = self._toggle(
                "buff", state.buffs, bundle.add_buffs, bundle.remove_buffs, self.catalog.is_buff
            )

        if bundle.set_flags or bundle.unset_flags:
            update["flags"] = self._toggle(
                "flag", state.flags, bundle.set_flags, bundle.unset_flags, self.catalog.is_flag
            )

        if bundle.items:
            update["items"] = self._apply_items(bundle.items, state.items)

        if bundle.has_progress_overrides:
            update.update(self._progress_overrides(bundle, state))

        if not update:
            return state
        return state.model_copy(update=update)

    def _toggle(self, kind, current, add, remove, is_known) -> list[str]:
        result = list(current)
        for entry_id in add:
            if not is_known(entry_id):
                logger.warning(f"Unknown {kind} id skipped: {entry_id}")
                continue
            if entry_id not in result:
                result.append(entry_id)
        if remove:
            removed = set(remove)
            result = [entry_id for entry_id in result if entry_id not in removed]
        return result

    def _apply_items(self, deltas: dict[str, int], current: list[Item]) -> list[Item]:
        """
        Merge item quantity deltas.

        A positive delta on a held item adds to it; on a new item it creates
        an entry from the catalog. A negative delta removes that many, and
        drops the entry once nothing is left.
        """
        items = list(current)
        for item_id, delta in deltas.items():
            index = next((i for i, item in enumerate(items) if item.id == item_id), None)

            if delta > 0:
                if index is not None:
                    held = items[index]
                    items[index] = held.model_copy(update={"quantity": held.quantity + delta})
                    continue
                data = self.catalog.item(item_id)
                if data is None:
                    logger.warning(f"Unknown item id skipped: {item_id}")
                    continue
                items.append(
                    Item(
                        id=item_id,
                        name=data.name,
                        description=data.description,
                        persist=data.persist,
                        quantity=delta,
                    )
                )
            elif delta < 0:
                if index is None:
                    continue
                held = items[index]
                if held.quantity <= -delta:
                    del items[index]
                else:
                    items[index] = held.model_copy(update={"quantity": held.quantity + delta})
        return items

    def _progress_overrides(self, bundle: EffectBundle, state: GameState) -> dict[str, Any]:
        update: dict[str, Any] = {}
        if bundle.current_floor is not None:
            update["current_floor"] = bundle.current_floor
        if bundle.death_count is not None:
            update["death_count"] = bundle.death_count
        if bundle.death_count_by_floor:
            by_floor = dict(state.death_count_by_floor)
            by_floor.update(bundle.death_count_by_floor)
            update["death_count_by_floor"] = by_floor
        if bundle.completed_scenes:
            completed = list(state.completed_scenes)
            for scene_id in bundle.completed_scenes:
                if scene_id not in completed:
                    completed.append(scene_id)
            update["completed_scenes"] = completed
        return update

    # ─── Step 7 ─────────────────────────────────────────────

    def apply_variables(self, bundle: EffectBundle, state: GameState) -> GameState:
        if not bundle.variables:
            return state

        variables = dict(state.variables)
        for effect in bundle.variables:
            variable = self.catalog.variable(effect.id)
            if variable is None:
                logger.warning(f"Unknown variable id skipped: {effect.id}")
                continue

            current = variables.get(effect.id, variable.default_value)
            value = apply_operator(effect, current)
            if value is None:
                logger.warning(f"Unknown variable operator skipped: {effect.operator} ({effect.id})")
                continue

            if variable.min_value is not None:
                value = max(value, variable.min_value)
            if variable.max_value is not None:
                value = min(value, variable.max_value)
            variables[effect.id] = value
            logger.debug(f"Variable {effect.id}: {current} {effect.operator} {effect.value} = {value}")

        return state.model_copy(update={"variables": variables})

    # ─── Step 8 ─────────────────────────────────────────────

    def apply_experience(self, bundle: EffectBundle, state: GameState) -> GameState:
        deltas = bundle.experience_deltas()
        if not deltas:
            return state
        return self.experience.apply_experience(deltas, state)


def apply_operator(effect: VariableEffect, current: int) -> int | None:
    """Result of one variable operation, truncated toward zero. None for unknown operators."""
    try:
        operator = VariableOperator(effect.operator)
    except ValueError:
        return None

    if operator == VariableOperator.ADD:
        result = current + effect.value
    elif operator == VariableOperator.SUBTRACT:
        result = current - effect.value
    elif operator == VariableOperator.SET:
        result = effect.value
    else:
        result = current * effect.value
    return math.trunc(result)
