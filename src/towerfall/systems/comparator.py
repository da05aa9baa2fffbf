"""
State comparator for towerfall.

Two ways to describe what an effect bundle does to the player:

- compare_states(old, new): diff two snapshots after the fact
- predict_changes_from_effects(effects, state): read the bundle without
  applying it, for previews shown before a choice is committed

Skill level-ups in a prediction are found by replaying the experience
rules against the given snapshot, so a preview reports exactly the
level-ups that applying the bundle will produce.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from ..rules.experience import ExperienceEngine
from ..state.catalog import Catalog
from ..state.schema import (
    RESOURCE_CONFIG,
    RESOURCE_KEYS,
    STAT_CONFIG,
    STAT_KEYS,
    GameState,
    Item,
)
from ..state.schemas.change import ChangeCategory, ChangeRecord, ChangeSet, ChangeType
from ..state.schemas.effects import EffectBundle, parse_effects

logger = logging.getLogger(__name__)


def _direction(delta: int) -> ChangeType:
    return ChangeType.INCREASE if delta > 0 else ChangeType.DECREASE


def _union_keys(*mappings: dict) -> list:
    """Keys of every mapping, first-seen order, no duplicates."""
    seen: dict = {}
    for mapping in mappings:
        for key in mapping:
            seen.setdefault(key, None)
    return list(seen)


def _item_quantities(items: Iterable[Item]) -> dict[str, int]:
    totals: dict[str, int] = {}
    for item in items:
        totals[item.id] = totals.get(item.id, 0) + item.quantity
    return totals


class StateComparator:
    """Builds ordered change records from snapshots or effect bundles."""

    def __init__(self, catalog: Catalog, experience: ExperienceEngine | None = None):
        self.catalog = catalog
        self.experience = experience or ExperienceEngine(catalog)

    # ─── Display names ──────────────────────────────────────

    def stat_name(self, key: str) -> str:
        config = STAT_CONFIG.get(key)
        return config["display_name"] if config else key

    def resource_name(self, key: str) -> str:
        config = RESOURCE_CONFIG.get(key)
        return config["display_name"] if config else key

    def buff_name(self, buff_id: str) -> str:
        buff = self.catalog.buff(buff_id)
        return buff.display_name if buff and buff.display_name else buff_id

    def item_name(self, item_id: str) -> str:
        item = self.catalog.item(item_id)
        return item.name if item and item.name else item_id

    def type_name(self, type_id: str) -> str:
        config = self.experience.get_type(type_id)
        return config.display_name if config else type_id

    def is_skill_type(self, type_id: str) -> bool:
        config = self.experience.get_type(type_id)
        return config is not None and config.category == "skill"

    # ─── Diff ───────────────────────────────────────────────

    def compare_states(self, old: GameState, new: GameState) -> ChangeSet:
        """
        Diff two snapshots.

        Records come out in a fixed order: stats, resources, buffs (added
        then removed), items (added, removed, increased, decreased),
        experience, levels.

        Args:
            old: Snapshot before the change
            new: Snapshot after the change

        Returns:
            ChangeSet with one record per differing id
        """
        changes: list[ChangeRecord] = []
        self._compare_numeric(
            ChangeCategory.STAT, STAT_KEYS, old.stats, new.stats, self.stat_name, changes
        )
        self._compare_numeric(
            ChangeCategory.RESOURCE, RESOURCE_KEYS, old.resources, new.resources, self.resource_name, changes
        )
        self._compare_buffs(old, new, changes)
        self._compare_items(old, new, changes)
        self._compare_numeric(
            ChangeCategory.EXPERIENCE,
            _union_keys(old.experience, new.experience),
            old.experience,
            new.experience,
            lambda key: f"{self.type_name(key)} experience",
            changes,
        )
        self._compare_numeric(
            ChangeCategory.LEVEL,
            _union_keys(old.levels, new.levels),
            old.levels,
            new.levels,
            lambda key: f"{self.type_name(key)} level",
            changes,
        )
        return ChangeSet(changes=changes)

    def _compare_numeric(
        self,
        category: ChangeCategory,
        keys: Iterable[str],
        old: dict[str, int],
        new: dict[str, int],
        display_name: Callable[[str], str],
        changes: list[ChangeRecord],
    ) -> None:
        for key in keys:
            old_value = old.get(key, 0)
            new_value = new.get(key, 0)
            if old_value == new_value:
                continue
            delta = new_value - old_value
            changes.append(
                ChangeRecord(
                    category=category,
                    type=_direction(delta),
                    id=key,
                    display_name=display_name(key),
                    old_value=old_value,
                    new_value=new_value,
                    change=abs(delta),
                )
            )

    def _compare_buffs(self, old: GameState, new: GameState, changes: list[ChangeRecord]) -> None:
        old_buffs = set(old.buffs)
        new_buffs = set(new.buffs)
        for buff_id in new.buffs:
            if buff_id not in old_buffs:
                changes.append(self._buff_record(buff_id, ChangeType.ADD))
        for buff_id in old.buffs:
            if buff_id not in new_buffs:
                changes.append(self._buff_record(buff_id, ChangeType.REMOVE))

    def _buff_record(self, buff_id: str, change_type: ChangeType) -> ChangeRecord:
        return ChangeRecord(
            category=ChangeCategory.BUFF,
            type=change_type,
            id=buff_id,
            display_name=self.buff_name(buff_id),
        )

    def _compare_items(self, old: GameState, new: GameState, changes: list[ChangeRecord]) -> None:
        old_items = _item_quantities(old.items)
        new_items = _item_quantities(new.items)

        added, removed, increased, decreased = [], [], [], []
        for item_id in _union_keys(old_items, new_items):
            old_qty = old_items.get(item_id, 0)
            new_qty = new_items.get(item_id, 0)
            if old_qty == new_qty:
                continue
            name = self.item_name(item_id)
            if old_qty == 0:
                added.append(ChangeRecord(
                    category=ChangeCategory.ITEM, type=ChangeType.ADD,
                    id=item_id, display_name=name, quantity=new_qty,
                ))
            elif new_qty == 0:
                removed.append(ChangeRecord(
                    category=ChangeCategory.ITEM, type=ChangeType.REMOVE,
                    id=item_id, display_name=name, quantity=old_qty,
                ))
            else:
                delta = new_qty - old_qty
                record = ChangeRecord(
                    category=ChangeCategory.ITEM, type=_direction(delta),
                    id=item_id, display_name=name,
                    old_value=old_qty, new_value=new_qty, change=abs(delta),
                )
                (increased if delta > 0 else decreased).append(record)

        changes.extend(added + removed + increased + decreased)

    # ─── Prediction ─────────────────────────────────────────

    def predict_changes_from_effects(
        self, effects: EffectBundle | dict | None, state: GameState | None = None
    ) -> ChangeSet:
        """
        Describe an effect bundle without applying it.

        Stat, resource, buff, item and experience records are read straight
        off the bundle. Skill level-ups need a snapshot: when ``state`` is
        given the experience rules are replayed on it, otherwise they are
        left out. Manual level-up requests are reported as +1 each, and only
        when they would succeed if ``state`` is given.

        Args:
            effects: Parsed bundle or raw document
            state: Current snapshot, optional

        Returns:
            ChangeSet in the order stats, resources, buffs, items,
            experience, skill levels, manual levels
        """
        bundle = parse_effects(effects)
        changes: list[ChangeRecord] = []

        for key, delta in bundle.stat_deltas().items():
            if delta:
                changes.append(self._delta_record(ChangeCategory.STAT, key, self.stat_name(key), delta))
        for key, delta in bundle.resource_deltas().items():
            if delta:
                changes.append(self._delta_record(ChangeCategory.RESOURCE, key, self.resource_name(key), delta))

        for buff_id in bundle.add_buffs:
            changes.append(self._buff_record(buff_id, ChangeType.ADD))
        for buff_id in bundle.remove_buffs:
            changes.append(self._buff_record(buff_id, ChangeType.REMOVE))

        for item_id, quantity in bundle.items.items():
            if quantity == 0:
                continue
            changes.append(ChangeRecord(
                category=ChangeCategory.ITEM,
                type=ChangeType.ADD if quantity > 0 else ChangeType.REMOVE,
                id=item_id,
                display_name=self.item_name(item_id),
                quantity=abs(quantity),
            ))

        deltas = bundle.experience_deltas()
        for type_id, amount in deltas.items():
            if amount == 0 or self.is_skill_type(type_id):
                continue
            changes.append(self._delta_record(
                ChangeCategory.EXPERIENCE, type_id, f"{self.type_name(type_id)} experience", amount
            ))

        after_exp = state
        if state is not None and deltas:
            after_exp = self.experience.apply_experience(deltas, state, silent=True)
            changes.extend(self._skill_level_records(deltas, state, after_exp))

        changes.extend(self._predict_manual_level_ups(bundle.manual_level_up, after_exp))

        result = ChangeSet(changes=changes)
        logger.debug(f"Predicted {len(result)} changes")
        return result

    def _delta_record(self, category: ChangeCategory, key: str, name: str, delta: int) -> ChangeRecord:
        return ChangeRecord(
            category=category,
            type=_direction(delta),
            id=key,
            display_name=name,
            change=abs(delta),
        )

    def _skill_level_records(
        self, deltas: dict[str, int], state: GameState, simulated: GameState
    ) -> list[ChangeRecord]:
        """Skill level changes between a snapshot and its silent replay."""
        records = []
        for type_id in deltas:
            if not self.is_skill_type(type_id):
                continue
            before = state.level(type_id)
            after = simulated.level(type_id)
            if after <= before:
                continue
            records.append(ChangeRecord(
                category=ChangeCategory.LEVEL,
                type=ChangeType.INCREASE,
                id=type_id,
                display_name=f"{self.type_name(type_id)} level",
                old_value=before,
                new_value=after,
                change=after - before,
                extra_text=self.rank_change_text(type_id, before, after),
            ))
        return records

    def rank_change_text(self, skill_id: str, before: int, after: int) -> str:
        """``+ Novice`` for a first rank, ``+ Novice → Adept`` afterwards."""
        skill = self.catalog.skill(skill_id)

        def rank(level: int) -> str:
            return skill.rank_name(level) if skill else f"Lv.{level}"

        if before == 0:
            return f"+ {rank(1)}"
        return f"+ {rank(before)} → {rank(after)}"

    def _predict_manual_level_ups(self, type_ids: list[str], state: GameState | None) -> list[ChangeRecord]:
        records = []
        simulated = state
        for type_id in type_ids:
            if simulated is not None:
                config = self.experience.get_type(type_id)
                if config is None or config.auto_level_up:
                    continue
                if not self.experience.can_level_up(type_id, simulated):
                    continue
                simulated = self.experience.process_level_up(type_id, simulated, silent=True)
            records.append(ChangeRecord(
                category=ChangeCategory.LEVEL,
                type=ChangeType.INCREASE,
                id=type_id,
                display_name=f"{self.type_name(type_id)} level",
                change=1,
            ))
        return records
