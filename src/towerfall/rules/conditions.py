"""
Condition evaluation as a pure function.

Walks a condition tree against a snapshot. Evaluation is total: a leaf
that cannot be parsed, or one with an unsupported shape, evaluates false
and is logged. Nothing is raised.
"""

from __future__ import annotations

import logging
from typing import Any

from ..errors import DocumentError
from ..state.catalog import Catalog
from ..state.schema import RESOURCE_KEYS, STAT_KEYS, GameState
from ..state.schemas.condition import (
    AND_KEYS,
    OR_KEYS,
    AllOf,
    AnyOf,
    AtomicCondition,
    Range,
    SetConstraint,
    parse_condition,
)
from .experience import ExperienceEngine

logger = logging.getLogger(__name__)


def check_numeric(value: float, constraint: Any) -> bool:
    """A literal means equality, a Range means inclusive bounds."""
    if isinstance(constraint, Range):
        return constraint.contains(value)
    if isinstance(constraint, (int, float)) and not isinstance(constraint, bool):
        return value == constraint
    return False


class ConditionEvaluator:
    """
    Evaluates condition expressions against snapshots.

    Holds only the catalog and the experience rules; keeps no state
    between calls.
    """

    def __init__(self, catalog: Catalog, experience: ExperienceEngine | None = None):
        self.catalog = catalog
        self.experience = experience or ExperienceEngine(catalog)

    def evaluate(self, expr: Any, state: GameState) -> bool:
        """
        Evaluate a condition tree.

        Args:
            expr: Parsed condition model or raw document. None means
                "no condition" and is true.
            state: Snapshot to test

        Returns:
            Whether the condition holds
        """
        if expr is None:
            return True
        return self._evaluate_lenient(expr, state)

    def _evaluate_lenient(self, expr: Any, state: GameState) -> bool:
        """
        Parse and evaluate, confining a parse failure to the broken part.

        When the whole tree does not parse, a logical node is walked child
        by child so only the malformed leaves count as unsatisfied.
        """
        try:
            node = parse_condition(expr)
        except DocumentError as e:
            logical = _logical_children(expr)
            if logical is None:
                logger.warning(f"Condition leaf not satisfied, malformed document: {e.detail}")
                return False
            combine, children = logical
            if not isinstance(children, list):
                logger.warning(f"Condition not satisfied, logical node needs a list: {children!r}")
                return False
            return combine(self._evaluate_lenient(child, state) for child in children)
        return self._evaluate(node, state)

    def _evaluate(self, node: AllOf | AnyOf | AtomicCondition, state: GameState) -> bool:
        if isinstance(node, AllOf):
            return all(self._evaluate(child, state) for child in node.conditions)
        if isinstance(node, AnyOf):
            return any(self._evaluate(child, state) for child in node.conditions)
        return self.check_atomic(node, state)

    # ─── Leaves ─────────────────────────────────────────────

    def check_atomic(self, cond: AtomicCondition, state: GameState) -> bool:
        for key in STAT_KEYS:
            constraint = getattr(cond, key)
            if constraint is not None and not check_numeric(state.stat(key), constraint):
                return False

        for key in RESOURCE_KEYS:
            constraint = getattr(cond, key)
            if constraint is not None and not check_numeric(state.resource(key), constraint):
                return False

        if cond.buffs is not None and not self._check_membership(
            "buffs", cond.buffs, state.buffs, self.catalog.is_buff
        ):
            return False

        if cond.flags is not None and not self._check_membership(
            "flags", cond.flags, state.flags, self.catalog.is_flag
        ):
            return False

        for item_id, constraint in cond.items.items():
            if not check_numeric(state.item_quantity(item_id), constraint):
                return False

        for variable_id, constraint in cond.variables.items():
            if not self.catalog.is_variable(variable_id):
                continue
            if not check_numeric(state.variable(variable_id), constraint):
                return False

        for skill_id, constraint in cond.skills.items():
            if not self.catalog.is_skill(skill_id):
                continue
            if not check_numeric(state.level(skill_id), constraint):
                return False

        if cond.can_level_up and not self.experience.can_level_up(cond.can_level_up, state):
            return False

        return self.check_progress(cond, state)

    def check_progress(self, cond: AtomicCondition, state: GameState) -> bool:
        if cond.current_floor is not None and not check_numeric(state.current_floor, cond.current_floor):
            return False

        if cond.death_count is not None and not check_numeric(state.death_count, cond.death_count):
            return False

        for floor, constraint in cond.death_count_by_floor.items():
            if not check_numeric(state.death_count_by_floor.get(floor, 0), constraint):
                return False

        if cond.current_floor_death_count is not None and not check_numeric(
            state.current_floor_death_count, cond.current_floor_death_count
        ):
            return False

        if cond.completed_scenes is not None:
            completed = set(state.completed_scenes)
            if any(scene_id not in completed for scene_id in cond.completed_scenes.in_):
                return False
            if any(scene_id in completed for scene_id in cond.completed_scenes.not_in):
                return False

        if cond.scene_count is not None and not check_numeric(state.scene_count, cond.scene_count):
            return False

        return True

    def _check_membership(
        self,
        category: str,
        constraint: SetConstraint | list[str],
        current: list[str],
        is_known,
    ) -> bool:
        # Array form is the retired schema; it never matches
        if isinstance(constraint, list):
            logger.warning(f"Array-form {category} condition is not supported; use {{in, not_in}}")
            return False

        present = set(current)
        # Ids missing from the catalog are skipped, so they never fail a check
        for entry_id in constraint.in_:
            if is_known(entry_id) and entry_id not in present:
                return False
        for entry_id in constraint.not_in:
            if is_known(entry_id) and entry_id in present:
                return False
        return True


def evaluate(expr: Any, state: GameState, catalog: Catalog, experience: ExperienceEngine | None = None) -> bool:
    """Module-level shortcut for ``ConditionEvaluator(catalog).evaluate``."""
    return ConditionEvaluator(catalog, experience).evaluate(expr, state)


def _logical_children(expr: Any):
    """``(all|any, children)`` for a raw logical node, None for anything else."""
    if not isinstance(expr, dict):
        return None
    for keys, combine in ((AND_KEYS, all), (OR_KEYS, any)):
        for key in keys:
            if key in expr:
                return combine, expr[key]
    return None
