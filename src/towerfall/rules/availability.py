"""
Scene and choice availability.

Thin filters over the condition evaluator, used by whatever drives scene
selection.
"""

from __future__ import annotations

from typing import Iterable

from ..state.schema import GameState
from ..state.schemas.scene import Choice, Next, Scene
from .conditions import ConditionEvaluator


def is_choice_available(choice: Choice, state: GameState, evaluator: ConditionEvaluator) -> bool:
    """A choice without a condition is always available."""
    return evaluator.evaluate(choice.condition, state)


def available_choices(scene: Scene, state: GameState, evaluator: ConditionEvaluator) -> list[Choice]:
    """
    Choices to list for a scene.

    A choice whose condition fails is still listed (the caller shows it
    disabled) unless it sets ``visible_if_failed_condition`` to false.
    """
    shown = []
    for choice in scene.choices:
        if choice.condition is None:
            shown.append(choice)
            continue
        if choice.visible_if_failed_condition is False and not evaluator.evaluate(choice.condition, state):
            continue
        shown.append(choice)
    return shown


def scenes_matching_condition(
    scenes: Iterable[Scene], state: GameState, evaluator: ConditionEvaluator
) -> list[Scene]:
    return [scene for scene in scenes if evaluator.evaluate(scene.condition, state)]


def random_selectable_scenes(
    scenes: Iterable[Scene], state: GameState, evaluator: ConditionEvaluator
) -> list[Scene]:
    """
    Scenes eligible for random selection.

    A scene qualifies when its condition holds, it is flagged
    ``random_selectable``, and it has not been completed unless it is
    ``repeatable``.
    """
    completed = set(state.completed_scenes)
    selectable = []
    for scene in scenes:
        if not evaluator.evaluate(scene.condition, state):
            continue
        if scene.id in completed and not scene.repeatable:
            continue
        if not scene.random_selectable:
            continue
        selectable.append(scene)
    return selectable


def next_label(target: Next | None) -> str:
    """Short description of a navigation target."""
    if target is None:
        return "random"
    if target.chapter_id and target.scene_id:
        return "chapter+scene"
    if target.chapter_id:
        return "chapter"
    if target.scene_id:
        return "scene"
    return "random"
