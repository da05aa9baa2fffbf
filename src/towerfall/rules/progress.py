"""
Progress counter rules as pure functions.

Floor, death counters and completed scenes. Each function returns a new
snapshot and leaves its input untouched.
"""

from __future__ import annotations

from ..state.schema import GameState


def current_floor_death_count(state: GameState) -> int:
    return state.death_count_by_floor.get(state.current_floor, 0)


def floor_death_count(state: GameState, floor: int) -> int:
    return state.death_count_by_floor.get(floor, 0)


def increment_death_count(state: GameState) -> GameState:
    """Count a death globally and on the current floor."""
    by_floor = dict(state.death_count_by_floor)
    by_floor[state.current_floor] = by_floor.get(state.current_floor, 0) + 1
    return state.model_copy(
        update={"death_count": state.death_count + 1, "death_count_by_floor": by_floor}
    )


def increment_floor_death_count(state: GameState, floor: int) -> GameState:
    by_floor = dict(state.death_count_by_floor)
    by_floor[floor] = by_floor.get(floor, 0) + 1
    return state.model_copy(update={"death_count_by_floor": by_floor})


def set_floor(state: GameState, floor: int) -> GameState:
    return state.model_copy(update={"current_floor": floor})


def complete_scene(state: GameState, scene_id: str) -> GameState:
    """Mark a scene completed. Already-completed scenes are left as is."""
    if scene_id in state.completed_scenes:
        return state
    return state.model_copy(update={"completed_scenes": [*state.completed_scenes, scene_id]})


def reset_chapter_completed_scenes(state: GameState) -> GameState:
    return state.model_copy(update={"completed_scenes": []})


def reset_progress(state: GameState) -> GameState:
    """Put every progress counter back to its starting value."""
    defaults = GameState()
    return state.model_copy(
        update={
            "current_floor": defaults.current_floor,
            "death_count": defaults.death_count,
            "death_count_by_floor": {},
            "completed_scenes": [],
            "visited_scenes": [],
            "scene_count": defaults.scene_count,
        }
    )


def validate_progress(state: GameState) -> list[str]:
    """
    Check progress counters for impossible values.

    Returns:
        Problem descriptions; empty when the counters are valid
    """
    errors = []
    if state.current_floor < 1:
        errors.append(f"Invalid current floor: {state.current_floor} (must be >= 1)")
    if state.death_count < 0:
        errors.append(f"Invalid death count: {state.death_count} (must be >= 0)")
    for floor, count in state.death_count_by_floor.items():
        if count < 0:
            errors.append(f"Invalid death count on floor {floor}: {count} (must be >= 0)")
    if state.scene_count < 0:
        errors.append(f"Invalid scene count: {state.scene_count} (must be >= 0)")
    if len(set(state.completed_scenes)) != len(state.completed_scenes):
        errors.append("Completed scenes contain duplicates")
    return errors


def is_valid_progress(state: GameState) -> bool:
    return not validate_progress(state)


def format_progress(state: GameState) -> str:
    return (
        f"Floor: {state.current_floor} | Deaths: {state.death_count} | "
        f"Floor deaths: {current_floor_death_count(state)} | "
        f"Completed scenes: {len(state.completed_scenes)}"
    )
