"""
Game-over detection.

A run ends when the force_gameover flag is set or a survival resource
(health, mind) is at or below zero. Gold running out never ends a run.
"""

from __future__ import annotations

from enum import Enum

from ..state.schema import FORCE_GAMEOVER_FLAG, SURVIVAL_RESOURCES, GameState, Resource

# Flags that end the run when present
GAMEOVER_FLAGS: tuple[str, ...] = (FORCE_GAMEOVER_FLAG,)


class GameOverReason(str, Enum):
    FORCED = "force"
    HEALTH = "health"
    MIND = "mind"


def has_game_over_flag(state: GameState) -> bool:
    return any(flag in state.flags for flag in GAMEOVER_FLAGS)


def set_game_over_flag(state: GameState) -> GameState:
    if FORCE_GAMEOVER_FLAG in state.flags:
        return state
    return state.model_copy(update={"flags": [*state.flags, FORCE_GAMEOVER_FLAG]})


def clear_game_over_flags(state: GameState) -> GameState:
    """Drop game-over flags, e.g. when restarting a floor."""
    return state.model_copy(
        update={"flags": [f for f in state.flags if f not in GAMEOVER_FLAGS]}
    )


def is_game_over(state: GameState) -> bool:
    if has_game_over_flag(state):
        return True
    return any(state.resource(key) <= 0 for key in SURVIVAL_RESOURCES)


def game_over_reason(state: GameState) -> GameOverReason | None:
    """First matching cause, checked as forced, health, mind."""
    if has_game_over_flag(state):
        return GameOverReason.FORCED
    if state.resource(Resource.HEALTH.value) <= 0:
        return GameOverReason.HEALTH
    if state.resource(Resource.MIND.value) <= 0:
        return GameOverReason.MIND
    return None
