"""
Game rules as pure functions.

Separates logic from data models for easier testing. Nothing here
mutates a snapshot; every rule returns a new one or a plain value.
"""

from .experience import (
    UNREACHABLE,
    ExperienceEngine,
    ExperienceType,
    default_experience_types,
)
from .conditions import ConditionEvaluator, check_numeric, evaluate
from .probability import (
    ProbabilityCalculator,
    ProbabilityDisplay,
    describe,
    from_percentage,
    roll,
    to_percentage,
)
from .gameover import (
    GameOverReason,
    clear_game_over_flags,
    game_over_reason,
    has_game_over_flag,
    is_game_over,
    set_game_over_flag,
)
from .progress import (
    complete_scene,
    current_floor_death_count,
    floor_death_count,
    format_progress,
    increment_death_count,
    increment_floor_death_count,
    is_valid_progress,
    reset_chapter_completed_scenes,
    reset_progress,
    set_floor,
    validate_progress,
)
from .availability import (
    available_choices,
    is_choice_available,
    next_label,
    random_selectable_scenes,
    scenes_matching_condition,
)

__all__ = [
    # Experience
    "UNREACHABLE",
    "ExperienceEngine",
    "ExperienceType",
    "default_experience_types",
    # Conditions
    "ConditionEvaluator",
    "check_numeric",
    "evaluate",
    # Probability
    "ProbabilityCalculator",
    "ProbabilityDisplay",
    "describe",
    "from_percentage",
    "roll",
    "to_percentage",
    # Game over
    "GameOverReason",
    "clear_game_over_flags",
    "game_over_reason",
    "has_game_over_flag",
    "is_game_over",
    "set_game_over_flag",
    # Progress
    "complete_scene",
    "current_floor_death_count",
    "floor_death_count",
    "format_progress",
    "increment_death_count",
    "increment_floor_death_count",
    "is_valid_progress",
    "reset_chapter_completed_scenes",
    "reset_progress",
    "set_floor",
    "validate_progress",
    # Availability
    "available_choices",
    "is_choice_available",
    "next_label",
    "random_selectable_scenes",
    "scenes_matching_condition",
]
