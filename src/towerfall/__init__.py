"""
towerfall - rule engine for tower-climbing interactive fiction.

Evaluates conditions, resolves choice probabilities, applies effect
bundles and describes the resulting changes over immutable snapshots.
"""

from .engine import Engine
from .errors import CatalogLoadError, DocumentError, TowerfallError
from .rules import (
    ConditionEvaluator,
    ExperienceEngine,
    GameOverReason,
    ProbabilityCalculator,
    evaluate,
    game_over_reason,
    is_game_over,
)
from .state import (
    Catalog,
    DirectoryCatalogLoader,
    GameState,
    MemoryCatalogLoader,
    new_game_state,
)
from .state.schemas import ChangeRecord, ChangeSet, EffectBundle
from .systems import EffectsInterpreter, StateComparator

__version__ = "0.1.0"

__all__ = [
    "Engine",
    "CatalogLoadError",
    "DocumentError",
    "TowerfallError",
    "ConditionEvaluator",
    "ExperienceEngine",
    "GameOverReason",
    "ProbabilityCalculator",
    "evaluate",
    "game_over_reason",
    "is_game_over",
    "Catalog",
    "DirectoryCatalogLoader",
    "GameState",
    "MemoryCatalogLoader",
    "new_game_state",
    "ChangeRecord",
    "ChangeSet",
    "EffectBundle",
    "EffectsInterpreter",
    "StateComparator",
]
