"""
Engine facade.

Wires the rule objects to one catalog so callers hold a single handle:

    engine = Engine.from_directory("data")
    state = engine.new_game()
    if engine.evaluate(choice.condition, state):
        preview = engine.predict(choice_effects, state)
        state = engine.apply(choice_effects, state)

Every method is a pure call; the caller owns the current snapshot.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path
from typing import Any

from .rules.conditions import ConditionEvaluator
from .rules.experience import ExperienceEngine
from .rules.gameover import GameOverReason, game_over_reason, is_game_over
from .rules.probability import ProbabilityCalculator, ProbabilityDisplay
from .state.catalog import Catalog
from .state.loader import CatalogLoader, DirectoryCatalogLoader
from .state.schema import GameState, new_game_state
from .state.schemas.change import ChangeSet
from .state.schemas.scene import Next
from .systems.comparator import StateComparator
from .systems.effects import EffectsInterpreter

logger = logging.getLogger(__name__)


class Engine:
    """One catalog, every rule bound to it."""

    def __init__(self, catalog: Catalog | None = None, rng: random.Random | None = None):
        self.catalog = catalog or Catalog()
        self.rng = rng or random.Random()
        self.experience = ExperienceEngine(self.catalog)
        self.conditions = ConditionEvaluator(self.catalog, self.experience)
        self.probability = ProbabilityCalculator(self.catalog)
        self.effects = EffectsInterpreter(self.catalog, self.experience)
        self.comparator = StateComparator(self.catalog, self.experience)

    @classmethod
    def from_loader(cls, loader: CatalogLoader, rng: random.Random | None = None) -> "Engine":
        return cls(loader.load(), rng=rng)

    @classmethod
    def from_directory(cls, data_dir: Path | str, rng: random.Random | None = None) -> "Engine":
        catalog = DirectoryCatalogLoader(data_dir).load()
        logger.info(f"Loaded catalog from {data_dir}: {catalog.summary()}")
        return cls(catalog, rng=rng)

    def new_game(self) -> GameState:
        return new_game_state(self.catalog)

    # ─── Conditions ─────────────────────────────────────────

    def evaluate(self, condition: Any, state: GameState) -> bool:
        return self.conditions.evaluate(condition, state)

    # ─── Probability ────────────────────────────────────────

    def resolve_probability(self, block: Any, state: GameState) -> float:
        return self.probability.resolve_block(block, state)

    def roll_choice(self, block: Any, state: GameState) -> Next:
        """Resolve and roll a probability block; returns the branch taken."""
        return self.probability.process(block, state, self.rng)

    def probability_display(self, block: Any, state: GameState) -> ProbabilityDisplay:
        return self.probability.display_info(block, state)

    # ─── Effects ────────────────────────────────────────────

    def apply(self, effects: Any, state: GameState) -> GameState:
        return self.effects.apply(effects, state)

    def predict(self, effects: Any, state: GameState | None = None) -> ChangeSet:
        return self.comparator.predict_changes_from_effects(effects, state)

    def compare(self, old: GameState, new: GameState) -> ChangeSet:
        return self.comparator.compare_states(old, new)

    # ─── Game over ──────────────────────────────────────────

    def is_game_over(self, state: GameState) -> bool:
        return is_game_over(state)

    def game_over_reason(self, state: GameState) -> GameOverReason | None:
        return game_over_reason(state)
