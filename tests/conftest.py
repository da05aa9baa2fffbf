"""
Pytest fixtures for towerfall tests.

Provides an in-memory catalog, fresh snapshots and engine objects bound
to that catalog.
"""

import pytest
from pathlib import Path

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from towerfall.engine import Engine
from towerfall.rules.conditions import ConditionEvaluator
from towerfall.rules.experience import ExperienceEngine
from towerfall.rules.probability import ProbabilityCalculator
from towerfall.state import MemoryCatalogLoader, new_game_state
from towerfall.systems.comparator import StateComparator
from towerfall.systems.effects import EffectsInterpreter


RAW_CATALOG = {
    "buffs": {
        "injured": {"displayName": "Injured", "category": "negative"},
        "blessed": {"displayName": "Blessed", "category": "positive", "temporary": True},
        "poisoned": {"displayName": "Poisoned", "category": "negative", "temporary": True},
    },
    "flags": {
        "met_merchant": {"displayName": "Met the merchant"},
        "has_key": {"displayName": "Has the tower key"},
    },
    "items": {
        "health_potion": {"name": "Health Potion", "description": "Restores health"},
        "torch": {"name": "Torch", "persist": False},
        "rope": {"name": "Rope"},
    },
    "variables": {
        "score": {"defaultValue": 0, "minValue": 0, "maxValue": 100},
        "karma": {"defaultValue": 5, "minValue": -10, "maxValue": 10, "persist": False},
    },
    "skills": {
        "swordsmanship": {
            "displayName": "Swordsmanship",
            "ranks": [
                {"name": "Novice", "exp": 10},
                {"name": "Adept", "exp": 20},
                {"name": "Master", "exp": 30},
            ],
        },
        "lockpicking": {
            "displayName": "Lockpicking",
            "persist": False,
            "ranks": [
                {"name": "Fumbler", "exp": 5},
                {"name": "Picker", "exp": 5},
            ],
        },
    },
}


@pytest.fixture
def raw_catalog():
    """Raw catalog sections as they appear in data files."""
    return RAW_CATALOG


@pytest.fixture
def catalog():
    """Catalog built from the in-memory sections."""
    return MemoryCatalogLoader(RAW_CATALOG).load()


@pytest.fixture
def state(catalog):
    """Fresh snapshot for a new run."""
    return new_game_state(catalog)


@pytest.fixture
def experience(catalog):
    """Experience rules with the default type table."""
    return ExperienceEngine(catalog)


@pytest.fixture
def evaluator(catalog, experience):
    """Condition evaluator bound to the test catalog."""
    return ConditionEvaluator(catalog, experience)


@pytest.fixture
def calculator(catalog):
    """Probability calculator bound to the test catalog."""
    return ProbabilityCalculator(catalog)


@pytest.fixture
def interpreter(catalog, experience):
    """Effects interpreter bound to the test catalog."""
    return EffectsInterpreter(catalog, experience)


@pytest.fixture
def comparator(catalog, experience):
    """State comparator bound to the test catalog."""
    return StateComparator(catalog, experience)


@pytest.fixture
def engine(catalog):
    """Engine facade over the test catalog."""
    return Engine(catalog)
