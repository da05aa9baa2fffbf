"""
Game systems for towerfall.

Systems combine the rules into whole operations: applying an effect
bundle, dispatching special effects, and describing what changed.
"""

from .effects import EffectsInterpreter, apply_operator
from .special_effects import SPECIAL_EFFECTS, SpecialEffect, apply_special_effects
from .comparator import StateComparator

__all__ = [
    "EffectsInterpreter",
    "apply_operator",
    "SPECIAL_EFFECTS",
    "SpecialEffect",
    "apply_special_effects",
    "StateComparator",
]
