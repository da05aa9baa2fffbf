"""State snapshot, catalogs and documents for towerfall."""

from .schema import (
    FORCE_GAMEOVER_FLAG,
    LEVEL_KEY,
    RESOURCE_CONFIG,
    RESOURCE_KEYS,
    STAT_CONFIG,
    STAT_KEYS,
    STAT_MAX,
    GameState,
    Item,
    Resource,
    Stat,
    new_game_state,
    resource_max,
)
from .catalog import (
    BuffData,
    Catalog,
    FlagData,
    ItemData,
    SkillData,
    SkillRank,
    VariableData,
)
from .loader import (
    CatalogLoader,
    DirectoryCatalogLoader,
    MemoryCatalogLoader,
    build_catalog,
)

__all__ = [
    # Snapshot
    "FORCE_GAMEOVER_FLAG",
    "LEVEL_KEY",
    "RESOURCE_CONFIG",
    "RESOURCE_KEYS",
    "STAT_CONFIG",
    "STAT_KEYS",
    "STAT_MAX",
    "GameState",
    "Item",
    "Resource",
    "Stat",
    "new_game_state",
    "resource_max",
    # Catalogs
    "BuffData",
    "Catalog",
    "FlagData",
    "ItemData",
    "SkillData",
    "SkillRank",
    "VariableData",
    # Loading
    "CatalogLoader",
    "DirectoryCatalogLoader",
    "MemoryCatalogLoader",
    "build_catalog",
]
