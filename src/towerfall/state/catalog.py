"""
Catalog documents: the read-only, data-driven registries of buffs, flags,
items, variables and skills.

Catalog files are keyed by id and use camelCase field names
(``displayName``, ``defaultValue``). The models accept both the file
names and the snake_case attribute names.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CatalogEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    id: str


class BuffData(CatalogEntry):
    display_name: str = Field(alias="displayName")
    description: str = ""
    temporary: bool = False  # True: removed by rest room cleanup
    category: Literal["positive", "negative", "neutral"] = "neutral"


class FlagData(CatalogEntry):
    display_name: str = Field(alias="displayName")
    description: str = ""
    category: str = "state"


class ItemData(CatalogEntry):
    name: str
    description: str = ""
    category: str = "misc"
    persist: bool = True


class VariableData(CatalogEntry):
    description: str = ""
    category: str = "misc"
    default_value: int = Field(default=0, alias="defaultValue")
    min_value: int | None = Field(default=None, alias="minValue")
    max_value: int | None = Field(default=None, alias="maxValue")
    persist: bool = True  # False: reset to default by rest room cleanup


class SkillRank(BaseModel):
    name: str
    description: str = ""
    exp: int  # experience needed to go from this rank's index to the next level


class SkillData(CatalogEntry):
    display_name: str | None = Field(default=None, alias="displayName")
    persist: bool = True
    ranks: list[SkillRank] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return self.display_name or self.id

    def rank_name(self, level: int) -> str:
        """Name of the rank reached at ``level`` (1-based), ``Lv.N`` fallback."""
        if 1 <= level <= len(self.ranks):
            return self.ranks[level - 1].name
        return f"Lv.{level}"


class Catalog(BaseModel):
    """
    All catalogs, passed explicitly to every engine component.

    Build one from files with a CatalogLoader, or directly in tests:
    ``Catalog(buffs={"injured": BuffData(id="injured", display_name="Injured")})``.
    """
    model_config = ConfigDict(frozen=True)

    buffs: dict[str, BuffData] = Field(default_factory=dict)
    flags: dict[str, FlagData] = Field(default_factory=dict)
    items: dict[str, ItemData] = Field(default_factory=dict)
    variables: dict[str, VariableData] = Field(default_factory=dict)
    skills: dict[str, SkillData] = Field(default_factory=dict)

    def is_buff(self, buff_id: str) -> bool:
        return buff_id in self.buffs

    def is_flag(self, flag_id: str) -> bool:
        return flag_id in self.flags

    def is_item(self, item_id: str) -> bool:
        return item_id in self.items

    def is_variable(self, variable_id: str) -> bool:
        return variable_id in self.variables

    def is_skill(self, skill_id: str) -> bool:
        return skill_id in self.skills

    def buff(self, buff_id: str) -> BuffData | None:
        return self.buffs.get(buff_id)

    def flag(self, flag_id: str) -> FlagData | None:
        return self.flags.get(flag_id)

    def item(self, item_id: str) -> ItemData | None:
        return self.items.get(item_id)

    def variable(self, variable_id: str) -> VariableData | None:
        return self.variables.get(variable_id)

    def skill(self, skill_id: str) -> SkillData | None:
        return self.skills.get(skill_id)

    def summary(self) -> dict[str, int]:
        return {
            "buffs": len(self.buffs),
            "flags": len(self.flags),
            "items": len(self.items),
            "variables": len(self.variables),
            "skills": len(self.skills),
        }
