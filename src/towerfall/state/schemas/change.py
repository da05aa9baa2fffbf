"""
Change records produced by the state comparator.

Formatting records into player-facing text is left to the caller.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class ChangeCategory(str, Enum):
    STAT = "stat"
    RESOURCE = "resource"
    BUFF = "buff"
    ITEM = "item"
    EXPERIENCE = "experience"
    LEVEL = "level"


class ChangeType(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    ADD = "add"
    REMOVE = "remove"


class ChangeRecord(BaseModel):
    """One player-visible difference between two snapshots."""

    category: ChangeCategory
    type: ChangeType
    id: str
    display_name: str
    old_value: int | None = None
    new_value: int | None = None
    change: int | None = None      # absolute size of a numeric change
    quantity: int | None = None    # items only
    extra_text: str | None = None  # e.g. rank names for skill level-ups


class ChangeSet(BaseModel):
    changes: list[ChangeRecord] = Field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.changes)

    def by_category(self, category: ChangeCategory) -> list[ChangeRecord]:
        return [c for c in self.changes if c.category == category]

    def __len__(self) -> int:
        return len(self.changes)
