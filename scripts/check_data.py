#!/usr/bin/env python3
"""
towerfall Data Integrity Auditor

Validates catalog files and chapter documents before they reach the engine.
Catches broken references that the engine would otherwise skip with a
warning at play time.

Expected layout:
    <data>/buffs.json|yaml, flags, items, variables, skills
    <data>/chapters/*.json|yaml

Usage:
    python check_data.py --data data          # Console output
    python check_data.py --data data --json   # JSON output for CI

Exit codes:
    0 - All checks passed
    1 - Warnings only
    2 - Errors found
"""

from __future__ import annotations

import argparse
import io
import json
import sys
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from towerfall.state.catalog import BuffData, FlagData, ItemData, SkillData, VariableData
from towerfall.state.loader import CATALOG_SECTIONS, SUFFIXES, DirectoryCatalogLoader
from towerfall.state.schemas.effects import EffectBundle, SpecialEffectId
from towerfall.state.schemas.scene import Chapter

# ─────────────────────────────────────────────────────────────────────────────
# Findings
# ─────────────────────────────────────────────────────────────────────────────


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class Issue:
    """One finding, tied to the data file it came from."""

    severity: Severity
    area: str  # catalog section, chapter, navigation, reference, setup
    message: str
    source: str | None = None
    context: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {**asdict(self), "severity": self.severity.value}


def error(area: str, message: str, source: str | None = None, **context) -> Issue:
    return Issue(Severity.ERROR, area, message, source, context)


def warning(area: str, message: str, source: str | None = None, **context) -> Issue:
    return Issue(Severity.WARNING, area, message, source, context)


def info(area: str, message: str, source: str | None = None, **context) -> Issue:
    return Issue(Severity.INFO, area, message, source, context)


@dataclass
class ValidationResult:
    issues: list[Issue] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)  # entries per catalog section, chapters

    def count(self, severity: Severity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    @property
    def error_count(self) -> int:
        return self.count(Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return self.count(Severity.WARNING)

    @property
    def is_healthy(self) -> bool:
        return self.error_count == 0

    @property
    def exit_code(self) -> int:
        if self.error_count:
            return 2
        return 1 if self.warning_count else 0

    def to_dict(self) -> dict:
        return {
            "status": "pass" if self.is_healthy else "fail",
            "stats": self.stats,
            "summary": {
                "errors": self.error_count,
                "warnings": self.warning_count,
                "info": self.count(Severity.INFO),
            },
            "issues": [issue.to_dict() for issue in self.issues],
        }


ENTRY_MODELS: dict[str, type[BaseModel]] = {
    "buffs": BuffData,
    "flags": FlagData,
    "items": ItemData,
    "variables": VariableData,
    "skills": SkillData,
}


# ─────────────────────────────────────────────────────────────────────────────
# Validators
# ─────────────────────────────────────────────────────────────────────────────


class CatalogValidator:
    """Validates raw catalog sections entry by entry."""

    def __init__(self, sections: dict[str, tuple[dict, str]]):
        self.sections = sections  # section -> (raw entries, file path)

    def validate(self) -> list[Issue]:
        issues = []
        for section, (entries, path) in self.sections.items():
            if not isinstance(entries, dict):
                issues.append(error(section, f"{section} must be a mapping of id to entry", path))
                continue
            for key, entry in entries.items():
                issues.extend(self._validate_entry(section, key, entry, path))
        return issues

    def _validate_entry(self, section: str, key: str, entry: Any, path: str) -> list[Issue]:
        if not isinstance(entry, dict):
            return [error(section, f"{section} entry '{key}' is not a mapping", path)]

        issues = []
        declared = entry.get("id", key)
        if declared != key:
            issues.append(warning(section, f"{section} entry '{key}' declares id '{declared}'", path, key=key, id=declared))

        try:
            model = ENTRY_MODELS[section].model_validate({**entry, "id": key})
        except ValidationError as e:
            issues.append(error(
                section,
                f"{section} entry '{key}' has invalid fields: {e.error_count()} error(s)",
                path,
                errors=[err["msg"] for err in e.errors()],
            ))
            return issues

        if isinstance(model, VariableData):
            issues.extend(self._check_variable_bounds(model, path))
        elif isinstance(model, SkillData):
            issues.extend(self._check_skill_ranks(model, path))
        return issues

    def _check_variable_bounds(self, variable: VariableData, path: str) -> list[Issue]:
        low, high, default = variable.min_value, variable.max_value, variable.default_value
        if low is not None and high is not None and low > high:
            return [error("variables", f"Variable '{variable.id}' has min {low} above max {high}", path)]
        if (low is not None and default < low) or (high is not None and default > high):
            return [warning("variables", f"Variable '{variable.id}' default {default} is outside its bounds", path)]
        return []

    def _check_skill_ranks(self, skill: SkillData, path: str) -> list[Issue]:
        issues = []
        if not skill.ranks:
            issues.append(info("skills", f"Skill '{skill.id}' has no ranks and can never level up", path))
        for index, rank in enumerate(skill.ranks):
            if rank.exp <= 0:
                issues.append(warning(
                    "skills",
                    f"Skill '{skill.id}' rank {index + 1} ({rank.name}) needs {rank.exp} exp and is unreachable",
                    path,
                ))
        return issues


class ChapterValidator:
    """Validates chapter documents and their references into the catalog."""

    def __init__(self, chapters: list[tuple[Any, str]], known_ids: dict[str, set[str]]):
        self.chapters = chapters  # (raw chapter, file path)
        self.known = known_ids    # catalog section -> ids

    def validate(self) -> list[Issue]:
        issues = []
        for raw, path in self.chapters:
            try:
                chapter = Chapter.model_validate(raw)
            except ValidationError as e:
                issues.append(error(
                    "chapter",
                    f"Chapter document does not parse: {e.error_count()} error(s)",
                    path,
                    errors=[err["msg"] for err in e.errors()][:10],
                ))
                continue
            issues.extend(self._check_scene_ids(chapter, path))
            issues.extend(self._check_next_references(chapter, path))
            issues.extend(self._check_probabilities(chapter, path))
            for scene in chapter.scenes:
                for bundle in (scene.effects, scene.initial_effects):
                    if bundle is not None:
                        issues.extend(self._check_effect_references(scene.id, bundle, path))
        return issues

    def _check_scene_ids(self, chapter: Chapter, path: str) -> list[Issue]:
        issues = []
        seen: set[str] = set()
        for scene in chapter.scenes:
            if scene.id in seen:
                issues.append(error(
                    "chapter",
                    f"Chapter '{chapter.id}' has duplicate scene id '{scene.id}'",
                    path,
                    chapter=chapter.id,
                    scene=scene.id,
                ))
            seen.add(scene.id)
        return issues

    def _check_next_references(self, chapter: Chapter, path: str) -> list[Issue]:
        """Scene targets within the same chapter must exist."""
        issues = []
        scene_ids = {scene.id for scene in chapter.scenes}

        for scene in chapter.scenes:
            for choice in scene.choices:
                targets = [choice.next]
                if choice.probability is not None:
                    targets.extend([choice.probability.success_next, choice.probability.failure_next])
                for target in targets:
                    if target is None or not target.scene_id:
                        continue
                    if target.chapter_id and target.chapter_id != chapter.id:
                        continue
                    if target.scene_id not in scene_ids:
                        issues.append(warning(
                            "navigation",
                            f"Scene '{scene.id}' choice '{choice.text}' targets unknown scene '{target.scene_id}'",
                            path,
                            chapter=chapter.id,
                            scene=scene.id,
                            target=target.scene_id,
                        ))
        return issues

    def _check_probabilities(self, chapter: Chapter, path: str) -> list[Issue]:
        issues = []
        for scene in chapter.scenes:
            for choice in scene.choices:
                block = choice.probability
                if block is not None and not 0.0 <= block.base_rate <= 1.0:
                    issues.append(warning(
                        "probability",
                        f"Scene '{scene.id}' choice '{choice.text}' base_rate {block.base_rate} is outside [0, 1]",
                        path,
                    ))
        return issues

    def _check_effect_references(self, scene_id: str, bundle: EffectBundle, path: str) -> list[Issue]:
        references: list[tuple[str, str]] = []
        references += [("buffs", b) for b in [*bundle.add_buffs, *bundle.remove_buffs]]
        references += [("flags", f) for f in [*bundle.set_flags, *bundle.unset_flags]]
        references += [("items", i) for i in bundle.items]
        references += [("variables", v.id) for v in bundle.variables]
        references += [("skills", s) for s in bundle.skill_experience_deltas()]

        issues = [
            warning(
                "reference",
                f"Scene '{scene_id}' effects reference unknown {section[:-1]} '{entry_id}'",
                path,
                scene=scene_id,
                section=section,
                id=entry_id,
            )
            for section, entry_id in references
            if entry_id not in self.known.get(section, set())
        ]

        valid_specials = {e.value for e in SpecialEffectId}
        for effect_id in bundle.special_effects:
            if effect_id not in valid_specials:
                issues.append(warning(
                    "reference",
                    f"Scene '{scene_id}' uses unknown special effect '{effect_id}'",
                    path,
                    valid=sorted(valid_specials),
                ))
        return issues


# ─────────────────────────────────────────────────────────────────────────────
# Auditor
# ─────────────────────────────────────────────────────────────────────────────


class DataAuditor:
    """Loads a data directory and runs every validator over it."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def run(self) -> ValidationResult:
        result = ValidationResult()

        if not self.data_dir.is_dir():
            result.issues.append(error("setup", "Data directory not found", str(self.data_dir)))
            return result

        sections, load_issues = self._load_catalog()
        chapters, chapter_issues = self._load_chapters()
        result.issues.extend(load_issues + chapter_issues)

        known_ids = {
            section: set(entries) if isinstance(entries, dict) else set()
            for section, (entries, _) in sections.items()
        }

        result.stats = {section: len(ids) for section, ids in known_ids.items()}
        result.stats["chapters"] = len(chapters)

        result.issues.extend(CatalogValidator(sections).validate())
        result.issues.extend(ChapterValidator(chapters, known_ids).validate())
        return result

    def _read(self, path: Path) -> Any:
        with open(path, encoding="utf-8") as f:
            if path.suffix == ".json":
                return json.load(f)
            return yaml.safe_load(f)

    def _load_catalog(self) -> tuple[dict[str, tuple[dict, str]], list[Issue]]:
        loader = DirectoryCatalogLoader(self.data_dir)
        sections: dict[str, tuple[dict, str]] = {}
        issues = []
        for section in CATALOG_SECTIONS:
            path = loader.find_file(section)
            if path is None:
                issues.append(info("setup", f"No {section} catalog file", str(self.data_dir)))
                continue
            try:
                sections[section] = (self._read(path) or {}, str(path))
            except (json.JSONDecodeError, yaml.YAMLError) as e:
                issues.append(error("setup", f"Could not parse {section} catalog: {e}", str(path)))
        return sections, issues

    def _load_chapters(self) -> tuple[list[tuple[Any, str]], list[Issue]]:
        chapters_dir = self.data_dir / "chapters"
        if not chapters_dir.is_dir():
            return [], []

        chapters = []
        issues = []
        for path in sorted(chapters_dir.iterdir()):
            if path.suffix not in SUFFIXES:
                continue
            try:
                chapters.append((self._read(path), str(path)))
            except (json.JSONDecodeError, yaml.YAMLError) as e:
                issues.append(error("setup", f"Could not parse chapter file: {e}", str(path)))
        return chapters, issues


# ─────────────────────────────────────────────────────────────────────────────
# Output Formatters
# ─────────────────────────────────────────────────────────────────────────────


def format_console(result: ValidationResult) -> str:
    """Format results for console output."""
    lines = ["Data Integrity Report", "=" * 50, "Data loaded:"]
    lines.extend(f"  - {key}: {value}" for key, value in result.stats.items())
    lines.extend(["", "Validation Results", "=" * 50, ""])

    if not result.issues:
        lines.append("✓ All checks passed!")
    for severity in Severity:
        for issue in result.issues:
            if issue.severity != severity:
                continue
            lines.append(f"[{severity.value.upper()}] {issue.area}: {issue.message}")
            if issue.source:
                lines.append(f"  File: {Path(issue.source).as_posix()}")
            lines.append("")

    lines.extend([
        "-" * 50,
        f"Summary: {result.error_count} error(s), {result.warning_count} warning(s), "
        f"{result.count(Severity.INFO)} info",
        f"Status: {'HEALTHY' if result.is_healthy else 'BROKEN'}",
    ])
    return "\n".join(lines)


# ─────────────────────────────────────────────────────────────────────────────
# CLI Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def main():
    parser = argparse.ArgumentParser(description="Validate towerfall catalog and chapter data")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    parser.add_argument(
        "--data",
        type=Path,
        default=Path("data"),
        help="Data directory holding catalog files and chapters/",
    )
    args = parser.parse_args()

    # Ensure UTF-8 output on Windows
    if sys.stdout.encoding and sys.stdout.encoding.lower() != "utf-8":
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding="utf-8", errors="replace")

    result = DataAuditor(args.data).run()
    print(json.dumps(result.to_dict(), indent=2) if args.json else format_console(result))
    sys.exit(result.exit_code)


if __name__ == "__main__":
    main()
