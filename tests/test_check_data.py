"""Tests for the data integrity auditor script."""

import importlib.util
import json
import sys
from pathlib import Path

import pytest

SCRIPT = Path(__file__).parent.parent / "scripts" / "check_data.py"


@pytest.fixture(scope="module")
def check_data():
    """The auditor script loaded as a module."""
    spec = importlib.util.spec_from_file_location("check_data", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    sys.modules["check_data"] = module
    spec.loader.exec_module(module)
    return module


def write(path: Path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


CHAPTER = {
    "id": "floor_1",
    "scenes": [
        {
            "id": "intro",
            "choices": [{"text": "Go on", "next": {"scene_id": "hall"}}],
            "effects": {"add_buffs": ["injured"], "items": {"rope": 1}},
        },
        {"id": "hall", "choices": [{"text": "Up", "next": {"chapter_id": "floor_2"}}]},
    ],
}


@pytest.fixture
def data_dir(tmp_path, raw_catalog):
    """Clean data directory with one chapter."""
    for section, entries in raw_catalog.items():
        write(tmp_path / f"{section}.json", entries)
    write(tmp_path / "chapters" / "floor_1.json", CHAPTER)
    return tmp_path


class TestAuditor:
    """Test audit results on data directories."""

    def test_clean_data(self, check_data, data_dir):
        """Consistent data passes with exit code 0."""
        result = check_data.DataAuditor(data_dir).run()
        assert result.issues == []
        assert result.exit_code == 0
        assert result.stats["chapters"] == 1
        assert result.stats["buffs"] == 3

    def test_missing_directory(self, check_data, tmp_path):
        """A missing directory is an error."""
        result = check_data.DataAuditor(tmp_path / "nope").run()
        assert result.exit_code == 2

    def test_duplicate_scene_id(self, check_data, data_dir):
        """Duplicate scene ids in a chapter are errors."""
        chapter = {**CHAPTER, "scenes": CHAPTER["scenes"] + [{"id": "hall"}]}
        write(data_dir / "chapters" / "floor_1.json", chapter)
        result = check_data.DataAuditor(data_dir).run()
        assert result.error_count == 1
        assert result.exit_code == 2

    def test_unknown_references(self, check_data, data_dir):
        """Effects naming unknown ids and missing scene targets are warnings."""
        chapter = {
            "id": "floor_1",
            "scenes": [
                {
                    "id": "intro",
                    "choices": [{"text": "Go", "next": {"scene_id": "nowhere"}}],
                    "effects": {
                        "add_buffs": ["cursed"],
                        "variables": [{"id": "luck", "operator": "add", "value": 1}],
                        "special_effects": {"summon": True},
                    },
                }
            ],
        }
        write(data_dir / "chapters" / "floor_1.json", chapter)
        result = check_data.DataAuditor(data_dir).run()

        assert result.error_count == 0
        assert result.warning_count == 4
        assert result.exit_code == 1

    def test_catalog_entry_problems(self, check_data, data_dir, raw_catalog):
        """Id mismatches warn; bad fields are errors."""
        variables = {
            **raw_catalog["variables"],
            "score": {"id": "points", "defaultValue": 0},
            "mood": {"defaultValue": "happy"},
        }
        write(data_dir / "variables.json", variables)
        result = check_data.DataAuditor(data_dir).run()

        assert result.warning_count == 1
        assert result.error_count == 1

    def test_unparseable_chapter(self, check_data, data_dir):
        """A chapter that does not parse is an error."""
        write(data_dir / "chapters" / "floor_2.json", {"scenes": "none"})
        result = check_data.DataAuditor(data_dir).run()
        assert result.error_count == 1


class TestOutput:
    """Test report formatting."""

    def test_to_dict(self, check_data, data_dir):
        """JSON output carries status, stats and issues."""
        report = check_data.DataAuditor(data_dir).run().to_dict()
        assert report["status"] == "pass"
        assert report["summary"] == {"errors": 0, "warnings": 0, "info": 0}
        assert report["issues"] == []

    def test_format_console(self, check_data, data_dir):
        """Console output ends with the status line."""
        text = check_data.format_console(check_data.DataAuditor(data_dir).run())
        assert "All checks passed" in text
        assert text.endswith("Status: HEALTHY")

    def test_issue_names_area_and_source(self, check_data, data_dir):
        """Each issue reports its area, source file and context."""
        write(data_dir / "chapters" / "floor_1.json", {**CHAPTER, "scenes": CHAPTER["scenes"] + [{"id": "hall"}]})
        result = check_data.DataAuditor(data_dir).run()

        issue = result.to_dict()["issues"][0]
        assert issue["severity"] == "error"
        assert issue["area"] == "chapter"
        assert issue["source"].endswith("floor_1.json")
        assert issue["context"] == {"chapter": "floor_1", "scene": "hall"}
        assert "[ERROR] chapter: Chapter 'floor_1' has duplicate scene id 'hall'" in check_data.format_console(result)

    def test_missing_section_is_info(self, check_data, data_dir):
        """A missing catalog file is reported without failing the audit."""
        (data_dir / "skills.json").unlink()
        result = check_data.DataAuditor(data_dir).run()

        assert result.count(check_data.Severity.INFO) == 1
        assert result.exit_code == 0
        assert result.to_dict()["summary"]["info"] == 1
