"""Tests for game-over detection and progress counters."""

from towerfall.rules.gameover import (
    GameOverReason,
    clear_game_over_flags,
    game_over_reason,
    has_game_over_flag,
    is_game_over,
    set_game_over_flag,
)
from towerfall.rules.progress import (
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


def with_resources(state, **values):
    return state.model_copy(update={"resources": {**state.resources, **values}})


class TestGameOver:
    """Test run-ending conditions."""

    def test_new_game_is_alive(self, state):
        """A fresh run is not over."""
        assert not is_game_over(state)
        assert game_over_reason(state) is None

    def test_health_depleted(self, state):
        """Zero health ends the run."""
        dead = with_resources(state, health=0)
        assert is_game_over(dead)
        assert game_over_reason(dead) == GameOverReason.HEALTH

    def test_mind_depleted(self, state):
        """Zero mind ends the run."""
        assert game_over_reason(with_resources(state, mind=0)) == GameOverReason.MIND

    def test_gold_never_ends_the_run(self, state):
        """Running out of gold is survivable."""
        assert not is_game_over(with_resources(state, gold=0))

    def test_forced_takes_precedence(self, state):
        """The flag is reported before depleted resources."""
        forced = set_game_over_flag(with_resources(state, health=0))
        assert game_over_reason(forced) == GameOverReason.FORCED

    def test_flag_helpers(self, state):
        """Setting twice keeps one flag; clearing removes it."""
        flagged = set_game_over_flag(set_game_over_flag(state))
        assert flagged.flags.count("force_gameover") == 1
        assert has_game_over_flag(flagged)
        assert not has_game_over_flag(clear_game_over_flags(flagged))


class TestProgress:
    """Test progress counter helpers."""

    def test_death_counts(self, state):
        """A death counts globally and on the current floor."""
        result = increment_death_count(set_floor(state, 3))
        assert result.death_count == 1
        assert current_floor_death_count(result) == 1
        assert floor_death_count(result, 2) == 0

    def test_floor_only_increment(self, state):
        """A floor increment leaves the global count alone."""
        result = increment_floor_death_count(state, 4)
        assert result.death_count == 0
        assert result.death_count_by_floor == {4: 1}

    def test_complete_scene_dedupes(self, state):
        """Completing a scene twice records it once."""
        result = complete_scene(complete_scene(state, "intro"), "intro")
        assert result.completed_scenes == ["intro"]
        assert reset_chapter_completed_scenes(result).completed_scenes == []

    def test_reset_progress(self, state):
        """Every counter returns to its start value."""
        played = state.model_copy(
            update={
                "current_floor": 4,
                "death_count": 3,
                "death_count_by_floor": {2: 3},
                "completed_scenes": ["a"],
                "scene_count": 9,
            }
        )
        result = reset_progress(played)
        assert (result.current_floor, result.death_count, result.scene_count) == (1, 0, 0)
        assert result.death_count_by_floor == {}
        assert result.completed_scenes == []

    def test_validate_progress(self, state):
        """Impossible counters are reported."""
        assert is_valid_progress(state)
        broken = state.model_copy(
            update={"current_floor": 0, "death_count": -1, "completed_scenes": ["a", "a"]}
        )
        errors = validate_progress(broken)
        assert len(errors) == 3
        assert not is_valid_progress(broken)

    def test_format_progress(self, state):
        """Summary line names the counters."""
        assert format_progress(state) == "Floor: 1 | Deaths: 0 | Floor deaths: 0 | Completed scenes: 0"
