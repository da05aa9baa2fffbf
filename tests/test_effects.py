"""Tests for the effects interpreter."""

import logging

from towerfall.state.schema import Item
from towerfall.state.schemas.effects import EffectBundle, VariableEffect
from towerfall.systems.effects import apply_operator


class TestStatsAndResources:
    """Test clamped numeric deltas."""

    def test_combined_bundle(self, interpreter, state):
        """Stat gain, lethal damage and a new buff in one bundle."""
        start = state.model_copy(
            update={
                "stats": {**state.stats, "strength": 3},
                "resources": {**state.resources, "health": 2},
            }
        )
        result = interpreter.apply({"strength": 1, "health": -5, "add_buffs": ["injured"]}, start)

        assert result.stat("strength") == 4
        assert result.resource("health") == 0
        assert result.buffs == ["injured"]

    def test_stats_clamped(self, interpreter, state):
        """Stats stay within [0, 10]."""
        assert interpreter.apply({"agility": 50}, state).stat("agility") == 10
        assert interpreter.apply({"agility": -50}, state).stat("agility") == 0

    def test_resources_clamped_to_max(self, interpreter, state):
        """Resources stay within [0, max]."""
        result = interpreter.apply({"gold": 10, "mind": 5}, state)
        assert result.resource("gold") == 4
        assert result.resource("mind") == 3

    def test_empty_bundle_is_identity(self, interpreter, state):
        """Nothing to apply returns an equal snapshot."""
        assert interpreter.apply({}, state) == state
        assert interpreter.apply(None, state) == state

    def test_input_untouched(self, interpreter, state):
        """The input snapshot is never modified."""
        before = state.model_dump()
        interpreter.apply(
            {"strength": 2, "add_buffs": ["injured"], "items": {"rope": 1}, "exp": {"swordsmanship": 15}},
            state,
        )
        assert state.model_dump() == before


class TestBuffsAndFlags:
    """Test set-like additions and removals."""

    def test_buff_add_is_idempotent(self, interpreter, state):
        """Adding a held buff again changes nothing."""
        once = interpreter.apply({"add_buffs": ["injured"]}, state)
        twice = interpreter.apply({"add_buffs": ["injured"]}, once)
        assert twice.buffs == ["injured"]

    def test_unknown_buff_skipped(self, interpreter, state, caplog):
        """Ids missing from the catalog are logged and skipped."""
        with caplog.at_level(logging.WARNING):
            result = interpreter.apply({"add_buffs": ["cursed", "blessed"]}, state)
        assert result.buffs == ["blessed"]
        assert "cursed" in caplog.text

    def test_remove_buff(self, interpreter, state):
        """Removal filters the buff out."""
        held = state.model_copy(update={"buffs": ["injured", "blessed"]})
        assert interpreter.apply({"remove_buffs": ["injured"]}, held).buffs == ["blessed"]

    def test_flags(self, interpreter, state):
        """Flags set and unset like buffs."""
        flagged = interpreter.apply({"set_flags": ["has_key", "met_merchant"]}, state)
        assert flagged.flags == ["has_key", "met_merchant"]
        assert interpreter.apply({"unset_flags": ["has_key"]}, flagged).flags == ["met_merchant"]


class TestItems:
    """Test item quantity merging."""

    def test_new_item_from_catalog(self, interpreter, state):
        """A new item takes its name and persistence from the catalog."""
        result = interpreter.apply({"items": {"torch": 2}}, state)
        assert result.items == [Item(id="torch", name="Torch", persist=False, quantity=2)]

    def test_positive_delta_merges(self, interpreter, state):
        """Gaining a held item adds to its quantity."""
        held = state.model_copy(update={"items": [Item(id="rope", name="Rope", quantity=1)]})
        assert interpreter.apply({"items": {"rope": 2}}, held).item_quantity("rope") == 3

    def test_partial_removal(self, interpreter, state):
        """Losing fewer than held decrements."""
        held = state.model_copy(update={"items": [Item(id="rope", name="Rope", quantity=3)]})
        assert interpreter.apply({"items": {"rope": -2}}, held).item_quantity("rope") == 1

    def test_removal_deletes_entry(self, interpreter, state):
        """Losing all or more than held drops the entry."""
        held = state.model_copy(update={"items": [Item(id="rope", name="Rope", quantity=2)]})
        assert interpreter.apply({"items": {"rope": -2}}, held).items == []
        assert interpreter.apply({"items": {"rope": -5}}, held).items == []

    def test_zero_and_missing(self, interpreter, state):
        """Zero deltas and removals of unheld items do nothing."""
        assert interpreter.apply({"items": {"rope": 0, "torch": -1}}, state).items == []

    def test_unknown_item_skipped(self, interpreter, state):
        """Items missing from the catalog are not created."""
        assert interpreter.apply({"items": {"dragon_egg": 1}}, state).items == []


class TestVariables:
    """Test variable operators and bounds."""

    def test_operators(self, interpreter, state):
        """add, subtract, set and multiply apply in order."""
        bundle = {
            "variables": [
                {"id": "score", "operator": "add", "value": 10},
                {"id": "score", "operator": "multiply", "value": 2.5},
                {"id": "score", "operator": "subtract", "value": 3},
                {"id": "karma", "operator": "set", "value": -2},
            ]
        }
        result = interpreter.apply(bundle, state)
        assert result.variable("score") == 22
        assert result.variable("karma") == -2

    def test_clamped_to_bounds(self, interpreter, state):
        """Results respect the catalog min and max."""
        high = interpreter.apply({"variables": [{"id": "score", "operator": "add", "value": 500}]}, state)
        low = interpreter.apply({"variables": [{"id": "karma", "operator": "subtract", "value": 50}]}, state)
        assert high.variable("score") == 100
        assert low.variable("karma") == -10

    def test_unknown_operator_and_id_skipped(self, interpreter, state):
        """Bad entries are skipped; good ones still apply."""
        bundle = {
            "variables": [
                {"id": "score", "operator": "divide", "value": 2},
                {"id": "luck", "operator": "add", "value": 1},
                {"id": "score", "operator": "add", "value": 4},
            ]
        }
        result = interpreter.apply(bundle, state)
        assert result.variable("score") == 4
        assert "luck" not in result.variables

    def test_multiply_truncates_toward_zero(self):
        """Fractional products truncate toward zero."""
        assert apply_operator(VariableEffect(id="x", operator="multiply", value=1.5), 5) == 7
        assert apply_operator(VariableEffect(id="x", operator="multiply", value=1.5), -5) == -7
        assert apply_operator(VariableEffect(id="x", operator="pow", value=2), 5) is None


class TestExperienceEffects:
    """Test experience and manual level-up entries."""

    def test_nested_skill_experience(self, interpreter, state):
        """exp.skills feeds skill experience and levels automatically."""
        result = interpreter.apply({"exp": {"skills": {"swordsmanship": 12}}}, state)
        assert result.level("swordsmanship") == 1
        assert result.exp("swordsmanship") == 2

    def test_top_level_and_nested_sum(self, interpreter, state):
        """The same id at both levels is summed."""
        result = interpreter.apply({"exp": {"lockpicking": 3, "skills": {"lockpicking": 3}}}, state)
        assert result.level("lockpicking") == 1
        assert result.exp("lockpicking") == 1

    def test_manual_level_up_after_experience(self, interpreter, state):
        """Experience lands first, then manual requests run."""
        result = interpreter.apply({"exp": {"wisdom": 10}, "manual_level_up": ["wisdom"]}, state)
        assert result.level("wisdom") == 2
        assert result.stat("wisdom") == 2
        assert result.exp("wisdom") == 0


class TestProgressOverrides:
    """Test progress counter entries."""

    def test_overrides(self, interpreter, state):
        """Counters are set, floor deaths merged, scenes appended once."""
        start = state.model_copy(update={"death_count_by_floor": {1: 2}, "completed_scenes": ["intro"]})
        result = interpreter.apply(
            {
                "current_floor": 2,
                "death_count": 4,
                "death_count_by_floor": {2: 1},
                "completed_scenes": ["intro", "gate"],
            },
            start,
        )
        assert result.current_floor == 2
        assert result.death_count == 4
        assert result.death_count_by_floor == {1: 2, 2: 1}
        assert result.completed_scenes == ["intro", "gate"]


class TestOrderingAndErrors:
    """Test processing order and document errors."""

    def test_special_effects_run_last(self, interpreter, state):
        """A refill after damage in the same bundle wins."""
        result = interpreter.apply({"health": -2, "special_effects": {"reset_health": True}}, state)
        assert result.resource("health") == 3

    def test_unknown_keys_ignored(self, interpreter, state):
        """Keys outside the bundle vocabulary are ignored."""
        result = interpreter.apply({"luck": 3, "strength": 1}, state)
        assert result.stat("strength") == 2

    def test_bad_variable_entry_skipped(self, interpreter, state, caplog):
        """A variable effect that cannot be read does not stop the rest."""
        with caplog.at_level(logging.WARNING):
            result = interpreter.apply(
                {
                    "strength": 1,
                    "add_buffs": ["injured"],
                    "variables": [
                        {"id": "score", "operator": "add", "value": "lots"},
                        {"id": "score", "operator": "add", "value": 4},
                    ],
                },
                state,
            )
        assert result.stat("strength") == 2
        assert result.buffs == ["injured"]
        assert result.variable("score") == 4
        assert "Malformed variables entry" in caplog.text

    def test_bad_item_quantity_skipped(self, interpreter, state):
        """Only the unreadable item entry is dropped."""
        result = interpreter.apply({"strength": 1, "items": {"rope": 1, "torch": "two"}}, state)
        assert result.stat("strength") == 2
        assert [(i.id, i.quantity) for i in result.items] == [("rope", 1)]

    def test_bad_top_level_field_skipped(self, interpreter, state, caplog):
        """A field with the wrong shape is dropped whole; the rest applies."""
        with caplog.at_level(logging.WARNING):
            result = interpreter.apply({"strength": "a lot", "add_buffs": "injured", "agility": 2}, state)
        assert result.stat("strength") == 1
        assert result.stat("agility") == 3
        assert result.buffs == []
        assert "Malformed effect field skipped: add_buffs" in caplog.text

    def test_bad_experience_entry_skipped(self, interpreter, state):
        """A fractional amount is skipped; the skill entry beside it applies."""
        result = interpreter.apply({"exp": {"level": 1.5, "skills": {"lockpicking": 5, "swordsmanship": "x"}}}, state)
        assert result.level("lockpicking") == 1
        assert result.exp("level") == 0
        assert result.exp("swordsmanship") == 0

    def test_non_mapping_bundle_ignored(self, interpreter, state):
        """A bundle that is not a mapping changes nothing."""
        assert interpreter.apply(["strength"], state) == state

    def test_accepts_parsed_bundle(self, interpreter, state):
        """Parsed bundles apply the same as raw documents."""
        assert interpreter.apply(EffectBundle(charisma=2), state).stat("charisma") == 3
