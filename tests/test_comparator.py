"""Tests for the state comparator."""

import pytest

from towerfall.state.schema import Item
from towerfall.state.schemas.change import ChangeCategory, ChangeType


def summary(changes):
    return [(c.category.value, c.type.value, c.id) for c in changes.changes]


class TestCompareStates:
    """Test snapshot diffs."""

    def test_no_changes(self, comparator, state):
        """Identical snapshots produce nothing."""
        result = comparator.compare_states(state, state)
        assert not result.has_changes
        assert len(result) == 0

    def test_numeric_records(self, comparator, state):
        """Stats and resources carry old, new and absolute change."""
        new = state.model_copy(
            update={
                "stats": {**state.stats, "wisdom": 4},
                "resources": {**state.resources, "health": 1},
            }
        )
        result = comparator.compare_states(state, new)

        wisdom, health = result.changes
        assert (wisdom.category, wisdom.type, wisdom.old_value, wisdom.new_value, wisdom.change) == (
            ChangeCategory.STAT, ChangeType.INCREASE, 1, 4, 3,
        )
        assert wisdom.display_name == "Wisdom"
        assert (health.category, health.type, health.change) == (ChangeCategory.RESOURCE, ChangeType.DECREASE, 2)

    def test_buffs_added_then_removed(self, comparator, state):
        """Additions are listed before removals."""
        old = state.model_copy(update={"buffs": ["injured"]})
        new = state.model_copy(update={"buffs": ["blessed"]})
        result = comparator.compare_states(old, new)
        assert summary(result) == [("buff", "add", "blessed"), ("buff", "remove", "injured")]
        assert result.changes[0].display_name == "Blessed"

    def test_item_order(self, comparator, state):
        """Items come out added, removed, increased, decreased."""
        old = state.model_copy(
            update={
                "items": [
                    Item(id="rope", name="Rope", quantity=3),
                    Item(id="torch", name="Torch", quantity=1),
                    Item(id="health_potion", name="Health Potion", quantity=1),
                ]
            }
        )
        new = state.model_copy(
            update={
                "items": [
                    Item(id="rope", name="Rope", quantity=1),
                    Item(id="health_potion", name="Health Potion", quantity=2),
                    Item(id="dagger", name="Dagger", quantity=1),
                ]
            }
        )
        result = comparator.compare_states(old, new)
        assert summary(result) == [
            ("item", "add", "dagger"),
            ("item", "remove", "torch"),
            ("item", "increase", "health_potion"),
            ("item", "decrease", "rope"),
        ]
        assert result.changes[0].quantity == 1
        assert result.changes[3].change == 2

    def test_empty_item_entry_counts_as_zero(self, comparator, state):
        """A held entry with quantity 0 is not counted as one."""
        old = state.model_copy(update={"items": [Item(id="rope", name="Rope", quantity=0)]})
        new = state.model_copy(update={"items": [Item(id="rope", name="Rope", quantity=2)]})
        result = comparator.compare_states(old, new)
        assert summary(result) == [("item", "add", "rope")]
        assert result.changes[0].quantity == 2

    def test_experience_and_levels(self, comparator, state):
        """Experience and level records use the type display name."""
        new = state.model_copy(
            update={
                "experience": {**state.experience, "strength": 5},
                "levels": {**state.levels, "swordsmanship": 1},
            }
        )
        result = comparator.compare_states(state, new)
        assert summary(result) == [
            ("experience", "increase", "strength"),
            ("level", "increase", "swordsmanship"),
        ]
        assert result.changes[0].display_name == "Strength experience"
        assert result.changes[1].display_name == "Swordsmanship level"

    def test_by_category(self, comparator, state):
        """Records can be filtered by category."""
        new = state.model_copy(update={"buffs": ["injured"], "stats": {**state.stats, "agility": 2}})
        result = comparator.compare_states(state, new)
        assert [c.id for c in result.by_category(ChangeCategory.BUFF)] == ["injured"]


class TestPredict:
    """Test previews read off effect bundles."""

    def test_reads_bundle_deltas(self, comparator):
        """Stats, resources, buffs, items and experience in order."""
        bundle = {
            "strength": 2,
            "gold": -1,
            "agility": 0,
            "add_buffs": ["blessed"],
            "remove_buffs": ["injured"],
            "items": {"rope": 2, "torch": -1, "health_potion": 0},
            "exp": {"charisma": 5},
        }
        result = comparator.predict_changes_from_effects(bundle)
        assert summary(result) == [
            ("stat", "increase", "strength"),
            ("resource", "decrease", "gold"),
            ("buff", "add", "blessed"),
            ("buff", "remove", "injured"),
            ("item", "add", "rope"),
            ("item", "remove", "torch"),
            ("experience", "increase", "charisma"),
        ]
        assert result.changes[5].quantity == 1

    def test_skill_level_needs_state(self, comparator):
        """Without a snapshot no skill level-ups are predicted."""
        result = comparator.predict_changes_from_effects({"exp": {"skills": {"swordsmanship": 50}}})
        assert not result.has_changes

    def test_first_rank_text(self, comparator, state):
        """Reaching the first rank names it."""
        result = comparator.predict_changes_from_effects({"exp": {"skills": {"swordsmanship": 10}}}, state)
        (record,) = result.changes
        assert (record.category, record.id, record.change) == (ChangeCategory.LEVEL, "swordsmanship", 1)
        assert record.extra_text == "+ Novice"

    def test_rank_change_text(self, comparator, state):
        """Later level-ups name both ranks."""
        novice = state.model_copy(update={"levels": {**state.levels, "swordsmanship": 1}})
        result = comparator.predict_changes_from_effects({"exp": {"skills": {"swordsmanship": 20}}}, novice)
        assert result.changes[0].extra_text == "+ Novice → Adept"

    def test_rank_name_fallback(self, comparator):
        """Levels beyond the rank table fall back to Lv.N."""
        assert comparator.rank_change_text("swordsmanship", 3, 4) == "+ Master → Lv.4"
        assert comparator.rank_change_text("unknown_skill", 0, 1) == "+ Lv.1"

    def test_manual_level_up_without_state(self, comparator):
        """Manual requests are reported as +1 each."""
        result = comparator.predict_changes_from_effects({"manual_level_up": ["strength", "wisdom"]})
        assert summary(result) == [("level", "increase", "strength"), ("level", "increase", "wisdom")]
        assert all(c.change == 1 for c in result.changes)

    def test_manual_level_up_checks_state(self, comparator, state):
        """With a snapshot only eligible requests are reported."""
        result = comparator.predict_changes_from_effects(
            {"exp": {"wisdom": 10}, "manual_level_up": ["wisdom", "strength"]}, state
        )
        assert [c.id for c in result.by_category(ChangeCategory.LEVEL)] == ["wisdom"]

    def test_prediction_does_not_mutate(self, comparator, state):
        """Previewing leaves the snapshot alone."""
        before = state.model_dump()
        comparator.predict_changes_from_effects({"exp": {"skills": {"lockpicking": 9}}}, state)
        assert state.model_dump() == before

    def test_malformed_entry_skipped(self, comparator, state):
        """An unreadable entry drops out of the preview; the rest is reported."""
        result = comparator.predict_changes_from_effects({"strength": 1, "exp": {"level": 1.5}}, state)
        assert summary(result) == [("stat", "increase", "strength")]
        assert result.changes[0].change == 1


class TestPredictionMatchesApplication:
    """Test that previews agree with what applying reports."""

    @pytest.mark.parametrize("amount", [1, 5, 10, 29, 30, 35, 60, 1000])
    @pytest.mark.parametrize("start_level", [0, 1, 2])
    def test_skill_level_ups_agree(self, comparator, interpreter, state, amount, start_level):
        """Predicted skill level records equal the applied level diff."""
        start = state.model_copy(
            update={
                "levels": {**state.levels, "swordsmanship": start_level, "lockpicking": 0},
                "experience": {**state.experience, "swordsmanship": 3},
            }
        )
        bundle = {"exp": {"skills": {"swordsmanship": amount, "lockpicking": amount}}}

        predicted = comparator.predict_changes_from_effects(bundle, start)
        applied = comparator.compare_states(start, interpreter.apply(bundle, start))

        def levels(changes):
            return [(c.id, c.change) for c in changes.by_category(ChangeCategory.LEVEL)]

        assert levels(predicted) == levels(applied)

    @pytest.mark.parametrize(
        "bundle",
        [
            {"strength": 1, "exp": {"level": 1.5}},
            {"strength": 1, "items": {"rope": 1, "torch": "two"}},
            {"agility": "lots", "add_buffs": ["injured"], "variables": [{"id": "score", "value": 1}]},
        ],
    )
    def test_malformed_bundles_agree(self, comparator, interpreter, state, bundle):
        """Preview and application skip the same unreadable entries."""
        predicted = comparator.predict_changes_from_effects(bundle, state)
        applied = comparator.compare_states(state, interpreter.apply(bundle, state))
        assert summary(predicted) == summary(applied)
