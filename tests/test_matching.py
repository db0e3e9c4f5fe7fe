"""
Matching tests: option moves, single occupancy, completion.
"""

import pytest
from pydantic import ValidationError

from codelesson.classroom import MatchingController, clear_slot, move_option, unmatched_options
from codelesson.schemas import MatchingOption, MatchingPrompt, MatchingSection, MatchingState


@pytest.fixture
def section():
    return MatchingSection(
        id="match-terms",
        title="Match the terms",
        prompts=[
            MatchingPrompt(id="p-def", text="def", answer_id="o-define"),
            MatchingPrompt(id="p-return", text="return", answer_id="o-give-back"),
        ],
        options=[
            MatchingOption(id="o-define", text="Starts a definition"),
            MatchingOption(id="o-give-back", text="Sends a value back"),
            MatchingOption(id="o-extra", text="Distractor"),
        ],
    )


@pytest.fixture
def matching(database, section):
    store = MatchingController.new_store(database, section, debounce_seconds=0)
    return MatchingController(store, "functions", "intro", section)


class TestMoveOption:
    def test_place_from_bank(self):
        state = move_option(MatchingState(), "o-define", "p-def")
        assert state.user_matches == {"p-def": "o-define"}

    def test_move_between_slots_evicts_old_slot(self):
        state = move_option(MatchingState(), "o-define", "p-def")
        state = move_option(state, "o-define", "p-return")
        assert state.user_matches == {"p-def": None, "p-return": "o-define"}

    def test_displaced_option_returns_to_bank(self):
        state = move_option(MatchingState(), "o-define", "p-def")
        state = move_option(state, "o-extra", "p-def")
        assert state.user_matches["p-def"] == "o-extra"
        assert "o-define" in unmatched_options(state, ["o-define", "o-give-back", "o-extra"])

    def test_clear_slot(self):
        state = move_option(MatchingState(), "o-define", "p-def")
        assert clear_slot(state, "p-def").user_matches["p-def"] is None

    def test_double_placement_rejected(self):
        with pytest.raises(ValidationError):
            MatchingState(user_matches={"p-def": "o-define", "p-return": "o-define"})


class TestMatchingController:
    def test_all_correct_completes(self, matching, database):
        matching.move("o-define", "p-def")
        assert not matching.is_completed
        matching.move("o-give-back", "p-return")
        assert matching.is_completed
        assert matching.slot_is_correct("p-def") is True
        assert "match-terms" in database.get_completed_section_ids("functions", "intro")

    def test_moving_away_uncompletes(self, matching):
        matching.move("o-define", "p-def")
        matching.move("o-give-back", "p-return")
        matching.move("o-define", "p-return")
        assert not matching.is_completed
        assert matching.slot_is_correct("p-def") is None

    def test_wrong_pairing(self, matching):
        matching.move("o-give-back", "p-def")
        matching.move("o-define", "p-return")
        assert not matching.is_completed

    def test_bank_order(self, matching):
        matching.move("o-give-back", "p-def")
        assert matching.bank == ["o-define", "o-extra"]

    def test_unknown_ids(self, matching):
        with pytest.raises(KeyError):
            matching.move("o-define", "p-missing")
        with pytest.raises(KeyError):
            matching.move("o-missing", "p-def")

    def test_clear(self, matching):
        matching.move("o-define", "p-def")
        matching.move("o-give-back", "p-return")
        matching.clear("p-def")
        assert not matching.is_completed
        assert "o-define" in matching.bank
