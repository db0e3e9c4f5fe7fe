"""
Matching - Drag options onto prompt slots.

A drop is the pure command move_option(state, option_id, target_slot): the
option leaves whatever slot held it and takes the target slot, displacing
the target's previous occupant back to the option bank.
"""

from typing import Optional

from codelesson.schemas import MatchingSection, MatchingState

from .completion import matching_completion
from .progress import ProgressStore


def move_option(state: MatchingState, option_id: str, target_slot: str) -> MatchingState:
    matches = dict(state.user_matches)
    for slot, placed in matches.items():
        if placed == option_id:
            matches[slot] = None
    matches[target_slot] = option_id
    return MatchingState(user_matches=matches)


def clear_slot(state: MatchingState, slot: str) -> MatchingState:
    """Send a slot's option back to the bank."""
    if state.user_matches.get(slot) is None:
        return state
    matches = dict(state.user_matches)
    matches[slot] = None
    return MatchingState(user_matches=matches)


def unmatched_options(state: MatchingState, option_ids: list[str]) -> list[str]:
    """Options still in the bank, keeping their display order."""
    placed = {o for o in state.user_matches.values() if o is not None}
    return [o for o in option_ids if o not in placed]


class MatchingController:
    def __init__(self, progress: ProgressStore[MatchingState], unit_id: str, lesson_id: str, section: MatchingSection):
        self.progress = progress
        self.unit_id = unit_id
        self.lesson_id = lesson_id
        self.section = section
        self._prompt_ids = {p.id for p in section.prompts}
        self._option_ids = [o.id for o in section.options]

    @staticmethod
    def new_store(database, section: MatchingSection, **kwargs) -> ProgressStore[MatchingState]:
        """A store whose completion check uses this section's answer key."""
        return ProgressStore(database, MatchingState(), matching_completion(section), **kwargs)

    @property
    def state(self) -> MatchingState:
        return self.progress.read(self.unit_id, self.lesson_id, self.section.id)

    @property
    def is_completed(self) -> bool:
        return self.progress.is_completed(self.unit_id, self.lesson_id, self.section.id)

    @property
    def bank(self) -> list[str]:
        return unmatched_options(self.state, self._option_ids)

    def slot_is_correct(self, prompt_id: str) -> Optional[bool]:
        """Per-slot verdict, only revealed once the whole section is solved."""
        if not self.is_completed:
            return None
        return self.state.user_matches.get(prompt_id) == self.section.solution[prompt_id]

    def move(self, option_id: str, target_slot: str) -> MatchingState:
        if target_slot not in self._prompt_ids:
            raise KeyError(f"Unknown prompt slot: {target_slot}")
        if option_id not in self._option_ids:
            raise KeyError(f"Unknown option: {option_id}")
        state = move_option(self.state, option_id, target_slot)
        self.progress.write(self.unit_id, self.lesson_id, self.section.id, state)
        return state

    def clear(self, slot: str) -> MatchingState:
        state = clear_slot(self.state, slot)
        self.progress.write(self.unit_id, self.lesson_id, self.section.id, state)
        return state
