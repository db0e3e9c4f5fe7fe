"""
Quiz - Selection, submission, cooldown and retry for choice questions.

The transitions are pure functions of QuizAttemptState and the current
time; QuizController persists them through a ProgressStore. Single- and
multi-select quizzes share the same machine:

    UNANSWERED -> submit -> CORRECT (terminal)
    UNANSWERED -> submit -> PENALIZED -> (deadline passes) -> COOLED_DOWN
    COOLED_DOWN -> try_again -> UNANSWERED
"""

import logging
import math
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Union

from codelesson.config import PENALTY_SECONDS
from codelesson.schemas import MultipleChoiceSection, MultipleSelectionSection, QuizAttemptState

from .progress import ProgressStore

logger = logging.getLogger(__name__)

QuizSection = Union[MultipleChoiceSection, MultipleSelectionSection]


class QuizPhase(str, Enum):
    UNANSWERED = "unanswered"
    CORRECT = "correct"
    PENALIZED = "penalized"       # wrong answer, retry still locked
    COOLED_DOWN = "cooled_down"   # wrong answer, retry allowed


def is_expired(now: datetime, deadline: Optional[datetime]) -> bool:
    return deadline is None or now >= deadline


def quiz_phase(state: QuizAttemptState, now: datetime) -> QuizPhase:
    if not state.is_submitted:
        return QuizPhase.UNANSWERED
    if state.is_correct:
        return QuizPhase.CORRECT
    if is_expired(now, state.penalty_until):
        return QuizPhase.COOLED_DOWN
    return QuizPhase.PENALIZED


def select_option(state: QuizAttemptState, index: int, multiple: bool) -> QuizAttemptState:
    """Pick (single) or toggle (multiple) an option; locked once submitted."""
    if state.is_submitted:
        return state
    if not multiple:
        return state.model_copy(update={"selected_indices": [index]})
    selected = set(state.selected_indices)
    selected.symmetric_difference_update({index})
    return state.model_copy(update={"selected_indices": sorted(selected)})


def submit_answer(
    state: QuizAttemptState,
    correct_indices: set[int],
    now: datetime,
    penalty_seconds: int = PENALTY_SECONDS,
) -> QuizAttemptState:
    """Grade the selection; a wrong answer opens the penalty window."""
    if state.is_submitted or not state.selected_indices:
        return state
    correct = set(state.selected_indices) == set(correct_indices)
    return state.model_copy(update={
        "is_submitted": True,
        "is_correct": correct,
        "penalty_until": None if correct else now + timedelta(seconds=penalty_seconds),
    })


def try_again(state: QuizAttemptState, now: datetime) -> QuizAttemptState:
    """Reset for a new attempt; a no-op unless the penalty has run out."""
    if quiz_phase(state, now) != QuizPhase.COOLED_DOWN:
        return state
    return QuizAttemptState()


def remaining_penalty_seconds(state: QuizAttemptState, now: datetime) -> int:
    """Whole seconds left in the penalty window, for the countdown display."""
    if quiz_phase(state, now) != QuizPhase.PENALIZED:
        return 0
    return math.ceil((state.penalty_until - now).total_seconds())


class QuizController:
    """Drive one quiz section and keep its state in the progress store."""

    def __init__(
        self,
        progress: ProgressStore[QuizAttemptState],
        unit_id: str,
        lesson_id: str,
        section: QuizSection,
        clock: Callable[[], datetime] = datetime.now,
        penalty_seconds: int = PENALTY_SECONDS,
    ):
        self.progress = progress
        self.unit_id = unit_id
        self.lesson_id = lesson_id
        self.section = section
        self.clock = clock
        self.penalty_seconds = penalty_seconds
        self.multiple = isinstance(section, MultipleSelectionSection)

    @property
    def state(self) -> QuizAttemptState:
        return self.progress.read(self.unit_id, self.lesson_id, self.section.id)

    @property
    def phase(self) -> QuizPhase:
        return quiz_phase(self.state, self.clock())

    @property
    def is_completed(self) -> bool:
        return self.progress.is_completed(self.unit_id, self.lesson_id, self.section.id)

    @property
    def remaining_penalty_seconds(self) -> int:
        return remaining_penalty_seconds(self.state, self.clock())

    @property
    def can_try_again(self) -> bool:
        return self.phase == QuizPhase.COOLED_DOWN

    def _save(self, state: QuizAttemptState) -> QuizAttemptState:
        self.progress.write(self.unit_id, self.lesson_id, self.section.id, state)
        return state

    def select(self, index: int) -> QuizAttemptState:
        if not 0 <= index < len(self.section.options):
            raise IndexError(f"Option {index} out of range for {self.section.id}")
        return self._save(select_option(self.state, index, self.multiple))

    def submit(self) -> QuizAttemptState:
        state = submit_answer(
            self.state, self.section.correct_indices, self.clock(), self.penalty_seconds
        )
        if state.is_submitted and not state.is_correct:
            logger.info(f"Incorrect answer on {self.section.id}; retry locked for {self.penalty_seconds}s")
        return self._save(state)

    def try_again(self) -> QuizAttemptState:
        return self._save(try_again(self.state, self.clock()))
