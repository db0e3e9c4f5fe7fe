"""
Completion predicates - decide when a section counts as done.

Each predicate is a pure function of the widget's state. Predicates that
need the section's answer key are built by a factory from the section.
"""

from typing import Callable

from codelesson.grading import compare
from codelesson.schemas import (
    CoverageSection,
    CoverageState,
    MatchingSection,
    MatchingState,
    ObservationState,
    PredictionSection,
    PredictionState,
    QuizAttemptState,
    TestingState,
)


def quiz_completed(state: QuizAttemptState) -> bool:
    return state.is_submitted and state.is_correct is True


def matching_completion(section: MatchingSection) -> Callable[[MatchingState], bool]:
    """Every prompt filled, and filled with its solution option."""
    solution = section.solution

    def check(state: MatchingState) -> bool:
        return all(
            state.user_matches.get(prompt_id) is not None
            and state.user_matches.get(prompt_id) == option_id
            for prompt_id, option_id in solution.items()
        )

    return check


def coverage_completion(section: CoverageSection) -> Callable[[CoverageState], bool]:
    """Every challenge row produced exactly its expected output."""
    challenges = section.coverage_challenges

    def check(state: CoverageState) -> bool:
        if not challenges:
            return False
        for challenge in challenges:
            row = state.challenge_states.get(challenge.id)
            if row is None or row.actual_output is None:
                return False
            if not compare(row.actual_output, challenge.expected_output):
                return False
        return True

    return check


def prediction_completion(section: PredictionSection) -> Callable[[PredictionState], bool]:
    """Every row's prediction was checked and found correct."""
    row_count = len(section.rows)

    def check(state: PredictionState) -> bool:
        if row_count == 0:
            return False
        return all(
            index in state.predictions and state.predictions[index].is_correct is True
            for index in range(row_count)
        )

    return check


def all_tests_passed(state: TestingState) -> bool:
    return state.all_passed


def observation_completed(state: ObservationState) -> bool:
    """Done once the example has run without raising; later failures don't undo it."""
    return state.ran_cleanly
