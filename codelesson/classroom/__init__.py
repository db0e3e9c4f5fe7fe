"""
CodeLesson Classroom - Runtime components for interactive sections.

This module provides:
- ProgressDatabase / ProgressStore: persisted per-section state
- Completion predicates per widget kind
- Controllers: QuizController, MatchingController, CoverageController,
  PredictionController, ObservationController, TestRunner
- CurriculumLoader and Navigator: lesson content and sidebar status
"""

from .progress import (
    ProgressDatabase,
    ProgressStore,
    PersistenceError,
    reset_lesson_progress,
)

from .completion import (
    quiz_completed,
    matching_completion,
    coverage_completion,
    prediction_completion,
    all_tests_passed,
    observation_completed,
)

from .quiz import (
    QuizController,
    QuizPhase,
    is_expired,
    quiz_phase,
    select_option,
    submit_answer,
    try_again,
    remaining_penalty_seconds,
)

from .matching import (
    MatchingController,
    move_option,
    clear_slot,
    unmatched_options,
)

from .coverage import (
    CoverageController,
    build_coverage_program,
    initial_coverage_state,
    python_literal,
)

from .prediction import (
    PredictionController,
    build_prediction_program,
)

from .observation import (
    ObservationController,
    build_observation_program,
    split_run_output,
)

from .testing import TestRunner

from .loader import CurriculumLoader

from .navigator import (
    Navigator,
    NavigationLesson,
    NavigationUnit,
    tracked_section_ids,
)

__all__ = [
    # Progress
    "ProgressDatabase",
    "ProgressStore",
    "PersistenceError",
    "reset_lesson_progress",
    # Completion
    "quiz_completed",
    "matching_completion",
    "coverage_completion",
    "prediction_completion",
    "all_tests_passed",
    "observation_completed",
    # Quiz
    "QuizController",
    "QuizPhase",
    "is_expired",
    "quiz_phase",
    "select_option",
    "submit_answer",
    "try_again",
    "remaining_penalty_seconds",
    # Matching
    "MatchingController",
    "move_option",
    "clear_slot",
    "unmatched_options",
    # Coverage
    "CoverageController",
    "build_coverage_program",
    "initial_coverage_state",
    "python_literal",
    # Prediction
    "PredictionController",
    "build_prediction_program",
    # Observation
    "ObservationController",
    "build_observation_program",
    "split_run_output",
    # Testing
    "TestRunner",
    # Loader / Navigator
    "CurriculumLoader",
    "Navigator",
    "NavigationLesson",
    "NavigationUnit",
    "tracked_section_ids",
]
