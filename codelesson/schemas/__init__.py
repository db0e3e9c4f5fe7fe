"""
CodeLesson Schemas - Pydantic models for the Python lesson platform.

This module exports all schema classes for:
- Grading: test cases, test results, harness failures
- Sections: tagged-union lesson sections, lessons, units
- Progress: section progress records and widget state
"""

# Grading schemas
from .grading import (
    TestCase,
    TestResult,
    HarnessFailure,
    ExecutionReport,
)

# Section schemas
from .sections import (
    Feedback,
    InformationSection,
    CodeExample,
    ObservationSection,
    MultipleChoiceSection,
    MultipleSelectionSection,
    MatchingPrompt,
    MatchingOption,
    MatchingSection,
    InputParam,
    CoverageChallenge,
    CoverageSection,
    PredictionRow,
    PredictionSection,
    TestingSection,
    Section,
    Lesson,
    Unit,
)

# Progress schemas
from .progress import (
    SectionProgressRecord,
    QuizAttemptState,
    MatchingState,
    ChallengeState,
    CoverageState,
    RowPrediction,
    PredictionState,
    ObservationState,
    TestingState,
)

__all__ = [
    # Grading
    'TestCase',
    'TestResult',
    'HarnessFailure',
    'ExecutionReport',
    # Sections
    'Feedback',
    'InformationSection',
    'CodeExample',
    'ObservationSection',
    'MultipleChoiceSection',
    'MultipleSelectionSection',
    'MatchingPrompt',
    'MatchingOption',
    'MatchingSection',
    'InputParam',
    'CoverageChallenge',
    'CoverageSection',
    'PredictionRow',
    'PredictionSection',
    'TestingSection',
    'Section',
    'Lesson',
    'Unit',
    # Progress
    'SectionProgressRecord',
    'QuizAttemptState',
    'MatchingState',
    'ChallengeState',
    'CoverageState',
    'RowPrediction',
    'PredictionState',
    'ObservationState',
    'TestingState',
]
