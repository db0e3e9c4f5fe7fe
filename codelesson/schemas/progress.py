"""
Progress tracking schemas for CodeLesson.

Defines Pydantic models for persisted section progress including:
- The durable per-section record
- Interactive widget state (quiz, matching, coverage, prediction, testing)
"""

from pydantic import BaseModel, Field, model_validator
from typing import Any, Optional
from datetime import datetime

from .grading import TestResult


class SectionProgressRecord(BaseModel):
    unit_id: str
    lesson_id: str
    section_id: str
    state: dict[str, Any]                # opaque JSON, owned by the widget
    completed: bool = False
    updated_at: datetime


# -----------------------------------------------------------------------------
# Widget state
# -----------------------------------------------------------------------------

class QuizAttemptState(BaseModel):
    """Shared by single- and multi-select quizzes."""
    selected_indices: list[int] = []
    is_submitted: bool = False
    is_correct: Optional[bool] = None
    penalty_until: Optional[datetime] = None

    @model_validator(mode='after')
    def unsubmitted_has_no_verdict(self):
        if not self.is_submitted and self.is_correct is not None:
            raise ValueError('is_correct must be None until the quiz is submitted')
        return self


class MatchingState(BaseModel):
    user_matches: dict[str, Optional[str]] = {}   # prompt_id -> option_id

    @model_validator(mode='after')
    def single_occupancy(self):
        placed = [o for o in self.user_matches.values() if o is not None]
        if len(placed) != len(set(placed)):
            raise ValueError('An option may occupy at most one prompt slot')
        return self


class ChallengeState(BaseModel):
    inputs: dict[str, str] = {}          # raw text typed per input param
    actual_output: Optional[str] = None
    is_correct: Optional[bool] = None


class CoverageState(BaseModel):
    challenge_states: dict[str, ChallengeState] = {}


class RowPrediction(BaseModel):
    user_answer: str = ""
    actual_output: Optional[str] = None
    is_correct: Optional[bool] = None


class PredictionState(BaseModel):
    predictions: dict[int, RowPrediction] = {}


class ObservationState(BaseModel):
    code: str = ""
    output: Optional[str] = None
    error: bool = False                  # last run raised
    ran_cleanly: bool = False            # some run finished without an exception


class TestingState(BaseModel):
    __test__ = False

    code: str = ""
    all_passed: bool = False
    last_results: list[TestResult] = Field(default_factory=list)
