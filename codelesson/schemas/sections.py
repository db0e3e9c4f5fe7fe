"""
Lesson section schemas for CodeLesson.

Every section is discriminated by `kind`; each variant carries only the
fields its widget needs. Lessons and units group sections for navigation.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Annotated, Any, Literal, Optional, Union

from .grading import TestCase


class SectionBase(BaseModel):
    id: str = Field(..., pattern=r'^[A-Za-z0-9_-]+$')
    title: str
    content: str = ""


class Feedback(BaseModel):
    correct: str
    incorrect: str


class InformationSection(SectionBase):
    kind: Literal["Information"] = "Information"


class CodeExample(BaseModel):
    id: str
    title: str = ""
    description: str = ""
    code: str


class ObservationSection(SectionBase):
    """Run an example program and look at what it prints."""
    kind: Literal["Observation"] = "Observation"
    example: CodeExample


class MultipleChoiceSection(SectionBase):
    kind: Literal["MultipleChoice"] = "MultipleChoice"
    options: list[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)
    feedback: Optional[Feedback] = None

    @model_validator(mode='after')
    def answer_in_range(self):
        if self.correct_answer >= len(self.options):
            raise ValueError('correct_answer must index into options')
        return self

    @property
    def correct_indices(self) -> set[int]:
        return {self.correct_answer}


class MultipleSelectionSection(SectionBase):
    kind: Literal["MultipleSelection"] = "MultipleSelection"
    options: list[str] = Field(..., min_length=2)
    correct_answers: list[int] = Field(..., min_length=1)
    feedback: Optional[Feedback] = None

    @model_validator(mode='after')
    def answers_in_range(self):
        if any(i < 0 or i >= len(self.options) for i in self.correct_answers):
            raise ValueError('correct_answers must index into options')
        return self

    @property
    def correct_indices(self) -> set[int]:
        return set(self.correct_answers)


# -----------------------------------------------------------------------------
# Matching
# -----------------------------------------------------------------------------

class MatchingPrompt(BaseModel):
    id: str
    text: str
    answer_id: str          # id of the MatchingOption that belongs here


class MatchingOption(BaseModel):
    id: str
    text: str


class MatchingSection(SectionBase):
    kind: Literal["Matching"] = "Matching"
    prompts: list[MatchingPrompt] = Field(..., min_length=1)
    options: list[MatchingOption] = Field(..., min_length=1)

    @model_validator(mode='after')
    def answers_exist(self):
        option_ids = {o.id for o in self.options}
        missing = [p.id for p in self.prompts if p.answer_id not in option_ids]
        if missing:
            raise ValueError(f'Prompts reference unknown options: {missing}')
        return self

    @property
    def solution(self) -> dict[str, str]:
        return {p.id: p.answer_id for p in self.prompts}


# -----------------------------------------------------------------------------
# Coverage and prediction tables
# -----------------------------------------------------------------------------

class InputParam(BaseModel):
    name: str = Field(..., pattern=r'^[A-Za-z_][A-Za-z0-9_]*$')
    type: Literal["text", "number", "boolean"] = "text"
    placeholder: str = ""


class CoverageChallenge(BaseModel):
    id: str
    expected_output: str
    hint: Optional[str] = None


class CoverageSection(SectionBase):
    kind: Literal["Coverage"] = "Coverage"
    code: str
    input_params: list[InputParam]
    coverage_challenges: list[CoverageChallenge]


class PredictionRow(BaseModel):
    inputs: list[Any] = []
    expected: Union[int, float, str, bool]
    description: str = ""


class PredictionSection(SectionBase):
    kind: Literal["Prediction"] = "Prediction"
    function_code: str
    rows: list[PredictionRow]
    completion_message: Optional[str] = None


# -----------------------------------------------------------------------------
# Code testing
# -----------------------------------------------------------------------------

class TestingSection(SectionBase):
    __test__ = False

    kind: Literal["Testing"] = "Testing"
    starter_code: str = ""
    function_to_test: str = "__main__"   # "__main__" tests the whole program
    test_cases: list[TestCase] = Field(..., min_length=1)

    @field_validator('function_to_test')
    @classmethod
    def target_is_identifier(cls, v):
        if not v.isidentifier():
            raise ValueError(f'function_to_test must be an identifier, got {v!r}')
        return v


Section = Annotated[
    Union[
        InformationSection,
        ObservationSection,
        MultipleChoiceSection,
        MultipleSelectionSection,
        MatchingSection,
        CoverageSection,
        PredictionSection,
        TestingSection,
    ],
    Field(discriminator="kind"),
]


class Lesson(BaseModel):
    id: str
    title: str
    sections: list[Section] = Field(..., min_length=1)

    @model_validator(mode='after')
    def unique_section_ids(self):
        ids = [s.id for s in self.sections]
        if len(ids) != len(set(ids)):
            raise ValueError(f'Duplicate section ids in lesson {self.id}')
        return self


class Unit(BaseModel):
    id: str
    title: str
    lessons: list[Lesson] = []
