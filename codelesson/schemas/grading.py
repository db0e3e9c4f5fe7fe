"""
Grading schemas for CodeLesson.

Defines Pydantic models for code exercise grading including:
- Declarative test cases attached to a Testing section
- Per-case results reported back across the sandbox boundary
- Harness-level failures (target missing, submission crashed on load)
"""

from pydantic import BaseModel, model_validator
from typing import Any, Union


class TestCase(BaseModel):
    """One declarative check: call the target with `input`, expect `expected`."""
    __test__ = False  # not a pytest class

    input: Any = None        # single value, list of positional args, or None
    expected: Any
    description: str


class TestResult(BaseModel):
    """
    Outcome of one test case as reported by the harness program.

    input/expected/actual are already stringified: they crossed the sandbox
    boundary as text. When error is set, actual holds a traceback.
    """
    __test__ = False

    input: str
    expected: str
    actual: str
    passed: bool
    description: str
    error: bool = False

    @model_validator(mode='after')
    def error_never_passes(self):
        if self.error and self.passed:
            raise ValueError('A result flagged as error cannot be passing')
        return self


class HarnessFailure(BaseModel):
    """The harness program could not run the tests at all (distinct from failing them)."""
    test_error: str


ExecutionReport = Union[list[TestResult], HarnessFailure]
