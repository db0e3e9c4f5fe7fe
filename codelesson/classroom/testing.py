"""
TestRunner - Controller behind a Testing section's "Run tests" button.
"""

import logging
from typing import Optional

from codelesson.grading import GradingOutcome, OutcomeKind, Sandbox, grade
from codelesson.schemas import TestingSection, TestingState

from .progress import ProgressStore

logger = logging.getLogger(__name__)


class TestRunner:
    """
    Grade submissions for one Testing section and persist the verdict.

    Each call to run_tests takes a new generation number. When a slower,
    older run finishes after a newer one started, its outcome is dropped
    instead of overwriting the newer result.
    """
    __test__ = False

    def __init__(
        self,
        progress: ProgressStore[TestingState],
        sandbox: Sandbox,
        unit_id: str,
        lesson_id: str,
        section: TestingSection,
    ):
        self.progress = progress
        self.sandbox = sandbox
        self.unit_id = unit_id
        self.lesson_id = lesson_id
        self.section = section
        self.latest_outcome: Optional[GradingOutcome] = None
        self._generation = 0
        self._in_flight = 0

    @property
    def is_running(self) -> bool:
        """True while a run awaits the sandbox; the run button stays disabled."""
        return self._in_flight > 0

    @property
    def state(self) -> TestingState:
        return self.progress.read(self.unit_id, self.lesson_id, self.section.id)

    @property
    def is_completed(self) -> bool:
        return self.progress.is_completed(self.unit_id, self.lesson_id, self.section.id)

    @property
    def display_outcome(self) -> Optional[GradingOutcome]:
        """Outcome of this session's last run, else the results saved by an earlier one."""
        if self.latest_outcome is not None:
            return self.latest_outcome
        saved = self.state.last_results
        if not saved:
            return None
        return GradingOutcome(OutcomeKind.RESULTS, results=saved)

    def save_code(self, code: str) -> TestingState:
        """Keep the editor contents without grading them."""
        state = self.state.model_copy(update={"code": code})
        self.progress.write(self.unit_id, self.lesson_id, self.section.id, state)
        return state

    async def run_tests(self, submission: str) -> Optional[GradingOutcome]:
        """
        Grade submission and persist the verdict.

        Returns:
            The outcome, or None if a newer run superseded this one
        """
        self._generation += 1
        generation = self._generation
        self._in_flight += 1
        try:
            outcome = await grade(
                self.sandbox, submission, self.section.function_to_test, self.section.test_cases
            )
        finally:
            self._in_flight -= 1

        if generation != self._generation:
            logger.info(
                f"Discarding stale result for {self.section.id} "
                f"(run {generation}, latest {self._generation})"
            )
            return None

        self.latest_outcome = outcome
        self.progress.write(
            self.unit_id,
            self.lesson_id,
            self.section.id,
            TestingState(
                code=submission,
                all_passed=outcome.all_passed,
                last_results=outcome.results,
            ),
        )
        return outcome
