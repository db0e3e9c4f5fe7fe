"""
Grading pipeline: harness.generate -> sandbox.run -> results.parse.

grade() turns every failure mode into a GradingOutcome so callers only
have to branch on its kind.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from codelesson.schemas import HarnessFailure, TestCase, TestResult

from .harness import GenerationError, generate
from .results import ParseError, parse
from .sandbox import Sandbox, SandboxError

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    """How a grading attempt ended, for UI messaging."""
    RESULTS = "results"                 # tests ran; see per-case results
    HARNESS_ERROR = "harness_error"     # could not run your tests
    CONFIG_ERROR = "config_error"       # lesson misconfigured
    INTERNAL_ERROR = "internal_error"   # protocol break or sandbox failure


@dataclass
class GradingOutcome:
    kind: OutcomeKind
    results: list[TestResult] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def all_passed(self) -> bool:
        return (
            self.kind == OutcomeKind.RESULTS
            and bool(self.results)
            and all(r.passed for r in self.results)
        )


async def grade(
    sandbox: Sandbox,
    submission: str,
    target_name: str,
    cases: list[TestCase],
) -> GradingOutcome:
    """Run one submission through the full pipeline; never raises for learner errors."""
    try:
        program = generate(submission, target_name, cases)
    except GenerationError as e:
        logger.error(f"Cannot build harness program for {target_name!r}: {e}")
        return GradingOutcome(OutcomeKind.CONFIG_ERROR, message=str(e))

    try:
        raw_output = await sandbox.run(program)
    except SandboxError as e:
        logger.error(f"Sandbox failed: {e}")
        return GradingOutcome(OutcomeKind.INTERNAL_ERROR, message=str(e))

    try:
        report = parse(raw_output)
    except ParseError as e:
        logger.error(f"Failed to parse test results: {e}")
        logger.error(f"Raw output was: {raw_output!r}")
        return GradingOutcome(OutcomeKind.INTERNAL_ERROR, message=str(e))

    if isinstance(report, HarnessFailure):
        return GradingOutcome(OutcomeKind.HARNESS_ERROR, message=report.test_error)
    return GradingOutcome(OutcomeKind.RESULTS, results=report)
