"""
Coverage - Find inputs that make a snippet print each expected output.

Each challenge row holds the learner's raw inputs. Running a row assigns
those inputs to the snippet's parameters, runs the program in the sandbox,
and records what it printed.
"""

import logging
import math
from typing import Optional

from codelesson.grading import Sandbox, SandboxError, compare, normalize_text, validate_identifier
from codelesson.schemas import ChallengeState, CoverageSection, CoverageState, InputParam

from .completion import coverage_completion
from .progress import ProgressStore

logger = logging.getLogger(__name__)

TRUE_WORDS = {"true", "yes", "1"}


def python_literal(raw: str, param_type: str) -> str:
    """Render raw form text as a Python literal for the given input type."""
    if param_type == "number":
        text = raw.strip()
        try:
            return repr(int(text))
        except ValueError:
            pass
        try:
            value = float(text)
        except ValueError:
            return "None"
        return repr(value) if math.isfinite(value) else "None"
    if param_type == "boolean":
        return "True" if raw.strip().lower() in TRUE_WORDS else "False"
    return repr(raw)


def build_coverage_program(code: str, params: list[InputParam], inputs: dict[str, str]) -> str:
    assignments = [
        f"{validate_identifier(p.name)} = {python_literal(inputs.get(p.name, ''), p.type)}"
        for p in params
    ]
    return "\n".join(assignments) + "\n\n" + code


def initial_coverage_state(section: CoverageSection) -> CoverageState:
    return CoverageState(challenge_states={
        challenge.id: ChallengeState(inputs={p.name: "" for p in section.input_params})
        for challenge in section.coverage_challenges
    })


class CoverageController:
    def __init__(
        self,
        progress: ProgressStore[CoverageState],
        sandbox: Sandbox,
        unit_id: str,
        lesson_id: str,
        section: CoverageSection,
    ):
        self.progress = progress
        self.sandbox = sandbox
        self.unit_id = unit_id
        self.lesson_id = lesson_id
        self.section = section
        self._challenges = {c.id: c for c in section.coverage_challenges}
        self._generations: dict[str, int] = {}
        self.running: set[str] = set()

    @staticmethod
    def new_store(database, section: CoverageSection, **kwargs) -> ProgressStore[CoverageState]:
        return ProgressStore(
            database, initial_coverage_state(section), coverage_completion(section), **kwargs
        )

    @property
    def state(self) -> CoverageState:
        return self.progress.read(self.unit_id, self.lesson_id, self.section.id)

    @property
    def is_completed(self) -> bool:
        return self.progress.is_completed(self.unit_id, self.lesson_id, self.section.id)

    def _row(self, state: CoverageState, challenge_id: str) -> ChallengeState:
        return state.challenge_states.get(challenge_id) or ChallengeState(
            inputs={p.name: "" for p in self.section.input_params}
        )

    def _bump(self, challenge_id: str) -> int:
        self._generations[challenge_id] = self._generations.get(challenge_id, 0) + 1
        return self._generations[challenge_id]

    def set_input(self, challenge_id: str, param_name: str, value: str) -> CoverageState:
        """Edit one input; the row's previous result no longer applies."""
        if challenge_id not in self._challenges:
            raise KeyError(f"Unknown challenge: {challenge_id}")
        self._bump(challenge_id)

        def change(state: CoverageState) -> CoverageState:
            row = self._row(state, challenge_id)
            rows = dict(state.challenge_states)
            rows[challenge_id] = ChallengeState(
                inputs={**row.inputs, param_name: value},
                actual_output=None,
                is_correct=None,
            )
            return CoverageState(challenge_states=rows)

        return self.progress.update(self.unit_id, self.lesson_id, self.section.id, change)

    async def run_challenge(self, challenge_id: str) -> Optional[ChallengeState]:
        """
        Run the snippet with the row's inputs and record its output.

        Returns:
            The updated row, or None if the inputs changed while it ran
        """
        challenge = self._challenges[challenge_id]
        generation = self._bump(challenge_id)
        inputs = self._row(self.state, challenge_id).inputs
        program = build_coverage_program(self.section.code, self.section.input_params, inputs)

        self.running.add(challenge_id)
        try:
            output = normalize_text(await self.sandbox.run(program))
            is_correct = compare(output, challenge.expected_output)
        except SandboxError as e:
            logger.error(f"Sandbox failed for coverage row {challenge_id}: {e}")
            output = f"Error: {e}"
            is_correct = False
        finally:
            self.running.discard(challenge_id)

        if self._generations.get(challenge_id) != generation:
            logger.info(f"Discarding stale coverage result for {challenge_id}")
            return None

        def change(state: CoverageState) -> CoverageState:
            rows = dict(state.challenge_states)
            rows[challenge_id] = self._row(state, challenge_id).model_copy(
                update={"actual_output": output, "is_correct": is_correct}
            )
            return CoverageState(challenge_states=rows)

        state = self.progress.update(self.unit_id, self.lesson_id, self.section.id, change)
        return state.challenge_states[challenge_id]
