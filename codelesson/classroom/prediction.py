"""
Prediction - Guess what a function prints for given inputs, then check.
"""

import logging
import re
from typing import Optional

from codelesson.grading import Sandbox, SandboxError, compare, normalize_text
from codelesson.schemas import PredictionSection, PredictionState, RowPrediction

from .completion import prediction_completion
from .progress import ProgressStore

logger = logging.getLogger(__name__)

FUNCTION_NAME_PATTERN = re.compile(r"^\s*def\s+([A-Za-z_][A-Za-z0-9_]*)\s*\(", re.MULTILINE)


def build_prediction_program(function_code: str, inputs: list) -> str:
    """Append a call printing the function's result for one row."""
    match = FUNCTION_NAME_PATTERN.search(function_code)
    if not match:
        raise ValueError("Could not find a function definition in the prediction code")
    call = f"{match.group(1)}({', '.join(repr(value) for value in inputs)})"
    return f"{function_code}\n\nprint({call})\n"


class PredictionController:
    def __init__(
        self,
        progress: ProgressStore[PredictionState],
        sandbox: Sandbox,
        unit_id: str,
        lesson_id: str,
        section: PredictionSection,
    ):
        self.progress = progress
        self.sandbox = sandbox
        self.unit_id = unit_id
        self.lesson_id = lesson_id
        self.section = section
        self._generations: dict[int, int] = {}

    @staticmethod
    def new_store(database, section: PredictionSection, **kwargs) -> ProgressStore[PredictionState]:
        return ProgressStore(database, PredictionState(), prediction_completion(section), **kwargs)

    @property
    def state(self) -> PredictionState:
        return self.progress.read(self.unit_id, self.lesson_id, self.section.id)

    @property
    def is_completed(self) -> bool:
        return self.progress.is_completed(self.unit_id, self.lesson_id, self.section.id)

    def _check_row(self, row_index: int):
        if not 0 <= row_index < len(self.section.rows):
            raise IndexError(f"Row {row_index} out of range for {self.section.id}")

    def _bump(self, row_index: int) -> int:
        self._generations[row_index] = self._generations.get(row_index, 0) + 1
        return self._generations[row_index]

    def set_prediction(self, row_index: int, answer: str) -> PredictionState:
        self._check_row(row_index)
        self._bump(row_index)

        def change(state: PredictionState) -> PredictionState:
            predictions = dict(state.predictions)
            predictions[row_index] = RowPrediction(user_answer=answer)
            return PredictionState(predictions=predictions)

        return self.progress.update(self.unit_id, self.lesson_id, self.section.id, change)

    async def check_prediction(self, row_index: int) -> Optional[RowPrediction]:
        """Run the function for one row and grade the learner's guess."""
        self._check_row(row_index)
        generation = self._bump(row_index)
        current = self.state.predictions.get(row_index) or RowPrediction()
        program = build_prediction_program(
            self.section.function_code, self.section.rows[row_index].inputs
        )

        try:
            actual = normalize_text(await self.sandbox.run(program))
            is_correct = compare(current.user_answer.strip(), actual)
        except SandboxError as e:
            logger.error(f"Sandbox failed for prediction row {row_index}: {e}")
            actual = f"Error: {e}"
            is_correct = False

        if self._generations.get(row_index) != generation:
            logger.info(f"Discarding stale prediction result for row {row_index}")
            return None

        def change(state: PredictionState) -> PredictionState:
            predictions = dict(state.predictions)
            predictions[row_index] = current.model_copy(
                update={"actual_output": actual, "is_correct": is_correct}
            )
            return PredictionState(predictions=predictions)

        state = self.progress.update(self.unit_id, self.lesson_id, self.section.id, change)
        return state.predictions[row_index]
