"""
Observation - Run an example program and show its output.

The example runs inside a small wrapper that prints any traceback to
stdout followed by a failure marker, so a crash is told apart from normal
output even though the sandbox only returns text.
"""

import logging
from string import Template
from typing import Optional

from codelesson.grading import Sandbox, SandboxError
from codelesson.schemas import ObservationSection, ObservationState

from .completion import observation_completed
from .progress import ProgressStore

logger = logging.getLogger(__name__)

FAILURE_MARKER = "===OBSERVATION_RUN_FAILED==="

_WRAPPER = Template('''\
import sys
import traceback

try:
    exec(compile($source, "<example>", "exec"), {"__name__": "__main__"})
except (Exception, SystemExit):
    sys.stdout.flush()
    traceback.print_exc(file=sys.stdout)
    print($marker)
''')


def build_observation_program(code: str) -> str:
    return _WRAPPER.substitute(source=repr(code), marker=repr(FAILURE_MARKER))


def split_run_output(raw_output: str) -> tuple[str, bool]:
    """Return (output shown to the learner, whether the run raised)."""
    index = raw_output.rfind(FAILURE_MARKER)
    if index == -1:
        return raw_output, False
    return raw_output[:index] + raw_output[index + len(FAILURE_MARKER):].lstrip("\n"), True


class ObservationController:
    def __init__(
        self,
        progress: ProgressStore[ObservationState],
        sandbox: Sandbox,
        unit_id: str,
        lesson_id: str,
        section: ObservationSection,
    ):
        self.progress = progress
        self.sandbox = sandbox
        self.unit_id = unit_id
        self.lesson_id = lesson_id
        self.section = section
        self._generation = 0

    @staticmethod
    def new_store(database, section: ObservationSection, **kwargs) -> ProgressStore[ObservationState]:
        return ProgressStore(
            database, ObservationState(code=section.example.code), observation_completed, **kwargs
        )

    @property
    def state(self) -> ObservationState:
        return self.progress.read(self.unit_id, self.lesson_id, self.section.id)

    @property
    def is_completed(self) -> bool:
        return self.progress.is_completed(self.unit_id, self.lesson_id, self.section.id)

    def save_code(self, code: str) -> ObservationState:
        state = self.state.model_copy(update={"code": code})
        self.progress.write(self.unit_id, self.lesson_id, self.section.id, state)
        return state

    async def run(self, code: Optional[str] = None) -> Optional[ObservationState]:
        """
        Run the example (or the learner's edit of it) and record the output.

        Returns:
            The new state, or None if a newer run started meanwhile
        """
        self._generation += 1
        generation = self._generation
        code = self.state.code if code is None else code

        try:
            output, error = split_run_output(await self.sandbox.run(build_observation_program(code)))
        except SandboxError as e:
            logger.error(f"Sandbox failed for observation {self.section.id}: {e}")
            output, error = f"Error: {e}", True

        if generation != self._generation:
            logger.info(f"Discarding stale observation run for {self.section.id}")
            return None

        def change(state: ObservationState) -> ObservationState:
            return ObservationState(
                code=code,
                output=output,
                error=error,
                ran_cleanly=state.ran_cleanly or not error,
            )

        return self.progress.update(self.unit_id, self.lesson_id, self.section.id, change)
