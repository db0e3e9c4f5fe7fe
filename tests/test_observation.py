"""
Observation section tests: running an example and recording what it printed.
"""

import asyncio

import pytest

from codelesson.classroom import (
    ObservationController,
    build_observation_program,
    split_run_output,
)
from codelesson.classroom.observation import FAILURE_MARKER
from codelesson.grading import SandboxError, SubprocessSandbox
from codelesson.schemas import CodeExample, ObservationSection

from conftest import FakeSandbox


GREET = 'def greet(name):\n    return "Hello, " + name\n\nprint(greet("Ada"))\n'


@pytest.fixture
def section():
    return ObservationSection(
        id="observe-greet",
        title="Watch it run",
        example=CodeExample(id="greet", code=GREET),
    )


def make_controller(database, section, sandbox):
    store = ObservationController.new_store(database, section, debounce_seconds=0)
    return ObservationController(store, sandbox, "functions", "intro", section)


def failed_output(text="Traceback (most recent call last):\nZeroDivisionError: division by zero\n"):
    return f"{text}{FAILURE_MARKER}\n"


class TestRunOutput:
    def test_program_compiles(self):
        compile(build_observation_program(GREET), "<observation>", "exec")

    def test_clean_output_untouched(self):
        assert split_run_output("Hello, Ada\n") == ("Hello, Ada\n", False)

    def test_marker_flags_failure_and_is_removed(self):
        output, failed = split_run_output("partial\n" + failed_output("Traceback: boom\n"))
        assert failed
        assert FAILURE_MARKER not in output
        assert output.startswith("partial\nTraceback: boom")


class TestObservationController:
    def test_starts_from_example_code(self, database, section):
        observation = make_controller(database, section, FakeSandbox())
        assert observation.state.code == GREET
        assert observation.state.output is None
        assert not observation.is_completed

    def test_clean_run_completes(self, database, section):
        observation = make_controller(database, section, FakeSandbox(["Hello, Ada\n"]))
        state = asyncio.run(observation.run())
        assert state.output == "Hello, Ada\n"
        assert state.error is False
        assert observation.is_completed

    def test_raising_run_does_not_complete(self, database, section):
        observation = make_controller(database, section, FakeSandbox([failed_output()]))
        state = asyncio.run(observation.run("print(1 / 0)\n"))
        assert state.error
        assert "ZeroDivisionError" in state.output
        assert state.code == "print(1 / 0)\n"
        assert not observation.is_completed

    def test_later_failure_keeps_completion(self, database, section):
        observation = make_controller(database, section, FakeSandbox(["Hello, Ada\n", failed_output()]))
        asyncio.run(observation.run())
        state = asyncio.run(observation.run("print(1 / 0)\n"))
        assert state.error
        assert observation.is_completed

    def test_sandbox_failure_reported(self, database, section):
        observation = make_controller(database, section, FakeSandbox([SandboxError("timed out")]))
        state = asyncio.run(observation.run())
        assert state.error
        assert state.output == "Error: timed out"
        assert not observation.is_completed

    def test_stale_run_discarded(self, database, section):
        observation = make_controller(
            database, section, FakeSandbox(["first\n", "second\n"], delay=0.05)
        )

        async def scenario():
            first = asyncio.create_task(observation.run("print('first')\n"))
            await asyncio.sleep(0)
            second = asyncio.create_task(observation.run("print('second')\n"))
            return await first, await second

        first, second = asyncio.run(scenario())
        assert first is None
        assert second.output == "second\n"
        assert observation.state.code == "print('second')\n"

    def test_saved_code_survives(self, database, section):
        observation = make_controller(database, section, FakeSandbox())
        observation.save_code("print('edited')\n")
        observation.progress.flush()
        reopened = make_controller(database, section, FakeSandbox())
        assert reopened.state.code == "print('edited')\n"


class TestObservationEndToEnd:
    def test_example_output(self, database, section):
        observation = make_controller(database, section, SubprocessSandbox(timeout=30))
        state = asyncio.run(observation.run())
        assert "Hello, Ada" in state.output
        assert state.error is False
        assert observation.is_completed

    def test_exception_detected(self, database, section):
        observation = make_controller(database, section, SubprocessSandbox(timeout=30))
        state = asyncio.run(observation.run("print('before')\nprint(1 / 0)\n"))
        assert state.error
        assert "before" in state.output
        assert "ZeroDivisionError" in state.output
        assert FAILURE_MARKER not in state.output
        assert not observation.is_completed

    def test_syntax_error_detected(self, database, section):
        observation = make_controller(database, section, SubprocessSandbox(timeout=30))
        state = asyncio.run(observation.run("print('unclosed'\n"))
        assert state.error
        assert "SyntaxError" in state.output
