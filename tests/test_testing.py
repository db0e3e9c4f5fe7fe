"""
TestRunner tests: verdict persistence and stale-result handling.
"""

import asyncio

import pytest

from codelesson.classroom import ProgressDatabase, ProgressStore, TestRunner, all_tests_passed
from codelesson.grading import OutcomeKind, wrap_results
from codelesson.schemas import TestCase, TestingSection, TestingState
from codelesson.viewer import render_grading_outcome

from conftest import FakeSandbox


PASSING = wrap_results(
    '[{"input": "[2, 3]", "expected": "5", "actual": "5", "passed": true, "description": "adds"}]'
)
FAILING = wrap_results(
    '[{"input": "[2, 3]", "expected": "5", "actual": "-1", "passed": false, "description": "adds"}]'
)


@pytest.fixture
def section():
    return TestingSection(
        id="write-add",
        title="Write add",
        starter_code="def add(a, b):\n    pass\n",
        function_to_test="add",
        test_cases=[TestCase(input=[2, 3], expected=5, description="adds")],
    )


def make_runner(database, section, sandbox):
    store = ProgressStore(database, TestingState(), all_tests_passed, debounce_seconds=0)
    return TestRunner(store, sandbox, "functions", "intro", section)


class TestTestRunner:
    def test_passing_run_completes(self, database, section):
        runner = make_runner(database, section, FakeSandbox([PASSING]))
        outcome = asyncio.run(runner.run_tests("def add(a, b):\n    return a + b\n"))
        assert outcome.all_passed
        assert runner.is_completed
        assert runner.state.code.startswith("def add")
        assert runner.state.last_results[0].actual == "5"
        assert "write-add" in database.get_completed_section_ids("functions", "intro")

    def test_failing_run_revokes_completion(self, database, section):
        runner = make_runner(database, section, FakeSandbox([PASSING, FAILING]))
        asyncio.run(runner.run_tests("def add(a, b):\n    return a + b\n"))
        asyncio.run(runner.run_tests("def add(a, b):\n    return a - b\n"))
        assert not runner.is_completed

    def test_harness_error_is_not_completion(self, database, section):
        runner = make_runner(database, section, FakeSandbox([wrap_results('{"test_error": "boom"}')]))
        outcome = asyncio.run(runner.run_tests("add = 1\n"))
        assert outcome.kind == OutcomeKind.HARNESS_ERROR
        assert not runner.is_completed
        assert runner.state.last_results == []

    def test_stale_run_discarded(self, database, section):
        class OrderedSandbox:
            """First call finishes last."""

            def __init__(self):
                self.calls = 0

            async def run(self, program):
                self.calls += 1
                if self.calls == 1:
                    await asyncio.sleep(0.1)
                    return PASSING
                return FAILING

        runner = make_runner(database, section, OrderedSandbox())

        async def scenario():
            slow = asyncio.create_task(runner.run_tests("slow"))
            await asyncio.sleep(0)
            assert runner.is_running
            fast = await runner.run_tests("fast")
            return await slow, fast

        slow, fast = asyncio.run(scenario())
        assert slow is None
        assert fast.kind == OutcomeKind.RESULTS
        assert runner.latest_outcome is fast
        assert runner.state.code == "fast"
        assert not runner.is_completed
        assert not runner.is_running

    def test_save_code(self, database, section):
        runner = make_runner(database, section, FakeSandbox())
        runner.save_code("def add(a, b):\n    return 0\n")
        assert runner.state.code.endswith("return 0\n")
        assert not runner.is_completed

    def test_saved_results_shown_after_reopen(self, database, section):
        runner = make_runner(database, section, FakeSandbox([PASSING]))
        assert runner.display_outcome is None
        asyncio.run(runner.run_tests("def add(a, b):\n    return a + b\n"))

        reopened = make_runner(
            ProgressDatabase(database.db_path, student_id="tester"), section, FakeSandbox()
        )
        outcome = reopened.display_outcome
        assert outcome.kind == OutcomeKind.RESULTS
        assert outcome.all_passed
        assert "1 / 1 tests passed" in render_grading_outcome(outcome)

    def test_harness_error_display_is_not_replaced_by_saved_results(self, database, section):
        runner = make_runner(database, section, FakeSandbox([PASSING, wrap_results('{"test_error": "boom"}')]))
        asyncio.run(runner.run_tests("def add(a, b):\n    return a + b\n"))
        asyncio.run(runner.run_tests("add = 1\n"))
        assert runner.display_outcome.kind == OutcomeKind.HARNESS_ERROR
