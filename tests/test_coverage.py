"""
Coverage challenge tests using a scripted sandbox.
"""

import asyncio

import pytest

from codelesson.classroom import (
    CoverageController,
    build_coverage_program,
    coverage_completion,
    initial_coverage_state,
    python_literal,
)
from codelesson.grading import SandboxError
from codelesson.schemas import (
    ChallengeState,
    CoverageChallenge,
    CoverageSection,
    CoverageState,
    InputParam,
)

from conftest import FakeSandbox


SIGN_CODE = 'if n > 0:\n    print("positive")\nelse:\n    print("not positive")\n'


@pytest.fixture
def section():
    return CoverageSection(
        id="cover-sign",
        title="Cover every branch",
        code=SIGN_CODE,
        input_params=[InputParam(name="n", type="number")],
        coverage_challenges=[
            CoverageChallenge(id="pos", expected_output="positive"),
            CoverageChallenge(id="other", expected_output="not positive"),
        ],
    )


def make_controller(database, section, sandbox):
    store = CoverageController.new_store(database, section, debounce_seconds=0)
    return CoverageController(store, sandbox, "functions", "intro", section)


class TestPythonLiteral:
    @pytest.mark.parametrize("raw, expected", [
        ("5", "5"),
        (" -3 ", "-3"),
        ("2.5", "2.5"),
        ("abc", "None"),
        ("", "None"),
        ("inf", "None"),
    ])
    def test_number(self, raw, expected):
        assert python_literal(raw, "number") == expected

    @pytest.mark.parametrize("raw, expected", [
        ("true", "True"),
        ("Yes", "True"),
        ("1", "True"),
        ("false", "False"),
        ("", "False"),
    ])
    def test_boolean(self, raw, expected):
        assert python_literal(raw, "boolean") == expected

    def test_text_is_quoted(self):
        assert python_literal("it's", "text") == repr("it's")


class TestBuildProgram:
    def test_assignments_precede_code(self, section):
        program = build_coverage_program(section.code, section.input_params, {"n": "4"})
        assert program.startswith("n = 4\n")
        assert program.endswith(SIGN_CODE)

    def test_missing_input_is_empty(self, section):
        program = build_coverage_program(section.code, section.input_params, {})
        assert program.startswith("n = None\n")


class TestCoverageCompletion:
    def test_empty_challenges_never_complete(self, section):
        empty = section.model_copy(update={"coverage_challenges": []})
        assert not coverage_completion(empty)(CoverageState())

    def test_initial_state_not_complete(self, section):
        assert not coverage_completion(section)(initial_coverage_state(section))

    def test_all_outputs_match(self, section):
        state = CoverageState(challenge_states={
            "pos": ChallengeState(actual_output="positive\n"),
            "other": ChallengeState(actual_output="not positive"),
        })
        assert coverage_completion(section)(state)


class TestCoverageController:
    def test_run_records_output(self, database, section):
        sandbox = FakeSandbox(["positive\n"])
        coverage = make_controller(database, section, sandbox)
        coverage.set_input("pos", "n", "3")

        row = asyncio.run(coverage.run_challenge("pos"))
        assert row.actual_output == "positive"
        assert row.is_correct
        assert sandbox.programs[0].startswith("n = 3\n")
        assert not coverage.is_completed

    def test_all_rows_complete_section(self, database, section):
        coverage = make_controller(database, section, FakeSandbox(["positive\n", "not positive\n"]))
        coverage.set_input("pos", "n", "3")
        coverage.set_input("other", "n", "-1")
        asyncio.run(coverage.run_challenge("pos"))
        asyncio.run(coverage.run_challenge("other"))
        assert coverage.is_completed
        assert "cover-sign" in database.get_completed_section_ids("functions", "intro")

    def test_editing_input_clears_result(self, database, section):
        coverage = make_controller(database, section, FakeSandbox(["positive\n", "not positive\n"]))
        coverage.set_input("pos", "n", "3")
        coverage.set_input("other", "n", "-1")
        asyncio.run(coverage.run_challenge("pos"))
        asyncio.run(coverage.run_challenge("other"))

        coverage.set_input("pos", "n", "-2")
        assert coverage.state.challenge_states["pos"].actual_output is None
        assert not coverage.is_completed

    def test_stale_run_discarded(self, database, section):
        coverage = make_controller(database, section, FakeSandbox(["positive\n"], delay=0.05))
        coverage.set_input("pos", "n", "3")

        async def scenario():
            task = asyncio.create_task(coverage.run_challenge("pos"))
            await asyncio.sleep(0)
            coverage.set_input("pos", "n", "-5")
            return await task

        assert asyncio.run(scenario()) is None
        row = coverage.state.challenge_states["pos"]
        assert row.inputs == {"n": "-5"}
        assert row.actual_output is None

    def test_sandbox_failure_marks_row_wrong(self, database, section):
        coverage = make_controller(database, section, FakeSandbox([SandboxError("timed out")]))
        row = asyncio.run(coverage.run_challenge("pos"))
        assert row.is_correct is False
        assert "timed out" in row.actual_output

    def test_unknown_challenge(self, database, section):
        coverage = make_controller(database, section, FakeSandbox())
        with pytest.raises(KeyError):
            coverage.set_input("missing", "n", "1")
