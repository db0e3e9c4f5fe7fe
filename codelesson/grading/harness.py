"""
Harness generator - Build the harness program handed to the sandbox.

The harness program wraps a learner submission with instrumentation:
- Runs the submission in a fresh namespace with stdout captured
- Calls the target function per test case (function mode) or compares the
  whole program's output (when the target is "__main__")
- Prints a JSON report framed by the sentinel lines parsed in results.py
"""

import inspect
import json
import logging
import re
from string import Template

from codelesson.schemas import TestCase

from . import comparator
from .results import START_MARKER, END_MARKER

logger = logging.getLogger(__name__)

MAIN_TARGET = "__main__"
IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class GenerationError(ValueError):
    """The harness program cannot be built; a lesson configuration problem, not learner error."""


def validate_identifier(name: str) -> str:
    """Reject anything that is not a plain Python identifier."""
    if not isinstance(name, str) or not IDENTIFIER_PATTERN.match(name):
        raise GenerationError(f"Invalid identifier for testing: {name!r}")
    return name


# -----------------------------------------------------------------------------
# Harness program templates
# -----------------------------------------------------------------------------

_PREAMBLE = Template('''\
import io
import json
import sys
import traceback
from contextlib import redirect_stdout

$comparator

START_MARKER = $start_marker
END_MARKER = $end_marker
SUBMISSION = $submission
TEST_CASES = json.loads($cases)
TARGET = $target


def emit(payload):
    print(START_MARKER)
    print(json.dumps(payload))
    print(END_MARKER)
    sys.stdout.flush()

''')

_WHOLE_PROGRAM = '''
def run_program():
    case = TEST_CASES[0]
    expected = case["expected"]
    if not isinstance(expected, str):
        expected = str(expected)
    args = case.get("input")
    result = {
        "input": "" if args is None else repr(args),
        "expected": expected,
        "description": case["description"],
    }
    buffer = io.StringIO()
    namespace = {"__name__": "__main__"}
    try:
        with redirect_stdout(buffer):
            exec(compile(SUBMISSION, "<submission>", "exec"), namespace)
    except (Exception, SystemExit):
        result.update(actual=traceback.format_exc(), passed=False, error=True)
        return [result]
    actual = buffer.getvalue()
    result.update(actual=actual, passed=compare(actual, expected), error=False)
    return [result]


emit(run_program())
'''

_FUNCTION = '''
def call_target(func, args):
    if isinstance(args, list):
        return func(*args)
    if args is None:
        return func()
    return func(args)


def run_function():
    namespace = {"__name__": "__submission__"}
    try:
        with redirect_stdout(io.StringIO()):
            exec(compile(SUBMISSION, "<submission>", "exec"), namespace)
    except (Exception, SystemExit):
        return {"test_error": "Error executing submission:\\n" + traceback.format_exc()}

    func = namespace.get(TARGET)
    if func is None:
        return {"test_error": "Function '%s' not found in submission." % TARGET}
    if not callable(func):
        return {"test_error": "'%s' is not a function." % TARGET}

    results = []
    for case in TEST_CASES:
        args = case.get("input")
        expected = case["expected"]
        try:
            with redirect_stdout(io.StringIO()):
                actual = call_target(func, args)
            passed = compare(actual, expected)
            shown = repr(actual)
            error = False
        except (Exception, SystemExit):
            shown = traceback.format_exc()
            passed = False
            error = True
        results.append({
            "input": repr(args),
            "expected": repr(expected),
            "actual": shown,
            "passed": bool(passed),
            "description": case["description"],
            "error": error,
        })
    return results


emit(run_function())
'''


def _serialize_cases(cases: list[TestCase]) -> str:
    payload = []
    for case in cases:
        if not isinstance(case, TestCase):
            case = TestCase.model_validate(case)
        payload.append(case.model_dump(mode="json"))
    try:
        return json.dumps(payload)
    except (TypeError, ValueError) as e:
        raise GenerationError(f"Test cases are not JSON serializable: {e}") from e


def generate(submission: str, target_name: str, cases: list[TestCase]) -> str:
    """
    Build an executable harness program for the sandbox.

    Args:
        submission: Learner's program text
        target_name: Function to test, or "__main__" to test program output
        cases: Test cases; only the first is used for "__main__"

    Returns:
        Python source that prints the sentinel-framed JSON report

    Raises:
        GenerationError: If target_name is not an identifier, or "__main__"
            is requested without any test case
    """
    validate_identifier(target_name)
    if target_name == MAIN_TARGET and not cases:
        raise GenerationError("Whole-program testing needs at least one test case")
    if target_name == MAIN_TARGET and len(cases) > 1:
        logger.debug(f"Whole-program mode ignores {len(cases) - 1} extra test case(s)")

    preamble = _PREAMBLE.substitute(
        comparator=inspect.getsource(comparator),
        start_marker=repr(START_MARKER),
        end_marker=repr(END_MARKER),
        submission=repr(submission),
        cases=repr(_serialize_cases(cases)),
        target=repr(target_name),
    )
    body = _WHOLE_PROGRAM if target_name == MAIN_TARGET else _FUNCTION
    return preamble + body
