"""
Result protocol - Locate and validate the report a harness program prints.

The harness program frames its JSON payload between two fixed sentinel lines so it
can be picked out of otherwise unstructured sandbox output.
"""

import json
from typing import Optional

from pydantic import ValidationError

from codelesson.schemas import TestResult, HarnessFailure, ExecutionReport


START_MARKER = "===PYTHON_TEST_RESULTS_JSON==="
END_MARKER = "===END_PYTHON_TEST_RESULTS_JSON==="


def _last_block(raw_output: str) -> Optional[str]:
    """Text between the last end marker and the start marker nearest before it."""
    # The harness program prints its block last; stray start markers earlier are ignored
    end = raw_output.rfind(END_MARKER)
    if end == -1:
        return None
    start = raw_output.rfind(START_MARKER, 0, end)
    if start == -1:
        return None
    return raw_output[start + len(START_MARKER):end].strip()


class ParseError(ValueError):
    """The report is missing or malformed: a protocol break, not a learner mistake."""


def parse(raw_output: str) -> ExecutionReport:
    """
    Extract the execution report from raw sandbox output.

    Args:
        raw_output: Everything the harness program wrote to stdout/stderr

    Returns:
        List of TestResult, or HarnessFailure when tests could not run

    Raises:
        ParseError: On missing markers, malformed JSON, or unexpected shape
    """
    payload_text = _last_block(raw_output or "")
    if payload_text is None:
        raise ParseError("Could not find results block in program output")

    try:
        payload = json.loads(payload_text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Results block is not valid JSON: {e}") from e

    if isinstance(payload, list):
        try:
            return [TestResult.model_validate(item) for item in payload]
        except ValidationError as e:
            raise ParseError(f"Results block holds an invalid test result: {e}") from e

    if isinstance(payload, dict) and isinstance(payload.get("test_error"), str):
        return HarnessFailure(test_error=payload["test_error"])

    raise ParseError(
        f"Results block must be a list or a test_error object, got {type(payload).__name__}"
    )


def serialize_results(report: ExecutionReport) -> str:
    """Inverse of the payload decoding in parse()."""
    if isinstance(report, HarnessFailure):
        return json.dumps(report.model_dump())
    return json.dumps([result.model_dump() for result in report])


def wrap_results(payload: str) -> str:
    """Frame a serialized payload the way the harness program prints it."""
    return f"{START_MARKER}\n{payload}\n{END_MARKER}\n"
