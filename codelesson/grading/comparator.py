"""
Comparator - type-aware equality used to grade learner results.

This module must stay free of package imports: its source is embedded
verbatim into every generated harness program, so the sandbox grades with exactly
the same rules as the host.
"""

import math

TOLERANCE = 1e-5


def normalize_text(text):
    """Unify line endings and drop trailing whitespace (per line and at the end)."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [line.rstrip() for line in text.split("\n")]
    while lines and not lines[-1]:
        lines.pop()
    return "\n".join(lines)


def is_number(value):
    # bool is an int subclass but True == 1.0 should not pass a numeric check
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare(actual, expected):
    """
    Compare a produced value against the expected one.

    - str vs str: equal after normalize_text
    - number vs number: math.isclose with relative and absolute TOLERANCE
    - lists/tuples and dicts: same shape, items compared recursively
    - anything else: same type and ==
    """
    if isinstance(actual, str) and isinstance(expected, str):
        return normalize_text(actual) == normalize_text(expected)

    if is_number(actual) and is_number(expected):
        if isinstance(actual, int) and isinstance(expected, int):
            # exact, and ints beyond float range would overflow isclose
            return actual == expected
        try:
            return math.isclose(actual, expected, rel_tol=TOLERANCE, abs_tol=TOLERANCE)
        except OverflowError:
            return False

    if isinstance(actual, (list, tuple)) and isinstance(expected, (list, tuple)):
        # expected values arrive as JSON, so a tuple result stands in for a list
        if len(actual) != len(expected):
            return False
        return all(compare(a, e) for a, e in zip(actual, expected))

    if isinstance(actual, dict) and isinstance(expected, dict):
        if actual.keys() != expected.keys():
            return False
        return all(compare(actual[k], expected[k]) for k in actual)

    return type(actual) is type(expected) and actual == expected
