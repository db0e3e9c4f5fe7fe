"""
Results renderer - Display grading outcomes for Testing sections.

Provides:
- Per-test-case result cards
- Distinct messages for harness failures and internal errors
- Quiz feedback and penalty countdown text
"""

import html
from typing import Optional

from codelesson.grading import GradingOutcome, OutcomeKind
from codelesson.schemas import TestResult


def get_results_css() -> str:
    """Get CSS styles for test result display."""
    return """
    <style>
    .result-card {
        border-radius: 8px;
        padding: 0.8em 1em;
        margin: 0.6em 0;
        border-left: 4px solid #9e9e9e;
        background: #fafafa;
    }
    .result-pass {
        border-left-color: #388E3C;
        background: #e8f5e9;
    }
    .result-fail {
        border-left-color: #d32f2f;
        background: #ffebee;
    }
    .result-title {
        font-weight: 600;
        margin-bottom: 0.4em;
    }
    .result-field {
        font-family: monospace;
        font-size: 0.9em;
        white-space: pre-wrap;
        color: #333;
    }
    .result-trace {
        font-family: monospace;
        font-size: 0.85em;
        white-space: pre-wrap;
        background: #fff3e0;
        color: #e65100;
        padding: 0.6em;
        border-radius: 6px;
    }
    .result-summary {
        font-weight: 600;
        margin: 1em 0 0.5em;
    }
    .result-banner {
        border-radius: 8px;
        padding: 1em;
        margin: 1em 0;
    }
    .result-banner-harness {
        background: #fff8e1;
        color: #8d6e00;
    }
    .result-banner-internal {
        background: #eceff1;
        color: #37474f;
    }
    </style>
    """


def render_test_result(result: TestResult) -> str:
    """
    Render one test case result.

    Args:
        result: TestResult from the harness program

    Returns:
        HTML string for the result card
    """
    status = "result-pass" if result.passed else "result-fail"
    mark = "✓" if result.passed else "✗"
    parts = [f'<div class="result-card {status}">']
    parts.append(f'<div class="result-title">{mark} {html.escape(result.description)}</div>')

    if result.input:
        parts.append(f'<div class="result-field">Input: {html.escape(result.input)}</div>')
    parts.append(f'<div class="result-field">Expected: {html.escape(result.expected)}</div>')

    if result.error:
        parts.append('<div class="result-field">Your code raised an error:</div>')
        parts.append(f'<div class="result-trace">{html.escape(result.actual)}</div>')
    else:
        parts.append(f'<div class="result-field">Actual: {html.escape(result.actual)}</div>')

    parts.append('</div>')
    return ''.join(parts)


def render_grading_outcome(outcome: Optional[GradingOutcome]) -> str:
    """Render everything a Testing section shows after a run."""
    if outcome is None:
        return ""

    if outcome.kind == OutcomeKind.HARNESS_ERROR:
        return (
            '<div class="result-banner result-banner-harness">'
            '<strong>Could not run your tests.</strong>'
            f'<div class="result-trace">{html.escape(outcome.message or "")}</div>'
            '</div>'
        )

    if outcome.kind == OutcomeKind.CONFIG_ERROR:
        return (
            '<div class="result-banner result-banner-internal">'
            'This exercise is misconfigured, so it cannot be graded. This is not a problem with your code.'
            '</div>'
        )

    if outcome.kind == OutcomeKind.INTERNAL_ERROR:
        return (
            '<div class="result-banner result-banner-internal">'
            'Something went wrong while grading. This is not a problem with your code.'
            '</div>'
        )

    passed = sum(1 for r in outcome.results if r.passed)
    parts = [f'<div class="result-summary">{passed} / {len(outcome.results)} tests passed</div>']
    parts.extend(render_test_result(r) for r in outcome.results)
    return ''.join(parts)


def render_penalty_countdown(seconds: int) -> str:
    """Text for the disabled Try Again button."""
    if seconds <= 0:
        return "Try Again"
    return f"Try again in {seconds}s"
