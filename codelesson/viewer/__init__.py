"""CodeLesson viewer - HTML rendering helpers for the Streamlit app."""

from .results import (
    get_results_css,
    render_test_result,
    render_grading_outcome,
    render_penalty_countdown,
)

__all__ = [
    "get_results_css",
    "render_test_result",
    "render_grading_outcome",
    "render_penalty_countdown",
]
