"""
CodeLesson Grading - Turn a learner submission into a pass/fail report.

This module provides:
- compare: type-aware equality with numeric tolerance
- generate: build the harness program for the sandbox
- parse: extract the sentinel-framed report from sandbox output
- SubprocessSandbox: local reference sandbox
- grade: the full generate -> run -> parse pipeline
"""

from .comparator import (
    compare,
    normalize_text,
    TOLERANCE,
)

from .results import (
    parse,
    serialize_results,
    wrap_results,
    ParseError,
    START_MARKER,
    END_MARKER,
)

from .harness import (
    generate,
    validate_identifier,
    GenerationError,
    MAIN_TARGET,
)

from .sandbox import (
    Sandbox,
    SandboxError,
    SubprocessSandbox,
)

from .runner import (
    grade,
    GradingOutcome,
    OutcomeKind,
)

__all__ = [
    # Comparator
    "compare",
    "normalize_text",
    "TOLERANCE",
    # Results protocol
    "parse",
    "serialize_results",
    "wrap_results",
    "ParseError",
    "START_MARKER",
    "END_MARKER",
    # Harness
    "generate",
    "validate_identifier",
    "GenerationError",
    "MAIN_TARGET",
    # Sandbox
    "Sandbox",
    "SandboxError",
    "SubprocessSandbox",
    # Pipeline
    "grade",
    "GradingOutcome",
    "OutcomeKind",
]
