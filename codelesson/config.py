"""
Runtime configuration for CodeLesson.

Values come from the environment (optionally a .env file at the project
root) with defaults suitable for a single learner on one machine.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).parent.parent
load_dotenv(PROJECT_ROOT / ".env")


DEFAULT_PROGRESS_DIR = Path.home() / ".codelesson"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"

PROGRESS_DB = Path(os.environ.get("CODELESSON_PROGRESS_DB", DEFAULT_PROGRESS_DB))
STUDENT_ID = os.environ.get("CODELESSON_STUDENT_ID", "default")
LESSONS_PATH = Path(os.environ.get("CODELESSON_LESSONS", PROJECT_ROOT / "lessons"))

# Fixed retry cooldown after a wrong quiz answer
PENALTY_SECONDS = int(os.environ.get("CODELESSON_PENALTY_SECONDS", "15"))

# Quiet period before interactive state is written to disk
SAVE_DEBOUNCE_SECONDS = float(os.environ.get("CODELESSON_SAVE_DEBOUNCE", "0.5"))

PYTHON_EXECUTABLE = os.environ.get("CODELESSON_PYTHON") or None
_timeout = os.environ.get("CODELESSON_SANDBOX_TIMEOUT")
SANDBOX_TIMEOUT_SECONDS = float(_timeout) if _timeout else None

LOG_LEVEL = os.environ.get("CODELESSON_LOG_LEVEL", "INFO").upper()


def setup_logging(level: str | None = None):
    """Configure root logging once for the app."""
    logging.basicConfig(
        level=getattr(logging, level or LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s"
    )
