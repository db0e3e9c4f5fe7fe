"""
Progress - Persist per-section interactive state in ~/.codelesson/progress.db.

Two layers:
- ProgressDatabase: one durable row per (student, unit, lesson, section)
- ProgressStore: typed, cached, debounced access for one widget kind,
  computing each section's completion verdict from a caller-supplied predicate
"""

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Callable, Generic, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from codelesson.config import DEFAULT_PROGRESS_DB, SAVE_DEBOUNCE_SECONDS
from codelesson.schemas import SectionProgressRecord

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseModel)
SectionKey = tuple[str, str, str]


class PersistenceError(RuntimeError):
    """Progress storage is unavailable or holds unreadable data."""


class ProgressDatabase:
    """
    Store section progress records in SQLite.

    Progress is stored separately from lesson content so that:
    - Lessons can be edited without losing progress
    - Progress is learner-specific, content is shared
    """

    def __init__(self, db_path: Optional[Path] = None, student_id: str = "default"):
        """
        Initialize progress database.

        Args:
            db_path: Path to progress.db (default: ~/.codelesson/progress.db)
            student_id: Learner identifier for multi-user support
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self.student_id = student_id
        self._initialized = False
        self._live_completion: dict[SectionKey, bool] = {}

    def _ensure_database(self):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS section_progress (
                    student_id TEXT NOT NULL,
                    unit_id TEXT NOT NULL,
                    lesson_id TEXT NOT NULL,
                    section_id TEXT NOT NULL,
                    state TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (student_id, unit_id, lesson_id, section_id)
                );

                CREATE INDEX IF NOT EXISTS idx_section_progress_lesson
                ON section_progress(student_id, unit_id, lesson_id);
            """)
            conn.commit()
        finally:
            conn.close()
        self._initialized = True

    @contextmanager
    def _connection(self):
        """Yield a connection; storage failures surface as PersistenceError."""
        conn = None
        try:
            if not self._initialized:
                self._ensure_database()
            conn = sqlite3.connect(str(self.db_path))
            conn.row_factory = sqlite3.Row
            yield conn
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Progress storage unavailable at {self.db_path}: {e}") from e
        finally:
            if conn is not None:
                conn.close()

    # -------------------------------------------------------------------------
    # Section records
    # -------------------------------------------------------------------------

    def load_record(self, unit_id: str, lesson_id: str, section_id: str) -> Optional[SectionProgressRecord]:
        """Get the stored record for a section, or None if never written."""
        with self._connection() as conn:
            row = conn.execute(
                """SELECT unit_id, lesson_id, section_id, state, completed, updated_at
                   FROM section_progress
                   WHERE student_id = ? AND unit_id = ? AND lesson_id = ? AND section_id = ?""",
                (self.student_id, unit_id, lesson_id, section_id)
            ).fetchone()

        if not row:
            return None
        try:
            return SectionProgressRecord(
                unit_id=row["unit_id"],
                lesson_id=row["lesson_id"],
                section_id=row["section_id"],
                state=json.loads(row["state"]),
                completed=bool(row["completed"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
        except (ValueError, ValidationError) as e:
            raise PersistenceError(f"Corrupt progress record for {section_id}: {e}") from e

    def save_record(self, record: SectionProgressRecord):
        """Insert or overwrite the record for its section in one transaction."""
        with self._connection() as conn:
            with conn:
                conn.execute(
                    """INSERT INTO section_progress
                         (student_id, unit_id, lesson_id, section_id, state, completed, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?)
                       ON CONFLICT(student_id, unit_id, lesson_id, section_id) DO UPDATE SET
                         state = excluded.state,
                         completed = excluded.completed,
                         updated_at = excluded.updated_at""",
                    (
                        self.student_id,
                        record.unit_id,
                        record.lesson_id,
                        record.section_id,
                        json.dumps(record.state),
                        int(record.completed),
                        record.updated_at.isoformat(),
                    )
                )

    def note_completion(self, unit_id: str, lesson_id: str, section_id: str, completed: bool):
        """Record a verdict that may not be flushed yet, so readers see it immediately."""
        self._live_completion[(unit_id, lesson_id, section_id)] = completed

    def get_completed_section_ids(self, unit_id: str, lesson_id: str) -> set[str]:
        """Get set of completed section IDs for a lesson, including unflushed verdicts."""
        try:
            with self._connection() as conn:
                cursor = conn.execute(
                    """SELECT section_id FROM section_progress
                       WHERE student_id = ? AND unit_id = ? AND lesson_id = ? AND completed = 1""",
                    (self.student_id, unit_id, lesson_id)
                )
                completed = {row["section_id"] for row in cursor.fetchall()}
        except PersistenceError as e:
            logger.warning(f"Treating {unit_id}/{lesson_id} as not started: {e}")
            completed = set()

        for (u_id, l_id, section_id), done in list(self._live_completion.items()):
            if u_id == unit_id and l_id == lesson_id:
                if done:
                    completed.add(section_id)
                else:
                    completed.discard(section_id)
        return completed

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_completion_stats(self, unit_id: str, lesson_id: str, section_ids: list[str]) -> dict:
        """
        Get completion statistics for one lesson.

        Args:
            unit_id: Unit containing the lesson
            lesson_id: Lesson to summarize
            section_ids: All section IDs of the lesson, in display order

        Returns:
            Dictionary with completion stats
        """
        completed = self.get_completed_section_ids(unit_id, lesson_id) & set(section_ids)
        total = len(section_ids)
        return {
            "total_sections": total,
            "completed": len(completed),
            "remaining": total - len(completed),
            "completion_percent": round(len(completed) / total * 100, 1) if total > 0 else 0,
        }


class ProgressStore(Generic[S]):
    """
    Typed progress access for one widget kind.

    Reads are served from an in-memory cache. Writes recompute completion
    synchronously and reach the database after `debounce_seconds` of quiet,
    so a burst of drag moves costs one durable write. The last write per
    section always lands (trailing-edge flush); call flush() to force it.
    """

    def __init__(
        self,
        database: ProgressDatabase,
        default_state: S,
        check_completion: Callable[[S], bool],
        debounce_seconds: float = SAVE_DEBOUNCE_SECONDS,
    ):
        self.database = database
        self.default_state = default_state
        self.check_completion = check_completion
        self.debounce_seconds = debounce_seconds
        self._state_type = type(default_state)
        self._cache: dict[SectionKey, tuple[S, bool]] = {}
        self._not_durable: set[SectionKey] = set()
        self._pending: dict[SectionKey, SectionProgressRecord] = {}
        self._lock = threading.RLock()
        self._timer: Optional[threading.Timer] = None

    def _default(self) -> S:
        return self.default_state.model_copy(deep=True)

    def _load(self, key: SectionKey) -> S:
        try:
            record = self.database.load_record(*key)
            if record is not None:
                return self._state_type.model_validate(record.state)
        except (PersistenceError, ValidationError) as e:
            logger.warning(f"Using default state for {'/'.join(key)}: {e}")
        self._not_durable.add(key)
        return self._default()

    def _entry(self, key: SectionKey) -> tuple[S, bool]:
        with self._lock:
            if key not in self._cache:
                state = self._load(key)
                self._cache[key] = (state, bool(self.check_completion(state)))
            return self._cache[key]

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def read(self, unit_id: str, lesson_id: str, section_id: str) -> S:
        """Current state of a section (a copy; mutate it and write it back)."""
        state, _ = self._entry((unit_id, lesson_id, section_id))
        return state.model_copy(deep=True)

    def is_completed(self, unit_id: str, lesson_id: str, section_id: str) -> bool:
        _, completed = self._entry((unit_id, lesson_id, section_id))
        return completed

    def write(self, unit_id: str, lesson_id: str, section_id: str, state: S) -> bool:
        """
        Replace a section's state.

        Returns:
            The recomputed completion verdict
        """
        key = (unit_id, lesson_id, section_id)
        completed = bool(self.check_completion(state))

        with self._lock:
            current_state, current_completed = self._entry(key)
            if (
                key not in self._not_durable
                and current_state == state
                and current_completed == completed
            ):
                return completed

            self._cache[key] = (state.model_copy(deep=True), completed)
            self._not_durable.discard(key)
            self.database.note_completion(unit_id, lesson_id, section_id, completed)
            self._pending[key] = SectionProgressRecord(
                unit_id=unit_id,
                lesson_id=lesson_id,
                section_id=section_id,
                state=state.model_dump(mode="json"),
                completed=completed,
                updated_at=datetime.now(),
            )
            self._schedule_flush()
        return completed

    def update(self, unit_id: str, lesson_id: str, section_id: str, change: Callable[[S], S]) -> S:
        """Read-modify-write helper; returns the new state."""
        with self._lock:
            new_state = change(self.read(unit_id, lesson_id, section_id))
            self.write(unit_id, lesson_id, section_id, new_state)
        return new_state

    def reset(self, unit_id: str, lesson_id: str, section_id: str):
        """Overwrite a section with the default state."""
        self.write(unit_id, lesson_id, section_id, self._default())

    def reset_lesson(self, unit_id: str, lesson_id: str, section_ids: list[str]):
        """Reset every listed section of a lesson and save right away."""
        with self._lock:
            for section_id in section_ids:
                self.reset(unit_id, lesson_id, section_id)
            self.flush()

    def flush(self):
        """Write every pending record now."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            pending, self._pending = self._pending, {}
            for key, record in pending.items():
                try:
                    self.database.save_record(record)
                except PersistenceError as e:
                    logger.error(f"Could not save progress for {'/'.join(key)}: {e}")

    def close(self):
        self.flush()

    def _schedule_flush(self):
        if self.debounce_seconds <= 0:
            self.flush()
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(self.debounce_seconds, self.flush)
        self._timer.daemon = True
        self._timer.start()


def reset_lesson_progress(stores: dict[SectionKey, ProgressStore], unit_id: str, lesson_id: str) -> int:
    """
    Reset a whole lesson across per-section stores.

    Args:
        stores: Map of (unit_id, lesson_id, section_id) to the store owning that section
        unit_id: Unit containing the lesson
        lesson_id: Lesson to reset

    Returns:
        Number of sections reset
    """
    by_store: dict[int, tuple[ProgressStore, list[str]]] = {}
    for (u_id, l_id, section_id), store in stores.items():
        if u_id == unit_id and l_id == lesson_id:
            by_store.setdefault(id(store), (store, []))[1].append(section_id)

    count = 0
    for store, section_ids in by_store.values():
        store.reset_lesson(unit_id, lesson_id, section_ids)
        count += len(section_ids)
    logger.info(f"Reset {count} sections of {unit_id}/{lesson_id}")
    return count
