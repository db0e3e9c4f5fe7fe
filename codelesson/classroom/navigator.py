"""
Navigator - Lesson sequencing and section completion for the sidebar.

Provides:
- Next/previous lesson navigation
- Which sections of a lesson are done
- Curriculum tree with status indicators
"""

from dataclasses import dataclass
from typing import Optional

from codelesson.schemas import Lesson, Unit

from .loader import CurriculumLoader
from .progress import ProgressDatabase


# Sections that only present content never become "done"
UNTRACKED_KINDS = {"Information"}


@dataclass
class NavigationLesson:
    """Lesson with completion metadata."""
    unit_id: str
    lesson: Lesson
    completed_sections: set[str]
    tracked_sections: list[str]

    @property
    def is_complete(self) -> bool:
        return bool(self.tracked_sections) and set(self.tracked_sections) <= self.completed_sections


@dataclass
class NavigationUnit:
    """Unit with lessons and completion metadata."""
    unit: Unit
    lessons: list[NavigationLesson]
    completed_count: int
    total_count: int


def tracked_section_ids(lesson: Lesson) -> list[str]:
    return [s.id for s in lesson.sections if s.kind not in UNTRACKED_KINDS]


class Navigator:
    """
    Combines CurriculumLoader (content) with ProgressDatabase (learner state).
    """

    def __init__(self, loader: CurriculumLoader, database: ProgressDatabase):
        self.loader = loader
        self.database = database
        self._lesson_order = loader.get_lesson_order()
        self._lesson_index = {key: idx for idx, key in enumerate(self._lesson_order)}

    @property
    def total_lessons(self) -> int:
        return len(self._lesson_order)

    # -------------------------------------------------------------------------
    # Section completion
    # -------------------------------------------------------------------------

    def get_completed_sections(self, unit_id: str, lesson_id: str) -> set[str]:
        return self.database.get_completed_section_ids(unit_id, lesson_id)

    def is_section_complete(self, unit_id: str, lesson_id: str, section_id: str) -> bool:
        return section_id in self.get_completed_sections(unit_id, lesson_id)

    def get_status_indicator(self, unit_id: str, lesson_id: str, section_id: str) -> str:
        """✓ for completed, ○ otherwise."""
        return "✓" if self.is_section_complete(unit_id, lesson_id, section_id) else "○"

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def get_first_lesson_key(self) -> Optional[tuple[str, str]]:
        return self._lesson_order[0] if self._lesson_order else None

    def get_next_lesson_key(self, unit_id: str, lesson_id: str) -> Optional[tuple[str, str]]:
        idx = self._lesson_index.get((unit_id, lesson_id))
        if idx is None or idx + 1 >= len(self._lesson_order):
            return None
        return self._lesson_order[idx + 1]

    def get_previous_lesson_key(self, unit_id: str, lesson_id: str) -> Optional[tuple[str, str]]:
        idx = self._lesson_index.get((unit_id, lesson_id))
        if idx is None or idx <= 0:
            return None
        return self._lesson_order[idx - 1]

    def get_lesson_position(self, unit_id: str, lesson_id: str) -> tuple[int, int]:
        """Position as (current, total); (0, total) if not found."""
        idx = self._lesson_index.get((unit_id, lesson_id))
        if idx is None:
            return (0, len(self._lesson_order))
        return (idx + 1, len(self._lesson_order))

    # -------------------------------------------------------------------------
    # Curriculum Tree
    # -------------------------------------------------------------------------

    def get_navigation_tree(self) -> list[NavigationUnit]:
        tree = []
        for unit in self.loader.get_units():
            nav_lessons = [
                NavigationLesson(
                    unit_id=unit.id,
                    lesson=lesson,
                    completed_sections=self.get_completed_sections(unit.id, lesson.id),
                    tracked_sections=tracked_section_ids(lesson),
                )
                for lesson in unit.lessons
            ]
            tree.append(NavigationUnit(
                unit=unit,
                lessons=nav_lessons,
                completed_count=sum(1 for nl in nav_lessons if nl.is_complete),
                total_count=len(nav_lessons),
            ))
        return tree

    def get_progress_summary(self) -> dict:
        """Get progress summary for display."""
        tree = self.get_navigation_tree()
        completed = sum(nav_unit.completed_count for nav_unit in tree)
        total = self.total_lessons
        return {
            "total_lessons": total,
            "completed": completed,
            "completion_percent": round(completed / total * 100, 1) if total > 0 else 0,
            "units": [
                {
                    "id": nav_unit.unit.id,
                    "title": nav_unit.unit.title,
                    "completed": nav_unit.completed_count,
                    "total": nav_unit.total_count,
                }
                for nav_unit in tree
            ],
        }
