"""
CurriculumLoader - Load units and lessons from YAML files.

Each *.yaml file in the lessons directory holds one unit. Files are read
in name order, which is also the unit order used for navigation.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from codelesson.schemas import Lesson, Unit

logger = logging.getLogger(__name__)


class CurriculumLoader:
    """Read-only access to the curriculum, validated against the section schemas."""

    def __init__(self, lessons_dir: str | Path):
        """
        Args:
            lessons_dir: Directory containing one YAML file per unit

        Raises:
            FileNotFoundError: If the directory doesn't exist
            ValueError: If a unit file fails validation
        """
        self.lessons_dir = Path(lessons_dir)
        if not self.lessons_dir.is_dir():
            raise FileNotFoundError(f"Lessons directory not found: {self.lessons_dir}")
        self._units = [self._load_unit(path) for path in sorted(self.lessons_dir.glob("*.yaml"))]
        logger.info(f"Loaded {len(self._units)} units from {self.lessons_dir}")

    @staticmethod
    def _load_unit(path: Path) -> Unit:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        try:
            return Unit.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid unit file {path.name}: {e}") from e

    def get_units(self) -> list[Unit]:
        return list(self._units)

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return next((u for u in self._units if u.id == unit_id), None)

    def get_lesson(self, unit_id: str, lesson_id: str) -> Optional[Lesson]:
        unit = self.get_unit(unit_id)
        if not unit:
            return None
        return next((lesson for lesson in unit.lessons if lesson.id == lesson_id), None)

    def get_lesson_order(self) -> list[tuple[str, str]]:
        """All (unit_id, lesson_id) pairs in curriculum order."""
        return [(unit.id, lesson.id) for unit in self._units for lesson in unit.lessons]
