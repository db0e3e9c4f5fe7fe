"""
Curriculum loading and navigation tests.
"""

from pathlib import Path

import pytest

from codelesson.classroom import CurriculumLoader, Navigator, tracked_section_ids


LESSONS_DIR = Path(__file__).parent.parent / "lessons"

UNIT_A = """
id: basics
title: Basics
lessons:
  - id: one
    title: One
    sections:
      - {kind: Information, id: read-me, title: Read me}
      - kind: MultipleChoice
        id: q1
        title: Q1
        options: [a, b]
        correct_answer: 0
  - id: two
    title: Two
    sections:
      - {kind: Information, id: only-reading, title: Only reading}
"""

UNIT_B = """
id: loops
title: Loops
lessons:
  - id: three
    title: Three
    sections:
      - kind: MultipleSelection
        id: q2
        title: Q2
        options: [a, b, c]
        correct_answers: [1]
"""


@pytest.fixture
def lessons_dir(tmp_path):
    path = tmp_path / "lessons"
    path.mkdir()
    (path / "01_basics.yaml").write_text(UNIT_A, encoding="utf-8")
    (path / "02_loops.yaml").write_text(UNIT_B, encoding="utf-8")
    return path


@pytest.fixture
def navigator(lessons_dir, database):
    return Navigator(CurriculumLoader(lessons_dir), database)


class TestCurriculumLoader:
    def test_units_in_file_order(self, lessons_dir):
        loader = CurriculumLoader(lessons_dir)
        assert [u.id for u in loader.get_units()] == ["basics", "loops"]

    def test_get_lesson(self, lessons_dir):
        loader = CurriculumLoader(lessons_dir)
        assert loader.get_lesson("loops", "three").title == "Three"
        assert loader.get_lesson("loops", "missing") is None
        assert loader.get_lesson("missing", "three") is None

    def test_lesson_order(self, lessons_dir):
        loader = CurriculumLoader(lessons_dir)
        assert loader.get_lesson_order() == [("basics", "one"), ("basics", "two"), ("loops", "three")]

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            CurriculumLoader(tmp_path / "nowhere")

    def test_invalid_unit(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("id: bad\ntitle: Bad\nlessons:\n  - id: x\n", encoding="utf-8")
        with pytest.raises(ValueError):
            CurriculumLoader(tmp_path)

    def test_bundled_lessons_load(self):
        loader = CurriculumLoader(LESSONS_DIR)
        kinds = {s.kind for unit in loader.get_units() for lesson in unit.lessons for s in lesson.sections}
        assert kinds == {
            "Information", "MultipleChoice", "MultipleSelection",
            "Matching", "Coverage", "Prediction", "Observation", "Testing",
        }


class TestNavigation:
    def test_first_and_next(self, navigator):
        assert navigator.get_first_lesson_key() == ("basics", "one")
        assert navigator.get_next_lesson_key("basics", "two") == ("loops", "three")
        assert navigator.get_next_lesson_key("loops", "three") is None

    def test_previous(self, navigator):
        assert navigator.get_previous_lesson_key("loops", "three") == ("basics", "two")
        assert navigator.get_previous_lesson_key("basics", "one") is None

    def test_position(self, navigator):
        assert navigator.get_lesson_position("basics", "two") == (2, 3)
        assert navigator.get_lesson_position("x", "y") == (0, 3)


class TestCompletionStatus:
    def test_information_sections_untracked(self, lessons_dir):
        lesson = CurriculumLoader(lessons_dir).get_lesson("basics", "one")
        assert tracked_section_ids(lesson) == ["q1"]

    def test_status_indicator(self, navigator, database):
        assert navigator.get_status_indicator("basics", "one", "q1") == "○"
        database.note_completion("basics", "one", "q1", True)
        assert navigator.get_status_indicator("basics", "one", "q1") == "✓"

    def test_lesson_complete_when_tracked_sections_done(self, navigator, database):
        database.note_completion("basics", "one", "q1", True)
        tree = navigator.get_navigation_tree()
        basics = tree[0]
        assert basics.lessons[0].is_complete
        # a lesson with nothing to do is never "complete"
        assert not basics.lessons[1].is_complete
        assert basics.completed_count == 1

    def test_progress_summary(self, navigator, database):
        database.note_completion("loops", "three", "q2", True)
        summary = navigator.get_progress_summary()
        assert summary["total_lessons"] == 3
        assert summary["completed"] == 1
        assert summary["units"][1] == {"id": "loops", "title": "Loops", "completed": 1, "total": 1}
