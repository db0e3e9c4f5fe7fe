"""Shared fixtures for CodeLesson tests."""

import asyncio

import pytest

from codelesson.classroom import ProgressDatabase


class FakeSandbox:
    """Returns canned output per call and records the programs it was given."""

    def __init__(self, outputs=None, delay: float = 0.0):
        self.outputs = list(outputs or [])
        self.delay = delay
        self.programs: list[str] = []

    async def run(self, program: str) -> str:
        self.programs.append(program)
        output = self.outputs.pop(0) if self.outputs else ""
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(output, Exception):
            raise output
        return output


@pytest.fixture
def database(tmp_path):
    return ProgressDatabase(tmp_path / "progress.db", student_id="tester")
