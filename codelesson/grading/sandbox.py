"""
Sandbox - Boundary to the interpreter that executes untrusted programs.

The engine only needs something that accepts a program string and returns
its combined output. SubprocessSandbox is the local reference: it runs the
program with a separate Python interpreter in isolated mode.
"""

import asyncio
import logging
import os
import sys
import tempfile
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class SandboxError(RuntimeError):
    """The sandbox itself failed (could not start, timed out)."""


class Sandbox(Protocol):
    async def run(self, program: str) -> str:
        """Execute program and return everything it printed."""
        ...


class SubprocessSandbox:
    """
    Run programs in a child Python process.

    This does not confine the program; it only keeps it out of the host
    interpreter. Real deployments plug in a proper sandbox service.
    """

    def __init__(self, python_executable: Optional[str] = None, timeout: Optional[float] = None):
        """
        Args:
            python_executable: Interpreter to use (default: the current one)
            timeout: Seconds before the child is killed (default: no limit)
        """
        self.python_executable = python_executable or sys.executable
        self.timeout = timeout

    async def run(self, program: str) -> str:
        with tempfile.NamedTemporaryFile(
            mode="w", suffix=".py", delete=False, encoding="utf-8"
        ) as f:
            f.write(program)
            temp_file = f.name

        try:
            try:
                process = await asyncio.create_subprocess_exec(
                    self.python_executable, "-I", temp_file,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,
                    cwd=os.path.dirname(temp_file),
                )
            except OSError as e:
                raise SandboxError(f"Could not start interpreter: {e}") from e

            try:
                stdout, _ = await asyncio.wait_for(process.communicate(), self.timeout)
            except asyncio.TimeoutError as e:
                process.kill()
                await process.wait()
                raise SandboxError(f"Program exceeded {self.timeout}s") from e

            output = stdout.decode("utf-8", errors="replace")
            logger.debug(f"Sandbox exited with {process.returncode}, {len(output)} chars of output")
            return output
        finally:
            os.unlink(temp_file)
