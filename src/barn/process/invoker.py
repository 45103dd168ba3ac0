"""Spawning executables for a single request.

Each request gets a fresh process with no arguments, no stdin, and both
output channels piped. Spawn problems come back as a Failure value so
the endpoint can render them like any other error.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from barn.domain.models import ErrorKind, Failure

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong!"


class ProcessHandle:
    """A spawned executable whose output channels belong to one request."""

    def __init__(
        self,
        process: asyncio.subprocess.Process,
        name: str,
        stdout: asyncio.StreamReader,
        stderr: asyncio.StreamReader,
    ) -> None:
        self._process = process
        self._name = name
        self._stdout = stdout
        self._stderr = stderr

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def name(self) -> str:
        return self._name

    @property
    def stdout(self) -> asyncio.StreamReader:
        return self._stdout

    @property
    def stderr(self) -> asyncio.StreamReader:
        return self._stderr

    @property
    def is_running(self) -> bool:
        return self._process.returncode is None

    async def wait(self) -> int:
        """Reap the process and return its exit code."""
        code = await self._process.wait()
        logger.debug("Executable %s (pid=%d) exited with %d", self._name, self.pid, code)
        return code

    async def terminate(self) -> None:
        """Kill the process if it is still running, then reap it."""
        if self.is_running:
            try:
                self._process.kill()
                logger.info("Killed executable %s (pid=%d)", self._name, self.pid)
            except ProcessLookupError:
                pass
        await self.wait()


async def spawn(path: Path) -> ProcessHandle | Failure:
    """Start ``path`` with stdout and stderr piped.

    Does not wait for the process to exit.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            str(path),
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.error("Unable to spawn %s: %s", path, e)
        return Failure(
            kind=ErrorKind.INTERNAL,
            message=f"Unable to spawn executable '{path.name}'",
        )

    if process.stdout is None or process.stderr is None:
        logger.error("No output pipes for %s (pid=%d)", path, process.pid)
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()
        return Failure(kind=ErrorKind.INTERNAL, message=GENERIC_ERROR)

    logger.info("Spawned %s (pid=%d)", path, process.pid)
    return ProcessHandle(process, path.name, process.stdout, process.stderr)
