"""Process execution and environment lookup.

Output of every launched program is forwarded line by line to the logging
framework.  When a program fails, its output is scanned for known patterns to
decide the error category of the failure.
"""

import asyncio
import logging
import os
from typing import Mapping, Optional, Protocol, Sequence

from .exceptions import CommandError
from .types import ErrorCategory

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024

DEFAULT_ERROR_CATEGORY_MAPPING: dict[ErrorCategory, list[str]] = {
    ErrorCategory.CONFIGURATION: [
        "ENOENT: no such file or directory",
        "collection not found",
    ],
    ErrorCategory.TEST: [
        "AssertionError",
        "TypeError",
        "test failed",
    ],
}


class ExecUtils(Protocol):
    async def run_executable(self, executable: str, *args: str) -> None: ...

    def getenv(self, key: str) -> str: ...


def categorize_output(
    lines: Sequence[str],
    mapping: Mapping[ErrorCategory, Sequence[str]] = DEFAULT_ERROR_CATEGORY_MAPPING,
) -> ErrorCategory:
    """Return the category of the first line matching a known pattern."""
    for line in lines:
        for category, patterns in mapping.items():
            if any(pattern in line for pattern in patterns):
                return category
    return ErrorCategory.UNDEFINED


class CommandRunner:
    """Runs external programs to completion."""

    def __init__(
        self,
        error_category_mapping: Optional[Mapping[ErrorCategory, Sequence[str]]] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        if error_category_mapping is None:
            error_category_mapping = DEFAULT_ERROR_CATEGORY_MAPPING
        self.error_category_mapping = error_category_mapping
        self.env = env

    def _emit(self, raw: bytes, level: int, executable: str, sink: list[str]) -> None:
        line = raw.decode(errors="replace").rstrip("\r")
        sink.append(line)
        logger.log(level, line, extra={"executable": executable})

    async def _forward(self, stream: asyncio.StreamReader, level: int, executable: str, sink: list[str]) -> None:
        # Chunked reads; readline() fails on lines longer than the stream limit.
        pending = b""
        while True:
            chunk = await stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            *lines, pending = (pending + chunk).split(b"\n")
            for raw in lines:
                self._emit(raw, level, executable, sink)
        if pending:
            self._emit(pending, level, executable, sink)

    async def run_executable(self, executable: str, *args: str) -> None:
        logger.info("Running command: %s %s", executable, " ".join(args))
        env = dict(self.env) if self.env is not None else None
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as e:
            raise CommandError(executable, args, cause=e) from e

        output: list[str] = []
        try:
            await asyncio.gather(
                self._forward(process.stdout, logging.INFO, executable, output),
                self._forward(process.stderr, logging.WARNING, executable, output),
            )
            exit_code = await process.wait()
        finally:
            if process.returncode is None:
                process.kill()
                await process.wait()
        if exit_code != 0:
            category = categorize_output(output, self.error_category_mapping)
            logger.debug(
                "Command failed",
                extra={"executable": executable, "category": category.value},
            )
            raise CommandError(executable, args, exit_code=exit_code, category=category)

    def getenv(self, key: str) -> str:
        source = self.env if self.env is not None else os.environ
        return source.get(key, "")
