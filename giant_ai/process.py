from __future__ import annotations

import asyncio
import logging
import shlex
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence, Union

from giant_ai.errors import ToolUnavailableError

LOG = logging.getLogger("giant_ai.process")

# stderr fragments a shell prints when the wrapped binary is missing
MISSING_TOOL_MARKERS = ("command not found", "No such file")
# exit codes a shell uses for "not executable" and "not found"
MISSING_TOOL_EXIT_CODES = (126, 127)


@dataclass
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.timed_out


Runner = Callable[..., Awaitable[CommandResult]]


def format_command(argv: Sequence[str]) -> str:
    """Render argv as a copy-pasteable shell line for logs and messages."""
    return shlex.join(str(part) for part in argv)


def stderr_reports_missing_tool(stderr: str) -> bool:
    return any(marker in stderr for marker in MISSING_TOOL_MARKERS)


def reports_missing_tool(result: CommandResult) -> bool:
    """True when a run produced nothing because the wrapped binary is missing.

    Any stdout means the tool ran, so a stray "No such file" warning on
    stderr never discards real output.
    """
    if result.stdout.strip():
        return False
    if result.exit_code in MISSING_TOOL_EXIT_CODES:
        return True
    return not result.ok and stderr_reports_missing_tool(result.stderr)


def resolve_tool(name: str) -> Optional[str]:
    """Return the absolute path of an executable, or None if it is not installed."""
    path = shutil.which(name)
    if path is None:
        LOG.info("External tool %s is not on PATH", name)
    return path


def require_tool(name: str) -> str:
    path = resolve_tool(name)
    if path is None:
        raise ToolUnavailableError(name)
    return path


async def run_command(
    argv: Sequence[str],
    working_directory: Optional[Union[str, Path]] = None,
    timeout: Optional[float] = None,
    stdin_text: Optional[str] = None,
) -> CommandResult:
    """Run an external program and capture stdout, stderr, exit code, and duration.

    Raises ToolUnavailableError when the executable cannot be spawned.
    """
    cwd_path: Optional[Path] = None
    if working_directory is not None:
        cwd_path = Path(working_directory)
        if not cwd_path.exists() or not cwd_path.is_dir():
            raise ValueError(f"Working directory does not exist: {working_directory}")

    LOG.debug("Running: %s", format_command(argv))
    start = time.perf_counter()
    try:
        process = await asyncio.create_subprocess_exec(
            *[str(part) for part in argv],
            stdin=asyncio.subprocess.PIPE if stdin_text is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd_path) if cwd_path else None,
        )
    except FileNotFoundError as exc:
        raise ToolUnavailableError(str(argv[0])) from exc

    stdin_bytes = stdin_text.encode() if stdin_text is not None else None
    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(process.communicate(stdin_bytes), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        stdout_bytes, stderr_bytes = await process.communicate()
        duration_ms = int((time.perf_counter() - start) * 1000)
        LOG.warning("Command timed out after %sms: %s", duration_ms, format_command(argv))
        return CommandResult(
            exit_code=-1,
            stdout=stdout_bytes.decode(errors="replace"),
            stderr=stderr_bytes.decode(errors="replace") + "\nProcess timed out",
            duration_ms=duration_ms,
            timed_out=True,
        )
    except asyncio.CancelledError:
        if process.returncode is None:
            LOG.info("Cancelled, killing: %s", format_command(argv))
            try:
                process.kill()
            except ProcessLookupError:
                pass
        raise

    duration_ms = int((time.perf_counter() - start) * 1000)
    LOG.debug("Exit %s after %sms: %s", process.returncode, duration_ms, argv[0])
    return CommandResult(
        exit_code=process.returncode,
        stdout=stdout_bytes.decode(errors="replace"),
        stderr=stderr_bytes.decode(errors="replace"),
        duration_ms=duration_ms,
    )
