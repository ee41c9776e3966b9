"""Run external commands in the project root and capture their output."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
import shlex
import subprocess
import time
from typing import Any

from scaffold_kit.core.context import ExecutionContext

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Result from an external command. Failures are reported, never raised."""

    command: str
    exit_code: int | None
    output: str
    duration_seconds: float = 0.0
    skipped: bool = False

    @property
    def success(self) -> bool:
        """Whether the command ran and exited with status 0."""
        return not self.skipped and self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "command": self.command,
            "exit_code": self.exit_code,
            "output": self.output,
            "duration_seconds": self.duration_seconds,
            "skipped": self.skipped,
            "success": self.success,
        }


def run_eval(
    ctx: ExecutionContext,
    command: str | list[str],
    with_: str | None = None,
    env: dict[str, str] | None = None,
    timeout: float | None = None,
) -> CommandResult:
    """
    Execute a command and return both its success and combined output.

    The command is run with an argv list (no shell), so metacharacters are
    passed through literally.

    Args:
        ctx: Execution context; the command runs in ``ctx.root``.
        command: Command line or argv list.
        with_: Optional program to prefix, e.g. ``"bundle exec"``.
        env: Extra environment variables.
        timeout: Seconds before the command is killed.

    Returns:
        CommandResult with ``success`` and ``output``; skipped in dry-run.
    """
    argv = shlex.split(command) if isinstance(command, str) else list(command)
    if with_:
        argv = shlex.split(with_) + argv
    display = shlex.join(argv)

    ctx.log("run", f"{display} from {str(ctx.root)!r}")

    if ctx.dry_run:
        return CommandResult(command=display, exit_code=None, output="", skipped=True)

    start = time.monotonic()
    try:
        completed = subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            cwd=ctx.root,
            env={**os.environ, **env} if env else None,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        output = e.output if isinstance(e.output, str) else ""
        logger.warning("Command timed out after %ss: %s", timeout, display)
        return CommandResult(
            command=display,
            exit_code=None,
            output=output + f"\nTimed out after {timeout}s",
            duration_seconds=time.monotonic() - start,
        )
    except OSError as e:
        logger.warning("Command could not be started: %s (%s)", display, e)
        return CommandResult(
            command=display,
            exit_code=None,
            output=str(e),
            duration_seconds=time.monotonic() - start,
        )

    result = CommandResult(
        command=display,
        exit_code=completed.returncode,
        output=completed.stdout or "",
        duration_seconds=time.monotonic() - start,
    )
    if not result.success:
        logger.info("Command failed with exit code %s: %s", result.exit_code, display)
    return result
