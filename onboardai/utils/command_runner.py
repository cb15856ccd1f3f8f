"""Command Runner - the single place external tools (ffmpeg, ffprobe) are executed."""

import subprocess
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from onboardai.core.config import Settings
from onboardai.core.exceptions import ExternalToolError


class ToolCommand(BaseModel):
    """An external tool invocation: program plus an explicit argument list (never a shell string)."""

    model_config = ConfigDict(frozen=True)

    program: str = Field(..., description="Executable name or path")
    args: tuple[str, ...] = Field(default=(), description="Arguments, passed verbatim")
    purpose: str = Field(default="", description="Human-readable purpose for logs")

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.args]


class CommandResult(BaseModel):
    """Outcome of a finished command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""


class CommandRunner:
    """Runs ToolCommands with subprocess; swapped for a fake in tests."""

    def __init__(self, settings: Settings, logger: Any, timeout: Optional[float] = None):
        """
        Initialize the runner.

        Args:
            settings: Application settings
            logger: Logger instance
            timeout: Per-command ceiling in seconds (defaults to ffmpeg_timeout_seconds)
        """
        self.settings = settings
        self.logger = logger
        self.timeout = timeout or settings.ffmpeg_timeout_seconds

    def run(self, command: ToolCommand) -> CommandResult:
        """
        Run a command to completion.

        Raises:
            ExternalToolError: If the program is missing, times out or exits non-zero
        """
        self.logger.debug(f"Running {command.purpose or command.program}: {' '.join(command.argv)}")
        try:
            process = subprocess.run(
                command.argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise ExternalToolError(f"{command.program} not found: {e}", program=command.program) from e
        except subprocess.TimeoutExpired as e:
            raise ExternalToolError(
                f"{command.purpose or command.program} timed out after {self.timeout}s",
                program=command.program,
            ) from e

        if process.returncode != 0:
            tail = "\n".join((process.stderr or "").strip().splitlines()[-20:])
            raise ExternalToolError(
                f"{command.purpose or command.program} failed: {tail or 'unknown error'}",
                program=command.program,
                returncode=process.returncode,
                stderr=process.stderr or "",
            )

        return CommandResult(returncode=process.returncode, stdout=process.stdout or "", stderr=process.stderr or "")
