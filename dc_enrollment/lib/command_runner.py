"""Runs external tools and reports the outcome as a CommandResult."""

import subprocess
from pathlib import Path

from dc_enrollment.lib.logging_config import LOGGER
from dc_enrollment.lib.models import CommandResult


class CommandRunner:
    """Thin subprocess wrapper used by every collaborator adapter."""

    def __init__(self, timeout: int = 120) -> None:
        """Initialize runner.

        Args:
            timeout: Seconds before a command is abandoned
        """
        self.timeout = timeout

    def run(self, cmd: list[str], expected_path: Path | None = None) -> CommandResult:
        """Run a command and capture its combined output.

        Success requires a zero exit status and, when expected_path is
        given, that the file exists afterwards.

        Args:
            cmd: Executable and arguments
            expected_path: File the command is supposed to produce

        Returns:
            CommandResult; never raises for tool failures
        """
        LOGGER.debug("Running: %s", " ".join(cmd))
        try:
            cp = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout, check=False
            )
        except FileNotFoundError:
            return CommandResult(success=False, output=f"{cmd[0]}: executable not found")
        except subprocess.TimeoutExpired:
            return CommandResult(
                success=False, output=f"{cmd[0]}: timed out after {self.timeout}s"
            )

        output = "\n".join(part.strip() for part in (cp.stdout, cp.stderr) if part and part.strip())
        success = cp.returncode == 0
        produced = None
        if expected_path is not None:
            if expected_path.exists():
                produced = expected_path
            else:
                success = False
        return CommandResult(success=success, output=output, produced_path=produced)
