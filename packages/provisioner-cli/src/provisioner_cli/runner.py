"""Command executor used for every docker, compose and dig invocation."""

from dataclasses import dataclass
import shutil
import subprocess
from typing import Protocol

import structlog

from provisioner_cli.errors import CommandFailedError

logger = structlog.get_logger(__name__)

# Shell convention for "command not found"
EXIT_NOT_FOUND = 127


@dataclass
class CommandResult:
    """Outcome of a finished command."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner(Protocol):
    """Capability to locate and execute host commands."""

    def which(self, name: str) -> str | None:
        """Return the executable path or None when it is not on PATH."""
        ...

    def run(self, command: list[str], capture: bool = True) -> CommandResult:
        """Run a command to completion.

        With capture=False the command writes straight to the terminal and the
        result carries only the exit code.
        """
        ...


class SubprocessRunner:
    """CommandRunner backed by subprocess."""

    def which(self, name: str) -> str | None:
        return shutil.which(name)

    def run(self, command: list[str], capture: bool = True) -> CommandResult:
        logger.debug("command_start", command=" ".join(command), capture=capture)
        try:
            process = subprocess.run(
                command,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError:
            logger.warning("command_not_found", executable=command[0])
            return CommandResult(
                exit_code=EXIT_NOT_FOUND, stderr=f"{command[0]}: command not found"
            )

        logger.debug("command_finished", command=" ".join(command), exit_code=process.returncode)
        return CommandResult(
            exit_code=process.returncode,
            stdout=process.stdout or "",
            stderr=process.stderr or "",
        )


def run_or_raise(runner: CommandRunner, command: list[str], capture: bool = True) -> CommandResult:
    """Run a command and raise CommandFailedError on a non-zero exit.

    No retries: the command's exit code is handed back to the caller untouched.
    """
    result = runner.run(command, capture=capture)
    if not result.ok:
        logger.error(
            "command_failed",
            command=" ".join(command),
            exit_code=result.exit_code,
            stderr=result.stderr[:2000] if result.stderr else None,
        )
        raise CommandFailedError(command, result.exit_code, result.stderr)
    return result
