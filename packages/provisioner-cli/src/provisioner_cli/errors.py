"""Fatal provisioning errors and the exit codes they map to."""


class ProvisionerError(Exception):
    """Provisioning cannot continue."""

    exit_code: int = 1

    def __init__(self, message: str, hint: str | None = None):
        super().__init__(message)
        self.hint = hint


class MissingDependencyError(ProvisionerError):
    """A required host tool (docker, compose) is not installed."""


class MissingPrerequisiteError(ProvisionerError):
    """A required resource is absent and was not created."""


class CommandFailedError(ProvisionerError):
    """A docker or compose command exited non-zero.

    The command's own exit code becomes the provisioner's exit code.
    """

    def __init__(self, command: list[str], exit_code: int, stderr: str = ""):
        super().__init__(f"'{' '.join(command)}' exited with code {exit_code}")
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
