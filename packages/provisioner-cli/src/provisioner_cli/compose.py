"""Docker Compose handoff: pull, start, status."""

from dataclasses import dataclass
from pathlib import Path

import structlog
import yaml

from provisioner_cli.runner import CommandResult, CommandRunner, run_or_raise

logger = structlog.get_logger(__name__)

PLUGIN_BASE = ("docker", "compose")
STANDALONE_BASE = ("docker-compose",)


@dataclass(frozen=True)
class ComposeCommand:
    """Resolved compose invocation form, bound to one compose file."""

    base: tuple[str, ...]
    compose_file: Path

    def argv(self, *args: str) -> list[str]:
        return [*self.base, "-f", str(self.compose_file), *args]

    def display(self, *args: str) -> str:
        return " ".join(self.argv(*args))

    @property
    def is_plugin(self) -> bool:
        return self.base == PLUGIN_BASE


def declared_services(compose_file: Path) -> dict[str, str | None]:
    """Map service names to their images as declared in the compose file.

    Returns an empty mapping when the file is missing or not valid YAML;
    compose reports those problems itself on `pull`.
    """
    try:
        with open(compose_file, encoding="utf-8") as f:
            document = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("compose_file_unreadable", path=str(compose_file), error=str(e))
        return {}

    services = document.get("services") if isinstance(document, dict) else None
    if not isinstance(services, dict):
        return {}
    return {
        name: (service.get("image") if isinstance(service, dict) else None)
        for name, service in services.items()
    }


def pull(runner: CommandRunner, compose: ComposeCommand) -> None:
    logger.info("compose_pull_start", command=compose.display("pull"))
    run_or_raise(runner, compose.argv("pull"), capture=False)


def up(runner: CommandRunner, compose: ComposeCommand) -> None:
    logger.info("compose_up_start", command=compose.display("up", "-d"))
    run_or_raise(runner, compose.argv("up", "-d"), capture=False)


def status(runner: CommandRunner, compose: ComposeCommand) -> CommandResult:
    return run_or_raise(runner, compose.argv("ps"), capture=False)
