"""Host prerequisite checks: container engine, compose CLI, shared network."""

from pathlib import Path

import structlog

from provisioner_cli.compose import PLUGIN_BASE, STANDALONE_BASE, ComposeCommand
from provisioner_cli.errors import MissingDependencyError
from provisioner_cli.runner import CommandRunner, run_or_raise

logger = structlog.get_logger(__name__)

DOCKER_INSTALL_URL = "https://docs.docker.com/engine/install/"
COMPOSE_INSTALL_URL = "https://docs.docker.com/compose/install/"


def require_engine(runner: CommandRunner) -> None:
    if runner.which("docker") is None:
        raise MissingDependencyError(
            "Docker is not installed.",
            hint=f"Install Docker Engine: {DOCKER_INSTALL_URL}",
        )


def resolve_compose_command(runner: CommandRunner, compose_file: Path) -> ComposeCommand:
    """Pick the compose invocation form once for the whole run.

    The `docker compose` plugin is preferred; the standalone `docker-compose`
    binary is the fallback.
    """
    if runner.which("docker") is not None and runner.run(["docker", "compose", "version"]).ok:
        compose = ComposeCommand(base=PLUGIN_BASE, compose_file=compose_file)
    elif runner.which("docker-compose") is not None:
        compose = ComposeCommand(base=STANDALONE_BASE, compose_file=compose_file)
    else:
        raise MissingDependencyError(
            "Docker Compose is not installed.",
            hint=f"Install Docker Compose: {COMPOSE_INSTALL_URL}",
        )

    logger.info("compose_command_resolved", base=" ".join(compose.base))
    return compose


def network_exists(runner: CommandRunner, name: str) -> bool:
    return runner.run(["docker", "network", "inspect", name]).ok


def create_network(runner: CommandRunner, name: str) -> None:
    run_or_raise(runner, ["docker", "network", "create", name])
    logger.info("network_created", network=name)
