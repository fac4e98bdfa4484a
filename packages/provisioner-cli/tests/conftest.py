import io
import logging

import pytest
from rich.console import Console
import structlog

from provisioner_cli.config import ProvisionerSettings, get_settings
from provisioner_cli.provisioner import Provisioner
from provisioner_cli.runner import CommandResult

TEMPLATE = """\
# Database
DB_USER=openstreetlifting
DB_PASSWORD=CHANGE_ME_IN_PRODUCTION
DB_NAME=openstreetlifting
DB_PORT=5432

# API server
HOST=0.0.0.0
PORT=8080
API_KEYS=CHANGE_ME_IN_PRODUCTION
API_DOMAIN=api.example.org
"""

COMPOSE = """\
services:
  postgres:
    image: postgres:16-alpine
  backend:
    image: ghcr.io/example/backend:latest
"""


class FakeRunner:
    """CommandRunner double: records calls, answers from canned results."""

    def __init__(self, executables=("docker",)):
        self.executables = set(executables)
        self.results: list[tuple[str, CommandResult]] = []
        self.calls: list[list[str]] = []

    def set_result(self, fragment: str, result: CommandResult) -> None:
        """Commands whose joined argv contains `fragment` return `result`."""
        self.results.insert(0, (fragment, result))

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.executables else None

    def run(self, command, capture=True):
        self.calls.append(list(command))
        joined = " ".join(command)
        for fragment, result in self.results:
            if fragment in joined:
                return result
        return CommandResult(exit_code=0)

    @property
    def commands(self) -> list[str]:
        return [" ".join(call) for call in self.calls]

    def ran(self, fragment: str) -> bool:
        return any(fragment in command for command in self.commands)


class ScriptedOperator:
    """Operator double answering from a script; unexpected questions fail the test."""

    def __init__(self, confirms=None, answers=None):
        self.confirms = dict(confirms or {})
        self.answers = list(answers or [])
        self.questions: list[str] = []

    def confirm(self, question):
        self.questions.append(question)
        for fragment, answer in self.confirms.items():
            if fragment in question:
                return answer
        raise AssertionError(f"Unexpected confirmation: {question}")

    def ask(self, question, secret=False):
        self.questions.append(question)
        if not self.answers:
            raise AssertionError(f"Unexpected question: {question}")
        return self.answers.pop(0)


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration and cached settings around each test."""
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    get_settings.cache_clear()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    get_settings.cache_clear()


@pytest.fixture
def deploy_dir(tmp_path):
    """Directory holding the template and compose file, without a .env yet."""
    (tmp_path / ".env.example").write_text(TEMPLATE, encoding="utf-8")
    (tmp_path / "docker-compose.yaml").write_text(COMPOSE, encoding="utf-8")
    return tmp_path


@pytest.fixture
def settings(deploy_dir):
    return ProvisionerSettings(
        env_file=deploy_dir / ".env",
        template_file=deploy_dir / ".env.example",
        compose_file=deploy_dir / "docker-compose.yaml",
        domain="api.example.org",
        settle_seconds=0,
    )


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def scripted_operator():
    """Factory for ScriptedOperator instances."""
    return ScriptedOperator


@pytest.fixture
def console_output():
    return io.StringIO()


@pytest.fixture
def make_provisioner(settings, fake_runner, console_output):
    """Build a Provisioner wired to fakes; `sleeps` records settling delays."""
    sleeps: list[float] = []

    def _make(operator):
        provisioner = Provisioner(
            settings=settings,
            runner=fake_runner,
            operator=operator,
            console=Console(file=console_output, width=120),
            sleep=sleeps.append,
        )
        provisioner.sleeps = sleeps
        return provisioner

    return _make
