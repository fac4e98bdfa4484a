"""Unit tests for the provision CLI with the procedure mocked out."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from provisioner_cli.errors import CommandFailedError, MissingDependencyError
from provisioner_cli.main import app
from provisioner_cli.provisioner import ProvisionState

runner = CliRunner()

VALID_ENV = """\
DB_USER=lifter
DB_PASSWORD=s3cretPassw0rd
DB_NAME=lifting
HOST=0.0.0.0
PORT=8080
API_KEYS=0123abcd
"""


@pytest.fixture
def mock_provisioner():
    with patch("provisioner_cli.main.Provisioner") as mock:
        yield mock.return_value


class TestRunCommand:
    def test_success(self, mock_provisioner):
        mock_provisioner.run.return_value = ProvisionState(deployed=True)

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 0
        mock_provisioner.run.assert_called_once()

    def test_cancelled_exits_zero(self, mock_provisioner):
        """Declining the final confirmation is a normal exit."""
        mock_provisioner.run.return_value = ProvisionState(cancelled=True)

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 0

    def test_missing_dependency_exits_one(self, mock_provisioner):
        mock_provisioner.run.side_effect = MissingDependencyError(
            "Docker is not installed.", hint="Install Docker Engine"
        )

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 1
        assert "Docker is not installed." in result.output
        assert "Install Docker Engine" in result.output

    def test_command_failure_keeps_exit_code(self, mock_provisioner):
        mock_provisioner.run.side_effect = CommandFailedError(
            ["docker", "compose", "pull"], exit_code=18
        )

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 18  # noqa: PLR2004

    def test_options_override_settings(self, tmp_path):
        """CLI options reach the Provisioner's settings."""
        env_file = tmp_path / "prod.env"

        with patch("provisioner_cli.main.Provisioner") as mock:
            mock.return_value.run.return_value = ProvisionState()
            result = runner.invoke(
                app, ["run", "--env-file", str(env_file), "--domain", "api.example.org"]
            )

        assert result.exit_code == 0
        settings = mock.call_args.kwargs["settings"]
        assert settings.env_file == env_file
        assert settings.domain == "api.example.org"
        assert settings.network_name == "traefik_public"

    def test_invalid_settings_exit_one(self, monkeypatch, mock_provisioner):
        """Bad PROVISIONER_* values stop the tool before anything runs."""
        monkeypatch.setenv("PROVISIONER_SETTLE_SECONDS", "-5")

        result = runner.invoke(app, ["run"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output
        mock_provisioner.run.assert_not_called()


class TestCheckCommand:
    def test_valid_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text(VALID_ENV, encoding="utf-8")

        result = runner.invoke(app, ["check", "--env-file", str(env_file)])

        assert result.exit_code == 0
        assert "No problems found" in result.output

    def test_invalid_file(self, tmp_path):
        """Problems are listed and the exit code is 1."""
        env_file = tmp_path / ".env"
        env_file.write_text(
            VALID_ENV.replace("s3cretPassw0rd", "CHANGE_ME_IN_PRODUCTION"), encoding="utf-8"
        )

        result = runner.invoke(app, ["check", "--env-file", str(env_file)])

        assert result.exit_code == 1
        assert "DB_PASSWORD" in result.output
        assert "placeholder" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["check", "--env-file", str(tmp_path / "absent.env")])

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_undecodable_file(self, tmp_path):
        """A file that is not UTF-8 is a reported problem, not a crash."""
        env_file = tmp_path / ".env"
        env_file.write_bytes(b"DB_USER=caf\xe9\nDB_PASSWORD=x\n")

        result = runner.invoke(app, ["check", "--env-file", str(env_file)])

        assert result.exit_code == 1
        assert "not valid UTF-8 text" in result.output
