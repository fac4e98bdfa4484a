"""Materialization and auditing of the deployment `.env` file."""

from dataclasses import dataclass
import os
from pathlib import Path
import re
import shutil
import tempfile

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress, ValidationError, field_validator
import structlog

from provisioner_cli.errors import MissingPrerequisiteError
from shared.config import tcp_port_field

logger = structlog.get_logger(__name__)

PLACEHOLDER = "CHANGE_ME_IN_PRODUCTION"
DB_PASSWORD_KEY = "DB_PASSWORD"
API_KEYS_KEY = "API_KEYS"


class DeploymentEnv(BaseModel):
    """Configuration record consumed by the API and database containers."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    db_user: str = Field(..., alias="DB_USER", min_length=1)
    db_password: str = Field(..., alias=DB_PASSWORD_KEY, min_length=1)
    db_name: str = Field(..., alias="DB_NAME", min_length=1)
    db_port: int = tcp_port_field(5432, alias="DB_PORT", description="PostgreSQL port")
    api_keys: list[str] = Field(..., alias=API_KEYS_KEY, min_length=1)
    host: IPvAnyAddress = Field(..., alias="HOST", description="Bind address, 0.0.0.0 for all")
    port: int = tcp_port_field(alias="PORT", description="API listen port")

    @field_validator("db_password")
    @classmethod
    def reject_placeholder_password(cls, v: str) -> str:
        if v == PLACEHOLDER:
            raise ValueError("still set to the template placeholder")
        return v

    @field_validator("api_keys", mode="before")
    @classmethod
    def split_api_keys(cls, v):
        if isinstance(v, str):
            return [key.strip() for key in v.split(",")]
        return v

    @field_validator("api_keys")
    @classmethod
    def validate_api_keys(cls, v: list[str]) -> list[str]:
        if any(not key for key in v):
            raise ValueError("contains an empty key")
        if PLACEHOLDER in v:
            raise ValueError("still set to the template placeholder")
        return v


@dataclass
class EnvIssue:
    """One problem found in a configuration file."""

    key: str
    message: str


def load_env(path: Path) -> dict[str, str]:
    """Parse KEY=value lines; keys without a value are dropped."""
    return {key: value for key, value in dotenv_values(path).items() if value is not None}


def audit_env_file(path: Path) -> list[EnvIssue]:
    """Validate a configuration file against DeploymentEnv without changing it."""
    try:
        values = load_env(path)
    except UnicodeDecodeError:
        logger.info("env_file_audit_failed", path=str(path), error="not valid UTF-8")
        return [EnvIssue(key=path.name, message="not valid UTF-8 text")]
    except OSError as e:
        logger.info("env_file_audit_failed", path=str(path), error=str(e))
        return [EnvIssue(key=path.name, message=f"cannot be read: {e.strerror or e}")]

    try:
        DeploymentEnv.model_validate(values)
    except ValidationError as e:
        issues = [
            EnvIssue(
                key=".".join(str(part) for part in error["loc"]),
                message=error["msg"].removeprefix("Value error, "),
            )
            for error in e.errors()
        ]
        logger.info("env_file_audit_failed", path=str(path), issues=len(issues))
        return issues
    return []


def copy_template(template: Path, target: Path) -> None:
    """Start a fresh configuration from the template, replacing any existing file."""
    if not template.is_file():
        raise MissingPrerequisiteError(
            f"Template {template} not found",
            hint="Run the provisioner from the directory containing the deployment files.",
        )
    shutil.copyfile(template, target)
    logger.info("env_template_copied", template=str(template), target=str(target))


def placeholder_token(key: str) -> str:
    return f"{key}={PLACEHOLDER}"


def substitute_placeholder(path: Path, key: str, value: str) -> None:
    """Replace the `KEY=CHANGE_ME_IN_PRODUCTION` token with `KEY=value`.

    Only lines that start with the exact token are rewritten; every other byte
    of the file is kept. The file is replaced atomically and no backup is left.
    """
    token = placeholder_token(key)
    # token must end at whitespace, a comment or end of line
    pattern = re.compile(rf"^{re.escape(token)}(?=[ \t#\r\n]|$)", re.MULTILINE)

    with open(path, encoding="utf-8", newline="") as f:
        content = f.read()

    updated, count = pattern.subn(lambda _match: f"{key}={value}", content)
    if count == 0:
        raise MissingPrerequisiteError(
            f"{path} has no '{token}' line to fill in",
            hint="Restore the file from the template and run the provisioner again.",
        )

    _write_atomic(path, updated)
    logger.info("env_placeholder_substituted", path=str(path), key=key, occurrences=count)


def remove_backups(path: Path) -> None:
    """Delete backup copies left next to the configuration file."""
    backup = path.with_name(f"{path.name}.bak")
    if backup.exists():
        backup.unlink()
        logger.info("env_backup_removed", path=str(backup))


def _write_atomic(path: Path, content: str) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
