"""Provisioner configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from shared.config import BaseSettings


class ProvisionerSettings(BaseSettings):
    """Provisioner settings, read from PROVISIONER_* environment variables.

    The `.env` in the working directory is the file being provisioned for the
    deployed services, so it is never loaded as a settings source.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROVISIONER_",
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = "provisioner"
    log_level: str = Field(default="WARNING", description="Log level for stderr output")

    env_file: Path = Field(default=Path(".env"), description="Configuration file to materialize")
    template_file: Path = Field(
        default=Path(".env.example"), description="Template with placeholder tokens"
    )
    compose_file: Path = Field(
        default=Path("docker-compose.yaml"), description="Compose file declaring the services"
    )
    network_name: str = Field(
        default="traefik_public", description="External network shared with the reverse proxy"
    )
    domain: str = Field(
        default="api.openstreetlifting.org", description="Public domain routed to the API"
    )
    settle_seconds: float = Field(
        default=10, ge=0, description="Blind wait between `up -d` and `ps`"
    )


@lru_cache
def get_settings() -> ProvisionerSettings:
    """Get cached settings instance."""
    return ProvisionerSettings()
