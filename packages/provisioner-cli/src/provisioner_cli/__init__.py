"""Provisioner CLI - prepares the host and deploys the API stack with Docker Compose."""

from provisioner_cli.provisioner import Provisioner, ProvisionState

__all__ = ["Provisioner", "ProvisionState"]
