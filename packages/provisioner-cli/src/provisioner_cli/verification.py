"""Optional DNS verification of the public domain."""

import structlog

from provisioner_cli.runner import CommandRunner

logger = structlog.get_logger(__name__)


class VerificationError(Exception):
    """Verification could not confirm the setup. Never fatal."""


def resolve_domain(runner: CommandRunner, domain: str) -> list[str]:
    """Return the A records of `domain` as reported by `dig +short`."""
    if runner.which("dig") is None:
        raise VerificationError("'dig' command not found. Install dnsutils to check DNS.")

    result = runner.run(["dig", "+short", domain, "A"])
    if not result.ok:
        raise VerificationError(f"dig exited with code {result.exit_code}")

    records = [line.strip() for line in result.stdout.splitlines() if line.strip()]
    if not records:
        raise VerificationError(f"{domain} has no A records")

    logger.info("dns_resolved", domain=domain, records=records)
    return records
