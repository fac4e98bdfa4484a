"""The provisioning procedure.

Steps run strictly in order and block on the operator at fixed decision points:

1. Prerequisites: docker, compose CLI, shared network (fatal when missing)
2. `.env` materialization from the template (skipped if the operator keeps
   an existing file)
3. Optional DNS verification (never fatal)
4. Security checklist and final confirmation
5. Compose handoff: pull, up -d, settling delay, ps
"""

from collections.abc import Callable
from dataclasses import dataclass, field
import os
import time

from rich.console import Console
from rich.table import Table
import structlog

from provisioner_cli.compose import ComposeCommand, declared_services, pull, status, up
from provisioner_cli.config import ProvisionerSettings
from provisioner_cli.credentials import generate_api_key, generate_password
from provisioner_cli.env_file import (
    API_KEYS_KEY,
    DB_PASSWORD_KEY,
    PLACEHOLDER,
    EnvIssue,
    audit_env_file,
    copy_template,
    remove_backups,
    substitute_placeholder,
)
from provisioner_cli.errors import MissingPrerequisiteError
from provisioner_cli.prerequisites import (
    create_network,
    network_exists,
    require_engine,
    resolve_compose_command,
)
from provisioner_cli.prompts import Operator
from provisioner_cli.runner import CommandRunner
from provisioner_cli.verification import VerificationError, resolve_domain

logger = structlog.get_logger(__name__)

SECURITY_CHECKLIST = (
    "Database password is strong and unique",
    "API keys are secure (use: openssl rand -hex 32)",
    "DNS points to this server",
    "Traefik is configured with Let's Encrypt",
    "Firewall allows ports 80, 443",
    "Database port is restricted (consider commenting out in docker-compose.yaml)",
    "Backup strategy is in place",
)

# The backend reaches the database on the compose network; DB_PORT only maps the host side
DATABASE_ADDRESS = "postgres:5432"

# Break an unquoted KEY=value line, or are expanded by compose ($)
_FORBIDDEN_VALUE_CHARS = frozenset(" \t\"'#$")
# The password is also interpolated into DATABASE_URL
_FORBIDDEN_PASSWORD_CHARS = _FORBIDDEN_VALUE_CHARS | frozenset("@:/?%")


@dataclass
class ProvisionState:
    """What the procedure decided and did so far."""

    compose: ComposeCommand | None = None
    network_created: bool = False
    skip_config: bool = False
    generated_secrets: list[str] = field(default_factory=list)
    env_issues: list[EnvIssue] = field(default_factory=list)
    dns_records: list[str] | None = None
    cancelled: bool = False
    deployed: bool = False


class Provisioner:
    """Interactive setup of the deployment host."""

    def __init__(
        self,
        settings: ProvisionerSettings,
        runner: CommandRunner,
        operator: Operator,
        console: Console | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self.runner = runner
        self.operator = operator
        self.console = console or Console()
        self.sleep = sleep

    def run(self) -> ProvisionState:
        """Run every step. Raises ProvisionerError on a fatal failure."""
        state = ProvisionState()

        self.console.print("[bold]🏋️  OpenStreetLifting - Production Deployment Setup[/bold]")
        self.console.print()

        self.warn_if_root()
        state.compose = self.check_dependencies()
        state.network_created = self.ensure_network()
        self.configure_env(state)
        self.audit_env(state)
        self.verify_dns(state)
        self.show_security_checklist()

        if not self.operator.confirm("Ready to deploy?"):
            self.console.print("Deployment cancelled. Run the provisioner again when ready.")
            logger.info("deployment_cancelled")
            state.cancelled = True
            return state

        self.deploy(state)
        self.show_summary(state)
        return state

    def warn_if_root(self) -> None:
        geteuid = getattr(os, "geteuid", None)
        if geteuid is not None and geteuid() == 0:
            self.console.print(
                "[yellow]⚠[/yellow]  Warning: Running as root is not recommended.\n"
                "   Consider running as a non-root user with Docker permissions."
            )

    def check_dependencies(self) -> ComposeCommand:
        require_engine(self.runner)
        compose = resolve_compose_command(self.runner, self.settings.compose_file)
        self.console.print("[green]✓[/green] Docker detected")
        return compose

    def ensure_network(self) -> bool:
        """Make sure the shared network exists. Returns True if it was created."""
        name = self.settings.network_name
        if network_exists(self.runner, name):
            self.console.print(f"[green]✓[/green] {name} network found")
            return False

        self.console.print(f"[yellow]⚠[/yellow]  Warning: {name} network does not exist.")
        if not self.operator.confirm("   Do you want to create it now?"):
            raise MissingPrerequisiteError(
                f"{name} network is required.",
                hint=f"Create it with: docker network create {name}",
            )

        create_network(self.runner, name)
        self.console.print(f"[green]✓[/green] {name} network created")
        return True

    def configure_env(self, state: ProvisionState) -> None:
        env_file = self.settings.env_file

        if env_file.exists():
            self.console.print(f"[yellow]⚠[/yellow]  {env_file} file already exists.")
            if not self.operator.confirm("   Do you want to reconfigure it?"):
                self.console.print(f"   Using existing {env_file} file.")
                logger.info("env_file_kept", path=str(env_file))
                state.skip_config = True
                return

        self.console.print()
        self.console.print("📝 Configuring production environment...")
        copy_template(self.settings.template_file, env_file)

        self.console.print()
        self.console.print("🔐 [bold]Database Configuration[/bold]")
        password = self._ask_value(
            "   Enter strong database password (or press Enter to auto-generate)",
            generate=generate_password,
            forbidden=_FORBIDDEN_PASSWORD_CHARS,
            secret=True,
            key=DB_PASSWORD_KEY,
            state=state,
        )
        substitute_placeholder(env_file, DB_PASSWORD_KEY, password)

        self.console.print()
        self.console.print("🔑 [bold]API Authentication[/bold]")
        api_key = self._ask_value(
            "   Enter API key (or press Enter to auto-generate)",
            generate=generate_api_key,
            forbidden=_FORBIDDEN_VALUE_CHARS,
            secret=False,
            key=API_KEYS_KEY,
            state=state,
        )
        substitute_placeholder(env_file, API_KEYS_KEY, api_key)

        remove_backups(env_file)
        logger.info(
            "env_file_materialized",
            path=str(env_file),
            generated=state.generated_secrets,
        )

        self.console.print()
        self.console.print(f"[green]✓[/green] {env_file} file configured")
        self.console.print(
            f"   [yellow]IMPORTANT:[/yellow] Keep your {env_file} file secure "
            "and never commit it to version control!"
        )

    def _ask_value(
        self,
        question: str,
        generate: Callable[[], str],
        forbidden: frozenset[str],
        secret: bool,
        key: str,
        state: ProvisionState,
    ) -> str:
        while True:
            value = self.operator.ask(question, secret=secret).strip()
            if not value:
                value = generate()
                state.generated_secrets.append(key)
                self.console.print("   [green]✓[/green] Generated:", value, highlight=False)
                return value

            if value == PLACEHOLDER:
                self.console.print("   [red]✗[/red] That is the template placeholder. Try again.")
            elif forbidden.intersection(value):
                shown = " ".join(sorted(c for c in forbidden if not c.isspace()))
                self.console.print(
                    f"   [red]✗[/red] Whitespace and {shown} are not allowed. Try again.",
                    highlight=False,
                )
            else:
                return value

    def audit_env(self, state: ProvisionState) -> None:
        state.env_issues = audit_env_file(self.settings.env_file)
        for issue in state.env_issues:
            self.console.print(f"   [yellow]⚠[/yellow]  {issue.key}: {issue.message}")

    def verify_dns(self, state: ProvisionState) -> None:
        domain = self.settings.domain
        self.console.print()
        if not self.operator.confirm(f"🌐 Verify DNS configuration for {domain}?"):
            return

        self.console.print("   Checking DNS...")
        try:
            state.dns_records = resolve_domain(self.runner, domain)
        except VerificationError as e:
            logger.info("dns_verification_failed", domain=domain, error=str(e))
            self.console.print(f"   [yellow]⚠[/yellow]  {e}")
            return

        for record in state.dns_records:
            self.console.print(f"   {record}", highlight=False)

    def show_security_checklist(self) -> None:
        self.console.print()
        self.console.print("🔒 [bold]Security Checklist:[/bold]")
        for item in SECURITY_CHECKLIST:
            self.console.print(f"   \\[ ] {item}")
        self.console.print()

    def deploy(self, state: ProvisionState) -> None:
        compose = state.compose
        self.console.print()
        self.console.print("🚀 [bold]Deploying services...[/bold]")

        services = declared_services(compose.compose_file)
        if services:
            table = Table(title="Declared services")
            table.add_column("Service", style="cyan")
            table.add_column("Image", style="green")
            for name, image in services.items():
                table.add_row(name, image or "(built locally)")
            self.console.print(table)

        self.console.print("📥 Pulling latest images...")
        pull(self.runner, compose)

        self.console.print("🐳 Starting services...")
        up(self.runner, compose)

        self.console.print("⏳ Waiting for services to start...")
        self.sleep(self.settings.settle_seconds)

        status(self.runner, compose)
        state.deployed = True
        logger.info("deployment_complete", compose=" ".join(compose.base))

    def show_summary(self, state: ProvisionState) -> None:
        compose = state.compose
        domain = self.settings.domain

        self.console.print()
        self.console.print("[bold green]✓ Deployment complete![/bold green]")
        self.console.print()
        self.console.print("📌 [bold]Service Information:[/bold]")
        self.console.print(f"   • API URL:      https://{domain}")
        self.console.print(f"   • Swagger UI:   https://{domain}/swagger-ui/")
        self.console.print(f"   • Database:     {DATABASE_ADDRESS} (internal)")
        self.console.print()
        self.console.print("📚 [bold]Management Commands:[/bold]")
        self.console.print(f"   • View logs:        {compose.display('logs', '-f')}")
        self.console.print(f"   • Stop services:    {compose.display('down')}")
        self.console.print(f"   • Restart services: {compose.display('restart')}")
        self.console.print(
            f"   • Update backend:   {compose.display('pull', 'backend')} && "
            f"{compose.display('up', '-d', 'backend')}"
        )
        self.console.print()
        self.console.print("🔐 [bold]IMPORTANT: Save your credentials securely![/bold]")
        self.console.print(
            f"   Database Password and API Key are stored in {self.settings.env_file}"
        )
