from pathlib import Path
import sys
import uuid

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
import structlog
import typer

from provisioner_cli.config import ProvisionerSettings, get_settings
from provisioner_cli.env_file import audit_env_file
from provisioner_cli.errors import ProvisionerError
from provisioner_cli.prompts import ConsoleOperator
from provisioner_cli.provisioner import Provisioner
from provisioner_cli.runner import SubprocessRunner
from shared.logging import set_run_id, setup_logging

app = typer.Typer(
    name="provision",
    help="Prepare this host and deploy the API stack with Docker Compose",
    add_completion=False,
)
console = Console()
logger = structlog.get_logger(__name__)


@app.callback()
def callback():
    """
    Deployment provisioner
    """


def _configure(**overrides) -> ProvisionerSettings:
    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(code=1) from None

    updates = {key: value for key, value in overrides.items() if value is not None}
    if updates:
        settings = settings.model_copy(update=updates)

    setup_logging(
        service_name=settings.service_name,
        log_format=settings.log_format,
        log_level=settings.log_level,
        stream=sys.stderr,
    )
    return settings


@app.command()
def run(
    env_file: Path | None = typer.Option(None, "--env-file", "-e", help="File to write"),
    template_file: Path | None = typer.Option(
        None, "--template", "-t", help="Template with placeholder tokens"
    ),
    compose_file: Path | None = typer.Option(None, "--compose-file", "-f", help="Compose file"),
    domain: str | None = typer.Option(None, "--domain", help="Domain to verify in DNS"),
):
    """Check prerequisites, configure the environment and deploy."""
    settings = _configure(
        env_file=env_file,
        template_file=template_file,
        compose_file=compose_file,
        domain=domain,
    )
    set_run_id(uuid.uuid4().hex[:12])

    provisioner = Provisioner(
        settings=settings,
        runner=SubprocessRunner(),
        operator=ConsoleOperator(console),
        console=console,
    )

    try:
        provisioner.run()
    except ProvisionerError as e:
        logger.error("provisioning_failed", error=str(e), exit_code=e.exit_code)
        console.print(f"[bold red]Error:[/bold red] {e}")
        if e.hint:
            console.print(f"   {e.hint}")
        raise typer.Exit(code=e.exit_code) from None


@app.command()
def check(
    env_file: Path | None = typer.Option(None, "--env-file", "-e", help="File to validate"),
):
    """Validate an existing environment file without changing it."""
    settings = _configure(env_file=env_file)
    path = settings.env_file

    if not path.is_file():
        console.print(f"[bold red]Error:[/bold red] file not found: {path}")
        raise typer.Exit(code=1)

    issues = audit_env_file(path)
    if not issues:
        console.print(f"[green]✓[/green] No problems found in {path}")
        return

    table = Table(title=f"Problems in {path}")
    table.add_column("Key", style="cyan")
    table.add_column("Problem", style="red")
    for issue in issues:
        table.add_row(issue.key, issue.message)
    console.print(table)
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
