import structlog


def set_run_id(run_id: str) -> None:
    """Tag every log line of the current provisioning run."""
    structlog.contextvars.bind_contextvars(run_id=run_id)


def get_run_id() -> str | None:
    """Get the run ID bound to the current context."""
    return structlog.contextvars.get_contextvars().get("run_id")
