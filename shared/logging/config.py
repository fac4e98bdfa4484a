import logging
import sys
from typing import Literal, TextIO

import structlog
from structlog.types import Processor


def setup_logging(
    service_name: str,
    log_format: Literal["json", "console"] = "console",
    log_level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Configure structured logging with structlog.

    Args:
        service_name: Name of the tool (e.g., "provisioner"), bound to every entry.
        log_format: Output format - "json" for machines, "console" for operators.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        stream: Where log lines go. Defaults to stdout; interactive tools
                pass stderr so prompts and reports stay on stdout.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=numeric_level,
        force=True,
    )

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        # run_id and service come from contextvars
        structlog.contextvars.merge_contextvars,
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer(sort_keys=False))
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=service_name)

    logger = structlog.get_logger()
    logger.debug(
        "logging_initialized",
        service=service_name,
        log_format=log_format,
        log_level=log_level,
    )
