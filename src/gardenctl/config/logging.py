"""structlog configuration for gardenctl.

Two output modes, both on stderr so stdout stays clean for ``--json``:
- Human (default): colored console output when attached to a TTY
- JSON (--log-json): structured JSON lines

Library modules log through ``logging.getLogger(__name__)``; those records
pass through the same ProcessorFormatter as structlog events.  The owner
and store a command acts on are bound once per invocation, so every line
(skipped duplicates, slug retries, swallowed extractor failures) says
whose tree it concerns.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog

# Third-party loggers that stay at WARNING even with --verbose.
_QUIET_LOGGERS = ("alembic", "sqlalchemy.engine")


def _renderer(*, log_json: bool, out: TextIO) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=out.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib records through one stderr handler.

    Args:
        verbose: ``gardenctl`` loggers at DEBUG. When False, only WARNING+.
        log_json: Use JSON renderer instead of console renderer.
        stream: Destination (default: ``sys.stderr``).
    """
    out = stream or sys.stderr

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json=log_json, out=out),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("gardenctl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_store_context(*, owner: str, store_root: Path) -> None:
    """Tag every subsequent log line with the acting owner and store root."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(owner=owner, store=str(store_root))
