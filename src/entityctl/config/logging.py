"""structlog configuration for entityctl.

Every line goes to stderr, either through the console renderer or (with
``--log-json``) as one JSON object per line. Records from stdlib loggers
(``logging.getLogger(__name__)`` throughout the package, SQLAlchemy's
engine logger) are routed through the same processor chain, so the
tenant scope bound by :func:`configure_logging` appears on all of them.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Loggers whose level follows a config switch rather than the root level.
APP_LOGGER = "entityctl"
SQL_LOGGER = "sqlalchemy.engine"


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    sql_echo: bool = False,
    scope: str | None = None,
) -> None:
    """Configure structlog and the stdlib root handler.

    Args:
        verbose: ``entityctl`` loggers emit DEBUG instead of WARNING.
        log_json: Render JSON lines instead of console output.
        sql_echo: Emit SQLAlchemy statement logs (the ``[store] echo`` switch).
        scope: Tenant scope bound to every log line of this invocation.
    """
    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger(APP_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)
    logging.getLogger(SQL_LOGGER).setLevel(logging.INFO if sql_echo else logging.WARNING)

    structlog.contextvars.clear_contextvars()
    if scope is not None:
        structlog.contextvars.bind_contextvars(scope=scope)
