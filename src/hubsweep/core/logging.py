# src/hubsweep/core/logging.py
"""Structured logging configuration for hubsweep.

Sweep logs are key-value events (fid, hash, err_code, counters) rendered
either as JSON lines for log shippers or as a console view for operators.
Hub collaborators that log through the stdlib (logging.getLogger) go
through the same processor chain via ProcessorFormatter, so one run
produces one consistent stream.

Run context (job name, run id) is carried in structlog contextvars and
merged into every event emitted while a run is in progress.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Loggers that drown the sweep's own events at DEBUG level: SQL echo for
# every chunk fetch, span processor internals, event loop debug output.
_NOISY_LOGGERS: tuple[str, ...] = (
    "sqlalchemy",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "opentelemetry",
    "opentelemetry.sdk",
    "asyncio",
)


def _hex_bytes(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Render bytes values (message hashes, keys, page tokens) as hex."""
    for key, value in event_dict.items():
        if isinstance(value, bytes | bytearray):
            event_dict[key] = value.hex()
    return event_dict


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Drop the _record/_from_structlog bookkeeping ProcessorFormatter always adds."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and stdlib logging for hubsweep.

    Args:
        json_output: If True, output JSON. If False, human-readable.
        level: Log level (DEBUG, INFO, WARNING, ERROR).
    """
    log_level = getattr(logging, level.upper())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.PositionalArgumentsFormatter(),
        _hex_bytes,
    ]

    if json_output:
        renderer: list[Any] = [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer = [
            _remove_internal_fields,
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Caching off so tests can reconfigure logging
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ProcessorFormatter(processors=renderer, foreign_pre_chain=shared_processors))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    # Never make noisy loggers less restrictive than the root level.
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(max(log_level, logging.WARNING))


@contextmanager
def run_log_context(**context: Any) -> Iterator[None]:
    """Bind key-value context to every event logged inside the block.

    Example:
        with run_log_context(job_name="validate_or_revoke_messages", run_id=run_id):
            await scanner.scan_usernames(fid)  # events carry job_name and run_id
    """
    with structlog.contextvars.bound_contextvars(**context):
        yield
