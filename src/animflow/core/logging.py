# src/animflow/core/logging.py
"""Logging setup shared by the engine and the CLI.

structlog and the stdlib `logging` module are wired to one handler on
stderr, with ProcessorFormatter running stdlib records through the same
processor chain. A third-party module calling logging.getLogger() and an
executor calling structlog.get_logger() therefore render identically.

stdout is reserved for `animflow run` results.

Event names are snake_case with keyword fields:
    slog = structlog.get_logger(__name__)
    slog.warning("math_result_not_finite", node_id=node.node_id, operator="power")
"""

import logging
import sys
from enum import Enum
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")

# Libraries whose DEBUG output drowns out engine events
_QUIET_LOGGERS: tuple[str, ...] = ("yaml", "click")


def _drop_formatter_bookkeeping(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Strip the `_record` and `_from_structlog` keys ProcessorFormatter always adds."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _render_engine_values(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Make enum members and id sets readable in both renderers.

    Node types arrive as StrEnum members and bound fields as sets; sets are
    sorted so identical runs log identical lines.
    """
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
        elif isinstance(value, set | frozenset):
            event_dict[key] = sorted(value, key=str)
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Install the animflow logging pipeline.

    Safe to call repeatedly; each call replaces the previous root handler.

    Args:
        json_output: One JSON object per line instead of the console renderer
        level: DEBUG, INFO, WARNING or ERROR (case-insensitive)

    Raises:
        ValueError: If `level` is not one of LOG_LEVELS
    """
    level_name = level.upper()
    if level_name not in LOG_LEVELS:
        raise ValueError(f"Unknown log level {level!r}; expected one of {', '.join(LOG_LEVELS)}")
    log_level: int = getattr(logging, level_name)

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        _render_engine_values,
    ]

    renderer: Any = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    render_chain: list[Any] = [_drop_formatter_bookkeeping]
    if json_output:
        render_chain.append(structlog.processors.format_exc_info)
    render_chain.append(renderer)

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguration must take effect for loggers created earlier
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ProcessorFormatter(processors=render_chain, foreign_pre_chain=pre_chain))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
