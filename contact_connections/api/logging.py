from __future__ import annotations

import logging
import logging.config
import sys
from collections import OrderedDict
from enum import Enum
from typing import Any, Final

import structlog

STDOUT: Final[str] = "ext://sys.stdout"
STDERR: Final[str] = "ext://sys.stderr"


class LogRenderer(str, Enum):
    CONSOLE = "CONSOLE"
    JSON = "JSON"

    @staticmethod
    def default() -> LogRenderer:
        """Returns the default LogRenderer based on whether the stdout is a tty terminal."""
        return LogRenderer.CONSOLE if sys.stdout.isatty() else LogRenderer.JSON


def _to_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        msg = f"Unknown log level: {level}"
        raise ValueError(msg)
    return value


def _renderer(renderer: LogRenderer) -> structlog.typing.Processor:
    if renderer == LogRenderer.CONSOLE:
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure(
    level: int | str = logging.INFO,
    renderer: LogRenderer | None = None,
    handlers: dict[str, dict[str, Any]] | None = None,
    stream: str = STDOUT,
) -> None:
    """
    Routes structlog and the standard library loggers through one formatter.

    Args:
        level (int | str): The lowest level to display (defaults to INFO).
        renderer (LogRenderer): The type of renderer to use (defaults to LogRenderer.default())
        handlers (dict[str, dict[str, Any]] | None): The standard lib logging handlers.
        stream (str): The stream of the default handler (defaults to STDOUT).
    """
    structlog.reset_defaults()
    level = _to_level(level)
    level_name = logging.getLevelName(level)

    timestamper = structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False)

    # Entries that did not originate from structlog (werkzeug, gunicorn, google) still get a level and timestamp.
    foreign_pre_chain: list[structlog.typing.Processor] = [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        timestamper,
    ]

    if handlers is None:
        handlers = {
            "default": {
                "level": level_name,
                "class": "logging.StreamHandler",
                "stream": stream,
                "formatter": "structlog",
            },
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": _renderer(renderer or LogRenderer.default()),
                    "foreign_pre_chain": foreign_pre_chain,
                },
            },
            "handlers": handlers,
            "loggers": {
                "": {
                    "handlers": list(handlers),
                    "level": level_name,
                    "propagate": True,
                },
            },
        }
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=OrderedDict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
