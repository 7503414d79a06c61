"""Structured logging for internmatch.

structlog renders events on top of stdlib logging. Everything goes to
stderr so that command output on stdout (JSON recommendations, explain
payloads) stays machine-readable.
"""

import logging
import sys
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from .. import __version__

LOG_FORMATS = ("json", "console")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every event with the application name and version."""
    event_dict["app"] = "internmatch"
    event_dict["version"] = __version__
    return event_dict


def _build_processors(log_format: str) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]
    if log_format == "console":
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return processors


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: str | Path | None = None,
) -> None:
    """Configure structlog and the root stdlib logger.

    Safe to call more than once; each call replaces the previous handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "json" (default) or "console"; unknown values fall back to json
        log_file: Optional file that receives a copy of every log line
    """
    numeric_level = getattr(logging, str(log_level).upper(), logging.INFO)

    structlog.configure(
        processors=_build_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=numeric_level,
        force=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(file_handler)


def configure_from_config(config: Mapping[str, Any]) -> None:
    """Apply the ``logging`` section of the application config."""
    section = config.get("logging") or {}
    setup_logging(
        log_level=section.get("level", "INFO"),
        log_format=section.get("format", "json"),
        log_file=section.get("file"),
    )


@contextmanager
def log_context(**values: Any) -> Iterator[None]:
    """Attach key/value pairs to every event logged inside the block.

    Example:
        with log_context(profile_id=profile.id):
            logger.info("ranking_complete", eligible=3)
    """
    with structlog.contextvars.bound_contextvars(**values):
        yield


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        Structured logger
    """
    return structlog.get_logger(name)


# Defaults until the CLI (or an embedding app) reconfigures
setup_logging()
