"""Structured logging setup for onepager."""

import structlog
from pathlib import Path
from typing import Any
import os


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(log_dir: Path | None = None) -> None:
    """
    Send JSON log lines to ``<log_dir>/onepager.log``.

    ``log_dir`` defaults to ~/.cache/onepager/logs. ONEPAGER_LOG_LEVEL picks
    the threshold (INFO when unset or unknown). At DEBUG the AI request and
    response payloads and every model change are logged; INFO covers user
    edits, suggestion decisions and saves; WARNING covers refused edits,
    dropped responses and retries.

    Example:
        ONEPAGER_LOG_LEVEL=DEBUG onepager refine problem "Improve Writing"
        tail -f ~/.cache/onepager/logs/onepager.log | jq .
    """
    if log_dir is None:
        log_dir = Path.home() / ".cache" / "onepager" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)

    log_level = os.environ.get("ONEPAGER_LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        log_level = "INFO"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_dir / "onepager.log", "a")),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """Module logger; call with a snake_case event name plus keyword context."""
    return structlog.get_logger(name)
