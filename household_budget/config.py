"""Configuration management for the household budget app.

This module centralizes all configuration values including paths,
the sign-in allow-list, logging, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

import structlog

# Base project root - assumes this file is in household_budget/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("HOUSEHOLD_BUDGET_DATA_DIR", _PROJECT_ROOT / "data"))

# Document store
DB_PATH = Path(
    os.getenv("HOUSEHOLD_BUDGET_DB_PATH", DATA_DIR / "budget.db")
).resolve()

# Identities allowed past the sign-in gate (comma separated)
ALLOWED_EMAILS: List[str] = [
    email.strip().lower()
    for email in os.getenv("HOUSEHOLD_BUDGET_ALLOWED_EMAILS", "").split(",")
    if email.strip()
]

LOG_LEVEL = os.getenv("HOUSEHOLD_BUDGET_LOG_LEVEL", "INFO").upper()
# "text" for coloured console output, "json" for JSON lines
LOG_FORMAT = os.getenv("HOUSEHOLD_BUDGET_LOG_FORMAT", "text").lower()

PACKAGE_LOGGER = "household_budget"


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)


def get_db_path() -> str:
    """Get the database path as a string."""
    return str(DB_PATH)


def _build_processors(time_fmt: str) -> List[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=time_fmt),
        structlog.stdlib.ExtraAdder(),
    ]


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """Route the package's ``logging.getLogger(__name__)`` loggers through structlog.

    Reconfiguring replaces the previous handler, so repeated Streamlit
    reruns do not duplicate output.

    Args:
        level: Log level name; defaults to ``HOUSEHOLD_BUDGET_LOG_LEVEL``.
        fmt: ``"text"`` or ``"json"``; defaults to ``HOUSEHOLD_BUDGET_LOG_FORMAT``.

    Returns:
        The configured ``household_budget`` logger.
    """
    fmt = (fmt or LOG_FORMAT).lower()
    if fmt == "json":
        processors = _build_processors(time_fmt="iso")
        renderer = structlog.processors.JSONRenderer()
    else:
        processors = _build_processors(time_fmt="%H:%M:%S")
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=processors,
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))
    # Streamlit owns the root logger
    logger.propagate = False

    structlog.configure(
        processors=[
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return logger
