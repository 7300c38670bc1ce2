"""Logging configuration for scripted-prober."""

from __future__ import annotations

import logging
import os
import sys

# Define TRACE level (lower than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

NOISY_LOGGERS = ("urllib3", "requests")


class ColoredFormatter(logging.Formatter):
    """Colored log formatter using ANSI escape codes."""

    COLORS = {
        "TRACE": "\033[90m",  # Dark gray
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{self.BOLD}{levelname}{self.RESET}"
            )

        result = super().format(record)

        record.levelname = levelname

        return result


def resolve_level(level_name: str | None = None) -> tuple[str, int]:
    """Resolve a level name to its canonical name and numeric value.

    Falls back to the LOG_LEVEL environment variable, then INFO. Unknown
    names resolve to INFO.
    """
    name = (level_name or os.getenv("LOG_LEVEL", "INFO")).upper()
    if name == "TRACE":
        return name, TRACE
    level = getattr(logging, name, None)
    if not isinstance(level, int):
        return "INFO", logging.INFO
    return name, level


def setup_logging(level_name: str | None = None) -> None:
    """Configure logging for the application.

    Sets up a console handler on stdout with colored output. HTTP client
    loggers are held at WARNING unless the level is TRACE.

    Args:
        level_name: Level name such as "DEBUG" or "TRACE". Defaults to the
            LOG_LEVEL environment variable.
    """
    name, level = resolve_level(level_name)

    handler = logging.StreamHandler(sys.stdout)
    formatter = ColoredFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    noisy_level = TRACE if name == "TRACE" else logging.WARNING
    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(noisy_level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
