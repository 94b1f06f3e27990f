"""
Logging configuration for cmdroute.

Library modules only ever call `logging.getLogger("cmdroute.<component>")`;
entry points (CLI, HTTP server) call `setup_logging()` once at startup.
Messages use a `EVENT | key=value | key=value` layout.
"""

import logging
import sys
from typing import Optional


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the `cmdroute` logger hierarchy.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write logs to
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    console_formatter = logging.Formatter(
        fmt="%(asctime)s | %(name)-17s | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_formatter = logging.Formatter(
        fmt="%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # stderr: stdout carries command output (JSON, response text).
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_formatter)

    root = logging.getLogger("cmdroute")

    # Prevent duplicate logs if setup_logging() is called again
    if root.handlers:
        root.handlers.clear()

    root.setLevel(log_level)
    root.addHandler(console_handler)
    root.propagate = False

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(file_formatter)
        root.addHandler(file_handler)


def get_logger(component: str) -> logging.Logger:
    name = component if component.startswith("cmdroute.") else f"cmdroute.{component}"
    return logging.getLogger(name)
