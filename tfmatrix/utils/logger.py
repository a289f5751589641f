"""
Logging configuration for tfmatrix.

Console records go to stderr so JSON written to stdout stays parseable.
Inside GitHub Actions, warnings and errors are emitted as workflow
commands so they show up as annotations on the run.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path


class ActionsFormatter(logging.Formatter):
    """Prefix warnings and errors with GitHub Actions workflow commands."""

    COMMANDS = {
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        command = self.COMMANDS.get(record.levelno)
        if command is None:
            return message
        # Workflow commands end at the first newline unless it is escaped
        escaped = message.replace('%', '%25').replace('\r', '%0D').replace('\n', '%0A')
        return f"::{command}::{escaped}"


def running_in_actions() -> bool:
    """Return True when running inside a GitHub Actions job."""
    return os.environ.get("GITHUB_ACTIONS") == "true"


def setup_logging(log_level: str = "INFO", log_file: bool = False) -> logging.Logger:
    """
    Configure application logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: If True, also log to a file under get_log_dir()

    Returns:
        Root logger instance
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if running_in_actions():
        console_handler.setFormatter(ActionsFormatter())
    else:
        console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))
    root.addHandler(console_handler)

    if log_file:
        log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_path = log_dir / f"tfmatrix_{timestamp}.log"

        # The file always gets everything, whatever the console level
        root.setLevel(logging.DEBUG)
        file_handler = logging.FileHandler(log_file_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s'
        ))
        root.addHandler(file_handler)

        root.info(f"Logging to file: {log_file_path}")

    return root


def get_log_dir() -> Path:
    """
    Get platform-specific log directory.

    Returns:
        Path to log directory
    """
    if os.name == 'nt':
        base = os.environ.get('LOCALAPPDATA', os.path.expanduser('~'))
    else:
        base = os.environ.get('XDG_CACHE_HOME', os.path.expanduser('~/.cache'))

    return Path(base) / 'tfmatrix' / 'logs'
