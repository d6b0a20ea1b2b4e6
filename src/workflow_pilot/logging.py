"""Logging configuration for workflow-pilot.

Every component logs under the ``workflow_pilot`` logger into one rotating
file, with an optional console stream. Provider responses and error bodies
end up in these logs, so every handler redacts GitHub credentials.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Defaults, overridable per call or through WORKFLOW_PILOT_LOG_DIR / _LOG_LEVEL
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_FILE = "workflow_pilot.log"
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5
DEFAULT_LOG_LEVEL = "INFO"

# Line layout: "2026-01-28 16:30:45 | INFO     | workflow_pilot.gating | message"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER = "workflow_pilot"

_SENSITIVE_PATTERNS = [
    (re.compile(r"ghp_[a-zA-Z0-9]{36}"), "[GITHUB_TOKEN]"),  # classic PAT
    (re.compile(r"gh[ousr]_[a-zA-Z0-9]{36}"), "[GITHUB_TOKEN]"),  # OAuth, app and refresh
    (re.compile(r"github_pat_[a-zA-Z0-9_]{82}"), "[GITHUB_TOKEN]"),  # fine-grained PAT
    (re.compile(r"Bearer [a-zA-Z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"token=[a-zA-Z0-9._-]+"), "token=[REDACTED]"),
]


class RedactingFilter(logging.Filter):
    """Handler filter that rewrites each record with credentials redacted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = sanitize_for_log(message)
        if redacted != message:
            # Freeze the redacted text; args were already interpolated
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    log_dir: str | Path | None = None,
    log_file: str = DEFAULT_LOG_FILE,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    level: str | None = None,
    console: bool = True,
) -> logging.Logger:
    """Configure the ``workflow_pilot`` logger.

    Args:
        log_dir: Directory for log files. Falls back to WORKFLOW_PILOT_LOG_DIR,
                 then 'logs'.
        log_file: Log file name.
        max_bytes: Size at which the file is rotated.
        backup_count: Number of rotated files to keep.
        level: Log level name. Falls back to WORKFLOW_PILOT_LOG_LEVEL, then INFO.
        console: Also log to stderr.

    Returns:
        The configured root logger of the package.
    """
    # Resolve the log directory and make sure it exists
    if log_dir is None:
        log_dir = os.environ.get("WORKFLOW_PILOT_LOG_DIR", DEFAULT_LOG_DIR)
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    if level is None:
        level = os.environ.get("WORKFLOW_PILOT_LOG_LEVEL", DEFAULT_LOG_LEVEL)
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    # Repeated setup (server restart, tests) must not stack handlers
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    redactor = RedactingFilter()

    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            log_dir / log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
    ]
    if console:
        handlers.append(logging.StreamHandler())

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        handler.addFilter(redactor)
        logger.addHandler(handler)

    logger.info("Logging initialized (level=%s, file=%s)", level, log_dir / log_file)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get the logger for a component.

    Args:
        name: Component name, e.g. 'gating' or 'merge.engine'. The
              'workflow_pilot.' prefix is added when missing.

    Returns:
        Logger under the package root.
    """
    if not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def truncate_output(output: str, max_length: int = 5000) -> str:
    """Cap long text for logging, noting how much was cut."""
    if len(output) <= max_length:
        return output
    return output[:max_length] + f"\n... [truncated, {len(output) - max_length} more chars]"


def sanitize_for_log(text: str) -> str:
    """Redact GitHub tokens and bearer credentials from text.

    Args:
        text: Text that may carry credentials, such as an error body or URL.

    Returns:
        The text with every known credential form replaced by a placeholder.
    """
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text
