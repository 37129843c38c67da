"""
Logging configuration for OpenVPN IP Updater.

This module provides logging setup with support for console and file output.
Router credentials and login digests are automatically masked in log messages.
"""

from __future__ import annotations

import logging
import logging.handlers
import re
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path
    from typing import Final

    from ovpn_ip_updater.config import LoggingConfig


# Pattern to match sensitive values in log messages
# Each tuple is (pattern, replacement)
# For partial masking, capture the prefix to keep and mask the rest
SENSITIVE_PATTERNS: Final[list[tuple[re.Pattern[str], str]]] = [
    # Password and login digest attribute words: mask completely
    (
        re.compile(r"(=(?:password|response)=)(\S*)", re.IGNORECASE),
        r"\1******",
    ),
    # Password on a command line, e.g. "--password secret" or "--password=secret"
    (
        re.compile(r"(--password[=\s]+)(\S*)", re.IGNORECASE),
        r"\1******",
    ),
    # Login seed: keep first 6 characters
    (
        re.compile(r"(=ret=)([0-9a-f]{6})([0-9a-f]*)", re.IGNORECASE),
        r"\1\2******",
    ),
]


# Constants
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-5s [%(name)s] %(message)s"
DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"
PACKAGE_LOGGER: Final[str] = "ovpn_ip_updater"


class SensitiveFilter(logging.Filter):
    """
    A logging filter that masks sensitive information.

    This filter replaces passwords, login digests and login seeds with
    asterisks to prevent credential leakage in log files.
    """

    @staticmethod
    def _mask_sensitive(value: str) -> str:
        """
        Apply all sensitive patterns to mask a string.

        Parameters
        ----------
        value : str
            The string to process.

        Returns
        -------
        str
            The string with sensitive data masked.
        """
        result = value
        for pattern, replacement in SENSITIVE_PATTERNS:
            result = pattern.sub(replacement, result)
        return result

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Filter and modify log record to mask sensitive data.

        Parameters
        ----------
        record : logging.LogRecord
            The log record to process.

        Returns
        -------
        bool
            Always returns True (record is always logged).
        """
        if record.msg:
            record.msg = self._mask_sensitive(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                # Dict-style formatting: %(key)s
                record.args = {
                    k: self._mask_sensitive(v) if isinstance(v, str) else v
                    for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                # Tuple-style formatting: %s, %d, etc.
                record.args = tuple(
                    self._mask_sensitive(arg) if isinstance(arg, str) else arg
                    for arg in record.args
                )

        return True


def _masked(handler: logging.Handler) -> logging.Handler:
    """Attach the shared format and the sensitive filter to ``handler``."""
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    handler.addFilter(SensitiveFilter())
    return handler


def _open_log_file(path: Path) -> logging.Handler:
    """
    Open the log file, creating its directory when missing.

    `WatchedFileHandler` reopens the file after logrotate moves it, which
    matters for a tool started again by cron on every run.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.handlers.WatchedFileHandler(str(path), encoding="utf-8")


def setup_logging(config: LoggingConfig) -> None:
    """
    Route the package logger to stderr and, optionally, to a log file.

    Under cron the console output usually ends up in mail, so the file
    handler is the durable record of what the updater changed. Both
    handlers mask credentials and login digests. Exits with status 1 if
    the log file cannot be opened.

    Parameters
    ----------
    config : LoggingConfig
        Logging configuration.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))
    logger.propagate = False
    logger.handlers[:] = [_masked(logging.StreamHandler())]

    if not config.file_enabled:
        return

    log_path = config.file_path_as_path
    try:
        logger.addHandler(_masked(_open_log_file(log_path)))
    except OSError as e:
        logger.critical('Cannot open log file "%s": %s', log_path, e)
        sys.exit(1)
    logger.debug('Logging to "%s".', log_path)
