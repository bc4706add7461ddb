"""
Dexter Logging System
=====================

A thread-safe logging utility for Dexter. This module integrates with the
standard Python `logging` library and the `rich` library to provide
readable console output for venue adapters and request builders.

Handlers are attached to the ``dexter`` package logger only, so embedding
applications keep full control of their root logger.

Usage:
    >>> from dexter.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("Fetched %d pools", 12)
"""

import logging
import logging.handlers
import re
import sys
import threading
import time
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.highlighter import RegexHighlighter
from rich.logging import RichHandler
from rich.theme import Theme

from .constants import (
    LOG_LEVEL,
    LOG_FORMAT,
    LOG_DATE_FORMAT,
    LOG_MAX_FILE_SIZE,
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_HIGHLIGHTING,
    DEXTER_LOG_FILE,
)

PACKAGE_LOGGER_NAME = "dexter"


class LogManager:
    """
    Manages logging configuration via the Singleton pattern.

    Ensures the ``dexter`` logger is configured exactly once, with a
    'Rich' console handler and an optional rotating file handler.
    """

    _instance: Optional["LogManager"] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls) -> "LogManager":
        """Creates or returns the existing singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._configured = False
        self._initialized = True

    @staticmethod
    def validate_log_format(log_format: str) -> str:
        """
        Validates a logging format string by formatting a dummy record.

        Returns the format, or the default `LOG_FORMAT` when it is unusable.
        """
        if not log_format:
            return str(LOG_FORMAT.default())
        try:
            formatter = logging.Formatter(fmt=str(log_format))
            record = logging.LogRecord(
                name="test", level=logging.INFO, pathname="", lineno=0,
                msg="test", args=(), exc_info=None,
            )
            formatter.format(record)
            return str(log_format)
        except (ValueError, KeyError, TypeError) as e:
            print(
                f"{time.strftime('%Y-%m-%d %H:%M:%S')} - dexter.logger - "
                f"Invalid log format: {e}. Using default.",
                file=sys.stderr,
            )
            return str(LOG_FORMAT.default())

    def configure(
        self,
        log_level: Optional[str] = None,
        log_file: Optional[Path] = None,
        console_output: bool = True,
    ) -> None:
        """
        Configures the package logger with console and file handlers.

        Args:
            log_level: Logging level name. Defaults to `LOG_LEVEL` from `.env`.
            log_file: Rotating log file. Defaults to `DEXTER_LOG_FILE`; disabled when empty.
            console_output: Enable console logging.
        """
        with self._lock:
            if self._configured:
                return

            level_str = log_level or LOG_LEVEL
            numeric_level = getattr(logging, str(level_str).upper(), logging.INFO)

            package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
            package_logger.setLevel(numeric_level)
            package_logger.handlers.clear()

            # Venue HTTP clients are chatty at INFO
            logging.getLogger("httpx").setLevel(logging.WARNING)

            log_format = self.validate_log_format(LOG_FORMAT)
            formatter = TerminalSafeFormatter(fmt=log_format, datefmt=str(LOG_DATE_FORMAT) + " UTC")
            formatter.converter = time.gmtime

            if console_output:
                if LOG_CONSOLE_HIGHLIGHTING:
                    dexter_theme = Theme(
                        {
                            "dexter.level_debug":   "bold dim",
                            "dexter.level_info":    "bold green",
                            "dexter.level_warning": "bold yellow",
                            "dexter.level_error":   "bold red",
                            "dexter.logger_name":   "magenta",
                            "dexter.address":       "cyan",
                            "dexter.unit":          "bold cyan",
                            "dexter.amount":        "bold white",
                            "dexter.tag":           "bold magenta",
                            "dexter.timestamp":     "bold cyan",
                        }
                    )
                    rich_handler = RichHandler(
                        console=Console(theme=dexter_theme, highlight=False, stderr=True),
                        highlighter=DexterLogHighlighter(),
                        rich_tracebacks=True,
                        show_path=False,
                        show_time=False,
                        show_level=False,
                        markup=False,
                    )
                    rich_handler.setLevel(numeric_level)
                    rich_handler.setFormatter(formatter)
                    package_logger.addHandler(rich_handler)
                else:
                    console_handler = logging.StreamHandler(sys.stderr)
                    console_handler.setLevel(numeric_level)
                    console_handler.setFormatter(formatter)
                    package_logger.addHandler(console_handler)

            file_path = log_file or (Path(str(DEXTER_LOG_FILE)) if str(DEXTER_LOG_FILE) else None)
            if file_path is not None:
                file_path.parent.mkdir(parents=True, exist_ok=True)
                file_handler = logging.handlers.RotatingFileHandler(
                    filename=str(file_path),
                    maxBytes=LOG_MAX_FILE_SIZE,
                    backupCount=LOG_BACKUP_COUNT,
                    encoding="utf-8",
                )
                file_handler.setLevel(numeric_level)
                file_handler.setFormatter(formatter)
                package_logger.addHandler(file_handler)

            self._configured = True

    def get_logger(self, name: str) -> logging.Logger:
        """Retrieves a logger, configuring the package logger on first use."""
        if not self._configured:
            self.configure()
        return logging.getLogger(name)

    @property
    def is_configured(self) -> bool:
        return self._configured


class TerminalSafeFormatter(logging.Formatter):
    """
    A formatter that strips ANSI escape sequences and control characters.

    Venue API payloads end up in log messages; they must not be able to
    move the cursor or recolour the terminal.
    """

    _ansi_escape_re = re.compile(
        r"\x1b\[[0-?]*[ -/]*[@-~]"
        r"|\x1b[@-Z\\-_]"
    )
    # Control chars (0x00-0x1F) excluding Tab and Newline
    _control_chars_re = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
    _carriage_return_re = re.compile(r"\r")

    @classmethod
    def sanitize(cls, text: str) -> str:
        if not text:
            return text
        text = cls._ansi_escape_re.sub("", text)
        text = cls._carriage_return_re.sub("", text)
        text = cls._control_chars_re.sub("", text)
        return text

    def format(self, record: logging.LogRecord) -> str:
        return self.sanitize(super().format(record))


class DexterLogHighlighter(RegexHighlighter):
    """Regex highlighting for levels, addresses, asset units and amounts."""

    base_style = "dexter."
    highlights = [
        r"(?P<level_debug>\bDEBUG\b)",
        r"(?P<level_info>\bINFO\b)",
        r"(?P<level_warning>\bWARNING\b)",
        r"(?P<level_error>\bERROR\b)",
        r"\-\s+\w+\s+-\s+(?P<logger_name>[\w.]+)(?=\s-\s)",
        r"(?P<address>\baddr(?:_test)?1[0-9a-z]{20,}\b)",
        r"(?P<unit>\b[0-9a-f]{56}(?:\.?[0-9a-f]*)?\b)",
        r"(?P<amount>\b\d{4,}\b)",
        r"(?P<tag>\[.*?\])",
        r"(?P<timestamp>^(.*?)UTC)",
    ]


_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """
    Public accessor of the logging system.

    Args:
        name: The name of the module requesting the logger.

    Returns:
        The configured logger instance.
    """
    return _manager.get_logger(name)
