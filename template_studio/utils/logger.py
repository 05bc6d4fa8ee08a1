"""
Logging Configuration Module.

Every module logs under one application namespace so the CLI (or a host
application) can configure console and file output in one place.

Usage:
    from template_studio.utils.logger import setup_logger, get_logger, document_logger

    # Initialize logging (call once at startup)
    setup_logger(level="DEBUG")

    # Module logger
    logger = get_logger(__name__)
    logger.info("Rendering template...")

    # Per-document logger: every message is prefixed with the filename
    log = document_logger(logger, "timesheet-march.pdf")
    log.warning("Low confidence on 2 field(s)")
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import IO, Any, MutableMapping, Optional, Tuple, Union

import colorama
from colorama import Fore, Style

colorama.init()

# Application logger namespace
ROOT_LOGGER_NAME = "invoice_templating"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """
    Console formatter that colours the level name only.

    The message itself stays uncoloured so that pasted log lines keep
    invoice numbers and paths readable.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if not color:
            return super().format(record)
        original = record.levelname
        # Pad before colouring so %(levelname)-8s still lines up
        record.levelname = f"{color}{original:<8}{Style.RESET_ALL}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class DocumentLogAdapter(logging.LoggerAdapter):
    """Prefixes messages with the document (or template) they concern."""

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.extra['document']}] {msg}", kwargs


def parse_level(level: Union[str, int]) -> int:
    """
    Resolve a level name or number.

    Raises:
        ValueError: For unknown level names.
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return value


def setup_logger(
    level: Union[str, int] = "INFO",
    log_format: Optional[str] = None,
    date_format: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = 10485760,  # 10 MB
    backup_count: int = 5,
    colorize: Optional[bool] = None,
    stream: Optional[IO[str]] = None
) -> logging.Logger:
    """
    Configure the application logger.

    Calling it again replaces the previous handlers.

    Args:
        level: Level name or number for the logger and its handlers.
        log_format: Record format; defaults to DEFAULT_FORMAT.
        date_format: Timestamp format; defaults to DEFAULT_DATE_FORMAT.
        log_file: Rotating log file. If None, file logging is disabled.
        max_bytes: Maximum log file size before rotation.
        backup_count: Number of rotated files to keep.
        colorize: Colour console level names. None colours only when
            the stream is a terminal.
        stream: Console stream, stdout by default.

    Returns:
        Configured application logger.

    Example:
        >>> setup_logger(level="DEBUG", log_file="logs/studio.log")
    """
    numeric_level = parse_level(level)
    log_format = log_format or DEFAULT_FORMAT
    date_format = date_format or DEFAULT_DATE_FORMAT
    stream = stream or sys.stdout

    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    app_logger.setLevel(numeric_level)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    if colorize is None:
        colorize = hasattr(stream, 'isatty') and stream.isatty()
    formatter_class = ColoredFormatter if colorize else logging.Formatter

    console_handler = logging.StreamHandler(stream)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter_class(log_format, datefmt=date_format))
    app_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
        app_logger.addHandler(file_handler)

    app_logger.propagate = False
    app_logger.debug(f"Logging initialized at {logging.getLevelName(numeric_level)}")
    return app_logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, under the application namespace.

    Example:
        >>> get_logger("template_studio.rendering.layout").name
        'invoice_templating.template_studio.rendering.layout'
    """
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def document_logger(logger: logging.Logger, document: Optional[str]) -> DocumentLogAdapter:
    """Wrap a module logger so its messages name one document."""
    return DocumentLogAdapter(logger, {'document': document or 'document'})


def setup_logger_from_config() -> logging.Logger:
    """
    Initialize logging from the logging section of settings.yaml.

    Returns:
        Configured application logger.
    """
    from config import get_config

    log_file = get_config("logging.file.path") if get_config("logging.file.enabled", False) else None
    return setup_logger(
        level=get_config("logging.level", "INFO"),
        log_format=get_config("logging.format"),
        date_format=get_config("logging.date_format"),
        log_file=log_file,
        max_bytes=get_config("logging.file.max_bytes", 10485760),
        backup_count=get_config("logging.file.backup_count", 5),
        colorize=get_config("logging.console.colorize")
    )
