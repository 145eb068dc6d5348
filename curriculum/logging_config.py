"""Logging configuration for curriculum provisioning.

Provides structured logging with:
- File rotation (10MB, 5 backups)
- Console handler for interactive use
- JSON formatter option for production
- Configurable log levels
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

ROOT_LOGGER = 'curriculum'


# Provisioning fields a record may carry, set by LogContext or log_exception
CONTEXT_FIELDS = ('unit_id', 'child_index', 'identifier', 'step')


def _context_of(record: logging.LogRecord) -> dict:
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class JsonFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }
        log_data.update(_context_of(record))

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        if hasattr(record, 'details'):
            log_data['details'] = record.details

        return json.dumps(log_data, default=str)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter; appends the unit and material being worked on."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[41m',  # Red background
    }
    RESET = '\033[0m'

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None,
                 use_color: Optional[bool] = None):
        super().__init__(fmt, datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        use_color = self.use_color
        if use_color is None:
            use_color = hasattr(sys.stderr, 'isatty') and sys.stderr.isatty()

        record = logging.makeLogRecord(record.__dict__)
        if use_color:
            color = self.COLORS.get(record.levelname, '')
            record.levelname = f"{color}{record.levelname}{self.RESET}"

        context = _context_of(record)
        if context:
            suffix = " ".join(f"{k}={v}" for k, v in context.items())
            record.msg = f"{record.getMessage()} [{suffix}]"
            record.args = None
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (creates directory if needed)
        json_format: Use JSON format for file logs
        console: Enable console logging
        max_bytes: Max size per log file before rotation
        backup_count: Number of backup files to keep

    Returns:
        Package logger for the application
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level.upper()))

    logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.DEBUG)

        console_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        console_handler.setFormatter(ColoredFormatter(console_format, datefmt='%H:%M:%S'))
        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)

        if json_format:
            file_handler.setFormatter(JsonFormatter())
        else:
            file_format = "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(lineno)d | %(message)s"
            file_handler.setFormatter(logging.Formatter(file_format))

        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific module.

    Args:
        name: Module name (e.g., 'pipeline', 'client')
    """
    return logging.getLogger(f'{ROOT_LOGGER}.{name}')


class LogContext:
    """Context manager for adding extra fields to log records."""

    def __init__(self, logger: logging.Logger, **fields):
        self.logger = logger
        self.fields = fields
        self.old_factory = None

    def __enter__(self):
        self.old_factory = logging.getLogRecordFactory()
        fields = self.fields
        old_factory = self.old_factory

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            for key, value in fields.items():
                setattr(record, key, value)
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.setLogRecordFactory(self.old_factory)
        return False


def log_exception(logger: logging.Logger, exc: Exception,
                  message: str = "An error occurred",
                  level: int = logging.ERROR) -> None:
    """Log an exception with its details.

    Material fields found in the details (child_index, identifier, step) are
    also set on the record. Traceback is only attached when called from
    inside an except block.
    """
    extra = {}
    if hasattr(exc, 'details'):
        extra['details'] = exc.details
        for key in CONTEXT_FIELDS[1:]:  # unit_id is set by LogContext
            if key in exc.details:
                extra[key] = exc.details[key]

    logger.log(level, f"{message}: {exc}", exc_info=sys.exc_info()[0] is not None,
               extra=extra)
