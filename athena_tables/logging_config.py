"""Logging configuration for athena-tables.

Modules log through ``logging.getLogger(__name__)`` and attach the table and
query they are working on with ``extra=log_context(...)``. Both console
formats render that context:

    [INFO] 2024-05-01 12:00:00 - athena_tables.operator - Creating Athena table clicks... [table=clicks]

and the JSON format emits it as top-level keys so CI log collectors can
filter on ``table`` or ``execution_id``.

Environment variables:
    ATHENA_TABLES_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (falls back to LOG_LEVEL)
    ATHENA_TABLES_LOG_FORMAT: human, json, simple
    ATHENA_TABLES_LOG_FILE: Path of a rotating JSON log file
"""

import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

LOG_LEVEL_ENV = 'ATHENA_TABLES_LOG_LEVEL'
LOG_FORMAT_ENV = 'ATHENA_TABLES_LOG_FORMAT'
LOG_FILE_ENV = 'ATHENA_TABLES_LOG_FILE'

# Keys of the context attached to records, in display order.
CONTEXT_FIELDS = ('table', 'execution_id', 'state')

_LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
_LOG_FILE_BACKUPS = 5


def log_context(
    table: Optional[str] = None,
    execution_id: Optional[str] = None,
    state: Optional[str] = None,
) -> Dict[str, str]:
    """Build an ``extra=`` mapping, dropping fields that are not known yet."""
    values = {'table': table, 'execution_id': execution_id, 'state': state}
    return {key: value for key, value in values.items() if value is not None}


def _record_context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record, context fields at the top level."""

    def __init__(self, include_context: bool = True):
        """
        Args:
            include_context: Whether to include module/function/line fields
        """
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data: Dict[str, Any] = {
            'timestamp': timestamp.strftime('%Y-%m-%dT%H:%M:%S.%fZ'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        log_data.update(_record_context(record))

        if self.include_context:
            log_data['module'] = record.module
            log_data['function'] = record.funcName
            log_data['line'] = record.lineno

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Terminal format with a ``[table=... execution_id=...]`` suffix and optional colors."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = False, include_context: bool = False):
        if include_context:
            fmt = '[%(levelname)s] %(asctime)s - %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s'
        else:
            fmt = '[%(levelname)s] %(asctime)s - %(name)s - %(message)s'

        super().__init__(fmt=fmt, datefmt='%Y-%m-%d %H:%M:%S')
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        context = _record_context(record)
        if context:
            pairs = ' '.join(f'{key}={value}' for key, value in context.items())
            formatted = f'{formatted} [{pairs}]'

        if self.use_colors and record.levelname in self.COLORS:
            return f'{self.COLORS[record.levelname]}{formatted}{self.RESET}'
        return formatted


def get_log_level_from_env() -> int:
    """Return the level named by ATHENA_TABLES_LOG_LEVEL or LOG_LEVEL (default INFO)."""
    level_name = (os.environ.get(LOG_LEVEL_ENV) or os.environ.get('LOG_LEVEL') or 'INFO').upper()
    if level_name == 'WARN':
        level_name = 'WARNING'
    level = logging.getLevelName(level_name)
    return level if isinstance(level, int) else logging.INFO


def get_log_format_from_env() -> str:
    return os.environ.get(LOG_FORMAT_ENV, 'human').lower()


def _console_formatter(format_type: str, use_colors: bool, include_context: bool) -> logging.Formatter:
    if format_type == 'json':
        return JSONFormatter(include_context=include_context)
    if format_type == 'simple':
        return logging.Formatter('%(levelname)s: %(message)s')
    return HumanReadableFormatter(use_colors=use_colors, include_context=include_context)


def setup_logging(
    level: Optional[int] = None,
    format_type: Optional[str] = None,
    log_file: Optional[Path] = None,
    use_colors: bool = False,
    include_context: bool = False
) -> None:
    """
    Configure the root logger for a CLI run, replacing any existing handlers.

    Args:
        level: Logging level (defaults to ATHENA_TABLES_LOG_LEVEL or INFO)
        format_type: Console format ('json', 'human', 'simple')
        log_file: Rotating log file, always JSON (defaults to ATHENA_TABLES_LOG_FILE)
        use_colors: Use ANSI colors in human console output
        include_context: Include module/function/line in console output
    """
    if level is None:
        level = get_log_level_from_env()
    if format_type is None:
        format_type = get_log_format_from_env()
    if log_file is None and os.environ.get(LOG_FILE_ENV):
        log_file = Path(os.environ[LOG_FILE_ENV])

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in list(root_logger.handlers):
        handler.close()
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(_console_formatter(format_type, use_colors, include_context))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=_LOG_FILE_MAX_BYTES,
            backupCount=_LOG_FILE_BACKUPS,
            encoding='utf-8',
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(JSONFormatter(include_context=True))
        root_logger.addHandler(file_handler)
