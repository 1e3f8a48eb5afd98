import logging
import sys
import json
from datetime import datetime
from typing import Optional

from .models import LoggingConfig

# Attributes every LogRecord carries; anything else was passed through `extra`
_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename', 'module',
    'lineno', 'funcName', 'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'taskName', 'getMessage', 'exc_info', 'exc_text',
    'stack_info', 'message',
}


class StructuredFormatter(logging.Formatter):
    """Formatter emitting either plain text or JSON lines, with extra fields appended"""

    def __init__(self, output_format: str = 'text'):
        super().__init__()
        self.output_format = output_format

    def format(self, record):
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage()
        }

        extras = {}
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            if isinstance(value, datetime):
                value = value.isoformat()
            extras[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        if self.output_format == 'json':
            return json.dumps({**log_data, **extras}, default=str)

        base_msg = f"{log_data['timestamp']} - {log_data['logger']} - {log_data['level']} - {log_data['message']}"
        for key, value in extras.items():
            base_msg += f" [{key}={value}]"
        if 'exception' in log_data:
            base_msg += f"\n{log_data['exception']}"
        return base_msg


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure the root logger to use structured formatting for all logs"""
    config = config or LoggingConfig()
    root_logger = logging.getLogger()

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, config.level))

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter(config.format))
    root_logger.addHandler(console_handler)

    _configure_third_party_loggers()


def _configure_third_party_loggers():
    """Reduce noise from HTTP client and server libraries"""
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('aiohttp.access').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
