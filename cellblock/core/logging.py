"""
Logging Configuration and Utilities

Structured logging built on structlog, rendered through the standard
library so that file handlers and JSON formatting stay in one place.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog
from pythonjsonlogger import jsonlogger

from cellblock.config.settings import LogFormat, Settings, get_settings


class ServiceContextProcessor:
    """Add service information to structlog event dicts"""

    def __init__(self, environment: str):
        self.environment = environment

    def __call__(self, logger, method_name, event_dict):
        event_dict['timestamp'] = datetime.now(timezone.utc).isoformat()
        event_dict['service'] = 'cellblock'
        event_dict['environment'] = self.environment
        return event_dict


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter for structured logging"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno
        log_record['thread'] = record.thread

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)


class LoggingConfig:
    """Centralized logging configuration"""

    @staticmethod
    def configure_structured_logging(settings: Settings) -> None:
        """Configure structlog to hand events to the stdlib handlers"""

        processors = [
            structlog.stdlib.filter_by_level,
            ServiceContextProcessor(settings.ENVIRONMENT.value),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

        if settings.LOG_FORMAT == LogFormat.JSON:
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.processors.KeyValueRenderer())

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    @staticmethod
    def configure_standard_logging(settings: Settings) -> None:
        """Configure standard Python logging"""

        level = getattr(logging, settings.LOG_LEVEL.value)
        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)

        if settings.LOG_FORMAT == LogFormat.JSON:
            formatter: logging.Formatter = CustomJsonFormatter(
                '%(asctime)s %(name)s %(levelname)s %(message)s'
            )
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

        if settings.LOG_FILE:
            log_path = Path(settings.LOG_FILE)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

        LoggingConfig._configure_library_loggers(settings)

    @staticmethod
    def _configure_library_loggers(settings: Settings) -> None:
        """Reduce noise from external libraries"""
        if settings.LOG_SQL_QUERIES:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
        else:
            logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure stdlib logging and structlog from settings"""
    settings = settings or get_settings()
    LoggingConfig.configure_standard_logging(settings)
    LoggingConfig.configure_structured_logging(settings)


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to `name`"""
    return structlog.get_logger(name)

