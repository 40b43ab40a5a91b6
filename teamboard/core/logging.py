"""
Logging setup: JSON records in production, plain text elsewhere
"""
import logging
import sys
from datetime import datetime
from typing import Any

from pythonjsonlogger import jsonlogger

# Fields services pass through ``extra=`` that belong in every JSON record
CONTEXT_FIELDS = ("user_id", "card_id", "board_id", "error_code")

REDACTED_KEYS = frozenset({
    "password", "token", "secret", "authorization", "cookie", "api_key", "email",
})


def redact(value: Any) -> Any:
    """Replace values under sensitive keys, walking nested dicts and lists"""
    if isinstance(value, dict):
        return {
            key: "[REDACTED]" if any(s in str(key).lower() for s in REDACTED_KEYS) else redact(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [redact(item) for item in value]
    return value


class RedactingFilter(logging.Filter):
    """Strips credentials and emails from dict-shaped log payloads"""

    def filter(self, record):
        if isinstance(record.msg, dict):
            record.msg = redact(record.msg)
        if isinstance(record.args, tuple) and record.args:
            record.args = tuple(redact(arg) for arg in record.args)
        return True


class BoardJSONFormatter(jsonlogger.JsonFormatter):
    """Adds service metadata and card/board/user ids to each record"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        from teamboard.config import settings

        log_record['timestamp'] = datetime.utcnow().isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['service'] = settings.app_name
        log_record['environment'] = settings.environment

        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_record[key] = str(value)


def _make_formatter(settings) -> logging.Formatter:
    if settings.environment == "production" and settings.log_format == "json":
        return BoardJSONFormatter(fmt='%(timestamp)s %(level)s %(logger)s %(message)s')
    return logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def setup_logging():
    """Route all logging to stdout with the configured level and format"""
    from teamboard.config import settings

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_make_formatter(settings))
    handler.addFilter(RedactingFilter())
    root_logger.addHandler(handler)

    configure_third_party_loggers(settings.environment)
    logging.getLogger(__name__).info(
        f"Logging configured: level={settings.log_level} format={settings.log_format}"
    )


def configure_third_party_loggers(environment: str):
    """SQL echo stays quiet in production"""
    sql_level = logging.WARNING if environment == "production" else logging.INFO
    levels = {
        "sqlalchemy.engine": sql_level,
        "sqlalchemy.pool": sql_level,
        "uvicorn.access": logging.INFO,
        "uvicorn.error": logging.INFO,
    }
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
