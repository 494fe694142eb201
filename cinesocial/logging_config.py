"""
Structured JSON logging configuration for cinesocial.

This module sets up structured logging using structlog with:
- JSON formatting for production
- Console formatting for development
- Request/user ID propagation
- Log scrubbing for sensitive data (API keys, passwords, emails)
- Configurable log levels via environment variables
"""

import os
import logging
import re
from typing import Any, Dict, Optional

import structlog

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Sensitive field names that should be fully redacted
SENSITIVE_FIELD_NAMES = {
    "api_key", "apikey", "api-key",
    "tmdb_api_key", "tmdb-api-key", "tmdb_key",
    "password", "password_hash", "passwd", "pwd",
    "secret", "secret_key", "token", "auth", "authorization",
    "bearer", "access_token", "refresh_token",
}

# Fields that are never scrubbed
SAFE_FIELD_NAMES = {
    "request_id", "user_id", "event", "timestamp", "level",
    "service", "environment", "duration_ms", "status_code",
    "movie_id", "review_id", "follower_id", "followee_id",
}

TMDB_KEY_PATTERN = re.compile(r'(api_key=)([A-Za-z0-9]+)', re.IGNORECASE)
EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b')


def scrub_sensitive_data(value: Any, parent_key: Optional[str] = None) -> Any:
    """
    Recursively scrub sensitive data from log entries.

    Args:
        value: Value to scrub (can be dict, list, str, or other)
        parent_key: Parent key name for field-level redaction

    Returns:
        Scrubbed value with sensitive data replaced with [REDACTED]
    """
    if isinstance(value, dict):
        return {k: scrub_sensitive_data(v, k) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [scrub_sensitive_data(item, parent_key) for item in value]

    key = parent_key.lower() if isinstance(parent_key, str) else None
    if key in SAFE_FIELD_NAMES:
        return value
    if key in SENSITIVE_FIELD_NAMES:
        return "[REDACTED]"

    if isinstance(value, str):
        scrubbed = re.sub(r'Bearer\s+[A-Za-z0-9_\-\.]+', 'Bearer [REDACTED]', value, flags=re.IGNORECASE)
        # TMDB keys travel as a query parameter in logged URLs
        scrubbed = TMDB_KEY_PATTERN.sub(r'\1[REDACTED]', scrubbed)
        scrubbed = EMAIL_PATTERN.sub('[EMAIL_REDACTED]', scrubbed)
        return scrubbed

    return value


def add_app_context(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    """Add service and environment names to log entries."""
    event_dict["service"] = "cinesocial"
    event_dict["environment"] = os.getenv("APP_ENV", "local")
    return event_dict


def add_scrubbing(logger: Any, method_name: str, event_dict: Dict) -> Dict:
    """Processor to scrub sensitive data from log entries."""
    return scrub_sensitive_data(event_dict)


def configure_structlog():
    """
    Configure structlog for the application.

    Sets up processors, formatters, and output based on environment.
    """
    is_dev = os.getenv("FLASK_ENV") == "development" or os.getenv("DEBUG") == "1"

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_app_context,
        add_scrubbing,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if is_dev:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(LOG_LEVEL)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """Get a configured structlog logger."""
    return structlog.get_logger(name)


configure_structlog()
