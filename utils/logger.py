"""
Logging helpers shared by routers and services.
"""

import logging
from typing import Any, Dict

SENSITIVE_FIELDS = {
    'password', 'token', 'secret', 'api_key', 'authorization',
    'credit_card', 'cvv', 'card_number'
}


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Usage:
        from utils.logger import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)


def sanitize_log_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``data`` that is safe to pass as ``extra`` to a logger.

    Keys that look like passwords or secrets are redacted completely. Tokens
    keep their first 8 characters so they can still be correlated. Nested
    dicts, and dicts inside lists, are sanitised recursively.
    """
    sanitized = data.copy()

    for key, value in sanitized.items():
        lowered = key.lower()
        if any(sensitive in lowered for sensitive in SENSITIVE_FIELDS):
            if isinstance(value, str):
                if 'token' in lowered and len(value) > 8:
                    sanitized[key] = f"{value[:8]}..."
                else:
                    sanitized[key] = "***REDACTED***"

        elif isinstance(value, dict):
            sanitized[key] = sanitize_log_data(value)

        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_log_data(item) if isinstance(item, dict) else item
                for item in value
            ]

    return sanitized
