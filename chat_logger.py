"""
chat_logger.py - Centralized logging configuration for the Printo CS Assistant

Sets up Python logging with:
- File handler: logs/YYYY-MM-DD/chat.txt (daily folders)
- Console handler: stdout
- Configurable log level via LOG_LEVEL env variable
- Masking of sensitive data (bearer tokens, customer phone numbers)
"""

import os
import re
import logging
from datetime import datetime
from pathlib import Path


def sanitize_log_string(text: str) -> str:
    """
    Sanitize string for logging to prevent log injection attacks.
    Removes newlines, carriage returns, and other control characters.

    Args:
        text: String to sanitize

    Returns:
        Sanitized string safe for logging
    """
    if not text:
        return text
    text = text.replace('\n', ' ').replace('\r', ' ').replace('\t', ' ')
    text = ''.join(char if ord(char) >= 32 else ' ' for char in text)
    return text


def mask_phone(phone: str) -> str:
    """Keep only the last four digits of a phone number, e.g. ******3433."""
    if not phone:
        return phone
    phone = str(phone)
    if len(phone) <= 4:
        return phone
    return "*" * (len(phone) - 4) + phone[-4:]


def sanitize_token(text: str) -> str:
    """Hide bearer tokens that end up inside error messages or headers."""
    if not text:
        return text
    return re.sub(r'(Bearer\s+)[A-Za-z0-9\-_.=]+', r'\1***', text)


class MillisecondFormatter(logging.Formatter):
    """Formatter that appends milliseconds to the configured datefmt."""

    def formatTime(self, record, datefmt=None):
        if datefmt:
            s = datetime.fromtimestamp(record.created).strftime(datefmt)
            ms = int((record.created - int(record.created)) * 1000)
            return f"{s}.{ms:03d}"
        return super().formatTime(record, datefmt)


def setup_logger(name: str = "printo_cs", log_level: str = "INFO") -> logging.Logger:
    """
    Configure and return a logger with file and console handlers.

    Args:
        name: Logger name
        log_level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Prevent duplicate handlers if setup is called multiple times
    if logger.handlers:
        return logger

    formatter = MillisecondFormatter(
        fmt="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # ─── File Handler (one folder per day) ───
    today = datetime.now().strftime("%Y-%m-%d")
    log_dir = Path(os.getenv("LOG_DIR", "logs")) / today
    log_dir.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_dir / "chat.txt", encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # ─── Console Handler ───
    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


def get_logger(name: str = "printo_cs") -> logging.Logger:
    """
    Get the configured logger instance.
    If logger doesn't exist, create it with default settings.
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        log_level = os.getenv("LOG_LEVEL", "INFO")
        setup_logger(name, log_level)
    return logger
