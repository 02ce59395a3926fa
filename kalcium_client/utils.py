"""
Utility functions and classes for the Kalcium client.
"""

import json
import logging
import sys
import uuid
from typing import Any, Iterable, List, TypeVar


T = TypeVar("T")


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        if hasattr(record, 'levelname') and record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logger(name: str = "kalcium_client", level: str = "INFO") -> logging.Logger:
    """Set up a logger with colored output."""
    logger = logging.getLogger(name)

    # Only add handler if logger doesn't already have one
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)

        if sys.stdout.isatty():
            formatter = ColoredFormatter(
                '%(asctime)s | %(levelname)s | %(message)s',
                datefmt='%H:%M:%S'
            )
        else:
            formatter = logging.Formatter(
                '%(asctime)s | %(levelname)s | %(message)s',
                datefmt='%H:%M:%S'
            )

        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(getattr(logging, level.upper()))
    return logger


# Global logger instance
logger = setup_logger()


def generate_uuid() -> str:
    """Generate a UUID string."""
    return str(uuid.uuid4())


def safe_json_dump(data: Any, indent: int = 2) -> str:
    """
    Safely serialize data to JSON string.

    Objects exposing ``to_dict()`` (all wire models do) are serialized
    through it.

    Args:
        data: Data to serialize
        indent: JSON indentation

    Returns:
        JSON string
    """
    try:
        return json.dumps(data, indent=indent, ensure_ascii=False, default=_to_jsonable)
    except TypeError as e:
        logger.error(f"Failed to serialize data to JSON: {e}")
        raise


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def distinct(values: Iterable[T]) -> List[T]:
    """Return values without duplicates, keeping first-seen order."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
