"""
Logging utilities for the VacAItion backend.

Provides standardized logger configuration following privacy rules.

CRITICAL PRIVACY RULES:
- NEVER log full request bodies (user location and interests are personal data)
- NEVER log full prompts or full model replies
- NEVER log the Google API key or any secret

Acceptable logging:
- High-level events (e.g., "Batch round 2/3 started", "Stream closed")
- Non-sensitive metadata (e.g., mode, result counts, response lengths)
- Truncated previews via preview() for diagnosing malformed model replies
- Error classes and sanitized error messages
"""

import logging
from typing import Optional

PREVIEW_LENGTH = 80


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a configured logger for the specified module.

    Args:
        name: Module name (typically __name__)
        level: Optional logging level (defaults to INFO)

    Returns:
        Configured logger instance

    Usage:
        >>> from vacaition.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("High-level event occurred")
    """
    logger = logging.getLogger(name)

    if level is None:
        level = logging.INFO

    logger.setLevel(level)

    # Add handler if not already configured (avoid duplicate handlers)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def preview(text: Optional[str], length: int = PREVIEW_LENGTH) -> str:
    """Single-line, truncated rendering of free text for log messages."""
    if not text:
        return ""
    flat = " ".join(text.split())
    if len(flat) > length:
        return flat[:length] + "..."
    return flat
