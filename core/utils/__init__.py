"""
Utility helpers shared across the application.
"""

import uuid
from datetime import datetime, timezone

from .string import (
    slugify,
    normalize_email,
    is_valid_email,
    parse_emails,
    reading_time,
    reading_time_label,
    format_date,
)


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def generate_request_id() -> str:
    return uuid.uuid4().hex


__all__ = [
    'slugify',
    'normalize_email',
    'is_valid_email',
    'parse_emails',
    'reading_time',
    'reading_time_label',
    'format_date',
    'utcnow',
    'generate_request_id',
]
