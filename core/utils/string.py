"""
String utilities for the blog platform.

Helpers for turning titles into URL slugs, pulling email addresses out of
free text and CSV files, and the small formatting rules used on article pages
(reading time and publication dates).
"""

import math
import re
from datetime import datetime
from typing import Iterable, List, Optional, Union

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

# Addresses embedded in pasted text or CSV exports
EMAIL_EXTRACT_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')

WORDS_PER_MINUTE = 200


def slugify(text: Optional[str]) -> str:
    """
    Convert text to URL-friendly slug.

    Lowercases the text, replaces every run of characters outside
    ``[a-z0-9]`` with a single dash and trims leading and trailing dashes.

    >>> slugify("Hello, World! 2024")
    'hello-world-2024'
    """
    if not text:
        return ""
    slug = re.sub(r'[^a-z0-9]+', '-', text.lower())
    return slug.strip('-')


def normalize_email(email: Optional[str]) -> str:
    return (email or '').strip().lower()


def is_valid_email(email: Optional[str]) -> bool:
    """Check that ``email`` looks like a deliverable address."""
    if not email or len(email) > 255:
        return False
    return bool(EMAIL_PATTERN.match(email))


def parse_emails(text: Union[str, Iterable[str], None]) -> List[str]:
    """
    Extract email addresses from free text.

    Addresses are lower-cased and de-duplicated, keeping the order in which
    they first appear.

    Args:
        text: Pasted text, CSV content, or an iterable of lines

    Returns:
        List of unique addresses
    """
    if not text:
        return []
    if not isinstance(text, str):
        text = '\n'.join(text)

    seen = set()
    emails = []
    for match in EMAIL_EXTRACT_PATTERN.findall(text):
        email = match.lower()
        if email not in seen:
            seen.add(email)
            emails.append(email)
    return emails


def word_count(content: Optional[str]) -> int:
    return len((content or '').split())


def reading_time(content: Optional[str]) -> int:
    """Minutes needed to read ``content`` at 200 words per minute, at least one."""
    return max(1, math.ceil(word_count(content) / WORDS_PER_MINUTE))


def reading_time_label(content: Optional[str]) -> str:
    return f"{reading_time(content)} min read"


def format_date(value: Optional[datetime]) -> str:
    """
    Format a date the way article pages show it, e.g. ``January 5, 2025``.

    Returns an empty string for missing dates.
    """
    if value is None:
        return ''
    return f"{value.strftime('%B')} {value.day}, {value.year}"
