"""
Services package for the ments. blog platform.

This package provides the service layer that encapsulates business logic
independently from presentation concerns, so the same operations back the
page blueprints, the JSON API, the Celery tasks and the CLI:

- ``auth_service``: admin sign-up, email verification and sign-in
- ``post_service``: post editing, publishing and the per-session counters
- ``newsletter_service``: subscriber management and newsletter broadcasts
- ``email_service``: email transports and email template rendering
- ``storage_service``: image uploads for the post editor
- ``markdown_renderer``: markdown to HTML for articles, previews and email
"""

from .auth_service import AuthService
from .email_service import EmailMessage, EmailTransport, MemoryTransport, SESTransport
from .markdown_renderer import DisplayVariant, markdown_to_plain_text, render_markdown
from .newsletter_service import BroadcastResult, NewsletterBroadcaster, NewsletterService
from .post_service import PostService
from .storage_service import StorageService

__all__ = [
    'AuthService',
    'EmailMessage',
    'EmailTransport',
    'MemoryTransport',
    'SESTransport',
    'DisplayVariant',
    'markdown_to_plain_text',
    'render_markdown',
    'BroadcastResult',
    'NewsletterBroadcaster',
    'NewsletterService',
    'PostService',
    'StorageService',
]
