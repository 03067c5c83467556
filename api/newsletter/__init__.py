"""
Newsletter API module for the ments. blog platform.

This module provides the JSON endpoints behind the public subscribe and
unsubscribe forms and the admin broadcast actions.

Key endpoints:
- /api/newsletter/subscribe: Subscribe an email to the newsletter
- /api/newsletter/unsubscribe: Deactivate a subscription
- /api/send-custom-newsletter: Broadcast a freeform markdown message (admin)
- /api/send-newsletter: Broadcast a blog post (admin)

Public endpoints are rate limited. Broadcast endpoints reply with the send
counts, or with 202 when broadcasts are queued to Celery.
"""

from .routes import newsletter_api

__all__ = ['newsletter_api']
