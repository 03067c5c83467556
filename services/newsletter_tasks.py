"""
Celery tasks running newsletter broadcasts outside the HTTP request.

The tasks call the same ``NewsletterBroadcaster`` methods the send endpoints
use, inside the Flask application context provided by ``AppContextTask``.
"""

import logging
from typing import Any, Dict

from extensions import celery
from services.newsletter_service import NewsletterBroadcaster

logger = logging.getLogger(__name__)


@celery.task(name='newsletter.send_custom')
def send_custom_newsletter_task(subject: str, content: str) -> Dict[str, Any]:
    result = NewsletterBroadcaster.from_app().send_custom(subject, content)
    logger.info("Queued custom newsletter '%s' finished: %s sent, %s failed",
                subject, result.sent, result.failed)
    return result.to_response()


@celery.task(name='newsletter.send_post')
def send_post_newsletter_task(payload: Dict[str, Any]) -> Dict[str, Any]:
    result = NewsletterBroadcaster.from_app().send_post(payload)
    logger.info("Queued post newsletter '%s' finished: %s sent, %s failed",
                payload.get('title'), result.sent, result.failed)
    return result.to_response()
