"""
Email delivery for the blog platform.

This module provides the outbound email boundary. Callers build an
``EmailMessage`` and hand it to an ``EmailTransport``; the transport either
delivers it or raises ``DeliveryError``. Two transports are provided:

- ``SESTransport`` sends through Amazon SES with boto3, used in production
- ``MemoryTransport`` keeps messages in an outbox, used in development and
  tests

The transport is built once per application by ``init_email`` from the
``EMAIL_TRANSPORT`` setting and stored in ``app.extensions``. Services receive
it explicitly (``get_transport()`` at the edge), so tests can swap in a
transport that fails for chosen recipients.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import Flask, current_app, render_template
from jinja2 import TemplateNotFound

from core.exceptions import DeliveryError
from extensions import metrics

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'email_transport'
CHARSET = 'UTF-8'


@dataclass
class EmailMessage:
    """A single outbound email with HTML and plain-text bodies."""

    to: str
    subject: str
    html: str
    text: str
    sender: str
    headers: Dict[str, str] = field(default_factory=dict)


class EmailTransport:
    """Delivers one ``EmailMessage`` or raises ``DeliveryError``."""

    name = 'base'

    def send(self, message: EmailMessage) -> Optional[str]:
        """
        Deliver ``message``.

        Returns:
            Provider message id, if the provider returns one

        Raises:
            DeliveryError: If the message could not be delivered
        """
        raise NotImplementedError


class SESTransport(EmailTransport):
    """
    Amazon SES transport.

    Args:
        region: AWS region of the SES endpoint
        access_key_id: AWS access key; falls back to the default credential chain
        secret_access_key: AWS secret key
        client: Pre-built SES client, used instead of creating one
    """

    name = 'ses'

    def __init__(self, region: str, access_key_id: Optional[str] = None,
                 secret_access_key: Optional[str] = None, client: Any = None) -> None:
        if client is None:
            session = boto3.Session(
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name=region
            )
            client = session.client('ses')
        self._client = client
        self.region = region

    def send(self, message: EmailMessage) -> Optional[str]:
        try:
            response = self._client.send_email(
                Source=message.sender,
                Destination={'ToAddresses': [message.to]},
                Message={
                    'Subject': {'Data': message.subject, 'Charset': CHARSET},
                    'Body': {
                        'Html': {'Data': message.html, 'Charset': CHARSET},
                        'Text': {'Data': message.text, 'Charset': CHARSET},
                    },
                },
            )
        except (ClientError, BotoCoreError) as e:
            raise DeliveryError(f"SES rejected message: {e}", recipient=message.to) from e

        return response.get('MessageId')


class MemoryTransport(EmailTransport):
    """
    Transport that records messages instead of sending them.

    Args:
        fail_for: Recipients for which ``send`` raises ``DeliveryError``
    """

    name = 'memory'

    def __init__(self, fail_for: Optional[Iterable[str]] = None) -> None:
        self.outbox: List[EmailMessage] = []
        self.fail_for = {email.lower() for email in (fail_for or [])}

    def send(self, message: EmailMessage) -> Optional[str]:
        if message.to.lower() in self.fail_for:
            raise DeliveryError("Simulated delivery failure", recipient=message.to)
        self.outbox.append(message)
        return f"memory-{len(self.outbox)}"

    @property
    def recipients(self) -> List[str]:
        return [message.to for message in self.outbox]

    def clear(self) -> None:
        self.outbox.clear()


def create_transport(config: Dict[str, Any]) -> EmailTransport:
    """
    Build the transport named by ``EMAIL_TRANSPORT``.

    Raises:
        ValueError: If the transport name is unknown
    """
    name = (config.get('EMAIL_TRANSPORT') or 'ses').lower()
    if name == 'ses':
        return SESTransport(
            region=config.get('AWS_REGION', 'ap-south-1'),
            access_key_id=config.get('AWS_ACCESS_KEY_ID'),
            secret_access_key=config.get('AWS_SECRET_ACCESS_KEY'),
        )
    if name == 'memory':
        return MemoryTransport()
    raise ValueError(f"Unknown email transport: {name}")


def init_email(app: Flask) -> None:
    """Create the application's email transport."""
    transport = create_transport(app.config)
    app.extensions[EXTENSION_KEY] = transport
    app.logger.info("Email transport initialized: %s", transport.name)


def get_transport() -> EmailTransport:
    return current_app.extensions[EXTENSION_KEY]


def set_transport(app: Flask, transport: EmailTransport) -> None:
    app.extensions[EXTENSION_KEY] = transport


def render_email(template_name: str, **context) -> Dict[str, str]:
    """
    Render the HTML and plain-text parts of an email template.

    Looks for ``emails/<template_name>.html`` and ``emails/<template_name>.txt``.
    The text part is optional.
    """
    context.setdefault('site_name', current_app.config.get('SITE_NAME'))
    context.setdefault('site_url', current_app.config.get('SITE_URL'))

    html = render_template(f"emails/{template_name}.html", **context)
    try:
        text = render_template(f"emails/{template_name}.txt", **context)
    except TemplateNotFound:
        text = ''
    return {'html': html, 'text': text}


def send_template_email(to: str, subject: str, template_name: str,
                        transport: Optional[EmailTransport] = None, **context) -> bool:
    """
    Render a template and send it to a single recipient.

    Returns:
        bool: True if the message was handed to the transport
    """
    transport = transport or get_transport()
    parts = render_email(template_name, **context)
    message = EmailMessage(
        to=to,
        subject=subject,
        html=parts['html'],
        text=parts['text'],
        sender=current_app.config['SES_FROM_EMAIL'],
    )
    try:
        transport.send(message)
    except DeliveryError as e:
        logger.error("Failed to send %s email to %s: %s", template_name, to, e.message)
        metrics.increment('email.send_failed', labels={'template': template_name})
        return False

    metrics.increment('email.sent', labels={'template': template_name})
    logger.info("Sent %s email to %s", template_name, to)
    return True
