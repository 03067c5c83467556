"""
Newsletter service for managing subscriptions and broadcasting newsletters.

This module holds the two halves of the newsletter:

- ``NewsletterBroadcaster`` sends one email per active subscriber through an
  ``EmailTransport``, pacing sends with a token bucket, counting successes and
  failures and writing a single ``NewsletterLog`` row per broadcast. A failed
  send never stops the loop; there is no retry within a broadcast.
- ``NewsletterService`` implements subscriber management for the public
  subscribe/unsubscribe endpoints and the admin newsletter page: adding,
  importing, activating, deleting and exporting subscribers, plus the
  statistics and send log shown in the back office.

Broadcasts run sequentially with at most one send in flight. The HTTP handler
either calls the broadcaster directly, so the response carries the counts, or
hands the broadcast to a Celery task when ``NEWSLETTER_QUEUE_BROADCASTS`` is
enabled.
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
from urllib.parse import quote

from flask import current_app
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.exceptions import DeliveryError, DependencyError, LoggingError, ValidationError
from core.utils import format_date, is_valid_email, normalize_email
from core.utils import parse_emails as extract_emails
from extensions import cache, db, metrics
from extensions.rate_limiter import build_send_throttle
from models.communication import NewsletterLog, Subscriber
from models.content import Post
from services.email_service import EmailMessage, EmailTransport, get_transport, render_email
from services.markdown_renderer import DisplayVariant, markdown_to_plain_text, render_markdown

logger = logging.getLogger(__name__)

STATS_CACHE_KEY = 'newsletter:stats'

# Builds a message body for one recipient address
BodyBuilder = Callable[[str], str]


@dataclass(frozen=True)
class BroadcastResult:
    """Outcome of one broadcast."""

    sent: int
    failed: int

    @property
    def attempted(self) -> int:
        return self.sent + self.failed

    def to_response(self) -> Dict[str, Any]:
        """Body returned by the send endpoints."""
        if self.attempted == 0:
            return {'success': True, 'message': 'No subscribers to notify', 'count': 0}
        return {
            'success': True,
            'message': f"Newsletter sent to {self.sent} subscribers",
            'count': self.sent,
            'failed': self.failed,
        }


class NewsletterBroadcaster:
    """
    Sends a newsletter to every active subscriber.

    Args:
        transport: Email transport used for every send
        throttle: Object with an ``acquire()`` method called before each send
        sender: From address
        site_url: Public base URL, used for blog and unsubscribe links
        site_name: Name shown in email headers and footers
    """

    def __init__(self, transport: EmailTransport, throttle: Any, sender: str,
                 site_url: str, site_name: str = 'ments.') -> None:
        self.transport = transport
        self.throttle = throttle
        self.sender = sender
        self.site_url = site_url.rstrip('/')
        self.site_name = site_name

    @classmethod
    def from_app(cls, transport: Optional[EmailTransport] = None) -> 'NewsletterBroadcaster':
        """Build a broadcaster from the current application's configuration."""
        config = current_app.config
        throttle = build_send_throttle(
            config.get('NEWSLETTER_SEND_RATE'),
            enabled=config.get('NEWSLETTER_THROTTLE_ENABLED', True)
        )
        return cls(
            transport=transport or get_transport(),
            throttle=throttle,
            sender=config['SES_FROM_EMAIL'],
            site_url=config['SITE_URL'],
            site_name=config.get('SITE_NAME', 'ments.'),
        )

    def unsubscribe_url(self, email: str) -> str:
        return f"{self.site_url}/unsubscribe?email={quote(email, safe='')}"

    def post_url(self, slug: str) -> str:
        return f"{self.site_url}/blog/{slug}"

    @staticmethod
    def check_custom_input(subject: Optional[str], content: Optional[str]) -> None:
        """
        Raises:
            ValidationError: If the subject or content is missing
        """
        if not subject or not subject.strip() or not content or not content.strip():
            raise ValidationError("Subject and content are required")

    @staticmethod
    def check_post_input(payload: Dict[str, Any]) -> None:
        """
        Raises:
            ValidationError: If the title or slug is missing
        """
        if not (payload.get('title') or '').strip() or not (payload.get('slug') or '').strip():
            raise ValidationError("Title and slug are required")

    def broadcast(self, subject: str, html_builder: BodyBuilder,
                  text_body: Union[str, BodyBuilder], post_id: Optional[int] = None,
                  log_title: Optional[str] = None) -> BroadcastResult:
        """
        Send one email per active subscriber and record the outcome.

        Args:
            subject: Email subject
            html_builder: Returns the HTML body for a recipient address
            text_body: Plain-text body, or a function building it per recipient
            post_id: Post being broadcast, recorded in the send log
            log_title: Title recorded in the send log, defaults to ``subject``

        Returns:
            BroadcastResult: Successful and failed send counts

        Raises:
            ValidationError: If the subject or body is missing
            DependencyError: If the subscriber list could not be loaded
        """
        if not subject or not subject.strip() or html_builder is None:
            raise ValidationError("Subject and content are required")

        recipients = self._load_recipients()
        if not recipients:
            current_app.logger.info("Newsletter '%s' skipped: no active subscribers", subject)
            return BroadcastResult(sent=0, failed=0)

        current_app.logger.info("Broadcasting newsletter '%s' to %s subscribers", subject, len(recipients))

        sent = 0
        failed = 0
        for email in recipients:
            # The first token is free, so no wait follows the last send
            self.throttle.acquire()

            html_body = html_builder(email)
            if not html_body or not html_body.strip():
                raise ValidationError("Subject and content are required")
            text = text_body(email) if callable(text_body) else text_body
            message = EmailMessage(
                to=email,
                subject=subject,
                html=html_body,
                text=text,
                sender=self.sender,
            )
            try:
                self.transport.send(message)
                sent += 1
            except DeliveryError as e:
                failed += 1
                logger.error("Failed to send newsletter to %s: %s", email, e.message)

        metrics.increment('newsletter.emails_sent', sent)
        if failed:
            metrics.increment('newsletter.emails_failed', failed)

        try:
            self._write_log(log_title or subject, sent, failed, post_id)
        except LoggingError as e:
            current_app.logger.error("Failed to log newsletter: %s", e.message)

        current_app.logger.info("Newsletter '%s' finished: %s sent, %s failed", subject, sent, failed)
        return BroadcastResult(sent=sent, failed=failed)

    def send_custom(self, subject: str, content: str) -> BroadcastResult:
        """
        Broadcast a freeform markdown message.

        Raises:
            ValidationError: If the subject or content is missing
        """
        self.check_custom_input(subject, content)

        parts = self._template_renderer(
            'newsletter_custom',
            subject=subject,
            body_html=render_markdown(content, DisplayVariant.EMAIL),
            plain_text=markdown_to_plain_text(content),
            **self._common_context()
        )

        metrics.increment('newsletter.broadcast', labels={'kind': 'custom'})
        return self.broadcast(
            subject,
            lambda email: parts(email)['html'],
            lambda email: parts(email)['text'],
        )

    def send_post(self, payload: Dict[str, Any]) -> BroadcastResult:
        """
        Broadcast a blog post as a full-article email.

        Args:
            payload: ``blogId``, ``title``, ``slug``, ``excerpt``,
                ``featuredImage`` and ``content`` of the post

        Raises:
            ValidationError: If the title or slug is missing
        """
        self.check_post_input(payload)
        title = payload['title'].strip()
        slug = payload['slug'].strip()

        content = payload.get('content') or ''
        excerpt = payload.get('excerpt') or ''
        parts = self._template_renderer(
            'newsletter_article',
            title=title,
            excerpt=excerpt,
            featured_image=payload.get('featuredImage'),
            body_html=render_markdown(content, DisplayVariant.EMAIL),
            plain_text=markdown_to_plain_text(content or excerpt),
            post_url=self.post_url(slug),
            publish_date=format_date(datetime.now(timezone.utc)),
            title_rule='─' * min(len(title), 60),
            **self._common_context()
        )

        metrics.increment('newsletter.broadcast', labels={'kind': 'post'})
        return self.broadcast(
            f"📝 {title}",
            lambda email: parts(email)['html'],
            lambda email: parts(email)['text'],
            post_id=self._existing_post_id(payload.get('blogId')),
            log_title=title,
        )

    def _template_renderer(self, template_name: str, **context) -> Callable[[str], Dict[str, str]]:
        """
        Per-recipient renderer for an email template.

        Both parts are rendered together and the latest recipient's result is
        kept, so asking for the HTML and the text of one address renders once.
        """
        last: Dict[str, Dict[str, str]] = {}

        def parts(email: str) -> Dict[str, str]:
            if email not in last:
                last.clear()
                last[email] = render_email(template_name, unsubscribe_url=self.unsubscribe_url(email),
                                           **context)
            return last[email]

        return parts

    def _common_context(self) -> Dict[str, Any]:
        return {
            'site_name': self.site_name,
            'site_url': self.site_url,
            'year': datetime.now(timezone.utc).year,
        }

    @staticmethod
    def _existing_post_id(blog_id: Any) -> Optional[int]:
        if blog_id in (None, ''):
            return None
        try:
            post = Post.get_by_id(blog_id)
        except SQLAlchemyError as e:
            current_app.logger.warning("Could not resolve post %s for send log: %s", blog_id, str(e))
            return None
        return post.id if post else None

    @staticmethod
    def _load_recipients() -> List[str]:
        try:
            return Subscriber.active_emails()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Error fetching subscribers: %s", str(e))
            metrics.increment('newsletter.db_error')
            raise DependencyError("Failed to fetch subscribers") from e

    @staticmethod
    def _write_log(title: str, sent: int, failed: int, post_id: Optional[int]) -> NewsletterLog:
        try:
            entry = NewsletterLog(
                post_id=post_id,
                title=title[:255],
                recipients_count=sent,
                failed_count=failed,
                sent_at=datetime.now(timezone.utc),
            )
            db.session.add(entry)
            db.session.commit()
            return entry
        except SQLAlchemyError as e:
            db.session.rollback()
            metrics.increment('newsletter.log_write_failed')
            raise LoggingError(f"Could not write newsletter log: {e}") from e


class NewsletterService:
    """
    Service for handling newsletter subscriptions and management.

    Methods return dictionaries with a ``success`` flag and either a
    ``message`` or an ``error``, so routes and CLI commands can report the
    outcome without handling exceptions themselves.
    """

    @staticmethod
    def subscribe_email(email: str, source: str = Subscriber.SOURCE_WEBSITE) -> Dict[str, Any]:
        """
        Subscribe an email to the newsletter.

        Args:
            email: Email address to subscribe
            source: Source of subscription (website, manual, csv_import)

        Returns:
            dict: Result with success flag, ``code`` and message or error
        """
        email = normalize_email(email)

        if not is_valid_email(email):
            current_app.logger.info("Newsletter subscription rejected: Invalid email format: %s", email)
            metrics.increment('newsletter.invalid_email')
            return {'success': False, 'code': 'invalid', 'error': 'Please enter a valid email address'}

        try:
            db.session.add(Subscriber(email=email, source=source))
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.debug("Already subscribed to newsletter: %s", email)
            return {'success': False, 'code': 'duplicate', 'error': 'This email is already subscribed!'}
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Database error in subscribe_email: %s", str(e))
            metrics.increment('newsletter.db_error')
            return {'success': False, 'code': 'error', 'error': 'Database error occurred'}

        NewsletterService._invalidate_stats()
        metrics.increment('newsletter.subscribed', labels={'source': source})
        current_app.logger.info("New newsletter subscription: %s (%s)", email, source)
        return {'success': True, 'code': 'subscribed', 'message': 'Successfully subscribed!'}

    @staticmethod
    def unsubscribe(email: str) -> Dict[str, Any]:
        """
        Deactivate a subscriber.

        Returns:
            dict: ``code`` is ``not_found``, ``already_unsubscribed`` or
            ``unsubscribed``
        """
        email = normalize_email(email)
        if not email:
            return {'success': False, 'code': 'invalid', 'error': 'Please enter your email address'}

        try:
            subscriber = Subscriber.find_by_email(email)
            if subscriber is None:
                return {'success': False, 'code': 'not_found',
                        'error': 'Email not found in our subscriber list'}

            if not subscriber.is_active:
                return {'success': True, 'code': 'already_unsubscribed',
                        'message': 'You are already unsubscribed'}

            subscriber.is_active = False
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Database error in unsubscribe: %s", str(e))
            metrics.increment('newsletter.db_error')
            return {'success': False, 'code': 'error', 'error': 'Database error occurred'}

        NewsletterService._invalidate_stats()
        metrics.increment('newsletter.unsubscribed')
        current_app.logger.info("Unsubscribed from newsletter: %s", email)
        return {'success': True, 'code': 'unsubscribed',
                'message': 'You have been successfully unsubscribed'}

    @staticmethod
    def parse_emails(text: Union[str, Iterable[str], None]) -> List[str]:
        """Extract unique, lower-cased addresses from free text or CSV content."""
        return extract_emails(text)

    @staticmethod
    def add_subscribers(emails: Iterable[str], source: str = Subscriber.SOURCE_MANUAL) -> Dict[str, Any]:
        """
        Bulk add subscribers from the admin pages or a CSV import.

        Addresses already present, active or not, are skipped and left
        unchanged.

        Returns:
            dict: ``added`` and ``skipped`` counts
        """
        candidates = [email for email in extract_emails(list(emails)) if is_valid_email(email)]
        if not candidates:
            return {'success': False, 'added': 0, 'skipped': 0, 'error': 'No valid email addresses found'}

        try:
            existing = {
                row.email for row in
                db.session.query(Subscriber.email).filter(Subscriber.email.in_(candidates)).all()
            }
            new_emails = [email for email in candidates if email not in existing]
            for email in new_emails:
                db.session.add(Subscriber(email=email, source=source))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Database error in add_subscribers: %s", str(e))
            metrics.increment('newsletter.db_error')
            return {'success': False, 'added': 0, 'skipped': 0, 'error': 'Database error occurred'}

        NewsletterService._invalidate_stats()
        metrics.increment('newsletter.subscribers_imported', len(new_emails), labels={'source': source})
        current_app.logger.info("Added %s subscribers (%s skipped) from %s",
                                len(new_emails), len(candidates) - len(new_emails), source)
        return {
            'success': True,
            'added': len(new_emails),
            'skipped': len(candidates) - len(new_emails),
            'message': f"Added {len(new_emails)} subscribers",
        }

    @staticmethod
    def set_active(subscriber_id: int, active: bool) -> Dict[str, Any]:
        subscriber = Subscriber.get_by_id(subscriber_id)
        if subscriber is None:
            return {'success': False, 'code': 'not_found', 'error': 'Subscriber not found'}

        try:
            subscriber.is_active = bool(active)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Database error in set_active: %s", str(e))
            return {'success': False, 'code': 'error', 'error': 'Database error occurred'}

        NewsletterService._invalidate_stats()
        return {'success': True, 'is_active': subscriber.is_active,
                'message': 'Subscriber activated' if subscriber.is_active else 'Subscriber deactivated'}

    @staticmethod
    def toggle_active(subscriber_id: int) -> Dict[str, Any]:
        subscriber = Subscriber.get_by_id(subscriber_id)
        if subscriber is None:
            return {'success': False, 'code': 'not_found', 'error': 'Subscriber not found'}
        return NewsletterService.set_active(subscriber.id, not subscriber.is_active)

    @staticmethod
    def delete_subscriber(subscriber_id: int) -> Dict[str, Any]:
        subscriber = Subscriber.get_by_id(subscriber_id)
        if subscriber is None:
            return {'success': False, 'code': 'not_found', 'error': 'Subscriber not found'}

        try:
            subscriber.delete()
        except SQLAlchemyError:
            return {'success': False, 'code': 'error', 'error': 'Database error occurred'}

        NewsletterService._invalidate_stats()
        current_app.logger.info("Deleted subscriber %s", subscriber.email)
        return {'success': True, 'deleted': 1, 'message': 'Subscriber deleted'}

    @staticmethod
    def delete_subscribers(subscriber_ids: Iterable[Any]) -> Dict[str, Any]:
        ids = []
        for value in subscriber_ids:
            try:
                ids.append(int(value))
            except (TypeError, ValueError):
                continue
        if not ids:
            return {'success': False, 'deleted': 0, 'error': 'No subscribers selected'}

        try:
            deleted = Subscriber.query.filter(Subscriber.id.in_(ids)).delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Database error in delete_subscribers: %s", str(e))
            return {'success': False, 'deleted': 0, 'error': 'Database error occurred'}

        NewsletterService._invalidate_stats()
        current_app.logger.info("Deleted %s subscribers", deleted)
        return {'success': True, 'deleted': deleted, 'message': f"Deleted {deleted} subscribers"}

    @staticmethod
    def get_stats() -> Dict[str, int]:
        """
        Subscriber counts for the admin pages.

        Returns:
            dict: ``total``, ``active``, ``inactive`` and ``this_month``
        """
        stats = cache.get(STATS_CACHE_KEY)
        if stats is not None:
            return stats

        now = datetime.now(timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        total = db.session.query(func.count(Subscriber.id)).scalar() or 0
        active = db.session.query(func.count(Subscriber.id)).filter(Subscriber.is_active.is_(True)).scalar() or 0
        this_month = db.session.query(func.count(Subscriber.id)).filter(
            Subscriber.subscribed_at >= month_start
        ).scalar() or 0

        stats = {
            'total': total,
            'active': active,
            'inactive': total - active,
            'this_month': this_month,
        }
        cache.set(STATS_CACHE_KEY, stats, timeout=60)
        return stats

    @staticmethod
    def list_subscribers(search: Optional[str] = None) -> List[Subscriber]:
        """Subscribers, newest first, optionally filtered by an email substring."""
        query = Subscriber.query
        if search and search.strip():
            term = f"%{search.strip().lower()}%"
            query = query.filter(or_(Subscriber.email.ilike(term), Subscriber.source.ilike(term)))
        return query.order_by(Subscriber.subscribed_at.desc(), Subscriber.id.desc()).all()

    @staticmethod
    def export_csv() -> str:
        """CSV export of active subscribers with ``email,subscribed_at,source`` columns."""
        rows = Subscriber.query.filter(Subscriber.is_active.is_(True)) \
            .order_by(Subscriber.subscribed_at.desc(), Subscriber.id.desc()).all()

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator='\n')
        writer.writerow(['email', 'subscribed_at', 'source'])
        for subscriber in rows:
            writer.writerow([
                subscriber.email,
                subscriber.subscribed_at.isoformat() if subscriber.subscribed_at else '',
                subscriber.source,
            ])
        metrics.increment('newsletter.export')
        return buffer.getvalue()

    @staticmethod
    def export_filename(today: Optional[datetime] = None) -> str:
        today = today or datetime.now(timezone.utc)
        return f"subscribers-{today.strftime('%Y-%m-%d')}.csv"

    @staticmethod
    def recent_logs(limit: Optional[int] = None) -> List[NewsletterLog]:
        limit = limit or current_app.config.get('NEWSLETTER_LOG_LIMIT', 50)
        return NewsletterLog.recent(limit)

    @staticmethod
    def _invalidate_stats() -> None:
        cache.delete(STATS_CACHE_KEY)
