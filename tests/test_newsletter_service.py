"""
Tests for the newsletter broadcaster and subscriber management.

These tests exercise the send loop against the in-memory transport, the send
log it writes, and the dictionary results returned by ``NewsletterService``.
"""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import DependencyError, ValidationError
from extensions import db
from models import NewsletterLog, Subscriber
from services.email_service import MemoryTransport
from services.newsletter_service import (
    BroadcastResult, NewsletterBroadcaster, NewsletterService
)


class TestBroadcast:
    """Tests for the send loop shared by every newsletter kind."""

    def test_no_subscribers_sends_nothing(self, app, transport):
        result = NewsletterBroadcaster.from_app().send_custom('Hello', 'Body')

        assert result == BroadcastResult(sent=0, failed=0)
        assert transport.outbox == []
        assert NewsletterLog.query.count() == 0
        assert result.to_response() == {'success': True, 'message': 'No subscribers to notify', 'count': 0}

    def test_inactive_subscribers_are_skipped(self, app, transport, make_subscribers):
        make_subscribers('active@example.com')
        make_subscribers('gone@example.com', active=False)

        result = NewsletterBroadcaster.from_app().send_custom('Hello', 'Body')

        assert result.sent == 1
        assert transport.recipients == ['active@example.com']

    def test_failed_send_does_not_stop_the_loop(self, app, make_subscribers):
        make_subscribers('a@example.com', 'b@example.com', 'c@example.com')
        failing = MemoryTransport(fail_for=['b@example.com'])

        result = NewsletterBroadcaster.from_app(transport=failing).send_custom('Hello', 'Body')

        assert result.sent == 2
        assert result.failed == 1
        assert failing.recipients == ['a@example.com', 'c@example.com']

        logs = NewsletterLog.query.all()
        assert len(logs) == 1
        assert logs[0].title == 'Hello'
        assert logs[0].recipients_count == 2
        assert logs[0].failed_count == 1
        assert logs[0].post_id is None

    def test_response_reports_counts(self):
        response = BroadcastResult(sent=2, failed=1).to_response()

        assert response['message'] == 'Newsletter sent to 2 subscribers'
        assert response['count'] == 2
        assert response['failed'] == 1

    def test_throttle_acquired_once_per_recipient(self, app, make_subscribers):
        make_subscribers('a@example.com', 'b@example.com', 'c@example.com')
        throttle = MagicMock()
        broadcaster = NewsletterBroadcaster(
            transport=MemoryTransport(),
            throttle=throttle,
            sender='news@example.com',
            site_url='https://blog.example.com/',
        )

        result = broadcaster.broadcast('Subject', lambda email: f"<p>{email}</p>", 'plain')

        assert result.sent == 3
        assert throttle.acquire.call_count == 3

    def test_bodies_built_per_recipient(self, app, make_subscribers):
        make_subscribers('a@example.com', 'b@example.com')
        memory = MemoryTransport()
        broadcaster = NewsletterBroadcaster(memory, MagicMock(), 'news@example.com', 'https://blog.example.com')

        broadcaster.broadcast('Subject', lambda email: f"<p>{email}</p>", lambda email: f"to {email}")

        assert [message.html for message in memory.outbox] == ['<p>a@example.com</p>', '<p>b@example.com</p>']
        assert [message.text for message in memory.outbox] == ['to a@example.com', 'to b@example.com']
        assert all(message.sender == 'news@example.com' for message in memory.outbox)

    def test_missing_subject_rejected(self, app, transport, make_subscribers):
        make_subscribers('a@example.com')
        broadcaster = NewsletterBroadcaster.from_app()

        with pytest.raises(ValidationError):
            broadcaster.broadcast('  ', lambda email: '<p>x</p>', 'x')
        assert transport.outbox == []

    def test_subscriber_query_failure(self, app, transport):
        with patch.object(Subscriber, 'active_emails', side_effect=SQLAlchemyError('down')):
            with pytest.raises(DependencyError) as exc_info:
                NewsletterBroadcaster.from_app().send_custom('Hello', 'Body')

        assert exc_info.value.message == 'Failed to fetch subscribers'
        assert transport.outbox == []

    def test_blank_body_rejected(self, app, transport, make_subscribers):
        make_subscribers('a@example.com')
        broadcaster = NewsletterBroadcaster.from_app()

        with pytest.raises(ValidationError):
            broadcaster.broadcast('Hello', lambda email: '  \n', 'x')
        assert transport.outbox == []
        assert NewsletterLog.query.count() == 0

    def test_log_failure_keeps_result(self, app, transport, make_subscribers):
        make_subscribers('a@example.com', 'b@example.com')

        with patch.object(db.session, 'commit', side_effect=SQLAlchemyError('db gone')):
            result = NewsletterBroadcaster.from_app().send_custom('Hello', 'Body')

        assert result == BroadcastResult(sent=2, failed=0)
        assert len(transport.outbox) == 2
        assert NewsletterLog.query.count() == 0


class TestSendCustom:
    """Tests for freeform markdown newsletters."""

    def test_requires_subject_and_content(self, app, transport, make_subscribers):
        make_subscribers('a@example.com')
        broadcaster = NewsletterBroadcaster.from_app()

        with pytest.raises(ValidationError) as exc_info:
            broadcaster.send_custom('', 'Body')
        assert exc_info.value.message == 'Subject and content are required'

        with pytest.raises(ValidationError):
            broadcaster.send_custom('Subject', '   ')
        assert transport.outbox == []

    def test_message_content(self, app, transport, make_subscribers):
        make_subscribers('reader+news@example.com')

        NewsletterBroadcaster.from_app().send_custom('Monthly update', 'Some **bold** news')

        message = transport.outbox[0]
        assert message.subject == 'Monthly update'
        assert 'bold' in message.html
        assert '<strong' in message.html
        assert 'Some bold news' in message.text
        assert '**' not in message.text

    def test_unsubscribe_link_for_each_recipient(self, app, transport, make_subscribers):
        make_subscribers('a@example.com', 'b@example.com')

        NewsletterBroadcaster.from_app().send_custom('Hello', 'Body')

        first, second = transport.outbox
        assert 'https://blog.example.com/unsubscribe?email=a%40example.com' in first.html
        assert 'To unsubscribe, visit: https://blog.example.com/unsubscribe?email=a%40example.com' in first.text
        assert 'https://blog.example.com/unsubscribe?email=b%40example.com' in second.html
        assert 'a%40example.com' not in second.text


class TestSendPost:
    """Tests for broadcasting a blog post."""

    def payload(self, post=None, **overrides):
        data = {
            'blogId': post.id if post else None,
            'title': post.title if post else 'Launch Notes',
            'slug': post.slug if post else 'launch-notes',
            'excerpt': 'What changed this week',
            'featuredImage': None,
            'content': '## Details\n\nWe shipped **things**.',
        }
        data.update(overrides)
        return data

    def test_subject_and_links(self, app, transport, make_subscribers, make_post):
        post = make_post('Launch Notes')
        make_subscribers('a@example.com')

        result = NewsletterBroadcaster.from_app().send_post(self.payload(post))

        assert result.sent == 1
        message = transport.outbox[0]
        assert message.subject == '📝 Launch Notes'
        assert 'https://blog.example.com/blog/launch-notes' in message.html
        assert '📖 Read online: https://blog.example.com/blog/launch-notes' in message.text
        assert 'We shipped things.' in message.text

    def test_log_records_post(self, app, transport, make_subscribers, make_post):
        post = make_post('Launch Notes')
        make_subscribers('a@example.com')

        NewsletterBroadcaster.from_app().send_post(self.payload(post))

        log = NewsletterLog.query.one()
        assert log.post_id == post.id
        assert log.title == 'Launch Notes'

    def test_unknown_post_id_not_logged(self, app, transport, make_subscribers):
        make_subscribers('a@example.com')

        NewsletterBroadcaster.from_app().send_post(self.payload(blogId=9999))

        log = NewsletterLog.query.one()
        assert log.post_id is None
        assert log.title == 'Launch Notes'

    def test_requires_title_and_slug(self, app, transport, make_subscribers):
        make_subscribers('a@example.com')
        broadcaster = NewsletterBroadcaster.from_app()

        with pytest.raises(ValidationError):
            broadcaster.send_post(self.payload(slug=''))
        with pytest.raises(ValidationError):
            broadcaster.send_post(self.payload(title=None))
        assert transport.outbox == []


class TestSubscriptions:
    """Tests for subscribing and unsubscribing."""

    def test_subscribe(self, app):
        result = NewsletterService.subscribe_email('  New@Example.com ')

        assert result['success'] is True
        assert result['code'] == 'subscribed'
        subscriber = Subscriber.find_by_email('new@example.com')
        assert subscriber.is_active is True
        assert subscriber.source == Subscriber.SOURCE_WEBSITE

    def test_subscribe_invalid(self, app):
        result = NewsletterService.subscribe_email('not-an-email')

        assert result['success'] is False
        assert result['code'] == 'invalid'
        assert Subscriber.query.count() == 0

    def test_subscribe_duplicate(self, app, make_subscribers):
        make_subscribers('reader@example.com')

        result = NewsletterService.subscribe_email('Reader@example.com')

        assert result['success'] is False
        assert result['code'] == 'duplicate'
        assert result['error'] == 'This email is already subscribed!'
        assert Subscriber.query.count() == 1

    def test_unsubscribe(self, app, make_subscribers):
        make_subscribers('reader@example.com')

        result = NewsletterService.unsubscribe('reader@example.com')

        assert result['code'] == 'unsubscribed'
        assert Subscriber.find_by_email('reader@example.com').is_active is False

    def test_unsubscribe_twice(self, app, make_subscribers):
        make_subscribers('reader@example.com', active=False)

        result = NewsletterService.unsubscribe('reader@example.com')

        assert result['success'] is True
        assert result['code'] == 'already_unsubscribed'
        assert result['message'] == 'You are already unsubscribed'

    def test_unsubscribe_unknown(self, app):
        result = NewsletterService.unsubscribe('nobody@example.com')

        assert result['success'] is False
        assert result['code'] == 'not_found'


class TestSubscriberManagement:
    """Tests for the admin subscriber operations."""

    def test_parse_emails(self):
        text = 'email\nA@example.com,website\nnot an address\nb@example.org; a@example.com'

        assert NewsletterService.parse_emails(text) == ['a@example.com', 'b@example.org']

    def test_add_subscribers_skips_existing(self, app, make_subscribers):
        make_subscribers('b@example.com', active=False)

        result = NewsletterService.add_subscribers(
            ['a@example.com', 'B@example.com', 'a@example.com', 'bad'],
            source=Subscriber.SOURCE_CSV_IMPORT
        )

        assert result['success'] is True
        assert result['added'] == 1
        assert result['skipped'] == 1
        assert Subscriber.find_by_email('a@example.com').source == Subscriber.SOURCE_CSV_IMPORT
        assert Subscriber.find_by_email('b@example.com').is_active is False

    def test_add_subscribers_nothing_valid(self, app):
        result = NewsletterService.add_subscribers(['nope', ''])

        assert result['success'] is False
        assert result['error'] == 'No valid email addresses found'

    def test_toggle_active(self, app, make_subscribers):
        subscriber, = make_subscribers('reader@example.com')

        assert NewsletterService.toggle_active(subscriber.id)['is_active'] is False
        assert NewsletterService.toggle_active(subscriber.id)['is_active'] is True
        assert NewsletterService.toggle_active(9999)['code'] == 'not_found'

    def test_delete_subscriber(self, app, make_subscribers):
        subscriber, = make_subscribers('reader@example.com')

        result = NewsletterService.delete_subscriber(subscriber.id)

        assert result['deleted'] == 1
        assert Subscriber.query.count() == 0

    def test_delete_selected(self, app, make_subscribers):
        first, second, third = make_subscribers('a@example.com', 'b@example.com', 'c@example.com')

        result = NewsletterService.delete_subscribers([str(first.id), third.id, 'junk'])

        assert result['deleted'] == 2
        assert [s.email for s in Subscriber.query.all()] == ['b@example.com']

    def test_delete_selected_requires_ids(self, app):
        result = NewsletterService.delete_subscribers(['junk'])

        assert result['success'] is False
        assert result['error'] == 'No subscribers selected'

    def test_stats(self, app, make_subscribers):
        make_subscribers('a@example.com', 'b@example.com')
        make_subscribers('c@example.com', active=False)

        stats = NewsletterService.get_stats()

        assert stats == {'total': 3, 'active': 2, 'inactive': 1, 'this_month': 3}

    def test_search(self, app, make_subscribers):
        make_subscribers('alice@example.com', 'bob@example.org')

        results = NewsletterService.list_subscribers('EXAMPLE.ORG')

        assert [s.email for s in results] == ['bob@example.org']
        assert len(NewsletterService.list_subscribers('')) == 2

    def test_export_active_only(self, app, make_subscribers):
        make_subscribers('a@example.com', source=Subscriber.SOURCE_MANUAL)
        make_subscribers('gone@example.com', active=False)

        lines = NewsletterService.export_csv().strip().split('\n')

        assert lines[0] == 'email,subscribed_at,source'
        assert len(lines) == 2
        assert lines[1].startswith('a@example.com,')
        assert lines[1].endswith(',manual')

    def test_export_filename(self):
        assert NewsletterService.export_filename(datetime(2025, 3, 7)) == 'subscribers-2025-03-07.csv'

    def test_recent_logs_newest_first(self, app, transport, make_subscribers):
        make_subscribers('a@example.com')
        broadcaster = NewsletterBroadcaster.from_app()
        broadcaster.send_custom('First', 'Body')
        broadcaster.send_custom('Second', 'Body')

        titles = [log.title for log in NewsletterService.recent_logs()]

        assert titles == ['Second', 'First']
