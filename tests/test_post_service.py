"""
Tests for post creation, publishing and the per-session counters.
"""

from datetime import datetime, timezone

import pytest

from core.exceptions import NotFoundError, ValidationError
from models import NewsletterLog, Post
from services.post_service import PostService, generate_slug, parse_tags


class TestHelpers:
    """Tests for slug and tag normalization."""

    def test_generate_slug(self):
        assert generate_slug('Hello, World! 2024') == 'hello-world-2024'
        assert generate_slug('  --Already-Slugged--  ') == 'already-slugged'
        assert generate_slug('') == ''

    def test_parse_tags(self):
        assert parse_tags('python, flask,,python , ') == ['python', 'flask']
        assert parse_tags(['a', ' b ', 'a']) == ['a', 'b']
        assert parse_tags(None) == []


class TestSavePost:
    """Tests for saving editor input."""

    def test_save_draft(self, app, admin):
        post = PostService.save_post({
            'title': '  My First Post ',
            'content': 'Hello **there**',
            'tags': 'intro, meta',
            'category': 'Notes',
        }, author=admin)

        assert post.id is not None
        assert post.title == 'My First Post'
        assert post.slug == 'my-first-post'
        assert post.status == Post.STATUS_DRAFT
        assert post.published_at is None
        assert post.tags == ['intro', 'meta']
        assert post.category == 'Notes'
        assert post.author_id == admin.id

    def test_save_published(self, app):
        post = PostService.save_post({'title': 'Out Now', 'content': 'Body'}, status=Post.STATUS_PUBLISHED)

        assert post.is_published
        assert post.published_at is not None

    def test_explicit_slug_is_normalized(self, app):
        post = PostService.save_post({'title': 'Anything', 'slug': 'Custom Slug!', 'content': 'Body'})

        assert post.slug == 'custom-slug'

    def test_blank_optional_fields_stored_as_none(self, app):
        post = PostService.save_post({'title': 'T', 'content': 'Body', 'excerpt': '  ', 'featured_image': ''})

        assert post.excerpt is None
        assert post.featured_image is None

    @pytest.mark.parametrize('data, message', [
        ({'title': '', 'content': 'Body'}, 'Title is required'),
        ({'title': 'Title', 'content': '   '}, 'Content is required'),
        ({'title': '!!!', 'content': 'Body'}, 'A URL slug could not be generated from the title'),
    ])
    def test_validation(self, app, data, message):
        with pytest.raises(ValidationError) as exc_info:
            PostService.save_post(data)

        assert exc_info.value.message == message
        assert Post.query.count() == 0

    def test_invalid_status(self, app):
        with pytest.raises(ValidationError):
            PostService.save_post({'title': 'T', 'content': 'Body'}, status='scheduled')

    def test_duplicate_slug(self, app, make_post):
        make_post('Taken', slug='taken')

        with pytest.raises(ValidationError) as exc_info:
            PostService.save_post({'title': 'Taken', 'content': 'Body'})

        assert "'taken' already exists" in exc_info.value.message
        assert Post.query.count() == 1


class TestStatus:
    """Tests for publishing, unpublishing and deleting."""

    def test_toggle_publishes_and_unpublishes(self, app, make_post):
        post = make_post('Draft', status=Post.STATUS_DRAFT)
        assert post.published_at is None

        PostService.toggle_status(post.id)
        assert post.is_published
        assert post.published_at is not None

        PostService.toggle_status(post.id)
        assert post.status == Post.STATUS_DRAFT
        assert post.published_at is None

    def test_toggle_unknown_post(self, app):
        with pytest.raises(NotFoundError):
            PostService.toggle_status(404)

    def test_delete_keeps_send_log(self, app, make_post):
        post = make_post('Sent')
        NewsletterLog.create(post_id=post.id, title='Sent', recipients_count=3, failed_count=0)

        PostService.delete_post(post.id)

        assert Post.query.count() == 0
        remaining = NewsletterLog.query.one()
        assert remaining.title == 'Sent'

    def test_delete_unknown_post(self, app):
        with pytest.raises(NotFoundError):
            PostService.delete_post('nope')


class TestQueries:
    """Tests for feed and lookup queries."""

    def test_list_published_newest_first(self, app, make_post):
        make_post('Older', published_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        make_post('Newer', published_at=datetime(2024, 6, 1, tzinfo=timezone.utc))
        make_post('Hidden', status=Post.STATUS_DRAFT)

        assert [post.title for post in PostService.list_published()] == ['Newer', 'Older']
        assert len(PostService.list_all()) == 3

    def test_drafts_are_not_found_by_slug(self, app, make_post):
        make_post('Hidden', slug='hidden', status=Post.STATUS_DRAFT)

        with pytest.raises(NotFoundError):
            PostService.get_published_by_slug('hidden')
        with pytest.raises(NotFoundError):
            PostService.get_published_by_slug('missing')

    def test_get_published(self, app, make_post):
        post = make_post('Live')
        draft = make_post('Draft', status=Post.STATUS_DRAFT)

        assert PostService.get_published(post.id) is post
        with pytest.raises(NotFoundError):
            PostService.get_published(draft.id)

    def test_rendered_content(self, app, make_post):
        post = make_post('Rendered', content='# Heading\n\nSome **bold** text')

        html = PostService.rendered_content(post)

        assert '<h1' in html
        assert 'Heading' in html
        assert '<strong>bold</strong>' in html


class TestCounters:
    """Tests for session-scoped view and like counters."""

    def test_views_counted_once_per_session(self, app, make_post):
        post = make_post('Counted')
        session = {}

        assert PostService.increment_views(post, session) is True
        assert PostService.increment_views(post, session) is False
        assert post.views == 1

        assert PostService.increment_views(post, {}) is True
        assert post.views == 2

    def test_counters_do_not_touch_updated_at(self, app, make_post):
        post = make_post('Counted')
        before = post.updated_at

        PostService.increment_views(post, {})
        PostService.toggle_like(post, {})

        assert post.updated_at == before

    def test_like_toggle(self, app, make_post):
        post = make_post('Liked')
        session = {}

        assert PostService.toggle_like(post, session) == {'likes': 1, 'liked': True}
        assert PostService.is_liked(post, session)
        assert PostService.toggle_like(post, session) == {'likes': 0, 'liked': False}
        assert not PostService.is_liked(post, session)

    def test_likes_never_negative(self, app, make_post):
        post = make_post('Unloved')
        session = {'liked_posts': [post.id]}

        result = PostService.toggle_like(post, session)

        assert result == {'likes': 0, 'liked': False}
