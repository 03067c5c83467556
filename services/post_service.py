"""
Post service for blog content management.

This module provides the operations behind the editor, the dashboard and the
public pages:

- Creating posts from the editor as a draft or published
- Toggling a post between draft and published, and deleting it
- Listing published posts for the feed and every post for the dashboard
- Counting views once per browser session and toggling likes

View and like counters are updated with a read-then-write; concurrent updates
can lose an increment, which is accepted for these counters.
"""

import hashlib
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, MutableMapping, Optional, Union

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm.attributes import flag_modified

from core.exceptions import DependencyError, NotFoundError, ValidationError
from core.utils import slugify
from extensions import cache, db, metrics
from models.auth import Admin
from models.content import Post
from services.markdown_renderer import DisplayVariant, render_markdown

logger = logging.getLogger(__name__)

RENDER_CACHE_TIMEOUT = 300
VIEWED_SESSION_KEY = 'viewed_posts'
LIKED_SESSION_KEY = 'liked_posts'


def generate_slug(title: Optional[str]) -> str:
    """URL slug for ``title``: lower-case, non-alphanumeric runs become dashes."""
    return slugify(title)


def parse_tags(tags: Union[str, Iterable[str], None]) -> List[str]:
    """Normalize tags given as a list or a comma separated string, keeping order."""
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(',')

    result: List[str] = []
    for tag in tags:
        tag = (tag or '').strip()
        if tag and tag not in result:
            result.append(tag)
    return result


class PostService:
    """
    Service for creating, publishing and reading blog posts.

    Methods raise ``ValidationError``, ``NotFoundError`` or
    ``DependencyError``; routes turn them into flash messages or JSON errors.
    """

    @staticmethod
    def save_post(data: Dict[str, Any], status: str = Post.STATUS_DRAFT,
                  author: Optional[Admin] = None) -> Post:
        """
        Create a post from editor input.

        Args:
            data: ``title``, ``content`` and optional ``slug``, ``excerpt``,
                ``featured_image``, ``category`` and ``tags``
            status: ``draft`` or ``published``
            author: Admin writing the post

        Returns:
            Post: The saved post

        Raises:
            ValidationError: If required fields are missing or the slug is taken
            DependencyError: If the post could not be saved
        """
        title = (data.get('title') or '').strip()
        content = data.get('content') or ''

        if not title:
            raise ValidationError("Title is required")
        if not content.strip():
            raise ValidationError("Content is required")
        if status not in Post.VALID_STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        slug = generate_slug(data.get('slug') or title)
        if not slug:
            raise ValidationError("A URL slug could not be generated from the title")

        post = Post(
            title=title,
            slug=slug,
            content=content,
            excerpt=(data.get('excerpt') or '').strip() or None,
            featured_image=(data.get('featured_image') or '').strip() or None,
            category=(data.get('category') or '').strip() or None,
            tags=parse_tags(data.get('tags')),
            status=Post.STATUS_DRAFT,
            author=author,
        )
        if status == Post.STATUS_PUBLISHED:
            post.publish()

        try:
            db.session.add(post)
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise ValidationError(f"A post with the slug '{slug}' already exists") from e
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Failed to save post %s: %s", slug, str(e))
            raise DependencyError("Failed to save post") from e

        metrics.increment('posts.saved', labels={'status': post.status})
        current_app.logger.info("Post saved: %s (%s)", post.slug, post.status)
        return post

    @staticmethod
    def toggle_status(post_id: Any) -> Post:
        """
        Switch a post between draft and published.

        Publishing stamps ``published_at``; returning to draft clears it.

        Raises:
            NotFoundError: If the post does not exist
        """
        post = PostService._get(post_id)
        if post.is_published:
            post.unpublish()
        else:
            post.publish()
        post.updated_at = datetime.now(timezone.utc)

        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Failed to update post %s: %s", post_id, str(e))
            raise DependencyError("Failed to update post") from e

        metrics.increment('posts.status_changed', labels={'status': post.status})
        current_app.logger.info("Post %s is now %s", post.slug, post.status)
        return post

    @staticmethod
    def delete_post(post_id: Any) -> None:
        """
        Delete a post. Send logs keep their rows with the post reference cleared.

        Raises:
            NotFoundError: If the post does not exist
        """
        post = PostService._get(post_id)
        slug = post.slug
        try:
            post.delete()
        except SQLAlchemyError as e:
            raise DependencyError("Failed to delete post") from e

        metrics.increment('posts.deleted')
        current_app.logger.info("Post deleted: %s", slug)

    @staticmethod
    def list_published() -> List[Post]:
        """Published posts, most recently published first."""
        return Post.query.filter_by(status=Post.STATUS_PUBLISHED) \
            .order_by(Post.published_at.desc(), Post.id.desc()).all()

    @staticmethod
    def list_all() -> List[Post]:
        """Every post for the dashboard, newest first."""
        return Post.query.order_by(Post.created_at.desc(), Post.id.desc()).all()

    @staticmethod
    def get_published_by_slug(slug: str) -> Post:
        """
        Raises:
            NotFoundError: If no published post has this slug
        """
        post = Post.query.filter_by(slug=slug, status=Post.STATUS_PUBLISHED).first()
        if post is None:
            raise NotFoundError("Post not found")
        return post

    @staticmethod
    def get_published(post_id: Any) -> Post:
        post = Post.get_by_id(post_id)
        if post is None or not post.is_published:
            raise NotFoundError("Post not found")
        return post

    @staticmethod
    def rendered_content(post: Post) -> str:
        """Article HTML for ``post``, cached until its content changes."""
        digest = hashlib.sha1((post.content or '').encode('utf-8')).hexdigest()
        key = f"post:html:{post.id}:{digest}"
        html = cache.get(key)
        if html is None:
            html = render_markdown(post.content, DisplayVariant.ARTICLE)
            cache.set(key, html, timeout=RENDER_CACHE_TIMEOUT)
        return html

    @staticmethod
    def increment_views(post: Post, session: MutableMapping[str, Any]) -> bool:
        """
        Count a view unless this session already viewed the post.

        Returns:
            bool: True if the view was counted
        """
        viewed = list(session.get(VIEWED_SESSION_KEY, []))
        if post.id in viewed:
            return False

        try:
            post.views = (post.views or 0) + 1
            # Counters do not count as edits
            flag_modified(post, 'updated_at')
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.warning("Failed to count view for post %s: %s", post.id, str(e))
            return False

        viewed.append(post.id)
        session[VIEWED_SESSION_KEY] = viewed
        return True

    @staticmethod
    def is_liked(post: Post, session: MutableMapping[str, Any]) -> bool:
        return post.id in session.get(LIKED_SESSION_KEY, [])

    @staticmethod
    def toggle_like(post: Post, session: MutableMapping[str, Any]) -> Dict[str, Any]:
        """
        Like the post, or remove this session's like. Likes never drop below 0.

        Returns:
            dict: ``likes`` count and ``liked`` state for this session
        """
        liked = list(session.get(LIKED_SESSION_KEY, []))
        was_liked = post.id in liked

        if was_liked:
            post.likes = max(0, (post.likes or 0) - 1)
            liked.remove(post.id)
        else:
            post.likes = (post.likes or 0) + 1
            liked.append(post.id)

        try:
            flag_modified(post, 'updated_at')
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Failed to update likes for post %s: %s", post.id, str(e))
            raise DependencyError("Failed to update likes") from e

        session[LIKED_SESSION_KEY] = liked
        metrics.increment('posts.unliked' if was_liked else 'posts.liked')
        return {'likes': post.likes, 'liked': not was_liked}

    @staticmethod
    def _get(post_id: Any) -> Post:
        post = Post.get_by_id(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        return post
