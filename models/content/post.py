"""
Post model module for content management.

This module defines the Post model which represents blog articles written in
markdown by an admin. It provides:

- Slug based public URLs
- Publication status tracking (draft, published)
- View and like counters maintained by public readers
- Free-form category and tag metadata used by the feed and editor

A post is publicly visible only while its status is ``published``. View and
like counters are updated with a plain read-then-write; concurrent readers can
overwrite each other's increment, which is accepted for these analytics
fields.
"""

from datetime import datetime, timezone
from typing import List, Optional

from extensions import db
from models.base import BaseModel


class Post(BaseModel):
    """
    Post model for the blog.

    Attributes:
        id: Primary key
        title: Article title
        slug: Unique URL-safe identifier used in ``/blog/<slug>``
        content: Markdown body
        excerpt: Short summary shown in the feed and in emails
        featured_image: Public URL of the header image
        category: Category name chosen in the editor
        tags: List of tag strings
        status: ``draft`` or ``published``
        published_at: When the post was last published, None for drafts
        views: Number of counted page views
        likes: Number of likes, never negative
        author_id: Admin who wrote the post
    """
    __tablename__ = 'posts'

    STATUS_DRAFT = 'draft'
    STATUS_PUBLISHED = 'published'
    VALID_STATUSES = [STATUS_DRAFT, STATUS_PUBLISHED]

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True, index=True)
    content = db.Column(db.Text, nullable=False)
    excerpt = db.Column(db.Text)
    featured_image = db.Column(db.String(1024))
    category = db.Column(db.String(100))
    tags = db.Column(db.JSON, nullable=False, default=lambda: [])

    status = db.Column(db.String(20), nullable=False, default=STATUS_DRAFT, index=True)
    published_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    views = db.Column(db.Integer, nullable=False, default=0)
    likes = db.Column(db.Integer, nullable=False, default=0)

    author_id = db.Column(db.Integer, db.ForeignKey('admins.id', ondelete='SET NULL'), nullable=True)
    author = db.relationship('Admin', backref=db.backref('posts', lazy='dynamic'))

    newsletter_logs = db.relationship('NewsletterLog', back_populates='post', passive_deletes=True)

    def __repr__(self) -> str:
        return f'<Post {self.slug} ({self.status})>'

    @property
    def is_published(self) -> bool:
        return self.status == self.STATUS_PUBLISHED

    @property
    def tag_list(self) -> List[str]:
        return list(self.tags or [])

    def publish(self, when: Optional[datetime] = None) -> None:
        """Mark the post published, stamping ``published_at``."""
        self.status = self.STATUS_PUBLISHED
        self.published_at = when or datetime.now(timezone.utc)

    def unpublish(self) -> None:
        """Return the post to draft; drafts have no publication date."""
        self.status = self.STATUS_DRAFT
        self.published_at = None
