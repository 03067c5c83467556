"""
Newsletter send log.

One ``NewsletterLog`` row is written for every broadcast that reached the
send loop, recording how many recipients were reached and how many sends
failed. Rows are never updated afterwards.
"""

from datetime import datetime, timezone

from extensions import db
from models.base import BaseModel


class NewsletterLog(BaseModel):
    """
    Record of a single broadcast.

    Attributes:
        id: Primary key
        post_id: Post that was broadcast, None for custom newsletters or when
            the post was later deleted
        title: Email subject for custom newsletters, post title otherwise
        recipients_count: Number of successful sends
        failed_count: Number of failed sends
        sent_at: When the broadcast finished
    """
    __tablename__ = 'newsletter_logs'

    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('posts.id', ondelete='SET NULL'), nullable=True, index=True)
    title = db.Column(db.String(255), nullable=False)
    recipients_count = db.Column(db.Integer, nullable=False, default=0)
    failed_count = db.Column(db.Integer, nullable=False, default=0)
    sent_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True
    )

    post = db.relationship('Post', back_populates='newsletter_logs')

    def __repr__(self) -> str:
        return f'<NewsletterLog {self.title!r} sent={self.recipients_count} failed={self.failed_count}>'

    @classmethod
    def recent(cls, limit: int = 50):
        return cls.query.order_by(cls.sent_at.desc(), cls.id.desc()).limit(limit).all()
