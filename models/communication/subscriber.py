"""
Subscriber model for the newsletter.

This module defines the Subscriber model which tracks the email addresses that
opted in to the newsletter. It provides:

- Unique, lower-cased email addresses
- Management of subscription status (active/inactive)
- The channel that produced the subscription (website form, manual admin
  entry or CSV import)

Unsubscribing deactivates a subscriber instead of deleting it; rows are only
removed by an explicit admin action. Only active subscribers receive
broadcasts.
"""

from datetime import datetime, timezone
from typing import List

from extensions import db
from models.base import BaseModel


class Subscriber(BaseModel):
    """
    Subscriber model representing an address that opted in to the newsletter.

    Attributes:
        id (int): Primary key
        email (str): Email address, unique and lower-cased
        is_active (bool): Whether the address currently receives broadcasts
        source (str): ``website``, ``manual`` or ``csv_import``
        subscribed_at (datetime): When the address was added
    """
    __tablename__ = 'subscribers'

    SOURCE_WEBSITE = 'website'
    SOURCE_MANUAL = 'manual'
    SOURCE_CSV_IMPORT = 'csv_import'
    VALID_SOURCES = [SOURCE_WEBSITE, SOURCE_MANUAL, SOURCE_CSV_IMPORT]

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    source = db.Column(db.String(20), nullable=False, default=SOURCE_WEBSITE)
    subscribed_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True
    )

    def __init__(self, email: str, **kwargs) -> None:
        if not email:
            raise ValueError("Email address is required")
        super().__init__(email=email.strip().lower(), **kwargs)

    def __repr__(self) -> str:
        return f'<Subscriber {self.email} active={self.is_active}>'

    @classmethod
    def find_by_email(cls, email: str) -> 'Subscriber':
        return cls.query.filter_by(email=(email or '').strip().lower()).first()

    @classmethod
    def active_emails(cls) -> List[str]:
        """Addresses eligible for a broadcast, in query order."""
        rows = db.session.query(cls.email).filter(cls.is_active.is_(True)).order_by(cls.id.asc()).all()
        return [row.email for row in rows]
