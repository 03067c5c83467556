"""
Admin model.

An ``Admin`` row grants back office access to a verified ``User``. It is
created when a user of the allowed email domain completes email verification
and is checked on every privileged action through the admin session.
"""

from datetime import datetime, timezone

from extensions import db
from models.base import BaseModel


class Admin(BaseModel):
    """
    Back office administrator.

    Attributes:
        id: Primary key
        user_id: Linked authentication identity
        email: Copy of the user's address, shown in the back office
        role: Administrative role, currently always ``admin``
        last_login_at: Time of the latest sign-in, None before the first one
    """
    __tablename__ = 'admins'

    ROLE_ADMIN = 'admin'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_ADMIN)
    last_login_at = db.Column(db.DateTime(timezone=True))

    user = db.relationship('User', back_populates='admin')

    def __repr__(self) -> str:
        return f'<Admin {self.email}>'

    @property
    def is_first_login(self) -> bool:
        return self.last_login_at is None

    def record_login(self) -> None:
        self.last_login_at = datetime.now(timezone.utc)
