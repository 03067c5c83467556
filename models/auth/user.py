"""
User authentication identity.

A ``User`` is a set of sign-in credentials: an email address, a password
hash and the email verification state. It carries no privileges on its own;
back office access is granted by an ``Admin`` row linked to the user, which
is created once the email address has been verified.
"""

import secrets
from datetime import datetime, timezone
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from extensions import db
from models.base import BaseModel


def generate_secure_token(length: int = 32) -> str:
    """Generate a URL-safe random token with ``length`` bytes of entropy."""
    return secrets.token_urlsafe(max(16, length))


class User(BaseModel):
    """
    Sign-in identity.

    Attributes:
        id: Primary key
        email: Unique, lower-cased address used to sign in
        password_hash: Werkzeug password hash
        email_verified: Whether the verification link was followed
        verification_token: Single-use token sent in the verification email
        verified_at: When the address was verified
    """
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    verification_token = db.Column(db.String(128), unique=True, index=True)
    verified_at = db.Column(db.DateTime(timezone=True))

    admin = db.relationship('Admin', back_populates='user', uselist=False,
                            cascade='all, delete-orphan')

    def __repr__(self) -> str:
        return f'<User {self.email}>'

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: Optional[str]) -> bool:
        if not password or not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def issue_verification_token(self) -> str:
        self.verification_token = generate_secure_token()
        return self.verification_token

    def mark_verified(self) -> None:
        self.email_verified = True
        self.verified_at = datetime.now(timezone.utc)
        self.verification_token = None

    @classmethod
    def find_by_email(cls, email: Optional[str]) -> Optional['User']:
        return cls.query.filter_by(email=(email or '').strip().lower()).first()
