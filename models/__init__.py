"""
Data models package for the ments. blog platform.

This package defines the application's data model layer using SQLAlchemy ORM:

- ``auth``: sign-in identities (``User``) and back office access (``Admin``)
- ``content``: blog posts and categories
- ``communication``: newsletter subscribers and broadcast send logs

The models implement the Active Record pattern through SQLAlchemy, where each
model instance represents a row in the database and provides helpers for
simple CRUD operations. Importing this package registers every table with the
metadata used by ``db.create_all()`` and Alembic.
"""

from .base import BaseModel, TimestampMixin

from .auth import User, Admin
from .content import Post, Category
from .communication import Subscriber, NewsletterLog

__all__ = [
    'BaseModel',
    'TimestampMixin',
    'User',
    'Admin',
    'Post',
    'Category',
    'Subscriber',
    'NewsletterLog',
]
