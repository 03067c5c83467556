"""
Base model definitions for the blog platform.

This module provides the base model class and the timestamp mixin used by
every table in the application.

Key components:
- BaseModel: Abstract base class with CRUD helpers
- TimestampMixin: Adds automatic created/updated timestamps

These base classes implement the Active Record pattern through SQLAlchemy ORM,
so services can write ``Post.get_by_id(post_id)`` or ``subscriber.delete()``
without touching the session directly for simple operations.
"""

from datetime import datetime, timezone
from typing import Optional, Type, TypeVar, Union, cast

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from extensions import db

# Define TypeVar with proper constraints for type hinting
T_Model = TypeVar('T_Model', bound='BaseModel')


class TimestampMixin:
    """
    Mixin class that adds created and updated timestamps to models.

    The timestamps are stored with timezone information. ``created_at`` is set
    once when the record is first created, ``updated_at`` whenever the record
    is modified.
    """

    created_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True
    )

    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )


class BaseModel(db.Model, TimestampMixin):
    """
    Abstract base model that provides common functionality for all models.

    Class Methods:
        create: Create and persist a new instance
        get_by_id: Retrieve an instance by its primary key

    Instance Methods:
        delete: Delete this instance from the database
    """
    __abstract__ = True

    @classmethod
    def create(cls: Type[T_Model], **kwargs) -> T_Model:
        """
        Create a new instance of the model and save it to the database.

        Raises:
            SQLAlchemyError: If database error occurs during creation
        """
        try:
            instance = cls(**kwargs)
            db.session.add(instance)
            db.session.commit()
            return cast(T_Model, instance)
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Failed to create %s: %s", cls.__name__, str(e))
            raise

    @classmethod
    def get_by_id(cls: Type[T_Model], instance_id: Union[int, str, None]) -> Optional[T_Model]:
        """Retrieve an instance by its primary key, or None."""
        if instance_id is None:
            return None
        try:
            instance_id = int(instance_id)
        except (TypeError, ValueError):
            return None
        return db.session.get(cls, instance_id)

    def delete(self) -> bool:
        """
        Delete the instance from the database.

        Raises:
            SQLAlchemyError: If database error occurs during deletion
        """
        try:
            db.session.delete(self)
            db.session.commit()
            return True
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Failed to delete %s: %s", self.__class__.__name__, str(e))
            raise

