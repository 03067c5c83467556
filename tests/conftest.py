"""
Test fixtures for the ments. blog platform.

This module provides the pytest fixtures shared across the test suite:

- Application configured for testing with an in-memory SQLite database
- Database setup and teardown around every test
- A verified admin and a test client signed in as that admin
- The in-memory email transport that records every sent message
- Factories for posts and subscribers

Each test gets a fresh application and database, so tests never share state.
"""

from datetime import datetime, timezone
from typing import Any, Callable, List

import pytest
from flask import Flask
from flask.testing import FlaskClient

from core.auth import SESSION_KEY
from core.factory import create_app
from extensions import db
from models import Admin, Post, Subscriber
from services.auth_service import AuthService
from services.email_service import MemoryTransport, set_transport

ADMIN_EMAIL = 'editor@ments.app'
ADMIN_PASSWORD = 'secret-password'


@pytest.fixture
def app() -> Flask:
    """
    Create test application instance.

    Returns:
        Flask application configured for testing with an in-memory SQLite
        database, CSRF disabled and the memory email transport.
    """
    app = create_app('testing')
    app.config['ADMIN_EMAIL_DOMAIN'] = 'ments.app'

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture
def runner(app: Flask) -> Any:
    return app.test_cli_runner()


@pytest.fixture
def transport(app: Flask) -> MemoryTransport:
    """Fresh in-memory transport installed on the application."""
    memory = MemoryTransport()
    set_transport(app, memory)
    return memory


@pytest.fixture
def admin(app: Flask) -> Admin:
    """A verified admin in the admin email domain."""
    return AuthService.create_admin(ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def admin_client(client: FlaskClient, admin: Admin) -> FlaskClient:
    """
    Test client with a signed-in admin session.

    Returns:
        FlaskClient whose session cookie carries the admin id
    """
    with client.session_transaction() as sess:
        sess[SESSION_KEY] = admin.id
    return client


@pytest.fixture
def make_post(app: Flask) -> Callable[..., Post]:
    """Factory creating posts directly in the database."""

    def _make_post(title: str = 'Hello World', slug: str = None, content: str = 'Some **bold** text',
                   status: str = Post.STATUS_PUBLISHED, published_at: datetime = None, **kwargs) -> Post:
        post = Post(
            title=title,
            slug=slug or title.lower().replace(' ', '-'),
            content=content,
            tags=kwargs.pop('tags', []),
            **kwargs
        )
        if status == Post.STATUS_PUBLISHED:
            post.publish(published_at or datetime.now(timezone.utc))
        db.session.add(post)
        db.session.commit()
        return post

    return _make_post


@pytest.fixture
def make_subscribers(app: Flask) -> Callable[..., List[Subscriber]]:
    """Factory creating subscribers, active unless ``active=False``."""

    def _make_subscribers(*emails: str, active: bool = True,
                          source: str = Subscriber.SOURCE_WEBSITE) -> List[Subscriber]:
        subscribers = [Subscriber(email=email, is_active=active, source=source) for email in emails]
        db.session.add_all(subscribers)
        db.session.commit()
        return subscribers

    return _make_subscribers
