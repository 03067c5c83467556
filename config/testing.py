"""
Testing environment configuration for the ments. blog platform.

This module defines configuration settings for the test suite: an in-memory
database, an in-memory email transport, no throttling between sends and no
rate limiting, so tests run quickly and deterministically.
"""

import os
import tempfile
from .base import Config


class TestingConfig(Config):
    """
    Configuration for testing environment.

    Optimized for automated testing with in-memory databases and disabled
    features that would interfere with assertions.
    """

    ENVIRONMENT = 'testing'
    DEBUG = False
    TESTING = True

    SECRET_KEY = 'test-secret-key'

    # Test database (in-memory SQLite by default)
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL', 'sqlite:///:memory:')
    SQLALCHEMY_ENGINE_OPTIONS = {}

    # Disable CSRF protection during testing
    WTF_CSRF_ENABLED = False

    # Disable rate limiting in tests
    RATELIMIT_ENABLED = False

    CACHE_TYPE = 'NullCache'

    METRICS_ENABLED = False

    EMAIL_TRANSPORT = 'memory'
    STORAGE_BACKEND = 'local'
    SITE_URL = 'https://blog.example.com'

    NEWSLETTER_THROTTLE_ENABLED = False
    NEWSLETTER_QUEUE_BROADCASTS = False
    CELERY_ALWAYS_EAGER = True

    # Testing-specific logging - minimize noise but capture errors
    LOG_LEVEL = 'ERROR'
    LOG_TO_FILE = False

    @classmethod
    def init_app(cls, app) -> None:
        """
        Initialize application with testing configuration.

        Args:
            app: Flask application instance
        """
        super().init_app(app)

        # Use a temporary directory for uploaded images
        temp_folder = tempfile.mkdtemp(prefix="blog_test_")
        app.config['UPLOAD_FOLDER'] = os.path.join(temp_folder, 'uploads')
        os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
