"""
Base configuration class for the ments. blog platform.
"""

from datetime import timedelta
import logging
import os
from typing import List

# Set up module logger
logger = logging.getLogger(__name__)


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Shared configuration for every environment.

    Values are read from environment variables where a deployment is expected
    to provide them (database endpoint, email transport credentials, sender
    address, public site URL) and fall back to development-friendly defaults.
    Environment classes override what differs; ``BLOG_`` prefixed environment
    variables are applied last by the application factory.
    """

    ENVIRONMENT = 'development'
    DEBUG = False
    TESTING = False

    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev')

    # Keys that must be set before the application starts
    REQUIRED_SETTINGS: List[str] = ['SECRET_KEY', 'SQLALCHEMY_DATABASE_URI']

    # Database configuration
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///blog.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
    }

    # Session settings
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)

    # CSRF protection
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600  # 1 hour

    # Rate limiting
    RATELIMIT_ENABLED = True
    RATELIMIT_DEFAULT = '1000 per day, 200 per hour'
    RATELIMIT_STORAGE_URI = 'memory://'
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STRATEGY = 'fixed-window'

    # Cache settings
    CACHE_TYPE = 'SimpleCache'
    CACHE_DEFAULT_TIMEOUT = 300

    # Monitoring settings
    METRICS_ENABLED = True
    METRICS_PREFIX = 'blog'
    METRICS_ENDPOINT_PATH = '/metrics'
    SENTRY_DSN = os.environ.get('SENTRY_DSN')
    SENTRY_TRACES_SAMPLE_RATE = 0.2
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')
    LOG_TO_FILE = True

    # Site identity used in rendered pages and outgoing email
    SITE_NAME = os.environ.get('SITE_NAME', 'ments.')
    SITE_TAGLINE = 'Fresh insights delivered to your inbox'
    SITE_URL = os.environ.get('SITE_URL', 'https://yoursite.com')

    # Admin accounts are limited to a single email domain
    ADMIN_EMAIL_DOMAIN = os.environ.get('ADMIN_EMAIL_DOMAIN', 'ments.app')
    PASSWORD_MIN_LENGTH = 6

    # Outbound email
    EMAIL_TRANSPORT = os.environ.get('EMAIL_TRANSPORT', 'ses')
    SES_FROM_EMAIL = os.environ.get('SES_FROM_EMAIL', 'newsletter@yourdomain.com')
    AWS_REGION = os.environ.get('AWS_REGION', 'ap-south-1')
    AWS_ACCESS_KEY_ID = os.environ.get('AWS_ACCESS_KEY_ID')
    AWS_SECRET_ACCESS_KEY = os.environ.get('AWS_SECRET_ACCESS_KEY')

    # Newsletter broadcast
    NEWSLETTER_SEND_RATE = 20.0  # sends per second
    NEWSLETTER_THROTTLE_ENABLED = True
    NEWSLETTER_QUEUE_BROADCASTS = _env_bool('NEWSLETTER_QUEUE_BROADCASTS')
    NEWSLETTER_LOG_LIMIT = 50

    # Image storage
    STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 'local')
    STORAGE_BUCKET = os.environ.get('STORAGE_BUCKET', 'blog-images')
    STORAGE_PUBLIC_URL = os.environ.get('STORAGE_PUBLIC_URL')
    UPLOAD_FOLDER = None
    MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5 MB
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB

    # Background tasks
    CELERY_BROKER_URL = os.environ.get('CELERY_BROKER_URL', 'redis://localhost:6379/0')
    CELERY_RESULT_BACKEND = os.environ.get('CELERY_RESULT_BACKEND', 'redis://localhost:6379/0')
    CELERY_ALWAYS_EAGER = False

    @classmethod
    def init_app(cls, app) -> None:
        """
        Initialize the application with this configuration.

        Args:
            app: Flask application instance
        """
        app.config.from_object(cls)

        if not app.config.get('UPLOAD_FOLDER'):
            app.config['UPLOAD_FOLDER'] = os.path.join(app.instance_path, 'uploads')
