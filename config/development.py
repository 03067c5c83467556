"""
Development environment configuration for the ments. blog platform.

Local development runs against SQLite, keeps outgoing email in memory unless
an SES transport is requested explicitly, and logs to the console only.
"""

import os
from .base import Config


class DevelopmentConfig(Config):
    """Configuration for local development."""

    ENVIRONMENT = 'development'
    DEBUG = True

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', 'sqlite:///blog-dev.db')
    SQLALCHEMY_ENGINE_OPTIONS = {}

    EMAIL_TRANSPORT = os.environ.get('EMAIL_TRANSPORT', 'memory')
    STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 'local')
    SITE_URL = os.environ.get('SITE_URL', 'http://localhost:5000')

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')
    LOG_TO_FILE = False

    METRICS_ENABLED = False
    CELERY_ALWAYS_EAGER = True
