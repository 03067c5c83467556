"""
Production environment configuration for the ments. blog platform.

Production requires a real database URL and a strong secret key, sends email
through Amazon SES and stores images in S3.
"""

import os
from .base import Config


class ProductionConfig(Config):
    """Configuration for production deployments."""

    ENVIRONMENT = 'production'
    DEBUG = False

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_recycle': 280,
        'pool_pre_ping': True,
        'pool_size': 10,
        'max_overflow': 20
    }

    SESSION_COOKIE_SECURE = True
    PREFERRED_URL_SCHEME = 'https'

    EMAIL_TRANSPORT = os.environ.get('EMAIL_TRANSPORT', 'ses')
    STORAGE_BACKEND = os.environ.get('STORAGE_BACKEND', 's3')

    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
    CACHE_TYPE = os.environ.get('CACHE_TYPE', 'SimpleCache')

    # Values that must never reach production
    INSECURE_SECRET_KEYS = ('dev', 'development', 'secret', 'changeme')
