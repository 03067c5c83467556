"""
Flask extensions for the ments. blog platform.

This module initializes and configures all Flask extensions used in the
application, ensuring they're properly set up and available throughout the
system. Extension objects are created unbound here and attached to an
application by ``init_extensions`` in the application factory.
"""

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect
from flask_caching import Cache

from .metrics import metrics
from .rate_limiter import limiter
from . import rate_limiter as _rate_limiter
from .celery_app import celery, init_celery

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()
cache = Cache()


def init_extensions(app: Flask) -> None:
    """
    Initialize all Flask extensions with the app.

    Args:
        app: Flask application
    """
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)
    cache.init_app(app)

    _rate_limiter.init_app(app)

    metrics.prefix = app.config.get('METRICS_PREFIX', 'blog')
    metrics.init_app(app)

    init_celery(app)


# List of all extensions for import in other modules
__all__ = [
    'db',
    'migrate',
    'csrf',
    'cache',
    'limiter',
    'metrics',
    'celery',
    'init_extensions'
]
