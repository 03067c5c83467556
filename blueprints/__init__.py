"""
Blueprint package for the ments. blog platform.

This package organizes the server rendered pages into feature areas:

- main: the public feed, article pages, unsubscribe page and local uploads
- auth: admin sign-in, sign-up, email verification and sign-out
- admin: the back office dashboard, post editor and newsletter management

JSON endpoints live in the ``api`` package and are registered separately.
"""

import logging
from typing import List, Optional, Tuple

from flask import Blueprint, Flask

from .main import main_bp
from .auth import auth_bp
from .admin import admin_bp

logger = logging.getLogger(__name__)

# Each entry is the blueprint and its URL prefix (None keeps the blueprint's own)
blueprint_configs: List[Tuple[Blueprint, Optional[str]]] = [
    (main_bp, None),
    (auth_bp, '/admin'),
    (admin_bp, '/admin'),
]


def register_all_blueprints(app: Flask) -> None:
    """
    Register all page blueprints with the application.

    Args:
        app: Flask application instance
    """
    for blueprint, url_prefix in blueprint_configs:
        app.register_blueprint(blueprint, url_prefix=url_prefix)
        logger.debug("Registered blueprint: %s at %s", blueprint.name, url_prefix or '/')

    app.logger.info("Registered %s page blueprints", len(blueprint_configs))
