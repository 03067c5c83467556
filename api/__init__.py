"""
API package for the ments. blog platform.

This package provides the JSON endpoints used by the public pages and the
admin back office. All routes live under ``/api`` and answer errors with a
``{"error": message}`` body:

- Newsletter: public subscribe/unsubscribe and admin broadcasts
- Posts: likes, the editor's live preview and image uploads

Authentication for admin endpoints comes from the signed session cookie set
at sign-in; unauthenticated calls get 401.
"""

import logging

from flask import Blueprint, Flask

from .newsletter import newsletter_api
from .posts import posts_api

logger = logging.getLogger(__name__)

# Create main API blueprint
api_bp = Blueprint('api', __name__, url_prefix='/api')

api_bp.register_blueprint(newsletter_api)
api_bp.register_blueprint(posts_api)


def register_api_routes(app: Flask) -> None:
    """
    Register the API blueprint with the application.

    Args:
        app: Flask application
    """
    app.register_blueprint(api_bp)
    app.logger.debug("API routes registered")


__all__ = ['api_bp', 'register_api_routes']
