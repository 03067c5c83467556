"""
Application factory for the ments. blog platform.

This module provides the ``create_app`` function that builds a Flask
application instance with the configuration for the requested environment.
Initialization runs in a fixed order so every later step can rely on the
earlier ones:

1. configuration (environment class, ``instance/config.py``, ``BLOG_``
   environment variables) and validation
2. logging
3. extensions, the admin session and the email transport
4. blueprints and API routes
5. error handlers, health endpoints, template helpers and CLI commands
"""

import os
import time
from datetime import datetime, timezone
from typing import Optional

from flask import Flask, g, has_request_context, jsonify, render_template, request
from flask_wtf.csrf import CSRFError
from jinja2 import TemplateNotFound
from markupsafe import Markup
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from api import register_api_routes
from blueprints import register_all_blueprints
from cli import register_cli_commands
from config import get_config
from config.production import ProductionConfig
from core.auth import EXTENSION_KEY as ADMIN_SESSION_KEY
from core.auth import FlaskSessionAdminSession, current_admin
from core.exceptions import BlogError
from core.health import register_health_endpoints
from core.loggings import setup_app_logging
from core.utils import format_date, generate_request_id, reading_time_label
from extensions import db, init_extensions, metrics
from services.email_service import init_email
from services.markdown_renderer import DisplayVariant, render_markdown

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

SECURE_ENVIRONMENTS = ('production',)


def create_app(config_name: Optional[str] = None) -> Flask:
    """
    Create and configure a Flask application instance.

    Args:
        config_name (str, optional): Name of the configuration to use ('development',
                                     'production', 'testing'). Defaults to None,
                                     which detects the environment.

    Returns:
        Flask: Configured Flask application instance ready to serve requests
    """
    app = Flask(
        'blog',
        root_path=BASE_DIR,
        instance_path=os.path.join(BASE_DIR, 'instance'),
        instance_relative_config=True,
        template_folder='templates',
        static_folder='static',
    )

    startup_start_time = time.time()

    configure_app(app, config_name)

    # Set up logging early to capture initialization issues
    setup_app_logging(app)

    init_extensions(app)
    app.extensions[ADMIN_SESSION_KEY] = FlaskSessionAdminSession()
    init_email(app)

    # Import tasks so the worker and eager mode know them
    import services.newsletter_tasks  # noqa: F401

    register_all_blueprints(app)
    register_api_routes(app)

    register_request_hooks(app)
    register_error_handlers(app)
    register_health_endpoints(app)
    register_template_helpers(app)
    register_cli_commands(app)

    startup_duration = time.time() - startup_start_time
    app.logger.info("Started %s in %s environment (%.2fs)",
                    app.config.get('SITE_NAME'), app.config.get('ENVIRONMENT'), startup_duration)
    return app


def configure_app(app: Flask, config_name: Optional[str] = None) -> None:
    """
    Load configuration in priority order.

    The environment class comes first, then ``instance/config.py`` if present,
    then ``BLOG_`` prefixed environment variables (highest priority).
    """
    config_obj = get_config(config_name)
    config_obj.init_app(app)

    try:
        os.makedirs(app.instance_path, mode=0o750, exist_ok=True)
    except OSError as e:
        app.logger.warning("Could not create instance folder: %s", e)

    if not app.config.get('TESTING'):
        app.config.from_pyfile('config.py', silent=True)

    app.config.from_prefixed_env(prefix="BLOG")

    app.config.setdefault('VERSION', '1.0.0')

    validate_configuration(app)


def validate_configuration(app: Flask) -> None:
    """
    Validate that all required configuration values are set.

    Raises:
        ValueError: If a required configuration value is missing or insecure
    """
    required = app.config.get('REQUIRED_SETTINGS') or ['SECRET_KEY', 'SQLALCHEMY_DATABASE_URI']
    missing = [key for key in required if not app.config.get(key)]
    if missing:
        raise ValueError(f"Missing required configuration values: {', '.join(missing)}")

    environment = str(app.config.get('ENVIRONMENT', '')).lower()
    if environment in SECURE_ENVIRONMENTS:
        insecure_settings = []

        if app.config.get('DEBUG'):
            insecure_settings.append('DEBUG should be False')

        if app.config.get('SECRET_KEY') in ProductionConfig.INSECURE_SECRET_KEYS:
            insecure_settings.append('SECRET_KEY is using a default/insecure value')

        if not app.config.get('SESSION_COOKIE_SECURE', True):
            insecure_settings.append('SESSION_COOKIE_SECURE should be True')

        if not app.config.get('WTF_CSRF_ENABLED', True):
            insecure_settings.append('WTF_CSRF_ENABLED should be True')

        if insecure_settings:
            raise ValueError(
                f"Insecure configuration in {environment} environment: {', '.join(insecure_settings)}"
            )


def register_request_hooks(app: Flask) -> None:
    """Attach a request id to every request and echo it in the response."""

    @app.before_request
    def assign_request_id():
        g.request_id = request.headers.get('X-Request-ID') or generate_request_id()
        # The admin lookup is cached per request
        g.pop('admin', None)
        g.pop('admin_id', None)

    @app.after_request
    def add_request_id_header(response):
        request_id = g.get('request_id')
        if request_id:
            response.headers['X-Request-ID'] = request_id
        return response


def _wants_json() -> bool:
    return request.path.startswith('/api/') or request.is_json


def register_error_handlers(app: Flask) -> None:
    """
    Register error handlers for different types of exceptions.

    API paths get JSON bodies of the form ``{"error": message}``; pages render
    an error template.
    """

    @app.errorhandler(CSRFError)
    def handle_csrf_error(e):
        app.logger.warning("CSRF error: %s %s: %s", request.method, request.path, e.description)
        metrics.increment('security.csrf_failures')

        if _wants_json():
            return jsonify({'error': 'CSRF validation failed'}), 400
        return render_template('errors/generic.html', code=400, error=e.description), 400

    @app.errorhandler(BlogError)
    def handle_blog_error(e):
        if e.status_code >= 500:
            app.logger.error("%s on %s: %s", e.__class__.__name__, request.path, e.message)
        else:
            app.logger.info("%s on %s: %s", e.__class__.__name__, request.path, e.message)
        metrics.increment('app.errors', labels={'code': e.code})

        if _wants_json():
            return jsonify(e.to_dict()), e.status_code
        return render_template('errors/generic.html', code=e.status_code, error=e.message), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        app.logger.error("Database error on %s: %s", request.path, str(e))
        metrics.increment('app.database_errors')

        if _wants_json():
            return jsonify({'error': 'Database error occurred'}), 500
        return render_template('errors/500.html', request_id=g.get('request_id')), 500

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        if e.code >= 500:
            app.logger.error("HTTP %s: %s %s", e.code, request.method, request.path)
        elif e.code >= 400:
            app.logger.warning("HTTP %s: %s %s", e.code, request.method, request.path)

        if _wants_json():
            return jsonify({'error': e.description}), e.code

        try:
            return render_template(f'errors/{e.code}.html', error=e.description), e.code
        except TemplateNotFound:
            return render_template('errors/generic.html', code=e.code, error=e.description), e.code


def register_template_helpers(app: Flask) -> None:
    """
    Register template context processors and filters.

    Templates get the site identity, the signed-in admin and the current time,
    and filters for markdown rendering, dates and reading time.
    """

    @app.context_processor
    def inject_globals():
        return {
            'now': datetime.now(timezone.utc),
            'site_name': app.config.get('SITE_NAME'),
            'site_tagline': app.config.get('SITE_TAGLINE'),
            'site_url': app.config.get('SITE_URL'),
            'current_admin': current_admin() if has_request_context() else None,
            'request_id': g.get('request_id'),
        }

    @app.template_filter('markdown')
    def markdown_filter(content, variant=DisplayVariant.ARTICLE.value):
        return Markup(render_markdown(content, variant))

    app.add_template_filter(format_date, 'format_date')
    app.add_template_filter(reading_time_label, 'reading_time')
