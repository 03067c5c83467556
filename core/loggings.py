"""
Logging configuration module for the ments. blog platform.

This module provides the logging setup for the application: a readable
console format for development, structured JSON logs with size based rotation
for deployed environments, request id enrichment and optional integration
with Sentry for error tracking.

Every log record emitted while a request is being served carries the request
id assigned in ``core.factory`` (or forwarded by the client in the
``X-Request-ID`` header), which makes it possible to follow one newsletter
broadcast through the log from the HTTP call to the last send.
"""

import json
import logging
import logging.handlers
import os
import socket
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

from flask import Flask, g, has_request_context, request
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

# Create a module-level logger
logger = logging.getLogger(__name__)


class RequestContextFilter(logging.Filter):
    """Attach the current request id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request_id = getattr(g, 'request_id', '-')
        else:
            record.request_id = '-'
        return True


class JsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Generates one JSON object per record with the application context and,
    when available, the request that produced it.
    """

    def __init__(self, environment: str = 'production') -> None:
        super().__init__()
        self.environment = environment
        self.hostname = socket.gethostname()

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'line': record.lineno,
            'host': self.hostname,
            'environment': self.environment,
            'request_id': getattr(record, 'request_id', None),
        }

        if record.exc_info:
            log_data['error'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        if has_request_context():
            log_data['request'] = {
                'method': request.method,
                'path': request.path,
                'endpoint': request.endpoint,
                'remote_addr': request.remote_addr,
            }
            if getattr(g, 'admin_id', None):
                log_data['admin_id'] = g.admin_id

        return json.dumps(log_data, default=str)


def setup_app_logging(app: Flask) -> None:
    """
    Configure centralized application logging.

    Args:
        app (Flask): The Flask application instance to configure logging for
    """
    environment = app.config.get('ENVIRONMENT', 'production')
    is_dev = environment in ('development', 'testing')
    log_level = str(app.config.get('LOG_LEVEL', 'INFO')).upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    context_filter = RequestContextFilter()

    # Console output
    console_handler = logging.StreamHandler(sys.stdout)
    if is_dev:
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(request_id)s] %(levelname)s in %(module)s: %(message)s'
        ))
    else:
        console_handler.setFormatter(JsonFormatter(environment))
    console_handler.addFilter(context_filter)

    handlers = [console_handler]

    if app.config.get('LOG_TO_FILE', False):
        log_dir = app.config.get('LOG_DIR', 'logs')
        os.makedirs(log_dir, exist_ok=True)

        # Main log file, 10MB files, keep 10 backups
        app_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, 'app.log'),
            maxBytes=10 * 1024 * 1024,
            backupCount=10,
            encoding='utf-8'
        )
        app_handler.setFormatter(JsonFormatter(environment))
        app_handler.addFilter(context_filter)
        handlers.append(app_handler)

        # Error-specific log
        error_handler = logging.handlers.RotatingFileHandler(
            os.path.join(log_dir, 'error.log'),
            maxBytes=5 * 1024 * 1024,
            backupCount=20,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JsonFormatter(environment))
        error_handler.addFilter(context_filter)
        handlers.append(error_handler)

    # Clear existing handlers to avoid duplicates when the factory runs twice
    app.logger.handlers = []
    for handler in handlers:
        app.logger.addHandler(handler)
    app.logger.setLevel(numeric_level)

    # Service modules log through their own module loggers
    for name in ('services', 'api', 'blueprints', 'extensions'):
        module_logger = logging.getLogger(name)
        module_logger.handlers = list(handlers)
        module_logger.setLevel(numeric_level)
        module_logger.propagate = False

    if app.config.get('SENTRY_DSN'):
        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration(), SqlalchemyIntegration()],
            environment=environment,
            release=app.config.get('VERSION', 'unknown'),
            send_default_pii=False,
            traces_sample_rate=app.config.get('SENTRY_TRACES_SAMPLE_RATE', 0.1)
        )
        app.logger.info("Sentry error reporting initialized")

    app.logger.debug("Application logging initialized (level=%s)", log_level)
