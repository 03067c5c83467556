"""
Main application entry point for the ments. blog platform.

This module is the WSGI entry point (``gunicorn app:app``) and the target of
the ``flask`` command line (``FLASK_APP=app``). The environment is selected by
``ENVIRONMENT`` / ``FLASK_ENV``; see ``config`` for the available settings.

The Celery worker uses the same module to get an application with the task
queue configured:

    celery -A app.celery worker -Q newsletter
"""

import logging

from sqlalchemy.exc import SQLAlchemyError

from core.factory import create_app
from extensions import celery  # noqa: F401

try:
    app = create_app()
except (SQLAlchemyError, ValueError) as e:
    logging.critical("Application initialization failed: %s", e)
    raise

if __name__ == '__main__':
    app.run()
