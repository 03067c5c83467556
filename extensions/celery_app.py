"""
Celery integration for the ments. blog platform.

This module provides the task queue used to run newsletter broadcasts outside
the HTTP request that started them. Tasks run inside the Flask application
context, so services can use the database session and configuration exactly
as they do in a request.
"""

import logging
from flask import Flask, has_app_context
from celery import Celery

# Configure logging
logger = logging.getLogger(__name__)

# Initialize Celery instance
celery = Celery('blog')


def init_celery(app: Flask = None) -> Celery:
    """
    Initialize Celery with the Flask application configuration.

    Args:
        app: Flask application instance

    Returns:
        Configured Celery instance
    """
    if app is None:
        # Return the pre-configured instance for imports
        return celery

    celery.conf.update(
        broker_url=app.config.get('CELERY_BROKER_URL'),
        result_backend=app.config.get('CELERY_RESULT_BACKEND'),
        task_serializer='json',
        accept_content=['json'],
        result_serializer='json',
        timezone='UTC',
        task_always_eager=app.config.get('CELERY_ALWAYS_EAGER', False),
        task_eager_propagates=app.config.get('CELERY_EAGER_PROPAGATES', True),
        worker_hijack_root_logger=False,
        task_acks_late=True,
        task_default_queue=app.config.get('CELERY_DEFAULT_QUEUE', 'newsletter'),
        # A broadcast is a long sequential loop; give large lists room to finish
        task_time_limit=app.config.get('CELERY_TASK_TIME_LIMIT', 3600),
        task_soft_time_limit=app.config.get('CELERY_TASK_SOFT_TIME_LIMIT', 3300),
    )

    # Make Celery recognize Flask application context
    TaskBase = celery.Task

    class AppContextTask(TaskBase):
        abstract = True

        def __call__(self, *args, **kwargs):
            # Eager tasks run inside the calling request's context
            if has_app_context():
                return TaskBase.__call__(self, *args, **kwargs)
            with app.app_context():
                return TaskBase.__call__(self, *args, **kwargs)

        def on_failure(self, exc, task_id, args, kwargs, einfo):
            with app.app_context():
                logger.error("Celery task %s failed: %s", task_id, str(exc))
                return TaskBase.on_failure(self, exc, task_id, args, kwargs, einfo)

    celery.Task = AppContextTask
    app.extensions['celery'] = celery
    logger.info("Celery initialized successfully")

    return celery
