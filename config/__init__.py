"""
Configuration package for the ments. blog platform.

This package provides configuration management for the supported environments
(development, testing, production) and a small set of helpers for selecting the
right configuration class at application start-up.

Configuration classes live in their own modules and share defaults through
``config.base.Config``. The active class is chosen from the explicit name passed
to the application factory, or detected from the ``ENVIRONMENT`` / ``FLASK_ENV``
environment variables.
"""

import os
import logging
from functools import lru_cache
from typing import Type

from .base import Config
from .development import DevelopmentConfig
from .testing import TestingConfig
from .production import ProductionConfig

# Initialize logger
logger = logging.getLogger(__name__)

ENVIRONMENT_DEVELOPMENT = 'development'
ENVIRONMENT_TESTING = 'testing'
ENVIRONMENT_PRODUCTION = 'production'

# Configuration registry mapping environment names to config classes
CONFIG_REGISTRY = {
    ENVIRONMENT_DEVELOPMENT: DevelopmentConfig,
    ENVIRONMENT_TESTING: TestingConfig,
    ENVIRONMENT_PRODUCTION: ProductionConfig,
}


@lru_cache(maxsize=8)
def get_config(env_name: str = None) -> Type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env_name: Environment name (development, testing, production).
                 If None, the environment is detected from environment variables.

    Returns:
        Config class appropriate for the specified environment
    """
    env_name = env_name or detect_environment()

    # Normalize the name to handle various formats
    if isinstance(env_name, str):
        env_name = env_name.lower().replace('-', '_')

    config_class = CONFIG_REGISTRY.get(env_name)
    if not config_class:
        logger.warning("Unknown environment name: %s, using development config", env_name)
        config_class = DevelopmentConfig

    return config_class


def detect_environment() -> str:
    """
    Detect the current environment from environment variables.

    Returns:
        String containing the environment name (e.g., 'development', 'production')
    """
    return (
        os.environ.get('ENVIRONMENT')
        or os.environ.get('FLASK_ENV')
        or ENVIRONMENT_DEVELOPMENT
    ).lower()


__all__ = [
    'Config',
    'DevelopmentConfig',
    'TestingConfig',
    'ProductionConfig',
    'CONFIG_REGISTRY',
    'get_config',
    'detect_environment',
]
