"""
Core package for the ments. blog platform.

This package contains the components every other part of the application
builds on: the application factory, logging setup, the admin session
capability used for authorization, shared exception types and small utility
helpers.
"""

import logging

# Configure module logger
logger = logging.getLogger(__name__)

# Version information
__version__ = '1.0.0'
