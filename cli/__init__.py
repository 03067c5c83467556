"""
Command-line interface for the ments. blog platform.

Commands are registered on the Flask CLI, so they run with the application
context of ``flask --app app``:

- ``flask newsletter``: send a newsletter, import subscribers, show stats
- ``flask blog``: manage categories offered in the post editor
- ``flask admin``: bootstrap admin accounts without email verification
"""

import logging

from flask import Flask

from .commands import admin_cli, blog_cli, newsletter_cli

logger = logging.getLogger(__name__)

CLI_GROUPS = [newsletter_cli, blog_cli, admin_cli]


def register_cli_commands(app: Flask) -> None:
    """
    Attach every command group to the application's CLI.

    Args:
        app: Flask application instance
    """
    for group in CLI_GROUPS:
        app.cli.add_command(group)


__all__ = ['register_cli_commands']
