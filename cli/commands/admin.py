"""
Admin account commands.

``flask admin create`` grants back office access without the email
verification round trip, which is how the first admin of a fresh deployment
is created. The address must still belong to the admin email domain.
"""

import click
from flask import current_app
from flask.cli import AppGroup
from sqlalchemy.exc import SQLAlchemyError

from services.auth_service import AuthService

admin_cli = AppGroup('admin', help='Admin account management.')


@admin_cli.command('create')
@click.argument('email')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
def create_admin(email: str, password: str) -> None:
    """
    Create a verified admin account.

    Examples:
        $ flask admin create editor@ments.app
    """
    min_length = current_app.config.get('PASSWORD_MIN_LENGTH', 6)
    if len(password) < min_length:
        raise click.BadParameter(f"Password must be at least {min_length} characters", param_hint='--password')

    try:
        admin = AuthService.create_admin(email, password)
    except ValueError as e:
        raise click.ClickException(str(e))
    except SQLAlchemyError as e:
        current_app.logger.error("Admin creation failed for %s: %s", email, str(e))
        raise click.ClickException("Failed to create admin")

    click.echo(f"Admin {admin.email} created")
