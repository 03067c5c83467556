"""
Newsletter commands.

These commands run the same operations as the back office pages and are
useful for scripted imports and for sending a newsletter from a markdown file
kept under version control.
"""

import click
from flask import current_app
from flask.cli import AppGroup

from core.exceptions import BlogError
from models.communication import Subscriber
from services.newsletter_service import NewsletterBroadcaster, NewsletterService

newsletter_cli = AppGroup('newsletter', help='Newsletter subscribers and broadcasts.')


@newsletter_cli.command('send-custom')
@click.argument('subject')
@click.argument('content_file', type=click.File('r', encoding='utf-8'))
@click.option('--yes', is_flag=True, help='Send without asking for confirmation')
def send_custom(subject: str, content_file, yes: bool) -> None:
    """
    Send a markdown file as a newsletter to every active subscriber.

    Examples:
        $ flask newsletter send-custom "March update" update.md
    """
    content = content_file.read()
    active = NewsletterService.get_stats()['active']

    if not yes:
        click.confirm(f"Send '{subject}' to {active} active subscribers?", abort=True)

    try:
        result = NewsletterBroadcaster.from_app().send_custom(subject, content)
    except BlogError as e:
        raise click.ClickException(e.message)

    response = result.to_response()
    current_app.logger.info("CLI newsletter '%s': %s sent, %s failed", subject, result.sent, result.failed)
    click.echo(response['message'])
    if result.failed:
        click.echo(f"{result.failed} emails could not be delivered", err=True)


@newsletter_cli.command('import')
@click.argument('source_file', type=click.File('r', encoding='utf-8', errors='replace'))
def import_subscribers(source_file) -> None:
    """
    Add every email address found in a CSV or text file.

    Addresses that are already subscribed are skipped.
    """
    emails = NewsletterService.parse_emails(source_file.read())
    result = NewsletterService.add_subscribers(emails, source=Subscriber.SOURCE_CSV_IMPORT)
    if not result['success']:
        raise click.ClickException(result['error'])
    click.echo(f"Added {result['added']} subscribers, skipped {result['skipped']}")


@newsletter_cli.command('stats')
def stats() -> None:
    """Show subscriber counts."""
    counts = NewsletterService.get_stats()
    click.echo(f"Total:      {counts['total']}")
    click.echo(f"Active:     {counts['active']}")
    click.echo(f"Inactive:   {counts['inactive']}")
    click.echo(f"This month: {counts['this_month']}")
