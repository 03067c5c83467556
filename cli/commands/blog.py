"""
Blog content commands.
"""

import click
from flask import current_app
from flask.cli import AppGroup
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.utils import slugify
from extensions import db
from models.content import Category

blog_cli = AppGroup('blog', help='Blog content management.')


@blog_cli.command('add-category')
@click.argument('name')
def add_category(name: str) -> None:
    """Add a category to the editor's category list."""
    name = name.strip()
    slug = slugify(name)
    if not slug:
        raise click.BadParameter("Category name must contain letters or numbers", param_hint='NAME')

    try:
        db.session.add(Category(name=name, slug=slug))
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise click.ClickException(f"Category '{name}' already exists")
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error("Failed to add category %s: %s", name, str(e))
        raise click.ClickException("Failed to add category")

    click.echo(f"Category '{name}' added")


@blog_cli.command('list-categories')
def list_categories() -> None:
    categories = Category.ordered()
    if not categories:
        click.echo("No categories")
    for category in categories:
        click.echo(f"{category.name} ({category.slug})")
