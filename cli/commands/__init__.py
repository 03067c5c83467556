from .admin import admin_cli
from .blog import blog_cli
from .newsletter import newsletter_cli

__all__ = ['admin_cli', 'blog_cli', 'newsletter_cli']
