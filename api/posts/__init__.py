"""
Posts API module.

- /api/posts/<id>/like: Like or unlike a published post for this session
- /api/preview: Render editor content with the preview styles (admin)
- /api/uploads/image: Store an editor image and return its URL (admin)
"""

from .routes import posts_api

__all__ = ['posts_api']
