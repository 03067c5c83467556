"""
Posts API routes used by the article page and the post editor.
"""

import logging

from flask import Blueprint, jsonify, request, session

from core.auth import admin_required
from extensions import limiter
from services.markdown_renderer import DisplayVariant, render_markdown
from services.post_service import PostService
from services.storage_service import StorageService

logger = logging.getLogger(__name__)

posts_api = Blueprint('posts', __name__)


@posts_api.route('/posts/<int:post_id>/like', methods=['POST'])
@limiter.limit("30/minute")
def toggle_like(post_id: int):
    """
    Like a post, or remove this session's like.

    Returns:
        ``{"likes": int, "liked": bool}``
    """
    post = PostService.get_published(post_id)
    return jsonify(PostService.toggle_like(post, session)), 200


@posts_api.route('/preview', methods=['POST'])
@admin_required
def preview():
    """Render markdown the way the editor's live preview shows it."""
    data = request.get_json(silent=True) or {}
    content = data.get('content') or ''
    if not isinstance(content, str):
        return jsonify({'error': 'Content must be a string'}), 400
    return jsonify({'html': render_markdown(content, DisplayVariant.PREVIEW)}), 200


@posts_api.route('/uploads/image', methods=['POST'])
@admin_required
def upload_image():
    """
    Store an uploaded image.

    Request: multipart form with a ``file`` field

    Returns:
        201 with ``{"url": str}``
    """
    url = StorageService.upload_image(request.files.get('file'))
    return jsonify({'url': url}), 201
