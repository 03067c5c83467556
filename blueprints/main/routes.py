"""
Public routes for the ments. blog.

Routes:
    /: Feed of published posts with the newsletter subscribe form
    /blog/<slug>: A single published article
    /unsubscribe: Newsletter unsubscribe page, linked from every email
    /uploads/<filename>: Images stored by the local storage backend
"""

from typing import Union

from flask import (
    current_app, flash, redirect, render_template, request,
    send_from_directory, session, url_for
)
from werkzeug.wrappers import Response

from extensions import limiter, metrics
from services.newsletter_service import NewsletterService
from services.post_service import PostService

from . import main_bp
from .forms import UnsubscribeForm


@main_bp.route('/')
def index() -> str:
    """Render the feed of published posts, newest first."""
    posts = PostService.list_published()
    metrics.increment('pages.viewed', labels={'page': 'feed'})
    return render_template('main/index.html', posts=posts)


@main_bp.route('/blog/<slug>')
def post_detail(slug: str) -> str:
    """
    Render a published article.

    The first visit in a browser session increments the post's view count.
    Drafts and unknown slugs answer 404.
    """
    post = PostService.get_published_by_slug(slug)
    PostService.increment_views(post, session)

    return render_template(
        'main/post.html',
        post=post,
        content_html=PostService.rendered_content(post),
        liked=PostService.is_liked(post, session),
    )


@main_bp.route('/unsubscribe', methods=['GET', 'POST'])
@limiter.limit("10/minute", methods=['POST'])
def unsubscribe() -> Union[str, Response]:
    """
    Let a reader stop receiving the newsletter.

    Emails link here with ``?email=`` so the address is prefilled; the reader
    still has to confirm by submitting the form.
    """
    form = UnsubscribeForm()
    if request.method == 'GET' and request.args.get('email'):
        form.email.data = request.args.get('email')

    if form.validate_on_submit():
        result = NewsletterService.unsubscribe(form.email.data)
        if result.get('success'):
            flash(result['message'], 'success')
            return render_template('main/unsubscribe.html', form=form, done=True)
        flash(result['error'], 'danger')

    return render_template('main/unsubscribe.html', form=form, done=False)


@main_bp.route('/uploads/<path:filename>')
def uploaded_file(filename: str) -> Response:
    """Serve an image stored by the local storage backend."""
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename, max_age=86400)


@main_bp.route('/blog')
def blog_redirect() -> Response:
    return redirect(url_for('main.index'))
