"""
Back office routes.

Every route requires a signed-in admin. Button actions (toggle, delete,
send) are POST forms carrying a CSRF token and redirect back to the page
they came from with a flash message.

Routes:
    /admin/: Redirect to the dashboard
    /admin/dashboard: Posts, post stats and quick subscriber entry
    /admin/editor: Write a new post
    /admin/newsletter: Subscriber management, send logs and compose
"""

from typing import Any, Dict, List, Union

from flask import Response, current_app, flash, redirect, render_template, request, url_for

from core.auth import admin_required, current_admin
from core.exceptions import BlogError
from models.communication import Subscriber
from models.content import Category, Post
from services.newsletter_service import NewsletterBroadcaster, NewsletterService
from services.newsletter_tasks import send_custom_newsletter_task, send_post_newsletter_task
from services.post_service import PostService
from services.storage_service import StorageService

from . import admin_bp
from .forms import (
    ActionForm, ComposeForm, PostForm, SubscriberAddForm, SubscriberImportForm
)


def post_stats(posts: List[Post]) -> Dict[str, int]:
    published = sum(1 for post in posts if post.is_published)
    return {
        'total': len(posts),
        'published': published,
        'drafts': len(posts) - published,
        'views': sum(post.views or 0 for post in posts),
    }


def _flash_result(result: Dict[str, Any]) -> None:
    if result.get('success'):
        flash(result.get('message', 'Done'), 'success')
    else:
        flash(result.get('error', 'Something went wrong'), 'danger')


def _queue_enabled() -> bool:
    return bool(current_app.config.get('NEWSLETTER_QUEUE_BROADCASTS'))


def _flash_broadcast(response: Dict[str, Any]) -> None:
    flash(response['message'], 'success')
    if response.get('failed'):
        flash(f"{response['failed']} emails could not be delivered", 'warning')


@admin_bp.route('/')
@admin_required
def index() -> Response:
    return redirect(url_for('admin.dashboard'))


@admin_bp.route('/dashboard')
@admin_required
def dashboard() -> str:
    """Render the dashboard with every post and the subscriber entry forms."""
    posts = PostService.list_all()
    return render_template(
        'admin/dashboard.html',
        posts=posts,
        stats=post_stats(posts),
        subscriber_stats=NewsletterService.get_stats(),
        add_form=SubscriberAddForm(),
        import_form=SubscriberImportForm(),
        action_form=ActionForm(),
    )


@admin_bp.route('/posts/<int:post_id>/toggle', methods=['POST'])
@admin_required
def toggle_post(post_id: int) -> Response:
    """Publish a draft or return a published post to draft."""
    form = ActionForm()
    if form.validate_on_submit():
        post = PostService.toggle_status(post_id)
        flash(f"“{post.title}” is now {post.status}", 'success')
    return redirect(url_for('admin.dashboard'))


@admin_bp.route('/posts/<int:post_id>/delete', methods=['POST'])
@admin_required
def delete_post(post_id: int) -> Response:
    form = ActionForm()
    if form.validate_on_submit():
        PostService.delete_post(post_id)
        flash("Post deleted", 'success')
    return redirect(url_for('admin.dashboard'))


@admin_bp.route('/posts/<int:post_id>/send-newsletter', methods=['POST'])
@admin_required
def send_post_newsletter(post_id: int) -> Response:
    """Email a published post to every active subscriber."""
    form = ActionForm()
    if not form.validate_on_submit():
        return redirect(url_for('admin.dashboard'))

    post = PostService.get_published(post_id)
    payload = {
        'blogId': post.id,
        'title': post.title,
        'slug': post.slug,
        'excerpt': post.excerpt or '',
        'featuredImage': post.featured_image,
        'content': post.content,
    }

    if _queue_enabled():
        send_post_newsletter_task.delay(payload)
        flash("Newsletter queued for delivery", 'success')
    else:
        result = NewsletterBroadcaster.from_app().send_post(payload)
        _flash_broadcast(result.to_response())
    return redirect(url_for('admin.dashboard'))


@admin_bp.route('/editor', methods=['GET', 'POST'])
@admin_required
def editor() -> Union[str, Response]:
    """
    Write a new post and save it as a draft or publish it.

    The slug defaults to one generated from the title. A featured image can
    be given as a URL or uploaded with the form.
    """
    form = PostForm()
    form.category.choices = [('', 'Select category')] + [(c.name, c.name) for c in Category.ordered()]

    if form.validate_on_submit():
        data = {
            'title': form.title.data,
            'slug': form.slug.data,
            'excerpt': form.excerpt.data,
            'content': form.content.data,
            'featured_image': form.featured_image.data,
            'category': form.category.data,
            'tags': form.tags.data,
        }
        status = Post.STATUS_PUBLISHED if form.publish.data else Post.STATUS_DRAFT

        try:
            if form.featured_image_file.data:
                data['featured_image'] = StorageService.upload_image(form.featured_image_file.data)
            post = PostService.save_post(data, status=status, author=current_admin())
        except BlogError as e:
            flash(e.message, 'danger')
        else:
            if post.is_published:
                flash("Post published!", 'success')
            else:
                flash("Draft saved!", 'success')
            return redirect(url_for('admin.dashboard'))

    return render_template('admin/editor.html', form=form)


@admin_bp.route('/newsletter')
@admin_required
def newsletter() -> str:
    """Subscriber list with search, stats, recent send logs and the compose form."""
    search = request.args.get('q', '').strip()
    return render_template(
        'admin/newsletter.html',
        subscribers=NewsletterService.list_subscribers(search),
        search=search,
        stats=NewsletterService.get_stats(),
        logs=NewsletterService.recent_logs(),
        compose_form=ComposeForm(),
        action_form=ActionForm(),
    )


@admin_bp.route('/newsletter/compose', methods=['POST'])
@admin_required
def compose_newsletter() -> Response:
    form = ComposeForm()
    if not form.validate_on_submit():
        flash("Subject and content are required", 'danger')
        return redirect(url_for('admin.newsletter'))

    subject = form.subject.data
    content = form.content.data

    try:
        if _queue_enabled():
            NewsletterBroadcaster.check_custom_input(subject, content)
            send_custom_newsletter_task.delay(subject, content)
            flash("Newsletter queued for delivery", 'success')
        else:
            result = NewsletterBroadcaster.from_app().send_custom(subject, content)
            _flash_broadcast(result.to_response())
    except BlogError as e:
        flash(e.message, 'danger')

    return redirect(url_for('admin.newsletter'))


@admin_bp.route('/newsletter/export')
@admin_required
def export_subscribers() -> Response:
    """Download active subscribers as CSV."""
    return Response(
        NewsletterService.export_csv(),
        mimetype='text/csv',
        headers={'Content-Disposition': f"attachment; filename={NewsletterService.export_filename()}"}
    )


@admin_bp.route('/subscribers/add', methods=['POST'])
@admin_required
def add_subscribers() -> Response:
    form = SubscriberAddForm()
    if form.validate_on_submit():
        emails = NewsletterService.parse_emails(form.emails.data)
        _flash_result(NewsletterService.add_subscribers(emails, source=Subscriber.SOURCE_MANUAL))
    else:
        flash("Please enter at least one email address", 'danger')
    return redirect(url_for('admin.dashboard'))


@admin_bp.route('/subscribers/import', methods=['POST'])
@admin_required
def import_subscribers() -> Response:
    """Add every address found in an uploaded CSV or text file."""
    form = SubscriberImportForm()
    if not form.validate_on_submit():
        for errors in form.errors.values():
            flash(errors[0], 'danger')
        return redirect(url_for('admin.dashboard'))

    text = form.file.data.read().decode('utf-8', errors='replace')
    emails = NewsletterService.parse_emails(text)
    result = NewsletterService.add_subscribers(emails, source=Subscriber.SOURCE_CSV_IMPORT)
    if result.get('success'):
        flash(f"Imported {result['added']} subscribers ({result['skipped']} already subscribed)", 'success')
    else:
        flash(result['error'], 'danger')
    return redirect(url_for('admin.dashboard'))


@admin_bp.route('/subscribers/<int:subscriber_id>/toggle', methods=['POST'])
@admin_required
def toggle_subscriber(subscriber_id: int) -> Response:
    form = ActionForm()
    if form.validate_on_submit():
        _flash_result(NewsletterService.toggle_active(subscriber_id))
    return redirect(url_for('admin.newsletter'))


@admin_bp.route('/subscribers/<int:subscriber_id>/delete', methods=['POST'])
@admin_required
def delete_subscriber(subscriber_id: int) -> Response:
    form = ActionForm()
    if form.validate_on_submit():
        _flash_result(NewsletterService.delete_subscriber(subscriber_id))
    return redirect(url_for('admin.newsletter'))


@admin_bp.route('/subscribers/delete-selected', methods=['POST'])
@admin_required
def delete_selected_subscribers() -> Response:
    form = ActionForm()
    if form.validate_on_submit():
        _flash_result(NewsletterService.delete_subscribers(request.form.getlist('ids')))
    return redirect(url_for('admin.newsletter'))
