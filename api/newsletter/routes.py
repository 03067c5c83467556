"""
Newsletter API routes.

Subscription endpoints are public and rate limited; broadcast endpoints
require a signed-in admin. Service errors (``ValidationError``,
``DependencyError``) are turned into ``{"error": message}`` responses by the
application's error handlers.
"""

import logging

from flask import Blueprint, current_app, jsonify, request
from marshmallow import ValidationError as SchemaValidationError

from core.auth import admin_required
from extensions import limiter
from services.newsletter_service import NewsletterBroadcaster, NewsletterService
from services.newsletter_tasks import send_custom_newsletter_task, send_post_newsletter_task
from .schemas import custom_newsletter_schema, post_newsletter_schema, subscription_schema

logger = logging.getLogger(__name__)

newsletter_api = Blueprint('newsletter', __name__)

SUBSCRIBE_STATUS = {
    'subscribed': 201,
    'duplicate': 409,
    'invalid': 400,
}

UNSUBSCRIBE_STATUS = {
    'unsubscribed': 200,
    'already_unsubscribed': 200,
    'not_found': 404,
    'invalid': 400,
}


def _load(schema):
    return schema.load(request.get_json(silent=True) or {})


@newsletter_api.route('/newsletter/subscribe', methods=['POST'])
@limiter.limit("5/minute")
def subscribe():
    """
    Newsletter subscription endpoint.

    Returns:
        201 on success, 409 if the address is already subscribed, 400 if it is
        invalid
    """
    try:
        data = _load(subscription_schema)
    except SchemaValidationError as err:
        return jsonify({'error': 'Please enter a valid email address', 'details': err.messages}), 400

    result = NewsletterService.subscribe_email(data['email'])
    status = SUBSCRIBE_STATUS.get(result.get('code'), 500)

    if result.get('success'):
        return jsonify({'success': True, 'message': result['message']}), status
    return jsonify({'success': False, 'code': result.get('code'), 'error': result['error']}), status


@newsletter_api.route('/newsletter/unsubscribe', methods=['POST'])
@limiter.limit("10/minute")
def unsubscribe():
    """Deactivate the subscription of the given address."""
    try:
        data = _load(subscription_schema)
    except SchemaValidationError as err:
        return jsonify({'error': 'Please enter your email address', 'details': err.messages}), 400

    result = NewsletterService.unsubscribe(data['email'])
    status = UNSUBSCRIBE_STATUS.get(result.get('code'), 500)

    if result.get('success'):
        return jsonify({'success': True, 'code': result['code'], 'message': result['message']}), status
    return jsonify({'success': False, 'code': result.get('code'), 'error': result['error']}), status


@newsletter_api.route('/send-custom-newsletter', methods=['POST'])
@admin_required
def send_custom_newsletter():
    """
    Broadcast a freeform markdown newsletter to every active subscriber.

    Request body: ``{"subject": str, "content": str}``

    Returns:
        ``{success, message, count, failed}``
    """
    try:
        data = _load(custom_newsletter_schema)
    except SchemaValidationError as err:
        return jsonify({'error': 'Subject and content are required', 'details': err.messages}), 400

    subject = data.get('subject') or ''
    content = data.get('content') or ''
    NewsletterBroadcaster.check_custom_input(subject, content)

    current_app.logger.info("Custom newsletter requested: %s (%s chars)", subject[:50], len(content))

    if current_app.config.get('NEWSLETTER_QUEUE_BROADCASTS'):
        task = send_custom_newsletter_task.delay(subject, content)
        return jsonify({'success': True, 'queued': True, 'task_id': task.id,
                        'message': 'Newsletter queued for delivery'}), 202

    result = NewsletterBroadcaster.from_app().send_custom(subject, content)
    return jsonify(result.to_response()), 200


@newsletter_api.route('/send-newsletter', methods=['POST'])
@admin_required
def send_post_newsletter():
    """
    Broadcast a blog post to every active subscriber.

    Request body: ``{"blogId", "title", "slug", "excerpt", "featuredImage", "content"}``

    Returns:
        ``{success, message, count, failed}``
    """
    try:
        payload = _load(post_newsletter_schema)
    except SchemaValidationError as err:
        return jsonify({'error': 'Title and slug are required', 'details': err.messages}), 400

    NewsletterBroadcaster.check_post_input(payload)
    current_app.logger.info("Post newsletter requested: %s", payload.get('slug'))

    if current_app.config.get('NEWSLETTER_QUEUE_BROADCASTS'):
        task = send_post_newsletter_task.delay(dict(payload))
        return jsonify({'success': True, 'queued': True, 'task_id': task.id,
                        'message': 'Newsletter queued for delivery'}), 202

    result = NewsletterBroadcaster.from_app().send_post(payload)
    return jsonify(result.to_response()), 200
