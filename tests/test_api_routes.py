"""
Tests for the JSON API under /api.
"""

import io
import os

from models import NewsletterLog, Subscriber


class TestSubscribeApi:
    """Tests for the public subscribe and unsubscribe endpoints."""

    def test_subscribe(self, client):
        response = client.post('/api/newsletter/subscribe', json={'email': 'Reader@Example.com'})

        assert response.status_code == 201
        assert response.get_json() == {'success': True, 'message': 'Successfully subscribed!'}
        assert Subscriber.find_by_email('reader@example.com') is not None

    def test_subscribe_duplicate(self, client, make_subscribers):
        make_subscribers('reader@example.com')

        response = client.post('/api/newsletter/subscribe', json={'email': 'reader@example.com'})

        assert response.status_code == 409
        assert response.get_json()['error'] == 'This email is already subscribed!'

    def test_subscribe_invalid(self, client):
        response = client.post('/api/newsletter/subscribe', json={'email': 'nope'})

        assert response.status_code == 400
        assert response.get_json()['code'] == 'invalid'

    def test_subscribe_missing_body(self, client):
        response = client.post('/api/newsletter/subscribe', data='not json', content_type='text/plain')

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Please enter a valid email address'

    def test_unsubscribe(self, client, make_subscribers):
        make_subscribers('reader@example.com')

        response = client.post('/api/newsletter/unsubscribe', json={'email': 'reader@example.com'})

        assert response.status_code == 200
        assert response.get_json()['code'] == 'unsubscribed'
        assert Subscriber.find_by_email('reader@example.com').is_active is False

    def test_unsubscribe_unknown(self, client):
        response = client.post('/api/newsletter/unsubscribe', json={'email': 'ghost@example.com'})

        assert response.status_code == 404
        assert response.get_json()['code'] == 'not_found'


class TestSendApi:
    """Tests for the admin broadcast endpoints."""

    def test_requires_admin(self, client, transport, make_subscribers):
        make_subscribers('reader@example.com')

        custom = client.post('/api/send-custom-newsletter', json={'subject': 'Hi', 'content': 'Body'})
        post = client.post('/api/send-newsletter', json={'title': 'T', 'slug': 't'})

        assert custom.status_code == 401
        assert custom.get_json() == {'error': 'Authentication required'}
        assert post.status_code == 401
        assert transport.outbox == []

    def test_custom_requires_fields(self, admin_client, transport):
        response = admin_client.post('/api/send-custom-newsletter', json={'subject': 'Hi'})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Subject and content are required'}

    def test_custom_sends(self, admin_client, transport, make_subscribers):
        make_subscribers('a@example.com', 'b@example.com')

        response = admin_client.post('/api/send-custom-newsletter',
                                     json={'subject': 'Hello', 'content': 'Some *news*'})

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['count'] == 2
        assert body['failed'] == 0
        assert body['message'] == 'Newsletter sent to 2 subscribers'
        assert transport.recipients == ['a@example.com', 'b@example.com']

    def test_custom_without_subscribers(self, admin_client, transport):
        response = admin_client.post('/api/send-custom-newsletter',
                                     json={'subject': 'Hello', 'content': 'Body'})

        assert response.status_code == 200
        assert response.get_json() == {'success': True, 'message': 'No subscribers to notify', 'count': 0}
        assert NewsletterLog.query.count() == 0

    def test_post_requires_title_and_slug(self, admin_client, transport):
        response = admin_client.post('/api/send-newsletter', json={'title': 'Only a title'})

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Title and slug are required'}

    def test_post_sends(self, admin_client, transport, make_subscribers, make_post):
        post = make_post('Big News')
        make_subscribers('a@example.com')

        response = admin_client.post('/api/send-newsletter', json={
            'blogId': post.id,
            'title': post.title,
            'slug': post.slug,
            'excerpt': 'Short',
            'featuredImage': None,
            'content': post.content,
        })

        assert response.status_code == 200
        assert response.get_json()['count'] == 1
        assert transport.outbox[0].subject == '📝 Big News'
        assert NewsletterLog.query.one().post_id == post.id

    def test_queued_broadcast(self, app, admin_client, transport, make_subscribers):
        app.config['NEWSLETTER_QUEUE_BROADCASTS'] = True
        make_subscribers('a@example.com')

        response = admin_client.post('/api/send-custom-newsletter',
                                     json={'subject': 'Hello', 'content': 'Body'})

        assert response.status_code == 202
        body = response.get_json()
        assert body['queued'] is True
        assert body['task_id']
        # Eager mode runs the task before the response returns
        assert transport.recipients == ['a@example.com']


class TestPostsApi:
    """Tests for likes, preview and image uploads."""

    def test_like_toggles_per_session(self, client, make_post):
        post = make_post('Likeable')

        first = client.post(f'/api/posts/{post.id}/like')
        second = client.post(f'/api/posts/{post.id}/like')

        assert first.status_code == 200
        assert first.get_json() == {'likes': 1, 'liked': True}
        assert second.get_json() == {'likes': 0, 'liked': False}

    def test_like_draft_not_found(self, client, make_post):
        post = make_post('Hidden', status='draft')

        response = client.post(f'/api/posts/{post.id}/like')

        assert response.status_code == 404
        assert response.get_json() == {'error': 'Post not found'}

    def test_preview(self, admin_client):
        response = admin_client.post('/api/preview', json={'content': '## Title\n\n**bold**'})

        assert response.status_code == 200
        html = response.get_json()['html']
        assert '<h2' in html
        assert 'bold' in html

    def test_preview_requires_admin(self, client):
        response = client.post('/api/preview', json={'content': 'x'})

        assert response.status_code == 401

    def test_upload_image(self, app, admin_client):
        data = {'file': (io.BytesIO(b'\x89PNG\r\n\x1a\nfake'), 'photo.png', 'image/png')}

        response = admin_client.post('/api/uploads/image', data=data, content_type='multipart/form-data')

        assert response.status_code == 201
        url = response.get_json()['url']
        assert url.startswith('/uploads/')
        assert url.endswith('.png')
        assert os.path.exists(os.path.join(app.config['UPLOAD_FOLDER'], url.rsplit('/', 1)[1]))

        served = admin_client.get(url)
        assert served.status_code == 200
        assert served.data.startswith(b'\x89PNG')

    def test_upload_rejects_non_images(self, admin_client):
        data = {'file': (io.BytesIO(b'hello'), 'notes.txt', 'text/plain')}

        response = admin_client.post('/api/uploads/image', data=data, content_type='multipart/form-data')

        assert response.status_code == 400
        assert response.get_json() == {'error': 'Please upload an image file'}

    def test_upload_requires_file(self, admin_client):
        response = admin_client.post('/api/uploads/image', data={}, content_type='multipart/form-data')

        assert response.status_code == 400
        assert response.get_json() == {'error': 'No file uploaded'}

    def test_upload_too_large(self, app, admin_client):
        app.config['MAX_IMAGE_SIZE'] = 10
        data = {'file': (io.BytesIO(b'x' * 20), 'big.png', 'image/png')}

        response = admin_client.post('/api/uploads/image', data=data, content_type='multipart/form-data')

        assert response.status_code == 400
        assert 'less than' in response.get_json()['error']
