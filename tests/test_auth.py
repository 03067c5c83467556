"""
Tests for admin sign-up, email verification and sign-in.
"""

from urllib.parse import parse_qs, urlparse

import pytest

from core.auth import SESSION_KEY, current_admin
from extensions import db
from models import Admin, User
from services.auth_service import AuthService
from services.email_service import MemoryTransport, set_transport

from .conftest import ADMIN_EMAIL, ADMIN_PASSWORD


def token_from(message) -> str:
    """Pull the verification token out of a verification email."""
    for line in message.text.splitlines():
        if '/admin/auth/callback?token=' in line:
            url = line[line.index('http'):].strip()
            return parse_qs(urlparse(url).query)['token'][0]
    raise AssertionError('verification link not found')


class TestSignup:
    """Tests for domain-restricted sign-up."""

    def test_rejects_other_domains(self, app, transport):
        result = AuthService.signup('someone@gmail.com', 'long-enough')

        assert result['success'] is False
        assert result['error'] == 'Only @ments.app email addresses are allowed for admin signup.'
        assert transport.outbox == []
        assert User.query.count() == 0

    def test_rejects_short_password(self, app, transport):
        result = AuthService.signup('new@ments.app', '123')

        assert result['success'] is False
        assert 'at least 6 characters' in result['error']

    def test_sends_verification_email(self, app, transport):
        result = AuthService.signup('New@Ments.app', 'long-enough')

        assert result['success'] is True
        assert result['message'] == "We've sent a verification link to new@ments.app"

        user = User.find_by_email('new@ments.app')
        assert user.email_verified is False
        assert user.admin is None

        message, = transport.outbox
        assert message.to == 'new@ments.app'
        assert token_from(message) == user.verification_token
        assert 'https://blog.example.com/admin/auth/callback?token=' in message.html

    def test_signup_again_before_verifying(self, app, transport):
        AuthService.signup('new@ments.app', 'first-password')
        result = AuthService.signup('new@ments.app', 'second-password')

        assert result['success'] is True
        assert User.query.count() == 1
        assert len(transport.outbox) == 2
        assert User.find_by_email('new@ments.app').check_password('second-password')

    def test_existing_verified_account(self, app, transport, admin):
        result = AuthService.signup(ADMIN_EMAIL, 'another-password')

        assert result['success'] is False
        assert 'already exists' in result['error']

    def test_delivery_failure(self, app):
        set_transport(app, MemoryTransport(fail_for=['new@ments.app']))

        result = AuthService.signup('new@ments.app', 'long-enough')

        assert result['success'] is False
        assert result['error'] == 'Could not send the verification email. Please try again.'


class TestVerify:
    """Tests for the verification link."""

    def test_grants_admin_access(self, app, transport):
        AuthService.signup('new@ments.app', 'long-enough')
        token = token_from(transport.outbox[0])

        success, admin, message = AuthService.verify(token)

        assert success is True
        assert message == 'Email verified successfully! You can now sign in.'
        assert admin.email == 'new@ments.app'
        user = User.find_by_email('new@ments.app')
        assert user.email_verified is True
        assert user.verification_token is None

    def test_token_is_single_use(self, app, transport):
        AuthService.signup('new@ments.app', 'long-enough')
        token = token_from(transport.outbox[0])
        AuthService.verify(token)

        success, admin, _ = AuthService.verify(token)

        assert success is False
        assert admin is None
        assert Admin.query.count() == 1

    @pytest.mark.parametrize('token', [None, '', 'not-a-token'])
    def test_invalid_token(self, app, token):
        success, admin, message = AuthService.verify(token)

        assert success is False
        assert admin is None
        assert message.startswith('Verification failed.')

    def test_domain_checked_again(self, app, transport):
        AuthService.signup('new@ments.app', 'long-enough')
        token = token_from(transport.outbox[0])
        app.config['ADMIN_EMAIL_DOMAIN'] = 'other.org'

        success, admin, message = AuthService.verify(token)

        assert success is False
        assert message == 'Only @other.org emails are allowed for admin access.'
        assert Admin.query.count() == 0


class TestLogin:
    """Tests for password sign-in."""

    def test_wrong_password(self, app, admin):
        with app.test_request_context():
            result = AuthService.login(ADMIN_EMAIL, 'wrong')

            assert result == {'success': False, 'error': 'Invalid email or password'}
            assert current_admin() is None

    def test_unknown_email_same_error(self, app):
        with app.test_request_context():
            result = AuthService.login('ghost@ments.app', 'whatever')

        assert result['error'] == 'Invalid email or password'

    def test_unverified_user(self, app, transport):
        AuthService.signup('new@ments.app', 'long-enough')

        with app.test_request_context():
            result = AuthService.login('new@ments.app', 'long-enough')

        assert result['error'] == 'Please verify your email address before signing in.'

    def test_verified_user_without_admin(self, app):
        user = User(email='plain@ments.app')
        user.set_password('long-enough')
        user.mark_verified()
        db.session.add(user)
        db.session.commit()

        with app.test_request_context():
            result = AuthService.login('plain@ments.app', 'long-enough')

        assert result['error'].startswith("You don't have admin access.")

    def test_first_login_flag(self, app, admin):
        with app.test_request_context() as ctx:
            first = AuthService.login(ADMIN_EMAIL, ADMIN_PASSWORD)

            assert first['success'] is True
            assert first['first_login'] is True
            assert ctx.session[SESSION_KEY] == admin.id
            assert current_admin() == admin

        with app.test_request_context():
            second = AuthService.login(ADMIN_EMAIL, ADMIN_PASSWORD)

        assert second['first_login'] is False
        assert admin.last_login_at is not None

    def test_logout(self, app, admin):
        with app.test_request_context() as ctx:
            AuthService.login(ADMIN_EMAIL, ADMIN_PASSWORD)
            AuthService.logout()

            assert SESSION_KEY not in ctx.session
            assert current_admin() is None


class TestCreateAdmin:
    """Tests for creating admins without the email round trip."""

    def test_creates_verified_admin(self, app):
        admin = AuthService.create_admin('Boss@ments.app', 'long-enough')

        assert admin.email == 'boss@ments.app'
        assert admin.user.email_verified is True
        assert admin.user.check_password('long-enough')

    def test_rejects_other_domain(self, app):
        with pytest.raises(ValueError) as exc_info:
            AuthService.create_admin('boss@example.com', 'long-enough')

        assert str(exc_info.value) == 'Admin email must end with @ments.app'

    def test_rejects_existing_admin(self, app, admin):
        with pytest.raises(ValueError) as exc_info:
            AuthService.create_admin(ADMIN_EMAIL, 'long-enough')

        assert 'already an admin' in str(exc_info.value)
