"""
Authentication service for the admin back office.

This service handles the admin account lifecycle used by the auth pages and
the CLI:

- Sign-up restricted to a single email domain (``ADMIN_EMAIL_DOMAIN``), which
  creates an unverified user and emails a verification link
- Email verification, which re-checks the domain and grants admin access
- Sign-in with password, which requires an ``Admin`` row and flags the first
  sign-in so the dashboard can greet the new admin
- Sign-out through the application's ``AdminSession``

Passwords are hashed with werkzeug. Sign-in never reveals whether an address
exists; unknown addresses and wrong passwords produce the same error.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from core.auth import get_admin_session
from core.utils import is_valid_email, normalize_email
from extensions import db, metrics
from models.auth import Admin, User
from services.email_service import send_template_email

logger = logging.getLogger(__name__)


class AuthService:
    """
    Service class to handle admin authentication operations.

    Used by the auth blueprint and the ``flask admin`` CLI so sign-up,
    verification and sign-in rules live in one place.
    """

    @staticmethod
    def allowed_domain() -> str:
        return current_app.config.get('ADMIN_EMAIL_DOMAIN', 'ments.app').lstrip('@').lower()

    @staticmethod
    def is_allowed_email(email: Optional[str]) -> bool:
        """Whether ``email`` belongs to the admin email domain."""
        email = normalize_email(email)
        return is_valid_email(email) and email.endswith('@' + AuthService.allowed_domain())

    @staticmethod
    def verification_url(token: str) -> str:
        return f"{current_app.config['SITE_URL'].rstrip('/')}/admin/auth/callback?token={token}"

    @staticmethod
    def signup(email: str, password: str) -> Dict[str, Any]:
        """
        Register an admin candidate and send the verification email.

        Args:
            email: Address in the admin domain
            password: Plain-text password

        Returns:
            dict: Result with success flag and message or error
        """
        email = normalize_email(email)
        domain = AuthService.allowed_domain()

        if not AuthService.is_allowed_email(email):
            current_app.logger.info("Admin signup rejected for %s: outside @%s", email, domain)
            metrics.increment('auth.signup_rejected', labels={'reason': 'domain'})
            return {'success': False, 'error': f"Only @{domain} email addresses are allowed for admin signup."}

        min_length = current_app.config.get('PASSWORD_MIN_LENGTH', 6)
        if not password or len(password) < min_length:
            return {'success': False, 'error': f"Password must be at least {min_length} characters"}

        user = User.find_by_email(email)
        if user is not None and user.email_verified:
            return {'success': False, 'error': 'An account with this email already exists. Please sign in.'}

        try:
            if user is None:
                user = User(email=email)
                db.session.add(user)
            user.set_password(password)
            token = user.issue_verification_token()
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return {'success': False, 'error': 'An account with this email already exists. Please sign in.'}
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Database error during admin signup: %s", str(e))
            return {'success': False, 'error': 'Could not create account. Please try again.'}

        sent = send_template_email(
            to=email,
            subject=f"Verify your {current_app.config.get('SITE_NAME', 'ments.')} admin account",
            template_name='verify_admin',
            verify_url=AuthService.verification_url(token),
        )
        if not sent:
            return {'success': False, 'error': 'Could not send the verification email. Please try again.'}

        metrics.increment('auth.signup')
        current_app.logger.info("Admin signup pending verification: %s", email)
        return {'success': True, 'message': f"We've sent a verification link to {email}"}

    @staticmethod
    def verify(token: Optional[str]) -> Tuple[bool, Optional[Admin], str]:
        """
        Complete sign-up from the verification link.

        Returns:
            Tuple of success flag, the admin (when granted) and a message
        """
        if not token:
            return False, None, 'Verification failed. Please try again or request a new link.'

        user = User.query.filter_by(verification_token=token).first()
        if user is None:
            metrics.increment('auth.verify_failed')
            return False, None, 'Verification failed. Please try again or request a new link.'

        if not AuthService.is_allowed_email(user.email):
            return False, None, f"Only @{AuthService.allowed_domain()} emails are allowed for admin access."

        try:
            user.mark_verified()
            admin = user.admin
            if admin is None:
                admin = Admin(user=user, email=user.email, role=Admin.ROLE_ADMIN)
                db.session.add(admin)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Failed to set up admin access for %s: %s", user.email, str(e))
            return False, None, 'Failed to set up admin access. Please contact support.'

        metrics.increment('auth.verified')
        current_app.logger.info("Admin access granted: %s", user.email)
        return True, admin, 'Email verified successfully! You can now sign in.'

    @staticmethod
    def authenticate(email: str, password: str) -> Tuple[bool, Optional[Admin], str]:
        """
        Check credentials and admin access without touching the session.

        Returns:
            Tuple of success flag, the admin and an error message
        """
        email = normalize_email(email)
        user = User.find_by_email(email)

        if user is None or not user.check_password(password):
            current_app.logger.info("Failed admin sign-in for %s", email)
            metrics.increment('auth.login_failed', labels={'reason': 'credentials'})
            return False, None, 'Invalid email or password'

        if not user.email_verified:
            metrics.increment('auth.login_failed', labels={'reason': 'unverified'})
            return False, None, 'Please verify your email address before signing in.'

        if user.admin is None:
            metrics.increment('auth.login_failed', labels={'reason': 'not_admin'})
            return False, None, (f"You don't have admin access. "
                                 f"Please sign up with a @{AuthService.allowed_domain()} email.")

        return True, user.admin, ''

    @staticmethod
    def login(email: str, password: str) -> Dict[str, Any]:
        """
        Sign an admin in.

        Returns:
            dict: ``success``, ``admin`` and ``first_login`` on success,
            ``error`` otherwise
        """
        success, admin, error = AuthService.authenticate(email, password)
        if not success:
            return {'success': False, 'error': error}

        first_login = admin.is_first_login
        try:
            admin.record_login()
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            current_app.logger.error("Failed to record sign-in for %s: %s", admin.email, str(e))

        get_admin_session().login(admin)
        metrics.increment('auth.login')
        current_app.logger.info("Admin signed in: %s", admin.email)
        return {'success': True, 'admin': admin, 'first_login': first_login}

    @staticmethod
    def logout() -> None:
        get_admin_session().logout()
        metrics.increment('auth.logout')

    @staticmethod
    def create_admin(email: str, password: str) -> Admin:
        """
        Create a verified admin directly, bypassing the email link.

        Raises:
            ValueError: If the email is outside the admin domain or already an admin
        """
        email = normalize_email(email)
        if not AuthService.is_allowed_email(email):
            raise ValueError(f"Admin email must end with @{AuthService.allowed_domain()}")

        user = User.find_by_email(email)
        if user is not None and user.admin is not None:
            raise ValueError(f"{email} is already an admin")

        try:
            if user is None:
                user = User(email=email)
                db.session.add(user)
            user.set_password(password)
            user.mark_verified()
            admin = Admin(user=user, email=email, role=Admin.ROLE_ADMIN)
            db.session.add(admin)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

        current_app.logger.info("Admin created: %s", email)
        return admin
