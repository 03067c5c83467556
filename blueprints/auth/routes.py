"""
Authentication routes for the admin back office.

Routes:
    /admin/login: Admin sign-in
    /admin/signup: Admin sign-up, sends the verification email
    /admin/auth/callback: Verification link target
    /admin/logout: Session termination
"""

from typing import Optional, Union
from urllib.parse import urlparse

from flask import current_app, flash, redirect, render_template, request, url_for
from werkzeug.wrappers import Response

from core.auth import anonymous_required
from extensions import limiter
from services.auth_service import AuthService

from . import auth_bp
from .forms import LoginForm, SignupForm


def is_safe_redirect_url(url: Optional[str]) -> bool:
    """
    Check if a URL is safe to redirect to after sign-in.

    Only paths on this site are accepted, which prevents open redirects
    through the ``next`` parameter.
    """
    if not url:
        return False
    parsed = urlparse(url)
    return not parsed.scheme and not parsed.netloc and url.startswith('/') and not url.startswith('//')


@auth_bp.route('/login', methods=['GET', 'POST'])
@anonymous_required
@limiter.limit("10/minute", methods=['POST'])
def login() -> Union[str, Response]:
    """
    Handle admin sign-in.

    Returns:
        GET: Rendered login template with form
        POST (success): Redirect to ``next`` or the dashboard
        POST (failure): Rendered login template with the error
    """
    form = LoginForm()

    if form.validate_on_submit():
        result = AuthService.login(form.email.data, form.password.data)

        if result['success']:
            if result['first_login']:
                flash("🎉 Congratulations! Welcome to your admin dashboard.", 'success')
            else:
                flash("Welcome back!", 'success')

            next_page = request.args.get('next')
            if is_safe_redirect_url(next_page):
                return redirect(next_page)
            return redirect(url_for('admin.dashboard'))

        flash(result['error'], 'danger')

    return render_template('auth/login.html', form=form)


@auth_bp.route('/signup', methods=['GET', 'POST'])
@anonymous_required
@limiter.limit("5/minute", methods=['POST'])
def signup() -> Union[str, Response]:
    """
    Handle admin sign-up.

    A successful sign-up renders a "check your email" notice; the account
    becomes usable once the verification link is followed.
    """
    form = SignupForm()
    domain = AuthService.allowed_domain()

    if form.validate_on_submit():
        result = AuthService.signup(form.email.data, form.password.data)
        if result['success']:
            return render_template('auth/signup.html', form=form, domain=domain,
                                   sent_to=form.email.data, message=result['message'])
        flash(result['error'], 'danger')

    return render_template('auth/signup.html', form=form, domain=domain, sent_to=None)


@auth_bp.route('/auth/callback')
def verify_callback() -> str:
    """Complete sign-up from the emailed verification link."""
    success, admin, message = AuthService.verify(request.args.get('token'))
    if not success:
        current_app.logger.info("Admin verification failed: %s", message)
    status = 200 if success else 400
    return render_template('auth/callback.html', success=success, message=message), status


@auth_bp.route('/logout', methods=['GET', 'POST'])
def logout() -> Response:
    """
    Sign the admin out and return to the sign-in page.

    Works even if nobody is signed in.
    """
    AuthService.logout()
    flash("You have been signed out.", 'info')
    return redirect(url_for('auth.login'))
