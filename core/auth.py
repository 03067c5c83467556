"""
Admin session capability and route protection.

Every privileged page and API endpoint asks one question: who is the admin
behind this request, if any? ``AdminSession`` answers it through
``current_admin()``. The default implementation reads the admin id stored in
the signed Flask session cookie at sign-in and re-checks that the Admin row
still exists, so revoking an admin takes effect on the next request.

The application stores its ``AdminSession`` in ``app.extensions`` and the
``admin_required`` decorator consults it for every protected route: API
endpoints answer 401 with a JSON error, pages redirect to the sign-in form.
"""

import functools
from typing import Callable, Optional, TypeVar, cast

from flask import current_app, flash, g, jsonify, redirect, request, session, url_for

from models.auth import Admin

# Type variable for better typing in decorators
T = TypeVar('T', bound=Callable)

SESSION_KEY = 'admin_id'
EXTENSION_KEY = 'admin_session'


class AdminSession:
    """Capability returning the admin behind the current request."""

    def current_admin(self) -> Optional[Admin]:
        raise NotImplementedError

    def login(self, admin: Admin) -> None:
        raise NotImplementedError

    def logout(self) -> None:
        raise NotImplementedError


class FlaskSessionAdminSession(AdminSession):
    """``AdminSession`` backed by the signed Flask session cookie."""

    def current_admin(self) -> Optional[Admin]:
        if 'admin' in g:
            return g.admin

        admin = None
        admin_id = session.get(SESSION_KEY)
        if admin_id is not None:
            admin = Admin.get_by_id(admin_id)
            if admin is None:
                # Stale cookie for a removed admin
                session.pop(SESSION_KEY, None)

        g.admin = admin
        g.admin_id = admin.id if admin else None
        return admin

    def login(self, admin: Admin) -> None:
        session.clear()
        session[SESSION_KEY] = admin.id
        session.permanent = True
        g.admin = admin
        g.admin_id = admin.id

    def logout(self) -> None:
        session.pop(SESSION_KEY, None)
        g.pop('admin', None)
        g.pop('admin_id', None)


def get_admin_session() -> AdminSession:
    return current_app.extensions[EXTENSION_KEY]


def current_admin() -> Optional[Admin]:
    """Admin signed in for the current request, or None."""
    return get_admin_session().current_admin()


def _wants_json() -> bool:
    return request.path.startswith('/api/') or request.is_json


def admin_required(f: T) -> T:
    """
    Decorator that restricts route access to signed-in admins.

    Args:
        f: The route handler function to decorate

    Returns:
        Decorated function that enforces admin authentication
    """
    @functools.wraps(f)
    def decorated_function(*args, **kwargs):
        if current_admin() is None:
            current_app.logger.warning("Unauthenticated admin access attempt: %s %s from %s",
                                       request.method, request.path, request.remote_addr)
            if _wants_json():
                return jsonify({'error': 'Authentication required'}), 401
            flash('Please sign in to continue.', 'warning')
            return redirect(url_for('auth.login', next=request.path))
        return f(*args, **kwargs)
    return cast(T, decorated_function)


def anonymous_required(f: T) -> T:
    """Send signed-in admins straight to the dashboard instead of auth forms."""
    @functools.wraps(f)
    def decorated_function(*args, **kwargs):
        if current_admin() is not None:
            return redirect(url_for('admin.dashboard'))
        return f(*args, **kwargs)
    return cast(T, decorated_function)
