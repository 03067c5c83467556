"""
Admin authentication pages.

Sign-up is limited to addresses in the configured admin email domain and is
completed through an emailed verification link.
"""

from flask import Blueprint

auth_bp = Blueprint('auth', __name__)

from . import routes  # noqa: E402,F401
