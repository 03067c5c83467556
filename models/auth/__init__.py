"""
Authentication models: sign-in identities and the admins they back.
"""

from .user import User, generate_secure_token
from .admin import Admin

__all__ = ['User', 'Admin', 'generate_secure_token']
