"""
Communication models: newsletter subscribers and broadcast send logs.
"""

from .subscriber import Subscriber
from .newsletter import NewsletterLog

__all__ = ['Subscriber', 'NewsletterLog']
