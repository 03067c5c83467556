"""
Rate limiting extension for the ments. blog platform.

This module provides two kinds of rate limiting:

- Request rate limiting for public endpoints through Flask-Limiter, applied
  with ``@limiter.limit(...)`` on routes such as newsletter subscription.
- An in-process token bucket used to pace outbound work, most notably the
  per-recipient email sends of a newsletter broadcast, so the email provider's
  throughput limit is respected without a fixed sleep after every message.
"""

import time
import logging
from typing import Callable, Optional

from flask import jsonify, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Configure module logger
logger = logging.getLogger(__name__)

# Initialize the Flask-Limiter extension; limits come from RATELIMIT_* config
limiter = Limiter(key_func=get_remote_address)


class TokenBucket:
    """
    Token bucket pacing a sequence of operations.

    Tokens refill continuously at ``rate`` per second up to ``capacity``.
    ``acquire`` consumes one token, blocking until one is available. The clock
    and sleep functions are injectable so pacing can be tested without
    waiting.

    Args:
        rate: Tokens added per second
        capacity: Maximum number of tokens the bucket holds (burst size)
        clock: Monotonic clock returning seconds
        sleep: Function used to wait for a token
    """

    def __init__(self, rate: float, capacity: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep) -> None:
        if rate <= 0:
            raise ValueError("Token bucket rate must be positive")
        if capacity < 1:
            raise ValueError("Token bucket capacity must be at least 1")

        self.rate = float(rate)
        self.capacity = float(capacity)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._last_refill = clock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._last_refill)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._last_refill = now

    @property
    def tokens(self) -> float:
        """Tokens currently available."""
        self._refill()
        return self._tokens

    def try_acquire(self) -> bool:
        """Consume a token if one is available without waiting."""
        self._refill()
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            return True
        return False

    def acquire(self) -> float:
        """
        Consume a token, waiting for the bucket to refill if needed.

        Returns:
            float: Seconds spent waiting
        """
        self._refill()
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            return 0.0

        wait = (1.0 - self._tokens) / self.rate
        self._sleep(wait)
        self._refill()
        self._tokens = max(0.0, self._tokens - 1.0)
        return wait


class UnlimitedBucket:
    """Drop-in bucket that never waits; used when throttling is disabled."""

    def try_acquire(self) -> bool:
        return True

    def acquire(self) -> float:
        return 0.0


def build_send_throttle(rate: Optional[float], enabled: bool = True):
    """
    Create the throttle used between outbound email sends.

    Args:
        rate: Sends per second, ``None`` or ``0`` for no limit
        enabled: Whether throttling is enabled at all

    Returns:
        TokenBucket or UnlimitedBucket
    """
    if not enabled or not rate:
        return UnlimitedBucket()
    return TokenBucket(rate=rate, capacity=1.0)


def init_app(app) -> None:
    """
    Initialize rate limiting extension with Flask application.

    Args:
        app: Flask application instance
    """
    limiter.init_app(app)

    @app.errorhandler(429)
    def handle_rate_limit_error(error):
        """Handle rate limit exceeded errors."""
        logger.warning("Rate limit exceeded: %s %s from %s",
                       request.method, request.path, request.remote_addr)

        from extensions.metrics import metrics
        metrics.increment('rate_limit.exceeded', labels={'endpoint': request.endpoint or 'unknown'})

        response = jsonify({
            'error': 'Too many requests',
            'message': str(error.description)
        })
        response.status_code = 429
        return response

    app.logger.info("Rate limiter initialized")
