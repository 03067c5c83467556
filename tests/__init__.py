"""
Test suite for the ments. blog platform.

Fixtures live in ``conftest.py``. Every test gets a fresh application bound to
an in-memory SQLite database and the in-memory email transport, so tests
never send real email or share state.
"""
