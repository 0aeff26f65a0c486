"""
Shared fixtures. No test here launches a browser unless marked ``browser``.
"""

import pytest

from html2png.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Settings with library defaults, ignoring any local .env file."""
    return Settings(_env_file=None)
