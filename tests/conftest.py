from __future__ import annotations

import pytest

from autoreply.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(BOT_ACCESS_TOKEN="test-token", BOT_EMAIL="bot@x.com")
