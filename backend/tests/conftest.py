"""Shared pytest fixtures for the tutor backend."""

from __future__ import annotations

import pytest

from tutor.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        app_env="test",
        openai_api_key="test-openai-key",
        gemini_api_key="test-gemini-key",
        redis_url="in-memory",
        database_url="sqlite+aiosqlite:///:memory:",
        provider_timeout_seconds=0.5,
        cache_timeout_seconds=0.5,
        read_retries=1,
    )
