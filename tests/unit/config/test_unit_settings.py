# tests/unit/config/test_unit_settings.py
"""Tests for config/settings.py."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from lmsync.config.settings import ConfigurationError, Settings, load_settings


class TestDefaults:
    def test_defaults(self):
        s = Settings(_env_file=None)
        assert s.cache_backend == "directory"
        assert s.cache_root == Path("~/.lmsync/cache")
        assert s.sync_batch_size == 5
        assert s.sync_purge_on_cancel == "job"
        assert s.retry_max_retries == 3
        assert s.prefetch_delay_s == 0.2
        assert s.log_format == "text"


class TestEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("LMSYNC_SYNC_BATCH_SIZE", "8")
        monkeypatch.setenv("LMSYNC_CACHE_BACKEND", "memory")
        s = Settings(_env_file=None)
        assert s.sync_batch_size == 8
        assert s.cache_backend == "memory"

    def test_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("LMSYNC_SYNC_PURGE_ON_CANCEL=all\nUNRELATED=1\n", encoding="utf-8")
        s = Settings(_env_file=env)
        assert s.sync_purge_on_cancel == "all"

    def test_load_settings_overrides(self):
        s = load_settings(_env_file=None, sync_batch_size=2)
        assert s.sync_batch_size == 2


class TestValidation:
    def test_batch_size_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, sync_batch_size=0)

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, retry_max_retries=-1)

    def test_zero_retries_allowed(self):
        assert Settings(_env_file=None, retry_max_retries=0).retry_max_retries == 0

    def test_invalid_backend(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, cache_backend="s3")

    def test_invalid_purge_policy(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, sync_purge_on_cancel="some")

    def test_ttl_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, cache_backend="memory", cache_ttl_seconds=0)

    def test_redis_requires_url(self):
        with pytest.raises(ConfigurationError, match="CACHE_REDIS_URL"):
            Settings(_env_file=None, cache_backend="redis")

    def test_ttl_only_for_memory(self):
        with pytest.raises(ConfigurationError, match="memory backend"):
            Settings(_env_file=None, cache_backend="directory", cache_ttl_seconds=60)

    def test_redis_with_url(self):
        s = Settings(
            _env_file=None, cache_backend="redis", cache_redis_url="redis://localhost"
        )
        assert s.cache_redis_url == "redis://localhost"
