# tests/unit/config/test_settings.py — v1
"""Tests for config/settings.py — typed Settings and validation rules."""

from __future__ import annotations

import pytest

from recipeflow.config.settings import ConfigurationError, Settings, load_settings


class TestSettingsDefaults:
    def test_default_store(self):
        s = Settings(_env_file=None)
        assert s.store_backend == "json"
        assert s.store_redis_url == ""

    def test_default_object_storage(self):
        s = Settings(_env_file=None)
        assert s.object_storage == "local"

    def test_default_execution(self):
        s = Settings(_env_file=None)
        assert s.max_parallel_nodes == 4
        assert s.default_node_timeout_ms == 120_000
        assert s.recipe_allow_orphan_nodes is True

    def test_default_logging(self):
        s = Settings(_env_file=None)
        assert s.log_format == "json"
        assert s.log_file is None


class TestSettingsValidation:
    def test_redis_without_url(self):
        with pytest.raises(ConfigurationError, match="STORE_REDIS_URL"):
            Settings(_env_file=None, store_backend="redis")

    def test_s3_without_bucket(self):
        with pytest.raises(ConfigurationError, match="S3_BUCKET"):
            Settings(_env_file=None, object_storage="s3")

    def test_parallel_nodes_below_one(self):
        with pytest.raises(ConfigurationError, match="MAX_PARALLEL_NODES"):
            Settings(_env_file=None, max_parallel_nodes=0)

    def test_non_positive_timeout(self):
        with pytest.raises(ValueError, match="must be > 0"):
            Settings(_env_file=None, default_node_timeout_ms=0)

    def test_valid_redis(self):
        s = Settings(
            _env_file=None,
            store_backend="redis",
            store_redis_url="redis://localhost:6379/0",
        )
        assert s.store_backend == "redis"


class TestLoadSettings:
    def test_with_overrides(self):
        s = load_settings(_env_file=None, log_level="DEBUG", max_parallel_nodes=2)
        assert s.log_level == "DEBUG"
        assert s.max_parallel_nodes == 2

    def test_env_variables(self, monkeypatch):
        monkeypatch.setenv("STORE_BACKEND", "sqlite")
        monkeypatch.setenv("MAX_PARALLEL_NODES", "8")
        s = load_settings(_env_file=None)
        assert s.store_backend == "sqlite"
        assert s.max_parallel_nodes == 8
