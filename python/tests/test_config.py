"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from pagetree.config import Environment, Settings, clear_settings_cache, get_settings


def _make_settings(**overrides) -> Settings:
    """Build a Settings instance with test defaults + overrides."""
    defaults = {
        "DATABASE_URL": "postgresql+psycopg://localhost/test",
        "PAGETREE_ENV": "test",
    }
    defaults.update(overrides)
    return Settings(**defaults)


class TestHierarchyDefaults:
    """Defaults and bounds of the hierarchy and listing settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("LOG_JSON", raising=False)
        s = _make_settings()
        assert s.tree_default_max_depth == 5
        assert s.tree_max_depth_limit == 20
        assert s.ancestor_walk_max_steps == 1000
        assert s.default_page_limit == 10
        assert s.max_page_limit == 100
        assert s.log_json is True

    def test_log_json_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("LOG_JSON", "false")
        assert _make_settings().log_json is False

    def test_overrides_accepted(self):
        s = _make_settings(TREE_DEFAULT_MAX_DEPTH=3, TREE_MAX_DEPTH_LIMIT=8)
        assert s.tree_default_max_depth == 3
        assert s.tree_max_depth_limit == 8

    def test_default_depth_above_limit_rejected(self):
        with pytest.raises(ValidationError, match="TREE_DEFAULT_MAX_DEPTH"):
            _make_settings(TREE_DEFAULT_MAX_DEPTH=10, TREE_MAX_DEPTH_LIMIT=4)

    def test_default_page_limit_above_max_rejected(self):
        with pytest.raises(ValidationError, match="DEFAULT_PAGE_LIMIT"):
            _make_settings(DEFAULT_PAGE_LIMIT=50, MAX_PAGE_LIMIT=20)

    def test_walk_ceiling_must_be_positive(self):
        with pytest.raises(ValidationError):
            _make_settings(ANCESTOR_WALK_MAX_STEPS=0)


class TestEnvironment:
    """Environment selection and settings caching."""

    def test_production_flag(self):
        assert _make_settings(PAGETREE_ENV="prod").is_production
        assert _make_settings(PAGETREE_ENV="staging").is_production
        assert not _make_settings(PAGETREE_ENV="local").is_production

    def test_unknown_environment_rejected(self):
        with pytest.raises(ValidationError):
            _make_settings(PAGETREE_ENV="qa")

    def test_settings_read_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAGETREE_ENV", "staging")
        monkeypatch.setenv("MAX_PAGE_LIMIT", "50")
        clear_settings_cache()

        settings = get_settings()

        assert settings.pagetree_env == Environment.STAGING
        assert settings.max_page_limit == 50
        assert get_settings() is settings
