"""Unit tests for configuration validation"""
import pytest
from unittest.mock import patch

from learnquest import config
from learnquest.exceptions import ConfigurationError


def test_defaults_are_valid():
    with patch.object(config, "STORAGE_BACKEND", "memory"):
        config.validate_config()


def test_default_values():
    assert config.STORE_KEY_PREFIX
    assert config.PREDICATE_TIMEOUT_SECONDS > 0
    assert config.LEADERBOARD_DEFAULT_LIMIT > 0


def test_unknown_backend_rejected():
    with patch.object(config, "STORAGE_BACKEND", "sqlite"):
        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_config()

    assert exc_info.value.config_key == "STORAGE_BACKEND"


def test_redis_backend_needs_url():
    with patch.object(config, "STORAGE_BACKEND", "redis"), patch.object(config, "REDIS_URL", ""):
        with pytest.raises(ConfigurationError):
            config.validate_config()


def test_predicate_timeout_must_be_positive():
    with patch.object(config, "STORAGE_BACKEND", "memory"), \
         patch.object(config, "PREDICATE_TIMEOUT_SECONDS", 0):
        with pytest.raises(ConfigurationError):
            config.validate_config()


def test_leaderboard_limit_must_be_positive():
    with patch.object(config, "STORAGE_BACKEND", "memory"), \
         patch.object(config, "LEADERBOARD_DEFAULT_LIMIT", -1):
        with pytest.raises(ConfigurationError):
            config.validate_config()
