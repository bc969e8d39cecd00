"""Tests for configuration settings."""
from datetime import timedelta

import pytest

from vocabdrill.config import (
    ACCENT_TOLERANCE_MAX_LEVEL,
    ARTICLE_ALTERNATIVES,
    DATA_DIR,
    EXPORTS_DIR,
    LEVEL_CHANGE_COOLDOWN,
    MAX_LEVEL,
    LearningSettings,
    MonitoringSettings,
    Settings,
    settings,
)


def test_base_directories_exist():
    """Test that all required directories exist."""
    assert DATA_DIR.exists()
    assert EXPORTS_DIR.exists()


def test_learning_rule_constants():
    """Test the fixed learning rules."""
    assert MAX_LEVEL == 100
    assert LEVEL_CHANGE_COOLDOWN == timedelta(hours=24)
    assert ACCENT_TOLERANCE_MAX_LEVEL == 50


def test_article_alternatives_are_symmetric():
    """Test that every article maps back to itself."""
    for article, alternative in ARTICLE_ALTERNATIVES.items():
        assert ARTICLE_ALTERNATIVES[alternative] == article


def test_learning_defaults():
    """Test default learning settings."""
    learning = LearningSettings()
    assert learning.pool_size == 20
    assert learning.required_streak == 2
    assert learning.auto_add_verbs == 1
    assert learning.auto_add_adjectives == 2
    assert learning.auto_add_nouns == 4
    assert learning.intro_delay == 4.0
    assert learning.feedback_delay_correct == 1.5
    assert learning.feedback_delay_wrong == 2.5


def test_database_url_from_test_environment():
    """Test that the test database is used."""
    assert settings.database.url.startswith("sqlite:///")
    assert "test" in settings.database.url


@pytest.mark.parametrize("overrides", [
    {"pool_size": 0},
    {"required_streak": 0},
    {"auto_add_nouns": -1},
    {"feedback_delay_wrong": -0.5},
])
def test_learning_validation(overrides):
    """Test that invalid learning settings are rejected."""
    with pytest.raises(ValueError):
        LearningSettings(**overrides).validate()


def test_settings_validation():
    """Test that a negative metrics port is rejected."""
    with pytest.raises(ValueError):
        Settings(monitoring=MonitoringSettings(port=-1)).validate()
    Settings().validate()


if __name__ == "__main__":
    pytest.main([__file__])
