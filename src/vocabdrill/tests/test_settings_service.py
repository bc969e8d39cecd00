"""Tests for settings service."""
import pytest
from sqlalchemy.orm import Session

from vocabdrill.config import LearningSettings
from vocabdrill.models.models import Setting
from vocabdrill.services.settings_service import SettingsService


@pytest.fixture
def settings_service(db: Session, learning: LearningSettings) -> SettingsService:
    """Create a settings service instance."""
    return SettingsService(db, learning)


def test_defaults_without_stored_values(settings_service, learning):
    """Test that environment defaults are used when nothing is stored."""
    loaded = settings_service.load_learning_settings()
    assert loaded == learning
    assert loaded is not learning


def test_set_and_get_value(settings_service):
    """Test that values are stored as JSON."""
    settings_service.set_value("theme", {"dark": True})
    assert settings_service.get_value("theme") == {"dark": True}
    assert settings_service.get_value("missing", 5) == 5


def test_set_value_overwrites(settings_service):
    """Test that a key holds one value."""
    settings_service.set_value("pool_size", 10)
    settings_service.set_value("pool_size", 12)
    assert settings_service.get_all() == {"pool_size": 12}


def test_save_and_load_learning_settings(settings_service, learning):
    """Test that stored preferences override the defaults."""
    settings_service.save_learning_settings(pool_size=5, required_streak=3)

    loaded = settings_service.load_learning_settings()
    assert loaded.pool_size == 5
    assert loaded.required_streak == 3
    assert loaded.auto_add_nouns == learning.auto_add_nouns
    assert loaded.intro_delay == learning.intro_delay


def test_save_rejects_invalid_values(settings_service):
    """Test that invalid preferences are not stored."""
    with pytest.raises(ValueError):
        settings_service.save_learning_settings(pool_size=0)
    with pytest.raises(ValueError):
        settings_service.save_learning_settings(auto_add_verbs=-1)
    assert settings_service.get_all() == {}


def test_save_rejects_unknown_fields(settings_service):
    """Test that only stored learning fields can be saved."""
    with pytest.raises(ValueError):
        settings_service.save_learning_settings(intro_delay=1)


def test_invalid_stored_values_are_ignored(settings_service, db, learning):
    """Test that unreadable rows fall back to the defaults."""
    db.add(Setting(key="pool_size", value="not json"))
    db.add(Setting(key="required_streak", value='"many"'))
    db.commit()

    loaded = settings_service.load_learning_settings()
    assert loaded.pool_size == learning.pool_size
    assert loaded.required_streak == learning.required_streak


if __name__ == "__main__":
    pytest.main([__file__])
