"""Service for persisted learning preferences."""
import json
import logging
from dataclasses import replace
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabdrill.config import LearningSettings, settings
from vocabdrill.exceptions import RepositoryError
from vocabdrill.models.models import Setting

logger = logging.getLogger(__name__)

# Preferences the user can change at runtime; everything else comes from the environment
STORED_LEARNING_FIELDS = (
    "pool_size",
    "required_streak",
    "auto_add_verbs",
    "auto_add_adjectives",
    "auto_add_nouns",
)


class SettingsService:
    """Service for reading and writing user preferences."""

    def __init__(self, db: Session, defaults: Optional[LearningSettings] = None):
        """Initialize the service with a database session."""
        self.db = db
        self.defaults = defaults or settings.learning

    def get_value(self, key: str, default: Any = None) -> Any:
        """Get a stored preference, decoded from JSON."""
        try:
            row = self.db.query(Setting).filter(Setting.key == key).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError("get setting", str(e)) from e
        if row is None:
            return default
        try:
            return json.loads(row.value)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable value for setting {key!r}")
            return default

    def set_value(self, key: str, value: Any) -> None:
        """Store a preference as JSON."""
        try:
            self.db.merge(Setting(key=key, value=json.dumps(value)))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError("put setting", str(e)) from e

    def get_all(self) -> Dict[str, Any]:
        """Get every stored preference."""
        try:
            rows = self.db.query(Setting).order_by(Setting.key).all()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError("list settings", str(e)) from e
        values = {}
        for row in rows:
            try:
                values[row.key] = json.loads(row.value)
            except json.JSONDecodeError:
                logger.warning(f"Ignoring unreadable value for setting {row.key!r}")
        return values

    def load_learning_settings(self) -> LearningSettings:
        """Get the learning settings with stored preferences applied."""
        stored = self.get_all()
        overrides = {}
        for name in STORED_LEARNING_FIELDS:
            if name in stored:
                try:
                    overrides[name] = int(stored[name])
                except (TypeError, ValueError):
                    logger.warning(f"Ignoring invalid stored value for {name}: {stored[name]!r}")
        learning = replace(self.defaults, **overrides)
        try:
            learning.validate()
        except ValueError as e:
            logger.warning(f"Stored learning settings are invalid, using defaults: {e}")
            return replace(self.defaults)
        return learning

    def save_learning_settings(self, **values: int) -> LearningSettings:
        """Validate and store learning preferences.

        Raises:
            ValueError: If a field is unknown or the result is invalid.
        """
        unknown = set(values) - set(STORED_LEARNING_FIELDS)
        if unknown:
            raise ValueError(f"Unknown learning settings: {', '.join(sorted(unknown))}")

        learning = replace(self.load_learning_settings(), **values)
        learning.validate()

        for name in values:
            self.set_value(name, getattr(learning, name))
        logger.info(f"Saved learning settings: {values}")
        return learning
