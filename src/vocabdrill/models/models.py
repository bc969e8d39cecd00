"""Database models for the vocabulary store."""
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship, validates

from vocabdrill.config import MAX_LEVEL, PERSONS
from vocabdrill.exceptions import InvalidItemError
from vocabdrill.models.base import Base, TimestampMixin


class ItemKind(str, Enum):
    """Kinds of learnable items."""
    NOUN = "noun"
    VERB = "verb"
    VERB_FORM = "verbForm"
    ADJECTIVE = "adjective"


class Tense(str, Enum):
    """Tenses of conjugated verb forms."""
    PRESENT = "present"
    PAST = "past"
    FUTURE = "future"


def generate_id() -> str:
    """Generate an opaque item identifier."""
    return str(uuid.uuid4())


class LearnableItem(Base, TimestampMixin):
    """A word, adjective, verb or conjugated verb form."""

    __tablename__ = "items"

    id = Column(String(36), primary_key=True, default=generate_id)
    kind = Column(String, nullable=False, index=True)
    verb_id = Column(
        String(36),
        ForeignKey("items.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    source_text = Column(String, nullable=False)  # prompt language, e.g. Polish
    target_text = Column(String, nullable=False)  # translation or conjugated form
    article = Column(String, nullable=True)  # nouns only
    example_sentence = Column(Text, nullable=True)
    example_translation = Column(Text, nullable=True)
    level = Column(Integer, nullable=False, default=0)  # 0-100
    last_level_change_at = Column(DateTime(timezone=True), nullable=True)
    in_learning = Column(Boolean, nullable=False, default=False)
    tense = Column(String, nullable=True)  # verbForm only
    person = Column(Integer, nullable=True)  # verbForm only, 1-6

    # Relationships
    verb = relationship("LearnableItem", remote_side=[id], back_populates="forms")
    forms = relationship(
        "LearnableItem",
        back_populates="verb",
        cascade="all, delete-orphan",
    )

    def __init__(self, **kwargs: Any):
        kwargs.setdefault("id", generate_id())
        kwargs.setdefault("level", 0)
        kwargs.setdefault("in_learning", False)
        super().__init__(**kwargs)

    @validates("kind")
    def _validate_kind(self, key: str, value: str) -> str:
        try:
            return ItemKind(value).value
        except ValueError as e:
            raise InvalidItemError(f"Unknown item kind: {value!r}") from e

    @validates("tense")
    def _validate_tense(self, key: str, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        try:
            return Tense(value).value
        except ValueError as e:
            raise InvalidItemError(f"Unknown tense: {value!r}") from e

    @validates("person")
    def _validate_person(self, key: str, value: Optional[int]) -> Optional[int]:
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= len(PERSONS):
            raise InvalidItemError(f"Person must be between 1 and {len(PERSONS)}, got {value!r}")
        return value

    @validates("level")
    def _validate_level(self, key: str, value: int) -> int:
        if value is None or not 0 <= value <= MAX_LEVEL:
            raise InvalidItemError(f"Level must be between 0 and {MAX_LEVEL}, got {value!r}")
        return value

    def __repr__(self) -> str:
        return f"<LearnableItem {self.id} {self.kind} {self.source_text!r} level={self.level}>"

    @property
    def is_verb_form(self) -> bool:
        return self.kind == ItemKind.VERB_FORM

    @property
    def has_example(self) -> bool:
        return bool(self.example_sentence and self.example_sentence.strip())

    @property
    def is_eligible(self) -> bool:
        """Whether the item may be drawn into a practice session."""
        return bool(self.in_learning) and self.has_example

    @property
    def display_translation(self) -> str:
        """Translation shown to the learner, with the article for nouns."""
        if self.kind == ItemKind.NOUN and self.article:
            return f"{self.article} {self.target_text}"
        return self.target_text

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the item record."""
        return {
            "id": self.id,
            "kind": ItemKind(self.kind).value,
            "verb_id": self.verb_id,
            "source_text": self.source_text,
            "target_text": self.target_text,
            "article": self.article,
            "example_sentence": self.example_sentence,
            "example_translation": self.example_translation,
            "level": self.level,
            "last_level_change_at": _isoformat(self.last_level_change_at),
            "in_learning": bool(self.in_learning),
            "tense": self.tense,
            "person": self.person,
            "created_at": _isoformat(self.created_at),
        }


class Setting(Base, TimestampMixin):
    """Persisted user preference."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)  # JSON-encoded


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None
