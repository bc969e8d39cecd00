"""Test configuration."""
import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)
os.environ.setdefault("DATABASE_URL", "sqlite:///test_vocabdrill.db")
os.environ.setdefault("OPENAI_API_KEY", "")

# Import after environment setup
from faker import Faker
from sqlalchemy.orm import Session

from vocabdrill.config import LearningSettings, ensure_directories
from vocabdrill.models.base import SessionLocal, engine, reset_db
from vocabdrill.models.models import ItemKind, LearnableItem
from vocabdrill.services.item_repository import ItemRepository

fake = Faker()


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment and an empty database before each test."""
    ensure_directories()
    reset_db()

    yield

    engine.dispose()


@pytest.fixture
def db():
    """Create a fresh database session for each test."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def repository(db: Session) -> ItemRepository:
    """Create an item repository."""
    return ItemRepository(db)


@pytest.fixture
def learning() -> LearningSettings:
    """Learning settings with short delays for timer tests."""
    return LearningSettings(
        pool_size=20,
        required_streak=2,
        auto_add_verbs=1,
        auto_add_adjectives=2,
        auto_add_nouns=4,
        intro_delay=0.05,
        feedback_delay_correct=0.02,
        feedback_delay_wrong=0.03,
    )


@pytest.fixture
def make_item(db: Session):
    """Factory storing an item; by default an eligible noun."""
    def _make_item(**overrides) -> LearnableItem:
        fields = {
            "kind": ItemKind.NOUN.value,
            "source_text": fake.unique.word(),
            "target_text": "perro",
            "article": "el",
            "example_sentence": "El perro come en casa.",
            "example_translation": "Pies je w domu.",
            "in_learning": True,
            "level": 0,
        }
        fields.update(overrides)
        item = LearnableItem(**fields)
        db.add(item)
        db.commit()
        return item

    return _make_item


@pytest.fixture
def make_verb(db: Session):
    """Factory storing a verb with its present-tense forms."""
    def _make_verb(forms=("hablo", "hablas", "habla"), in_learning: bool = False, level: int = 0):
        verb = LearnableItem(
            kind=ItemKind.VERB.value,
            source_text=fake.unique.word(),
            target_text="hablar",
            in_learning=in_learning,
        )
        db.add(verb)
        for person, form in enumerate(forms, start=1):
            db.add(LearnableItem(
                kind=ItemKind.VERB_FORM.value,
                verb=verb,
                source_text=f"mówić {person}",
                target_text=form,
                example_sentence=f"Yo {form} con mi madre.",
                example_translation="Rozmawiam z mamą.",
                tense="present",
                person=person,
                in_learning=in_learning,
                level=level,
            ))
        db.commit()
        return verb

    return _make_verb
