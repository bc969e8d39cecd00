"""Service for managing items in the vocabulary store."""
import logging
from datetime import UTC, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from vocabdrill import monitoring
from vocabdrill.config import MAX_LEVEL
from vocabdrill.exceptions import ContentGenerationError, InvalidItemError, ItemNotFoundError
from vocabdrill.models.models import ItemKind, LearnableItem
from vocabdrill.services.content_generator import ContentGenerator, GeneratedWord
from vocabdrill.services.item_repository import ItemRepository
from vocabdrill.services.replenish_service import count_in_learning

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {
    "source_text",
    "target_text",
    "article",
    "example_sentence",
    "example_translation",
    "level",
    "in_learning",
}


class ItemService:
    """Service for managing words and their verb forms."""

    def __init__(self, db: Session, content_generator: Optional[ContentGenerator] = None):
        """Initialize the service with a database session."""
        self.db = db
        self.repository = ItemRepository(db)
        self.content_generator = content_generator or ContentGenerator()

    def get_item(self, item_id: str) -> Optional[LearnableItem]:
        """Get an item by its ID."""
        return self.repository.get(item_id)

    def add_word(self, text: str, kind: ItemKind) -> LearnableItem:
        """Create a new word and generate its content.

        An existing word with the same text and kind is returned unchanged.
        For verbs the returned item is the verb; its conjugated forms are
        stored as separate items.
        """
        text = text.strip()
        kind = ItemKind(kind)
        if not text:
            raise InvalidItemError("Word text cannot be empty")
        if kind == ItemKind.VERB_FORM:
            raise InvalidItemError("Verb forms cannot be added on their own")

        existing = self.repository.find_by_source_text(text, kind)
        if existing:
            logger.info(f"Word {text!r} ({kind.value}) already exists")
            return existing

        generated = self.content_generator.generate_word(text, kind)
        items = self.build_items(generated)
        self.repository.add_all(items)
        monitoring.items_added.labels(kind=kind.value).inc()
        logger.info(f"Added {kind.value} {text!r} ({len(items)} items)")
        return self.repository.get(items[0].id)

    @staticmethod
    def build_items(generated: GeneratedWord) -> List[LearnableItem]:
        """Turn generated content into item records, the word first."""
        word = LearnableItem(
            kind=generated.kind.value,
            source_text=generated.source_text,
            target_text=generated.translation,
            article=generated.article,
            example_sentence=generated.example or None,
            example_translation=generated.example_translation or None,
        )
        items = [word]
        for form in generated.forms:
            items.append(LearnableItem(
                kind=ItemKind.VERB_FORM.value,
                verb_id=word.id,
                verb=word,
                source_text=form.translation or generated.source_text,
                target_text=form.form,
                example_sentence=form.example or None,
                example_translation=form.example_translation or None,
                tense=form.tense,
                person=form.person,
            ))
        return items

    def add_words(self, rows: Iterable[Tuple[str, ItemKind]]) -> Tuple[List[LearnableItem], List[Tuple[str, str]]]:
        """Create multiple words, collecting failures instead of stopping."""
        created = []
        failed = []
        for text, kind in rows:
            try:
                created.append(self.add_word(text, kind))
            except (ContentGenerationError, InvalidItemError) as e:
                logger.warning(f"Could not add word {text!r}: {e}")
                failed.append((text, str(e)))
        return created, failed

    def update_item(self, item_id: str, **kwargs: Any) -> Optional[LearnableItem]:
        """Update an item's attributes."""
        item = self.repository.get(item_id)
        if not item:
            return None

        unknown = set(kwargs) - EDITABLE_FIELDS
        if unknown:
            raise InvalidItemError(f"Fields cannot be edited: {', '.join(sorted(unknown))}")

        level = kwargs.get("level", item.level)
        if not isinstance(level, int) or not 0 <= level <= MAX_LEVEL:
            raise InvalidItemError(f"Level must be between 0 and {MAX_LEVEL}, got {level!r}")

        level_changed = level != item.level
        try:
            for key, value in kwargs.items():
                setattr(item, key, value)
        except InvalidItemError:
            # Nothing of a rejected edit may reach a later commit
            self.db.rollback()
            raise
        if level_changed:
            item.last_level_change_at = datetime.now(UTC)

        return self.repository.put(item)

    def set_in_learning(self, item_id: str, in_learning: bool) -> LearnableItem:
        """Switch learning on or off; for a verb this applies to all its forms."""
        item = self.repository.get(item_id)
        if not item:
            raise ItemNotFoundError(item_id)

        group = [item]
        if item.kind == ItemKind.VERB:
            group.extend(self.repository.list_verb_forms(item.id))
        for member in group:
            member.in_learning = in_learning
        self.repository.put_all(group)
        return item

    def delete_item(self, item_id: str) -> bool:
        """Delete an item; deleting a verb deletes its forms too."""
        item = self.repository.get(item_id)
        if not item:
            return False
        if item.kind == ItemKind.VERB:
            return self.repository.delete_cascade(item_id) > 0
        return self.repository.delete(item_id)

    def search_items(self, query: str = "") -> List[LearnableItem]:
        """Find items by source or target text, least mastered first."""
        query = query.strip().lower()
        items = [
            item for item in self.repository.list_all()
            if not query
            or query in (item.source_text or "").lower()
            or query in (item.target_text or "").lower()
        ]
        return sorted(items, key=lambda item: item.level or 0)

    def get_statistics(self) -> Dict[str, Any]:
        """Summarize the store. Verbs are counted through their forms."""
        items = [item for item in self.repository.list_all() if item.kind != ItemKind.VERB]
        return {
            "total": len(items),
            "in_learning": sum(1 for item in items if item.in_learning),
            "in_learning_by_kind": {
                kind.value: count for kind, count in count_in_learning(items).items()
            },
        }
