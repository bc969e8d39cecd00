"""Export, import and CSV parsing of the vocabulary store."""
import csv
import io
import logging
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabdrill.exceptions import InvalidItemError, RepositoryError
from vocabdrill.models.models import ItemKind, LearnableItem, Setting
from vocabdrill.services.item_repository import ItemRepository
from vocabdrill.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

EXPORT_VERSION = 1

WORD_COLUMNS = ("word", "słowo")
KIND_COLUMNS = ("class", "partofspeech", "część mowy", "type")

IMPORTED_FIELDS = (
    "id",
    "kind",
    "verb_id",
    "source_text",
    "target_text",
    "article",
    "example_sentence",
    "example_translation",
    "level",
    "in_learning",
    "tense",
    "person",
)


def parse_csv(text: str) -> List[Tuple[str, ItemKind]]:
    """Read words and their kinds from CSV text with a header row.

    Unknown or missing kinds are read as nouns and rows without a word are
    dropped. Verb forms cannot be listed on their own. Without a
    ``word``/``słowo`` column nothing is read.
    """
    reader = csv.reader(io.StringIO(text.strip()))
    header = next(reader, None)
    if not header:
        return []

    columns = [name.strip().lower() for name in header]
    word_index = next((i for i, name in enumerate(columns) if name in WORD_COLUMNS), None)
    if word_index is None:
        return []
    kind_index = next((i for i, name in enumerate(columns) if name in KIND_COLUMNS), None)

    rows = []
    for values in reader:
        word = values[word_index].strip() if word_index < len(values) else ""
        if not word:
            continue
        raw_kind = values[kind_index].strip() if kind_index is not None and kind_index < len(values) else ""
        rows.append((word, _parse_kind(raw_kind)))
    return rows


def _parse_kind(value: str) -> ItemKind:
    try:
        kind = ItemKind(value.lower())
    except ValueError:
        return ItemKind.NOUN
    return ItemKind.NOUN if kind == ItemKind.VERB_FORM else kind


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


class DataService:
    """Service for moving the whole store in and out."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db
        self.repository = ItemRepository(db)
        self.settings_service = SettingsService(db)

    def export_data(self) -> Dict[str, Any]:
        """Serialize every item and stored preference."""
        items = self.repository.list_all()
        data = {
            "version": EXPORT_VERSION,
            "exported_at": datetime.now(UTC).isoformat(),
            "items": [item.to_dict() for item in items],
            "settings": self.settings_service.get_all(),
        }
        logger.info(f"Exported {len(items)} items")
        return data

    def import_data(self, data: Dict[str, Any], clear_existing: bool = False) -> Tuple[int, int]:
        """Load an export into the store.

        Items whose id is already present are skipped, as are forms whose verb
        is neither stored nor part of the import and non-form items that
        reference a verb. Returns the number of imported and skipped items.
        """
        records = data.get("items")
        if records is None:
            records = data.get("words", [])
        if not isinstance(records, list):
            raise InvalidItemError("Import data must contain a list of items")

        if clear_existing:
            self._clear()

        known_kinds = {item.id: item.kind for item in self.repository.list_all()}
        # Parents before forms
        ordered = sorted(
            (record for record in records if isinstance(record, dict)),
            key=lambda record: record.get("verb_id") is not None,
        )
        skipped = len(records) - len(ordered)

        new_items = []
        for record in ordered:
            item = self._build_item(record)
            if item is None or item.id in known_kinds or not self._has_valid_parent(item, known_kinds):
                skipped += 1
                continue
            new_items.append(item)
            known_kinds[item.id] = item.kind

        if new_items:
            self.repository.add_all(new_items)
        for key, value in (data.get("settings") or {}).items():
            self.settings_service.set_value(key, value)

        logger.info(f"Imported {len(new_items)} items, skipped {skipped}")
        return len(new_items), skipped

    def _build_item(self, record: Dict[str, Any]) -> Optional[LearnableItem]:
        fields = {name: record[name] for name in IMPORTED_FIELDS if record.get(name) is not None}
        if not fields.get("source_text") or not fields.get("target_text"):
            logger.warning(f"Skipping incomplete item record: {record.get('id')}")
            return None
        try:
            item = LearnableItem(**fields)
        except (InvalidItemError, TypeError) as e:
            logger.warning(f"Skipping invalid item record {record.get('id')}: {e}")
            return None
        item.in_learning = bool(item.in_learning)
        item.last_level_change_at = _parse_datetime(record.get("last_level_change_at"))
        created_at = _parse_datetime(record.get("created_at"))
        if created_at is not None:
            item.created_at = created_at
        return item

    def _clear(self) -> None:
        self.repository.clear()
        try:
            self.db.query(Setting).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RepositoryError("delete settings", str(e)) from e
        logger.info("Cleared the store before import")

    @staticmethod
    def _has_valid_parent(item: LearnableItem, known_kinds: Dict[str, str]) -> bool:
        """Check that forms hang off a known verb and nothing else has a parent."""
        if item.kind != ItemKind.VERB_FORM:
            if item.verb_id is not None:
                logger.warning(f"Skipping {item.kind} {item.id}: only verb forms can reference a verb")
                return False
            return True

        if known_kinds.get(item.verb_id) != ItemKind.VERB:
            logger.warning(f"Skipping form {item.id}: verb {item.verb_id} is missing")
            return False
        if item.person is None:
            logger.warning(f"Skipping form {item.id}: person is missing")
            return False
        return True
