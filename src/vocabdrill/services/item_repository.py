"""Item store backed by the database."""
import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vocabdrill.exceptions import RepositoryError
from vocabdrill.models.models import ItemKind, LearnableItem
from vocabdrill import monitoring

logger = logging.getLogger(__name__)


class ItemRepository:
    """Read and write whole item records."""

    def __init__(self, db: Session):
        """Initialize the repository with a database session."""
        self.db = db

    def _fail(self, operation: str, error: SQLAlchemyError, item_id: Optional[str] = None) -> RepositoryError:
        self.db.rollback()
        monitoring.repository_errors.labels(operation=operation).inc()
        logger.error(f"Repository {operation} failed for item {item_id}: {error}")
        return RepositoryError(operation, str(error), item_id)

    def list_all(self) -> List[LearnableItem]:
        """Get every item in insertion order."""
        try:
            return (
                self.db.query(LearnableItem)
                .order_by(LearnableItem.created_at, LearnableItem.id)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("list", e) from e

    def get(self, item_id: str) -> Optional[LearnableItem]:
        """Get an item by its ID."""
        try:
            return self.db.query(LearnableItem).filter(LearnableItem.id == item_id).first()
        except SQLAlchemyError as e:
            raise self._fail("get", e, item_id) from e

    def put(self, item: LearnableItem) -> LearnableItem:
        """Insert or replace an item record."""
        try:
            stored = self.db.merge(item)
            self.db.commit()
            return stored
        except SQLAlchemyError as e:
            raise self._fail("put", e, item.id) from e

    def put_all(self, items: Iterable[LearnableItem]) -> List[LearnableItem]:
        """Insert or replace several item records in one transaction."""
        items = list(items)
        try:
            stored = [self.db.merge(item) for item in items]
            self.db.commit()
            return stored
        except SQLAlchemyError as e:
            raise self._fail("put", e) from e

    def add_all(self, items: Iterable[LearnableItem]) -> List[LearnableItem]:
        """Insert new item records in one transaction."""
        items = list(items)
        try:
            self.db.add_all(items)
            self.db.commit()
            return items
        except SQLAlchemyError as e:
            raise self._fail("add", e) from e

    def delete(self, item_id: str) -> bool:
        """Delete an item. Deleting a verb also deletes its forms."""
        try:
            item = self.db.query(LearnableItem).filter(LearnableItem.id == item_id).first()
            if not item:
                return False
            self.db.delete(item)
            self.db.commit()
            return True
        except SQLAlchemyError as e:
            raise self._fail("delete", e, item_id) from e

    def delete_cascade(self, verb_id: str) -> int:
        """Delete a verb and every form that references it."""
        try:
            doomed = (
                self.db.query(LearnableItem)
                .filter(or_(LearnableItem.id == verb_id, LearnableItem.verb_id == verb_id))
                .all()
            )
            # Forms first so the parent is never left referenced
            for item in sorted(doomed, key=lambda i: i.id == verb_id):
                self.db.delete(item)
            self.db.commit()
            logger.info(f"Deleted verb {verb_id} with {max(len(doomed) - 1, 0)} forms")
            return len(doomed)
        except SQLAlchemyError as e:
            raise self._fail("delete", e, verb_id) from e

    def list_verb_forms(self, verb_id: str) -> List[LearnableItem]:
        """Get all forms of a verb."""
        try:
            return (
                self.db.query(LearnableItem)
                .filter(
                    LearnableItem.kind == ItemKind.VERB_FORM.value,
                    LearnableItem.verb_id == verb_id,
                )
                .order_by(LearnableItem.tense, LearnableItem.person)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("list", e, verb_id) from e

    def find_by_source_text(self, text: str, kind: ItemKind) -> Optional[LearnableItem]:
        """Get an item by its source text and kind, ignoring case."""
        try:
            return (
                self.db.query(LearnableItem)
                .filter(
                    func.lower(LearnableItem.source_text) == text.strip().lower(),
                    LearnableItem.kind == ItemKind(kind).value,
                )
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("get", e) from e

    def count(self, kind: Optional[ItemKind] = None, in_learning: Optional[bool] = None) -> int:
        """Count items, optionally by kind and learning flag."""
        query = self.db.query(LearnableItem)
        if kind is not None:
            query = query.filter(LearnableItem.kind == ItemKind(kind).value)
        if in_learning is not None:
            query = query.filter(LearnableItem.in_learning == in_learning)
        try:
            return query.count()
        except SQLAlchemyError as e:
            raise self._fail("count", e) from e

    def clear(self) -> None:
        """Delete every item."""
        try:
            self.db.query(LearnableItem).filter(LearnableItem.verb_id.isnot(None)).delete(
                synchronize_session=False
            )
            self.db.query(LearnableItem).delete(synchronize_session=False)
            self.db.commit()
            self.db.expunge_all()
        except SQLAlchemyError as e:
            raise self._fail("delete", e) from e
