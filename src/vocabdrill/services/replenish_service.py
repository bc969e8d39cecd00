"""Automatic replenishment of the learning pool."""
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set

from vocabdrill import monitoring
from vocabdrill.config import LearningSettings, settings
from vocabdrill.models.models import ItemKind, LearnableItem
from vocabdrill.services.item_repository import ItemRepository

logger = logging.getLogger(__name__)


def count_in_learning(items: Iterable[LearnableItem]) -> Dict[ItemKind, int]:
    """Count in-learning items per tracked kind.

    Verbs are counted through their forms, because the forms are what gets
    drilled.
    """
    counts = {ItemKind.NOUN: 0, ItemKind.VERB: 0, ItemKind.ADJECTIVE: 0}
    for item in items:
        if not item.in_learning:
            continue
        if item.kind == ItemKind.VERB_FORM:
            counts[ItemKind.VERB] += 1
        elif item.kind in (ItemKind.NOUN, ItemKind.ADJECTIVE):
            counts[ItemKind(item.kind)] += 1
    return counts


def auto_add_quantities(learning: LearningSettings) -> Dict[ItemKind, int]:
    return {
        ItemKind.VERB: learning.auto_add_verbs,
        ItemKind.ADJECTIVE: learning.auto_add_adjectives,
        ItemKind.NOUN: learning.auto_add_nouns,
    }


def select_replenishment(items: Iterable[LearnableItem], learning: LearningSettings) -> List[LearnableItem]:
    """Choose the dormant items to pull into learning.

    For every kind with no item in learning, take up to the configured number
    of items of that kind that are not in learning yet, in insertion order.
    Verbs without forms are skipped. The returned list contains verbs only,
    not their forms.
    """
    items = list(items)
    counts = count_in_learning(items)
    forms_by_verb = defaultdict(list)
    for item in items:
        if item.kind == ItemKind.VERB_FORM:
            forms_by_verb[item.verb_id].append(item)

    chosen = []
    for kind, quantity in auto_add_quantities(learning).items():
        if counts[kind] > 0 or quantity <= 0:
            continue
        available = [
            item for item in items
            if item.kind == kind
            and not item.in_learning
            and (kind != ItemKind.VERB or forms_by_verb[item.id])
        ]
        chosen.extend(available[:quantity])
    return chosen


def activate(item: LearnableItem) -> None:
    """Put an item into learning with a fresh level."""
    item.in_learning = True
    item.level = 0
    item.last_level_change_at = None


class ReplenishService:
    """Keeps at least one item of every kind in learning."""

    def __init__(self, repository: ItemRepository, learning: Optional[LearningSettings] = None):
        """Initialize the service with an item repository."""
        self.repository = repository
        self.learning = learning or settings.learning

    def replenish(self) -> Set[str]:
        """Pull new items into learning where a kind ran out.

        Returns the ids of the items whose learning flag was switched on.
        Calling it again without other changes does nothing.
        """
        items = self.repository.list_all()
        chosen = select_replenishment(items, self.learning)
        if not chosen:
            return set()

        forms_by_verb = defaultdict(list)
        for item in items:
            if item.kind == ItemKind.VERB_FORM:
                forms_by_verb[item.verb_id].append(item)

        activated: Set[str] = set()
        updated: List[LearnableItem] = []
        for item in chosen:
            group = [item] + forms_by_verb[item.id] if item.kind == ItemKind.VERB else [item]
            for member in group:
                if not member.in_learning:
                    activated.add(member.id)
                activate(member)
                updated.append(member)
            monitoring.items_replenished.labels(kind=item.kind).inc()
            logger.info(f"Added {item.kind} {item.source_text!r} to learning")

        self.repository.put_all(updated)
        return activated
