"""Selection of items for a practice session."""
import logging
import math
import random
from typing import Iterable, List, Optional

from vocabdrill.models.models import LearnableItem

logger = logging.getLogger(__name__)


def item_weight(level: Optional[int]) -> float:
    """Sampling weight of an item; lower levels are drawn more often."""
    return 1 / math.sqrt(max(level or 0, 0) + 1)


def eligible_items(items: Iterable[LearnableItem]) -> List[LearnableItem]:
    """Items that are in learning and have an example sentence."""
    return [item for item in items if item.is_eligible]


def select_session(
    items: Iterable[LearnableItem],
    pool_size: int,
    rng: Optional[random.Random] = None,
) -> List[LearnableItem]:
    """Choose up to ``pool_size`` items for a new session.

    Items are drawn one at a time without replacement, each with probability
    proportional to its weight among the items not drawn yet. The selection
    is then shuffled, so the weights only affect which items are included.
    """
    rng = rng or random.Random()
    available = [(item, item_weight(item.level)) for item in eligible_items(items)]
    selected: List[LearnableItem] = []

    while len(selected) < pool_size and available:
        total_weight = sum(weight for _, weight in available)
        threshold = rng.random() * total_weight
        index = len(available) - 1  # guards against float rounding
        for i, (_, weight) in enumerate(available):
            threshold -= weight
            if threshold <= 0:
                index = i
                break
        item, _ = available.pop(index)
        selected.append(item)

    rng.shuffle(selected)
    logger.debug(f"Selected {len(selected)} items for session (pool size {pool_size})")
    return selected
