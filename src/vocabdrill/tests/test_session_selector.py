"""Tests for session selection."""
import math
import random
from collections import Counter

import pytest

from vocabdrill.models.models import ItemKind, LearnableItem
from vocabdrill.services.session_selector import eligible_items, item_weight, select_session


def build_item(index: int, level: int = 0, in_learning: bool = True, example: str = "Una frase.") -> LearnableItem:
    return LearnableItem(
        id=f"item-{index}",
        kind=ItemKind.ADJECTIVE.value,
        source_text=f"słowo {index}",
        target_text=f"palabra {index}",
        example_sentence=example,
        in_learning=in_learning,
        level=level,
    )


def test_item_weight():
    """Test the level-based sampling weight."""
    assert item_weight(0) == 1
    assert item_weight(3) == pytest.approx(0.5)
    assert item_weight(99) == pytest.approx(1 / math.sqrt(100))
    assert item_weight(None) == 1


def test_only_eligible_items_are_selected():
    """Test that items out of learning or without an example are skipped."""
    items = [
        build_item(1),
        build_item(2, in_learning=False),
        build_item(3, example=""),
        build_item(4, example="   "),
        build_item(5, example=None),
    ]
    assert [item.id for item in eligible_items(items)] == ["item-1"]
    assert [item.id for item in select_session(items, 10, random.Random(1))] == ["item-1"]


def test_session_size_is_limited_by_pool_size():
    """Test that at most pool_size items are chosen, without duplicates."""
    items = [build_item(i, level=i % 7) for i in range(30)]
    selected = select_session(items, 20, random.Random(42))
    assert len(selected) == 20
    assert len({item.id for item in selected}) == 20


def test_session_takes_all_when_pool_is_larger():
    """Test that every eligible item is taken when there are few."""
    items = [build_item(i) for i in range(5)]
    selected = select_session(items, 20, random.Random(3))
    assert sorted(item.id for item in selected) == sorted(item.id for item in items)


def test_empty_pool_gives_empty_session():
    """Test that no eligible items give an empty session."""
    assert select_session([], 20) == []
    assert select_session([build_item(1, in_learning=False)], 20) == []


def test_low_levels_are_selected_more_often():
    """Test that the weighting favours less mastered items."""
    rng = random.Random(1234)
    new = build_item(1, level=0)
    mastered = build_item(2, level=99)
    counts = Counter()
    for _ in range(2000):
        counts[select_session([new, mastered], 1, rng)[0].id] += 1

    # weights 1 and 0.1 -> the new item is drawn about 91% of the time
    share = counts["item-1"] / 2000
    assert 0.87 < share < 0.95


def test_selection_order_is_shuffled():
    """Test that the selection is not returned in input order every time."""
    items = [build_item(i) for i in range(10)]
    orders = {
        tuple(item.id for item in select_session(items, 10, random.Random(seed)))
        for seed in range(10)
    }
    assert len(orders) > 1


def test_selection_is_reproducible_with_seed():
    """Test that a seeded generator gives the same session."""
    items = [build_item(i, level=i) for i in range(15)]
    first = select_session(items, 5, random.Random(7))
    second = select_session(items, 5, random.Random(7))
    assert [item.id for item in first] == [item.id for item in second]


if __name__ == "__main__":
    pytest.main([__file__])
