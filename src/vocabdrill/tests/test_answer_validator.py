"""Tests for answer validation."""
import pytest

from vocabdrill.models.models import ItemKind, LearnableItem
from vocabdrill.services.answer_validator import alternative_article, is_correct, remove_accents


def noun(target: str, article: str = "el", level: int = 0) -> LearnableItem:
    return LearnableItem(
        kind=ItemKind.NOUN.value,
        source_text="słowo",
        target_text=target,
        article=article,
        level=level,
    )


def adjective(target: str, level: int = 0) -> LearnableItem:
    return LearnableItem(
        kind=ItemKind.ADJECTIVE.value,
        source_text="słowo",
        target_text=target,
        level=level,
    )


def test_remove_accents():
    """Test that diacritics are stripped."""
    assert remove_accents("café") == "cafe"
    assert remove_accents("niño") == "nino"
    assert remove_accents("") == ""
    assert remove_accents(None) == ""


@pytest.mark.parametrize("article,expected", [
    ("el", "un"),
    ("un", "el"),
    ("la", "una"),
    ("unas", "las"),
    ("LOS", "unos"),
    ("lo", "lo"),
])
def test_alternative_article(article: str, expected: str):
    """Test definite and indefinite article pairs."""
    assert alternative_article(article) == expected


def test_exact_match_ignores_case_and_whitespace():
    """Test that trimming and case do not matter."""
    item = adjective("grande")
    assert is_correct("  Grande ", "grande", item)


def test_empty_input_is_wrong():
    """Test that empty answers are never accepted."""
    item = adjective("grande")
    assert not is_correct("", "grande", item)
    assert not is_correct("   ", "grande", item)
    assert not is_correct(None, "grande", item)
    assert not is_correct("grande", "", item)


def test_noun_accepts_alternative_article():
    """Test that 'un perro' is accepted for 'el perro'."""
    item = noun("perro", "el")
    assert is_correct("el perro", "el perro", item)
    assert is_correct("un perro", "el perro", item)
    assert not is_correct("la perro", "el perro", item)


def test_alternative_article_only_for_nouns():
    """Test that other kinds do not get the article swap."""
    item = adjective("perro")
    assert not is_correct("un perro", "el perro", item)


def test_accents_forgiven_below_level_fifty():
    """Test that missing accents are accepted for young items."""
    assert is_correct("cafe", "café", adjective("café", level=49))


def test_accents_required_from_level_fifty():
    """Test that accents must be exact for mature items."""
    assert not is_correct("cafe", "café", adjective("café", level=50))
    assert is_correct("café", "café", adjective("café", level=50))


def test_accent_tolerance_applies_to_alternative_article():
    """Test that the article swap also works without accents."""
    item = noun("camión", "el", level=10)
    assert is_correct("un camion", "el camión", item)


def test_no_fuzzy_matching():
    """Test that near misses are rejected."""
    item = adjective("grande")
    assert not is_correct("grand", "grande", item)
    assert not is_correct("grandes", "grande", item)


def test_without_item_uses_plain_rules():
    """Test validation when no item is given."""
    assert is_correct("Hola", "hola")
    assert is_correct("adios", "adiós")


if __name__ == "__main__":
    pytest.main([__file__])
