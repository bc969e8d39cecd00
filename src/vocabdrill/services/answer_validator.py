"""Checking typed answers against the expected text."""
import unicodedata
from typing import Optional

from vocabdrill.config import ACCENT_TOLERANCE_MAX_LEVEL, ARTICLE_ALTERNATIVES
from vocabdrill.models.models import ItemKind, LearnableItem


def remove_accents(text: Optional[str]) -> str:
    """Strip combining diacritical marks, e.g. "café" -> "cafe"."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def alternative_article(article: Optional[str]) -> Optional[str]:
    """Get the definite/indefinite counterpart of an article (el <-> un)."""
    if not article:
        return article
    return ARTICLE_ALTERNATIVES.get(article.lower(), article)


def _normalize(text: str) -> str:
    return text.strip().lower()


def _accepted_answers(expected: str, item: Optional[LearnableItem]) -> list:
    answers = [_normalize(expected)]
    if item is not None and item.kind == ItemKind.NOUN and item.article:
        answers.append(_normalize(f"{alternative_article(item.article)} {item.target_text}"))
    return answers


def is_correct(raw_input: Optional[str], expected: Optional[str], item: Optional[LearnableItem] = None) -> bool:
    """Check a learner's answer.

    The answer is accepted when it matches the expected text ignoring case
    and surrounding whitespace, or, for nouns, when it uses the alternative
    article. Items below ``ACCENT_TOLERANCE_MAX_LEVEL`` also accept answers
    with missing or wrong diacritics.
    """
    if not raw_input or not expected:
        return False

    answer = _normalize(raw_input)
    if not answer:
        return False
    accepted = _accepted_answers(expected, item)
    if answer in accepted:
        return True

    level = (item.level or 0) if item is not None else 0
    if level < ACCENT_TOLERANCE_MAX_LEVEL:
        stripped = remove_accents(answer)
        return any(stripped == remove_accents(candidate) for candidate in accepted)

    return False
