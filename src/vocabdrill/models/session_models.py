"""Models for practice-session data structures."""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from vocabdrill.models.models import LearnableItem


class SessionPhase(Enum):
    """States of a practice session."""
    LOADING = "loading"
    INTRO = "intro"  # One-time introduction card for a new item
    QUESTION = "question"  # Waiting for the learner's answer
    FEEDBACK = "feedback"  # Showing the outcome of the last answer
    COMPLETE = "complete"  # Every item reached the required streak


@dataclass
class SessionItemState:
    """Per-item state that lives only as long as the session."""
    streak: int = 0
    intro_shown: bool = False


@dataclass
class ExerciseRequest:
    """A fill-in-the-blank question for one item."""
    item: LearnableItem
    sentence: str  # example sentence with the answer blanked out
    answer: str
    hint: Optional[str] = None  # example sentence translation
    options: List[str] = field(default_factory=list)
    expects_text: bool = True


@dataclass
class AnswerResult:
    """Outcome of one submitted answer."""
    item_id: str
    answer: str
    expected: str
    correct: bool
    streak: int
    completed: bool
    level: int
    level_changed: bool = False
    persistence_error: Optional[Exception] = None
