"""Exercises used to question the learner about an item."""
import logging
import random
import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, List, Optional, final

from vocabdrill.config import VERB_OPTION_DISTRACTORS
from vocabdrill.models.models import LearnableItem
from vocabdrill.models.session_models import ExerciseRequest
from vocabdrill.services.answer_validator import is_correct
from vocabdrill.services.item_repository import ItemRepository


logger = logging.getLogger(__name__)

BLANK = "_____"


class ExerciseType(Enum):
    """Available exercise types."""
    BASE = "base"
    TYPED_ANSWER = "typed_answer"  # Type the missing word
    VERB_FORM_CHOICE = "verb_form_choice"  # Pick the missing conjugated form


def get_all_subclasses(cls):
    """Get all subclasses of a class."""
    all_subclasses = []
    for subclass in cls.__subclasses__():
        all_subclasses.append(subclass)
        all_subclasses.extend(get_all_subclasses(subclass))
    return all_subclasses


def blank_out(sentence: Optional[str], target: str) -> str:
    """Replace every case-insensitive occurrence of ``target`` with a blank."""
    if not sentence:
        return ""
    if not target:
        return sentence
    return re.sub(re.escape(target), BLANK, sentence, flags=re.IGNORECASE)


def build_verb_options(
    item: LearnableItem,
    siblings: Iterable[LearnableItem],
    rng: Optional[random.Random] = None,
) -> List[str]:
    """Build the answer options for a verb form.

    The options are the correct form and up to two distinct forms of the
    same verb with a different surface text, in random order.
    """
    rng = rng or random.Random()
    correct = item.target_text
    others = list(dict.fromkeys(
        form.target_text for form in siblings
        if form.target_text and form.target_text != correct
    ))
    rng.shuffle(others)
    options = [correct] + others[:VERB_OPTION_DISTRACTORS]
    rng.shuffle(options)
    return options


class BaseExercise(ABC):
    """Base class for all exercises."""

    """Fields and methods that must be implemented by subclasses."""
    type: ExerciseType = ExerciseType.BASE
    priority: int = 0

    @abstractmethod
    def _create_request(self, item: LearnableItem, sentence: str, answer: str) -> ExerciseRequest:
        """Internal method to create a request. Must be implemented by subclasses."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def check_answer(self, request: ExerciseRequest, answer: Optional[str]) -> bool:
        """Judge the learner's answer to a request."""
        raise NotImplementedError("Subclasses must implement this method")

    @classmethod
    def should_be_used_for_item(cls, item: LearnableItem) -> bool:
        """Determine if this exercise should be used for the given item."""
        return False

    """Fields and methods that must not be overridden by subclasses."""

    @final
    def __init__(self, repository: ItemRepository, rng: Optional[random.Random] = None):
        self.repository = repository
        self.rng = rng or random.Random()

    @final
    def create_request(self, item: LearnableItem) -> ExerciseRequest:
        """Create a fill-in-the-blank request from the item's example."""
        answer = self.expected_answer(item)
        sentence = blank_out(item.example_sentence, answer)
        return self._create_request(item, sentence, answer)

    @staticmethod
    def expected_answer(item: LearnableItem) -> str:
        """Text that fills the blank."""
        if item.is_verb_form:
            return item.target_text
        return item.display_translation

    @final
    def get_type_name(self) -> str:
        return self.type.value


class TypedAnswerExercise(BaseExercise):
    """The learner types the missing word."""
    type: ExerciseType = ExerciseType.TYPED_ANSWER
    priority: int = 1

    @classmethod
    def should_be_used_for_item(cls, item: LearnableItem) -> bool:
        """This exercise can be used for any item."""
        return True

    def _create_request(self, item: LearnableItem, sentence: str, answer: str) -> ExerciseRequest:
        return ExerciseRequest(
            item=item,
            sentence=sentence,
            answer=answer,
            hint=item.example_translation,
            expects_text=True,
        )

    def check_answer(self, request: ExerciseRequest, answer: Optional[str]) -> bool:
        return is_correct(answer, request.answer, request.item)


class VerbFormChoiceExercise(BaseExercise):
    """The learner picks the missing form among forms of the same verb."""
    type: ExerciseType = ExerciseType.VERB_FORM_CHOICE
    priority: int = 2

    @classmethod
    def should_be_used_for_item(cls, item: LearnableItem) -> bool:
        """Only conjugated verb forms have siblings to choose from."""
        return item.is_verb_form and item.verb_id is not None

    def _create_request(self, item: LearnableItem, sentence: str, answer: str) -> ExerciseRequest:
        siblings = self.repository.list_verb_forms(item.verb_id)
        options = build_verb_options(item, siblings, self.rng)
        logger.debug(f"Verb options for {item.id}: {options}")
        return ExerciseRequest(
            item=item,
            sentence=sentence,
            answer=answer,
            hint=item.example_translation,
            options=options,
            expects_text=False,
        )

    def check_answer(self, request: ExerciseRequest, answer: Optional[str]) -> bool:
        return answer is not None and answer == request.answer


def get_exercise_class(item: LearnableItem) -> type:
    """Get the most specific exercise class usable for the item."""
    candidates = [
        exercise_class for exercise_class in get_all_subclasses(BaseExercise)
        if exercise_class.should_be_used_for_item(item)
    ]
    return max(candidates, key=lambda exercise_class: exercise_class.priority)
