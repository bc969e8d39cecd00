"""Service driving a single practice session."""
import asyncio
import logging
import random
import time
from datetime import UTC, datetime
from typing import Callable, Dict, Iterable, List, Optional

from vocabdrill import monitoring
from vocabdrill.config import LearningSettings, settings
from vocabdrill.exceptions import ItemNotFoundError, RepositoryError, SessionStateError, VocabDrillError
from vocabdrill.models.models import LearnableItem
from vocabdrill.models.session_models import AnswerResult, ExerciseRequest, SessionItemState, SessionPhase
from vocabdrill.services.exercises import BaseExercise, TypedAnswerExercise, get_exercise_class
from vocabdrill.services.item_repository import ItemRepository
from vocabdrill.services.level_model import next_level
from vocabdrill.services.session_selector import select_session


logger = logging.getLogger(__name__)


class SessionController:
    """State machine for one practice session.

    A session is a fixed, ordered list of items chosen when it starts. Each
    item is asked in turn until it has been answered correctly
    ``required_streak`` times in a row; items that are not done yet are
    revisited in a cyclic order. New items (level 0) get an introduction
    card the first time they come up.

    With ``auto_advance`` enabled the intro card and the feedback are
    dismissed by timers, which requires a running event loop. Any transition
    cancels a pending timer, so a timer never fires into a later state.
    """

    def __init__(
        self,
        repository: ItemRepository,
        learning: Optional[LearningSettings] = None,
        auto_advance: bool = False,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.learning = learning or settings.learning
        self.required_streak = self.learning.required_streak
        self.auto_advance = auto_advance
        self.rng = rng or random.Random()
        self.clock = clock or (lambda: datetime.now(UTC))

        self.phase = SessionPhase.LOADING
        self.items: List[LearnableItem] = []
        self.states: Dict[str, SessionItemState] = {}
        self.current_index = 0
        self.request: Optional[ExerciseRequest] = None
        self.exercise: Optional[BaseExercise] = None
        self.last_result: Optional[AnswerResult] = None
        self.persistence_errors: List[VocabDrillError] = []

        self._exercises: Dict[type, BaseExercise] = {}
        self._pending: Optional[asyncio.Task] = None
        self._started_at: Optional[float] = None

    # Session inspection

    @property
    def current_item(self) -> Optional[LearnableItem]:
        if not self.items or self.phase is SessionPhase.COMPLETE:
            return None
        return self.items[self.current_index]

    @property
    def current_state(self) -> Optional[SessionItemState]:
        item = self.current_item
        return self.states[item.id] if item else None

    @property
    def total_count(self) -> int:
        return len(self.items)

    @property
    def completed_count(self) -> int:
        """Number of items that reached the required streak."""
        return sum(1 for item in self.items if self._is_done(item))

    @property
    def progress(self) -> float:
        """Completed share of the session, between 0 and 1."""
        if not self.items:
            return 0.0
        return self.completed_count / len(self.items)

    @property
    def is_complete(self) -> bool:
        return self.phase is SessionPhase.COMPLETE

    @property
    def has_pending_timer(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def incomplete_items(self) -> List[LearnableItem]:
        return [item for item in self.items if not self._is_done(item)]

    def needs_intro(self, item: LearnableItem) -> bool:
        """Check if the item is new and has not been introduced yet."""
        return (item.level or 0) == 0 and not self.states[item.id].intro_shown

    def _is_done(self, item: LearnableItem) -> bool:
        return self.states[item.id].streak >= self.required_streak

    # Transitions

    def start(self, items: Optional[Iterable[LearnableItem]] = None) -> SessionPhase:
        """Select the session items and show the first one."""
        if self.phase is not SessionPhase.LOADING:
            raise SessionStateError("Session has already been started")

        pool = list(items) if items is not None else self.repository.list_all()
        self.items = select_session(pool, self.learning.pool_size, self.rng)
        self.states = {item.id: SessionItemState() for item in self.items}
        self.current_index = 0
        self._started_at = time.monotonic()
        monitoring.sessions_started.inc()
        logger.info(f"Session started with {len(self.items)} items")

        if not self.items:
            self._complete()
        else:
            self._enter_item(self.items[0])
        return self.phase

    def acknowledge_intro(self) -> SessionPhase:
        """Leave the intro card of the current item."""
        if self.phase is not SessionPhase.INTRO:
            raise SessionStateError(f"Cannot leave intro in phase {self.phase.value}")
        self._cancel_pending()

        item = self.current_item
        self.states[item.id].intro_shown = True
        self._prepare_question(item)
        self._set_phase(SessionPhase.QUESTION)
        return self.phase

    def submit_answer(self, answer: Optional[str]) -> AnswerResult:
        """Judge an answer to the current question and show feedback."""
        if self.phase is not SessionPhase.QUESTION:
            raise SessionStateError(f"Cannot answer in phase {self.phase.value}")

        item = self.current_item
        request = self.request
        correct = self.exercise.check_answer(request, answer)

        state = self.states[item.id]
        state.streak = state.streak + 1 if correct else 0

        result = AnswerResult(
            item_id=item.id,
            answer=answer or "",
            expected=request.answer,
            correct=correct,
            streak=state.streak,
            completed=state.streak >= self.required_streak,
            level=item.level or 0,
        )
        self.last_result = result
        self._set_phase(SessionPhase.FEEDBACK)
        monitoring.answers.labels(kind=item.kind, result="correct" if correct else "wrong").inc()

        self._persist_level(item, result)

        delay = self.learning.feedback_delay_correct if correct else self.learning.feedback_delay_wrong
        self._schedule(delay, self.advance)
        return result

    def advance(self) -> SessionPhase:
        """Move from feedback to the next item that is not done yet."""
        if self.phase is not SessionPhase.FEEDBACK:
            raise SessionStateError(f"Cannot advance in phase {self.phase.value}")
        self._cancel_pending()

        if not self.incomplete_items():
            self._complete()
            return self.phase

        size = len(self.items)
        next_index = self.current_index
        for offset in range(1, size + 1):
            index = (self.current_index + offset) % size
            if not self._is_done(self.items[index]):
                next_index = index
                break

        self.current_index = next_index
        self._enter_item(self.items[next_index])
        return self.phase

    def close(self) -> None:
        """Cancel any pending timer; the session state is left as is."""
        self._cancel_pending()

    async def wait_pending(self) -> None:
        """Wait for the pending timer, if any, to fire or be cancelled."""
        task = self._pending
        if task is None:
            return
        await asyncio.wait({task})

    # Internals

    def _set_phase(self, phase: SessionPhase) -> None:
        logger.debug(f"Session phase {self.phase.value} -> {phase.value}")
        self.phase = phase

    def _enter_item(self, item: LearnableItem) -> None:
        if self.needs_intro(item):
            self.request = None
            self._set_phase(SessionPhase.INTRO)
            self._schedule(self.learning.intro_delay, self.acknowledge_intro)
        else:
            self._prepare_question(item)
            self._set_phase(SessionPhase.QUESTION)

    def _complete(self) -> None:
        self._cancel_pending()
        self.request = None
        self._set_phase(SessionPhase.COMPLETE)
        if self.items:
            monitoring.sessions_completed.inc()
        if self._started_at is not None:
            monitoring.session_duration.observe(time.monotonic() - self._started_at)
        logger.info(f"Session complete: {self.completed_count}/{self.total_count} items")

    def _exercise(self, exercise_class: type) -> BaseExercise:
        if exercise_class not in self._exercises:
            self._exercises[exercise_class] = exercise_class(self.repository, self.rng)
        return self._exercises[exercise_class]

    def _prepare_question(self, item: LearnableItem) -> None:
        exercise = self._exercise(get_exercise_class(item))
        try:
            self.request = exercise.create_request(item)
        except RepositoryError as e:
            logger.error(f"Could not prepare question for item {item.id}, asking for typed answer: {e}")
            self.persistence_errors.append(e)
            exercise = self._exercise(TypedAnswerExercise)
            self.request = exercise.create_request(item)
        self.exercise = exercise
        logger.debug(f"Asking item {item.id} with {exercise.get_type_name()}")

    def _persist_level(self, item: LearnableItem, result: AnswerResult) -> None:
        """Write the item's new level; failures are recorded, not raised."""
        try:
            stored = self.repository.get(item.id)
            if stored is None:
                raise ItemNotFoundError(item.id)

            previous = stored.level or 0
            change = next_level(
                previous,
                result.correct,
                result.streak,
                stored.last_level_change_at,
                self.required_streak,
                now=self.clock(),
            )
            result.level = change.level
            if not change.differs_from(previous):
                return

            stored.level = change.level
            stored.last_level_change_at = change.last_level_change_at
            self.repository.put(stored)
            result.level_changed = True
            direction = "up" if change.level > previous else "down"
            monitoring.level_changes.labels(direction=direction).inc()
            logger.info(f"Item {item.id} level {previous} -> {change.level}")
        except VocabDrillError as e:
            logger.error(f"Could not save level of item {item.id}: {e}")
            result.persistence_error = e
            self.persistence_errors.append(e)

    def _schedule(self, delay: float, callback: Callable[[], SessionPhase]) -> None:
        self._cancel_pending()
        if not self.auto_advance:
            return
        self._pending = asyncio.get_running_loop().create_task(self._fire_after(delay, callback))

    async def _fire_after(self, delay: float, callback: Callable[[], SessionPhase]) -> None:
        await asyncio.sleep(delay)
        self._pending = None
        try:
            callback()
        except Exception:
            # Nothing awaits the timer task, so the failure ends here
            logger.exception("Scheduled session transition failed")

    def _cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None
