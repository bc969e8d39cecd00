"""Main application class."""
import asyncio
import logging
from typing import Callable, Optional

from vocabdrill.config import PERSONS, settings
from vocabdrill.models.base import SessionLocal, init_db
from vocabdrill.models.models import LearnableItem
from vocabdrill.models.session_models import AnswerResult, ExerciseRequest, SessionPhase
from vocabdrill.monitoring import start_monitoring
from vocabdrill.services.item_repository import ItemRepository
from vocabdrill.services.replenish_service import ReplenishService
from vocabdrill.services.session_service import SessionController
from vocabdrill.services.settings_service import SettingsService


class VocabDrillApp:
    """Console front end for practice sessions."""

    def __init__(
        self,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
        auto_advance: bool = True,
    ):
        """Initialize the application."""
        self.input_func = input_func
        self.output_func = output_func
        self.auto_advance = auto_advance
        self.running = False
        self.db = None
        self.repository: Optional[ItemRepository] = None
        self.controller: Optional[SessionController] = None
        self.logger = logging.getLogger(__name__)

    def start(self) -> None:
        """Open the database and the metrics exporter."""
        if self.running:
            return

        init_db()
        self.db = SessionLocal()
        self.repository = ItemRepository(self.db)
        self.logger.info("Database initialized")

        if settings.monitoring.port:
            start_monitoring(settings.monitoring.port)
            self.logger.info(f"Metrics exporter listening on port {settings.monitoring.port}")

        self.running = True

    def stop(self) -> None:
        """Cancel pending timers and close the database session."""
        if self.controller:
            self.controller.close()
            self.controller = None

        if self.db:
            self.db.close()
            self.db = None
            self.repository = None
            self.logger.info("Database session closed")

        self.running = False

    async def run_session(self) -> SessionController:
        """Replenish the learning pool and drill one session on the console."""
        if not self.running:
            self.start()

        learning = SettingsService(self.db).load_learning_settings()
        added = ReplenishService(self.repository, learning).replenish()
        if added:
            self.output_func(f"Added {len(added)} new items to learning.")

        controller = SessionController(self.repository, learning, auto_advance=self.auto_advance)
        self.controller = controller
        controller.start()
        if controller.total_count == 0:
            self.output_func("Nothing to practise. Add words with examples first.")
            return controller

        try:
            while not controller.is_complete:
                if controller.phase is SessionPhase.INTRO:
                    self.output_func(self.render_intro(controller.current_item))
                    if self.auto_advance:
                        await controller.wait_pending()
                    else:
                        await asyncio.to_thread(self.input_func, "Press Enter to continue ")
                        controller.acknowledge_intro()
                elif controller.phase is SessionPhase.QUESTION:
                    request = controller.request
                    self.output_func(self.render_question(request, controller))
                    answer = await asyncio.to_thread(self.input_func, "> ")
                    result = controller.submit_answer(self.resolve_answer(request, answer))
                    self.output_func(self.render_feedback(result))
                    if self.auto_advance:
                        await controller.wait_pending()
                    else:
                        await asyncio.to_thread(self.input_func, "Press Enter to continue ")
                        controller.advance()
        except EOFError:
            self.logger.info("Input closed, leaving the session")
            controller.close()
            return controller

        self.output_func(f"Session complete: {controller.completed_count}/{controller.total_count} items.")
        if controller.persistence_errors:
            self.output_func(f"{len(controller.persistence_errors)} level changes could not be saved.")
        return controller

    @staticmethod
    def render_intro(item: LearnableItem) -> str:
        lines = ["New item:", f"  {item.source_text} = {item.display_translation}"]
        if item.is_verb_form and item.person:
            lines[1] += f" ({item.tense}, {PERSONS[item.person - 1]})"
        if item.has_example:
            lines.append(f"  {item.example_sentence}")
            if item.example_translation:
                lines.append(f"  {item.example_translation}")
        return "\n".join(lines)

    @staticmethod
    def render_question(request: ExerciseRequest, controller: SessionController) -> str:
        item = request.item
        lines = [f"[{controller.completed_count}/{controller.total_count}] {item.source_text}"]
        lines.append(f"  {request.sentence}")
        if request.hint:
            lines.append(f"  ({request.hint})")
        for number, option in enumerate(request.options, start=1):
            lines.append(f"  {number}. {option}")
        return "\n".join(lines)

    @staticmethod
    def resolve_answer(request: ExerciseRequest, answer: str) -> str:
        """Map an option number to its text for choice questions."""
        answer = answer.strip()
        if request.options and answer.isdigit() and 1 <= int(answer) <= len(request.options):
            return request.options[int(answer) - 1]
        return answer

    @staticmethod
    def render_feedback(result: AnswerResult) -> str:
        if result.correct:
            text = f"Correct! ({result.streak} in a row)"
        else:
            text = f"Wrong. The answer is: {result.expected}"
        if result.level_changed:
            text += f" Level {result.level}."
        return text
