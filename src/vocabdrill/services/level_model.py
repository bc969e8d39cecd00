"""Mastery level rules.

Levels go from 0 to ``MAX_LEVEL``. An item is promoted by one level when it
is answered correctly with a session streak of at least ``required_streak``,
and demoted by one level on a wrong answer, but at most once per
``LEVEL_CHANGE_COOLDOWN``. Everything here is pure: the current time is passed
in by the caller.
"""
from datetime import UTC, datetime
from typing import NamedTuple, Optional

from vocabdrill.config import LEVEL_CHANGE_COOLDOWN, MAX_LEVEL


class LevelChange(NamedTuple):
    """New level of an item and the time of its last level change."""
    level: int
    last_level_change_at: Optional[datetime]

    def differs_from(self, level: int) -> bool:
        return self.level != level


def as_utc(moment: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (as returned by SQLite) as UTC."""
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=UTC)


def can_decrease_level(last_level_change_at: Optional[datetime], now: datetime) -> bool:
    """Check whether the demotion cooldown has elapsed."""
    if last_level_change_at is None:
        return True
    return as_utc(now) - as_utc(last_level_change_at) >= LEVEL_CHANGE_COOLDOWN


def next_level(
    current_level: int,
    was_correct: bool,
    session_streak: int,
    last_level_change_at: Optional[datetime],
    required_streak: int = 2,
    now: Optional[datetime] = None,
) -> LevelChange:
    """Calculate the level of an item after an answer.

    Args:
        current_level: Level before the answer.
        was_correct: Whether the answer was correct.
        session_streak: Consecutive correct answers in this session,
            including the current one.
        last_level_change_at: When the level last changed, if ever.
        required_streak: Streak needed to promote the item.
        now: Current time. Defaults to ``datetime.now(UTC)``.
    """
    if now is None:
        now = datetime.now(UTC)
    level = min(max(current_level or 0, 0), MAX_LEVEL)

    if was_correct:
        if session_streak >= required_streak and level < MAX_LEVEL:
            return LevelChange(level + 1, now)
    elif level > 0 and can_decrease_level(last_level_change_at, now):
        return LevelChange(level - 1, now)

    return LevelChange(level, last_level_change_at)
