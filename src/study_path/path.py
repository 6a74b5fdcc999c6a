"""Study path generation: spread ranked priorities across calendar days."""
import random
import uuid
from datetime import date, datetime, time as dtime, timedelta, timezone
from typing import Callable, Iterable, Optional

from study_path.logging import get_logger
from study_path.models import ScheduledSession, Subject
from study_path.priorities import as_utc, compute_priorities

logger = get_logger("path")

SLOT_TIMES = ("10:00", "16:00")
SESSION_MINUTES = 60
NOTES_PREFIX = "AI Recommended: "


def _reference_time(today: Optional[date | datetime]) -> datetime:
    if isinstance(today, datetime):
        return as_utc(today)
    if isinstance(today, date):
        return datetime.combine(today, dtime.min, tzinfo=timezone.utc)
    return as_utc(None)


def generate_path(
    subjects: Iterable[Subject],
    days: int = 7,
    today: Optional[date | datetime] = None,
    existing: Optional[Iterable[ScheduledSession]] = None,
    jitter: Callable[[], float] = random.random,
) -> list[ScheduledSession]:
    """Build a batch of sessions for the next `days` days.

    Priorities are scored once for the whole horizon. Each day takes the
    next two in score order, at 10:00 and 16:00.

    When `existing` is given, topics that already have an open session are
    left out and occupied (date, time) slots are skipped; the ranking simply
    flows on into the next free slot.
    """
    subjects = list(subjects or [])
    reference = _reference_time(today)
    ranked = compute_priorities(subjects, now=reference, jitter=jitter)
    if not ranked or days <= 0:
        return []

    taken = set()
    if existing is not None:
        existing = list(existing)
        booked = {
            (s.subject_id, s.chapter_id, s.topic_id) for s in existing if not s.is_completed
        }
        taken = {(s.date, s.time) for s in existing}
        ranked = [p for p in ranked if p.key not in booked]

    start = reference.date()
    path = []
    cursor = 0
    for offset in range(days):
        if cursor >= len(ranked):
            break
        day = (start + timedelta(days=offset)).isoformat()
        for time in SLOT_TIMES:
            if cursor >= len(ranked):
                break
            if (day, time) in taken:
                continue
            item = ranked[cursor]
            cursor += 1
            path.append(ScheduledSession(
                id=str(uuid.uuid4()),
                subject_id=item.subject_id,
                chapter_id=item.chapter_id,
                topic_id=item.topic_id,
                date=day,
                time=time,
                duration_minutes=SESSION_MINUTES,
                is_completed=False,
                notes=NOTES_PREFIX + item.reason,
            ))

    logger.debug("Generated %d sessions over %d days", len(path), days)
    return path
