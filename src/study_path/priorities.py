"""Priority scoring for incomplete topics.

Each incomplete topic gets an urgency score built from four weighted terms:

    exam proximity      0-45   shared by every topic of a subject
    chapter workload    0-30   how much of the chapter is still open
    topic order         0-15   earlier topics are foundational
    jitter              0-10   keeps repeated suggestions from going stale

The jitter source is injectable so callers (and tests) can pin it.
"""
import random
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from study_path.logging import get_logger
from study_path.models import StudyPriority, Subject, is_chapter_complete

logger = get_logger("priorities")

MAX_PRIORITIES = 50
DAY_MS = 24 * 60 * 60 * 1000

NO_EXAM_SCORE = 10
CHAPTER_WEIGHT = 30
ORDER_WEIGHT = 15
JITTER_WEIGHT = 10

REASON_EXAM = "Exam approaching soon"
REASON_WORKLOAD = "High chapter workload"
REASON_FOUNDATIONAL = "Foundational topic"
REASON_ROUTINE = "Routine study"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date or datetime string as an aware datetime.

    Date-only values are midnight UTC. Returns None for empty or
    unparseable input.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def as_utc(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def days_until(target: datetime, now: datetime) -> int:
    """Whole calendar days from now to target, partial days rounded up."""
    diff_ms = (target - now) // timedelta(milliseconds=1)
    return -(-diff_ms // DAY_MS)


def exam_proximity_score(exam_date: Optional[str], now: datetime) -> int:
    if not exam_date:
        return NO_EXAM_SCORE
    exam = parse_timestamp(exam_date)
    if exam is None:
        logger.warning("Ignoring unparseable exam date %r", exam_date)
        return NO_EXAM_SCORE

    days = days_until(exam, as_utc(now))
    if days <= 0:
        return 0  # passed or today
    elif days <= 7:
        return 45
    elif days <= 30:
        return 30
    elif days <= 90:
        return 15
    return 5


def choose_reason(exam_score: float, chapter_score: float, order_score: float) -> str:
    """First matching threshold wins, regardless of which term dominates."""
    if exam_score >= 30:
        return REASON_EXAM
    elif chapter_score >= 20:
        return REASON_WORKLOAD
    elif order_score >= 10:
        return REASON_FOUNDATIONAL
    return REASON_ROUTINE


def compute_priorities(
    subjects: Iterable[Subject],
    now: Optional[datetime] = None,
    jitter: Callable[[], float] = random.random,
) -> list[StudyPriority]:
    """Rank every incomplete topic by urgency.

    Args:
        subjects: Curriculum snapshot. Missing chapter/topic lists count as empty.
        now: Reference time; defaults to the current UTC time.
        jitter: Source of values in [0, 1), scaled to the jitter weight.

    Returns:
        At most MAX_PRIORITIES entries, highest score first. Ties keep
        curriculum order.
    """
    now = as_utc(now)
    priorities = []

    for subject in subjects or []:
        exam_score = exam_proximity_score(subject.exam_date, now)

        for chapter in subject.chapters or []:
            if is_chapter_complete(chapter):
                continue
            topics = chapter.topics or []
            incomplete = [t for t in topics if not t.is_completed]
            if not incomplete:
                continue

            completed_fraction = (len(topics) - len(incomplete)) / len(topics)
            chapter_score = (1 - completed_fraction) * CHAPTER_WEIGHT

            for index, topic in enumerate(incomplete):
                order_score = (1 - index / len(incomplete)) * ORDER_WEIGHT
                score = exam_score + chapter_score + order_score + jitter() * JITTER_WEIGHT
                priorities.append(StudyPriority(
                    subject_id=subject.id,
                    chapter_id=chapter.id,
                    topic_id=topic.id,
                    score=score,
                    reason=choose_reason(exam_score, chapter_score, order_score),
                ))

    logger.debug("Scored %d open topics", len(priorities))
    # sorted() is stable, so equal scores keep curriculum order
    return sorted(priorities, key=lambda p: p.score, reverse=True)[:MAX_PRIORITIES]
