"""Reminder checks. Deciding what is due lives here; delivery does not."""
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from study_path.models import ScheduledSession, Subject
from study_path.priorities import as_utc, parse_timestamp

INACTIVITY_DAYS = 3
INACTIVITY_REPEAT_HOURS = 24
GOAL_REMINDER_MINUTES = 30
DEFAULT_LEAD_MINUTES = 30

# user_settings keys holding the last time each nudge was shown
INACTIVITY_REMINDER_KEY = "last_inactivity_reminder"
GOAL_REMINDER_KEY = "last_goal_reminder"


def last_study_time(subjects: Iterable[Subject], logged_at: datetime = None) -> Optional[datetime]:
    """Latest topic completion or logged study session, whichever is newer."""
    stamps = [
        parse_timestamp(topic.completed_at)
        for subject in subjects
        for chapter in subject.chapters or []
        for topic in chapter.topics or []
        if topic.is_completed and topic.completed_at
    ]
    stamps = [s for s in stamps if s is not None]
    if logged_at is not None:
        stamps.append(as_utc(logged_at))
    return max(stamps) if stamps else None


def inactivity_days(
    subjects: Iterable[Subject], now: datetime = None, logged_at: datetime = None,
) -> Optional[int]:
    """Whole days (rounded up) since the last study activity, or None."""
    last = last_study_time(subjects, logged_at)
    if last is None:
        return None
    diff = abs(as_utc(now) - last)
    return -(-diff // timedelta(days=1))


def needs_inactivity_reminder(
    subjects: Iterable[Subject],
    now: datetime = None,
    logged_at: datetime = None,
    last_notified: Optional[str] = None,
) -> bool:
    """True after INACTIVITY_DAYS idle days, at most once per INACTIVITY_REPEAT_HOURS."""
    now = as_utc(now)
    days = inactivity_days(subjects, now, logged_at)
    if days is None or days < INACTIVITY_DAYS:
        return False
    notified = parse_timestamp(last_notified)
    if notified is None:
        return True
    return now - notified > timedelta(hours=INACTIVITY_REPEAT_HOURS)


def needs_goal_reminder(
    studied_seconds: int,
    goal_minutes: int,
    today: date = None,
    last_notified: Optional[str] = None,
) -> bool:
    """True when the daily goal is less than GOAL_REMINDER_MINUTES away.

    Fires once per day: `last_notified` is the ISO day it last fired.
    """
    remaining = goal_minutes * 60 - studied_seconds
    if not 0 < remaining <= GOAL_REMINDER_MINUTES * 60:
        return False
    today = today or as_utc(None).date()
    return last_notified != today.isoformat()


def sessions_due_for_reminder(
    sessions: Iterable[ScheduledSession],
    now: datetime = None,
    lead_minutes: int = DEFAULT_LEAD_MINUTES,
) -> list[ScheduledSession]:
    """Open sessions starting within the next `lead_minutes` not yet reminded.

    Session times are wall-clock times compared against `now` as given.
    Sessions without a time never trigger a reminder.
    """
    now = now or datetime.now()
    now = now.replace(tzinfo=None)
    due = []
    for session in sessions:
        if session.is_completed or session.reminder_sent or not session.time:
            continue
        try:
            start = datetime.fromisoformat(f"{session.date}T{session.time}")
        except ValueError:
            continue
        if now <= start <= now + timedelta(minutes=lead_minutes):
            due.append(session)
    return due
