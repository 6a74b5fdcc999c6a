"""Study time log: sessions timed with the stopwatch or entered by hand."""
from datetime import datetime, timedelta, timezone
from typing import Optional

from study_path.db import get_connection
from study_path.errors import NotFoundError, StudyPathError
from study_path.logging import get_logger
from study_path.models import StudyLogEntry
from study_path.priorities import as_utc, parse_timestamp

logger = get_logger("study_log")

MIN_SESSION_SECONDS = 60


def log_study_session(
    db_path: str, seconds: int, subject_id: str = None, now: datetime = None,
) -> StudyLogEntry:
    """Record `seconds` of study, optionally against a subject.

    Sessions shorter than a minute are rejected.
    """
    seconds = int(seconds)
    if seconds < MIN_SESSION_SECONDS:
        raise StudyPathError("Session must be at least 1 minute to save.")
    logged_at = as_utc(now).isoformat()

    conn = get_connection(db_path)
    if subject_id is not None:
        found = conn.execute("SELECT 1 FROM subjects WHERE id = ?", (subject_id,)).fetchone()
        if not found:
            conn.close()
            raise NotFoundError("Subject", subject_id)
    cursor = conn.execute(
        "INSERT INTO study_log (subject_id, seconds, logged_at) VALUES (?, ?, ?)",
        (subject_id, seconds, logged_at),
    )
    entry_id = cursor.lastrowid
    conn.commit()
    conn.close()
    logger.info("Logged %d seconds of study", seconds)
    return StudyLogEntry(id=entry_id, seconds=seconds, logged_at=logged_at, subject_id=subject_id)


def list_study_log(db_path: str) -> list[StudyLogEntry]:
    """All entries, oldest first."""
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM study_log ORDER BY logged_at, id").fetchall()
    conn.close()
    return [
        StudyLogEntry(id=r["id"], seconds=r["seconds"], logged_at=r["logged_at"], subject_id=r["subject_id"])
        for r in rows
    ]


def study_time_totals(db_path: str, now: datetime = None) -> dict:
    """Seconds studied in total, today, this week (from Monday) and this month.

    Calendar days are UTC days.
    """
    today = as_utc(now).astimezone(timezone.utc).date()
    week_start = today - timedelta(days=today.weekday())
    month_start = today.replace(day=1)

    totals = {"total": 0, "today": 0, "week": 0, "month": 0}
    for entry in list_study_log(db_path):
        logged = parse_timestamp(entry.logged_at)
        if logged is None:
            continue
        day = logged.astimezone(timezone.utc).date()
        totals["total"] += entry.seconds
        if day > today:
            continue
        if day == today:
            totals["today"] += entry.seconds
        if day >= week_start:
            totals["week"] += entry.seconds
        if day >= month_start:
            totals["month"] += entry.seconds
    return totals


def last_logged_at(db_path: str) -> Optional[datetime]:
    entries = list_study_log(db_path)
    stamps = [parse_timestamp(e.logged_at) for e in entries]
    stamps = [s for s in stamps if s is not None]
    return max(stamps) if stamps else None
