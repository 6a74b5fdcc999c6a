"""Schedule store: manually added and generated study sessions."""
import uuid
from datetime import date, datetime
from typing import Iterable, Optional

from study_path.curriculum import load_subjects
from study_path.db import get_connection
from study_path.errors import NotFoundError
from study_path.logging import get_logger
from study_path.models import ScheduledSession, Subject
from study_path.path import generate_path

logger = get_logger("schedule")

UNKNOWN_SUBJECT = "Unknown subject"
GENERAL_SESSION = "General session"


def _session_from_row(row) -> ScheduledSession:
    return ScheduledSession(
        id=row["id"],
        subject_id=row["subject_id"],
        date=row["date"],
        time=row["time"],
        duration_minutes=row["duration_minutes"],
        chapter_id=row["chapter_id"],
        topic_id=row["topic_id"],
        notes=row["notes"],
        is_completed=bool(row["is_completed"]),
        reminder_sent=bool(row["reminder_sent"]),
    )


def append_sessions(db_path: str, sessions: Iterable[ScheduledSession]) -> int:
    """Append sessions as-is. No merging or de-duplication happens here."""
    rows = [
        (s.id, s.subject_id, s.date, s.time, s.duration_minutes, s.chapter_id,
         s.topic_id, s.notes, int(s.is_completed), int(s.reminder_sent))
        for s in sessions
    ]
    conn = get_connection(db_path)
    conn.executemany(
        """INSERT INTO scheduled_sessions
        (id, subject_id, date, time, duration_minutes, chapter_id, topic_id, notes, is_completed, reminder_sent)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        rows,
    )
    conn.commit()
    conn.close()
    return len(rows)


def add_session(
    db_path: str,
    subject_id: str,
    date: str,
    duration_minutes: int = 60,
    time: str = None,
    chapter_id: str = None,
    topic_id: str = None,
    notes: str = None,
) -> ScheduledSession:
    session = ScheduledSession(
        id=str(uuid.uuid4()),
        subject_id=subject_id,
        date=date,
        time=time,
        duration_minutes=duration_minutes,
        chapter_id=chapter_id,
        topic_id=topic_id,
        notes=notes,
    )
    append_sessions(db_path, [session])
    logger.info("Scheduled session %s on %s", session.id, date)
    return session


def list_sessions(db_path: str, start: str = None, end: str = None) -> list[ScheduledSession]:
    """Sessions ordered by date then time, optionally within [start, end]."""
    query = "SELECT * FROM scheduled_sessions WHERE 1=1"
    params = []
    if start:
        query += " AND date >= ?"
        params.append(start)
    if end:
        query += " AND date <= ?"
        params.append(end)
    query += " ORDER BY date, time IS NULL, time"
    conn = get_connection(db_path)
    rows = conn.execute(query, params).fetchall()
    conn.close()
    return [_session_from_row(r) for r in rows]


def get_session(db_path: str, session_id: str) -> ScheduledSession:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM scheduled_sessions WHERE id = ?", (session_id,)).fetchone()
    conn.close()
    if not row:
        raise NotFoundError("Session", session_id)
    return _session_from_row(row)


def toggle_session(db_path: str, session_id: str) -> bool:
    """Flip a session's completion flag and return the new state."""
    session = get_session(db_path, session_id)
    completed = not session.is_completed
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE scheduled_sessions SET is_completed = ? WHERE id = ?",
        (int(completed), session_id),
    )
    conn.commit()
    conn.close()
    return completed


def delete_session(db_path: str, session_id: str) -> None:
    conn = get_connection(db_path)
    cursor = conn.execute("DELETE FROM scheduled_sessions WHERE id = ?", (session_id,))
    found = cursor.rowcount
    conn.commit()
    conn.close()
    if found == 0:
        raise NotFoundError("Session", session_id)
    logger.info("Removed session %s", session_id)


def mark_reminder_sent(db_path: str, session_id: str) -> None:
    conn = get_connection(db_path)
    cursor = conn.execute(
        "UPDATE scheduled_sessions SET reminder_sent = 1 WHERE id = ?", (session_id,)
    )
    found = cursor.rowcount
    conn.commit()
    conn.close()
    if found == 0:
        raise NotFoundError("Session", session_id)


def generate_ai_path(
    db_path: str,
    days: int = 7,
    today: Optional[date | datetime] = None,
    avoid_conflicts: bool = True,
    **kwargs,
) -> list[ScheduledSession]:
    """Plan the next `days` days from the stored curriculum and save the batch.

    Returns the new sessions; an empty list means there was nothing left
    to schedule. Extra keyword arguments go to generate_path.
    """
    subjects = load_subjects(db_path)
    existing = list_sessions(db_path) if avoid_conflicts else None
    sessions = generate_path(subjects, days=days, today=today, existing=existing, **kwargs)
    if sessions:
        append_sessions(db_path, sessions)
        logger.info("Added %d generated sessions", len(sessions))
    else:
        logger.info("Nothing to schedule")
    return sessions


def resolve_session(session: ScheduledSession, subjects: Iterable[Subject]) -> dict:
    """Look up display names for a session's references.

    References are not enforced across stores, so any of them may point at
    something that has since been deleted. Missing pieces degrade to
    generic labels.
    """
    subject = next((s for s in subjects if s.id == session.subject_id), None)
    chapter = None
    topic = None
    if subject and session.chapter_id:
        chapter = next((c for c in subject.chapters if c.id == session.chapter_id), None)
    if chapter and session.topic_id:
        topic = next((t for t in chapter.topics if t.id == session.topic_id), None)

    if topic:
        label = topic.name
    elif chapter:
        label = chapter.name
    else:
        label = GENERAL_SESSION
    return {
        "session": session,
        "subject_name": subject.name if subject else UNKNOWN_SUBJECT,
        "subject_color": subject.color if subject else "",
        "chapter_name": chapter.name if chapter else None,
        "topic_name": topic.name if topic else None,
        "label": label,
        "dangling": subject is None
        or (session.chapter_id is not None and chapter is None)
        or (session.topic_id is not None and topic is None),
    }
