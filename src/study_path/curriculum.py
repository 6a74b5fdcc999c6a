"""Curriculum store: subjects, chapters and topics."""
import uuid
from datetime import datetime, timezone

from study_path.db import get_connection
from study_path.errors import NotFoundError
from study_path.logging import get_logger
from study_path.models import Chapter, Subject, Topic, is_chapter_complete

logger = get_logger("curriculum")

_UNSET = object()


def _new_id() -> str:
    return str(uuid.uuid4())


def _now_stamp() -> str:
    """Completion and creation stamps are always UTC."""
    return datetime.now(timezone.utc).isoformat()


def add_subject(db_path: str, name: str, color: str = "", icon: str = None, exam_date: str = None) -> str:
    subject_id = _new_id()
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO subjects (id, name, color, icon, exam_date, created_at) VALUES (?, ?, ?, ?, ?, ?)",
        (subject_id, name, color, icon, exam_date, _now_stamp()),
    )
    conn.commit()
    conn.close()
    logger.info("Added subject %s (%s)", name, subject_id)
    return subject_id


def edit_subject(db_path: str, subject_id: str, name: str = None, color: str = None, exam_date=_UNSET) -> None:
    """Update the given fields. Pass exam_date=None to clear the exam date."""
    updates = {}
    if name is not None:
        updates["name"] = name
    if color is not None:
        updates["color"] = color
    if exam_date is not _UNSET:
        updates["exam_date"] = exam_date
    if not updates:
        return
    assignments = ", ".join(f"{column} = ?" for column in updates)
    conn = get_connection(db_path)
    cursor = conn.execute(
        f"UPDATE subjects SET {assignments} WHERE id = ?",
        (*updates.values(), subject_id),
    )
    found = cursor.rowcount
    conn.commit()
    conn.close()
    if found == 0:
        raise NotFoundError("Subject", subject_id)


def set_exam_date(db_path: str, subject_id: str, exam_date: str | None) -> None:
    edit_subject(db_path, subject_id, exam_date=exam_date)


def delete_subject(db_path: str, subject_id: str) -> None:
    """Delete a subject with its chapters and topics.

    Scheduled sessions that point at it are kept; they resolve as unknown.
    """
    conn = get_connection(db_path)
    cursor = conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
    found = cursor.rowcount
    conn.commit()
    conn.close()
    if found == 0:
        raise NotFoundError("Subject", subject_id)
    logger.info("Deleted subject %s", subject_id)


def add_chapter(db_path: str, subject_id: str, name: str) -> str:
    chapter_id = _new_id()
    conn = get_connection(db_path)
    if not conn.execute("SELECT 1 FROM subjects WHERE id = ?", (subject_id,)).fetchone():
        conn.close()
        raise NotFoundError("Subject", subject_id)
    position = conn.execute(
        "SELECT COALESCE(MAX(position) + 1, 0) FROM chapters WHERE subject_id = ?", (subject_id,)
    ).fetchone()[0]
    conn.execute(
        "INSERT INTO chapters (id, subject_id, name, position) VALUES (?, ?, ?, ?)",
        (chapter_id, subject_id, name, position),
    )
    conn.commit()
    conn.close()
    return chapter_id


def rename_chapter(db_path: str, chapter_id: str, name: str) -> None:
    conn = get_connection(db_path)
    cursor = conn.execute("UPDATE chapters SET name = ? WHERE id = ?", (name, chapter_id))
    found = cursor.rowcount
    conn.commit()
    conn.close()
    if found == 0:
        raise NotFoundError("Chapter", chapter_id)


def toggle_chapter(db_path: str, chapter_id: str) -> bool:
    """Flip a chapter's completion and apply the new state to all its topics.

    Returns the new completion state.
    """
    conn = get_connection(db_path)
    row = conn.execute("SELECT is_completed FROM chapters WHERE id = ?", (chapter_id,)).fetchone()
    if not row:
        conn.close()
        raise NotFoundError("Chapter", chapter_id)
    completed = not row["is_completed"]
    stamp = _now_stamp() if completed else None
    conn.execute(
        "UPDATE chapters SET is_completed = ?, completed_at = ? WHERE id = ?",
        (int(completed), stamp, chapter_id),
    )
    # Only touch topics whose state actually changes so existing stamps survive
    conn.execute(
        "UPDATE topics SET is_completed = ?, completed_at = ? WHERE chapter_id = ? AND is_completed != ?",
        (int(completed), stamp, chapter_id, int(completed)),
    )
    conn.commit()
    conn.close()
    return completed


def delete_chapter(db_path: str, chapter_id: str) -> None:
    conn = get_connection(db_path)
    cursor = conn.execute("DELETE FROM chapters WHERE id = ?", (chapter_id,))
    found = cursor.rowcount
    conn.commit()
    conn.close()
    if found == 0:
        raise NotFoundError("Chapter", chapter_id)


def add_topic(db_path: str, chapter_id: str, name: str) -> str:
    topic_id = _new_id()
    conn = get_connection(db_path)
    if not conn.execute("SELECT 1 FROM chapters WHERE id = ?", (chapter_id,)).fetchone():
        conn.close()
        raise NotFoundError("Chapter", chapter_id)
    position = conn.execute(
        "SELECT COALESCE(MAX(position) + 1, 0) FROM topics WHERE chapter_id = ?", (chapter_id,)
    ).fetchone()[0]
    conn.execute(
        "INSERT INTO topics (id, chapter_id, name, position) VALUES (?, ?, ?, ?)",
        (topic_id, chapter_id, name, position),
    )
    # A new open topic reopens a chapter that was done
    conn.execute(
        "UPDATE chapters SET is_completed = 0, completed_at = NULL WHERE id = ?", (chapter_id,)
    )
    conn.commit()
    conn.close()
    return topic_id


def rename_topic(db_path: str, topic_id: str, name: str) -> None:
    conn = get_connection(db_path)
    cursor = conn.execute("UPDATE topics SET name = ? WHERE id = ?", (name, topic_id))
    found = cursor.rowcount
    conn.commit()
    conn.close()
    if found == 0:
        raise NotFoundError("Topic", topic_id)


def _load_chapter(conn, chapter_id: str) -> Chapter:
    row = conn.execute("SELECT * FROM chapters WHERE id = ?", (chapter_id,)).fetchone()
    topics = conn.execute(
        "SELECT * FROM topics WHERE chapter_id = ? ORDER BY position", (chapter_id,)
    ).fetchall()
    return Chapter(
        id=row["id"],
        name=row["name"],
        is_completed=bool(row["is_completed"]),
        completed_at=row["completed_at"],
        topics=[_topic_from_row(t) for t in topics],
    )


def _topic_from_row(row) -> Topic:
    return Topic(
        id=row["id"],
        name=row["name"],
        is_completed=bool(row["is_completed"]),
        completed_at=row["completed_at"],
    )


def toggle_topic(db_path: str, topic_id: str) -> bool:
    """Flip a topic's completion, then re-derive its chapter's flag.

    Returns the new completion state of the topic.
    """
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM topics WHERE id = ?", (topic_id,)).fetchone()
    if not row:
        conn.close()
        raise NotFoundError("Topic", topic_id)
    completed = not row["is_completed"]
    conn.execute(
        "UPDATE topics SET is_completed = ?, completed_at = ? WHERE id = ?",
        (int(completed), _now_stamp() if completed else None, topic_id),
    )
    chapter = _load_chapter(conn, row["chapter_id"])
    chapter.is_completed = False
    chapter_done = is_chapter_complete(chapter)
    conn.execute(
        "UPDATE chapters SET is_completed = ?, completed_at = ? WHERE id = ?",
        (int(chapter_done), _now_stamp() if chapter_done else None, chapter.id),
    )
    conn.commit()
    conn.close()
    return completed


def delete_topic(db_path: str, topic_id: str) -> None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT chapter_id FROM topics WHERE id = ?", (topic_id,)).fetchone()
    if not row:
        conn.close()
        raise NotFoundError("Topic", topic_id)
    conn.execute("DELETE FROM topics WHERE id = ?", (topic_id,))
    chapter = _load_chapter(conn, row["chapter_id"])
    if chapter.topics:
        chapter.is_completed = False
        conn.execute(
            "UPDATE chapters SET is_completed = ? WHERE id = ?",
            (int(is_chapter_complete(chapter)), chapter.id),
        )
    conn.commit()
    conn.close()


def load_subjects(db_path: str) -> list[Subject]:
    """Materialise the whole curriculum as fresh objects.

    Every call returns new objects, so the result is a private snapshot
    that later store updates cannot change underneath a caller.
    """
    conn = get_connection(db_path)
    subjects = conn.execute("SELECT * FROM subjects ORDER BY created_at, rowid").fetchall()
    chapters = conn.execute("SELECT * FROM chapters ORDER BY position").fetchall()
    topics = conn.execute("SELECT * FROM topics ORDER BY position").fetchall()
    conn.close()

    topics_by_chapter = {}
    for t in topics:
        topics_by_chapter.setdefault(t["chapter_id"], []).append(_topic_from_row(t))
    chapters_by_subject = {}
    for c in chapters:
        chapters_by_subject.setdefault(c["subject_id"], []).append(Chapter(
            id=c["id"],
            name=c["name"],
            is_completed=bool(c["is_completed"]),
            completed_at=c["completed_at"],
            topics=topics_by_chapter.get(c["id"], []),
        ))
    return [
        Subject(
            id=s["id"],
            name=s["name"],
            color=s["color"] or "",
            icon=s["icon"],
            exam_date=s["exam_date"],
            chapters=chapters_by_subject.get(s["id"], []),
        )
        for s in subjects
    ]


def find_subject(db_path: str, subject_id: str) -> Subject:
    for subject in load_subjects(db_path):
        if subject.id == subject_id:
            return subject
    raise NotFoundError("Subject", subject_id)


def insert_subject(db_path: str, subject: Subject) -> str:
    """Insert a whole subject tree under fresh ids, keeping completion state."""
    subject_id = _new_id()
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO subjects (id, name, color, icon, exam_date, created_at) VALUES (?, ?, ?, ?, ?, ?)",
        (subject_id, subject.name, subject.color or "", subject.icon, subject.exam_date,
         _now_stamp()),
    )
    for position, chapter in enumerate(subject.chapters or []):
        chapter_id = _new_id()
        conn.execute(
            """INSERT INTO chapters (id, subject_id, name, position, is_completed, completed_at)
            VALUES (?, ?, ?, ?, ?, ?)""",
            (chapter_id, subject_id, chapter.name, position,
             int(is_chapter_complete(chapter)), chapter.completed_at),
        )
        conn.executemany(
            """INSERT INTO topics (id, chapter_id, name, position, is_completed, completed_at)
            VALUES (?, ?, ?, ?, ?, ?)""",
            [
                (_new_id(), chapter_id, t.name, i, int(t.is_completed), t.completed_at)
                for i, t in enumerate(chapter.topics or [])
            ],
        )
    conn.commit()
    conn.close()
    logger.info("Inserted subject %s with %d chapters", subject.name, len(subject.chapters or []))
    return subject_id
