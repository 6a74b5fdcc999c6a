"""Major exams: board or final exams not tied to a single subject."""
import uuid
from datetime import date

from study_path.db import get_connection
from study_path.errors import NotFoundError
from study_path.logging import get_logger
from study_path.models import MajorExam

logger = get_logger("exams")


def _exam_from_row(row) -> MajorExam:
    return MajorExam(id=row["id"], name=row["name"], date=row["date"], color=row["color"] or "")


def _checked_date(value: str) -> str:
    return date.fromisoformat(value).isoformat()


def add_major_exam(db_path: str, name: str, exam_date: str, color: str = "") -> MajorExam:
    exam = MajorExam(id=str(uuid.uuid4()), name=name, date=_checked_date(exam_date), color=color or "")
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO major_exams (id, name, date, color) VALUES (?, ?, ?, ?)",
        (exam.id, exam.name, exam.date, exam.color),
    )
    conn.commit()
    conn.close()
    logger.info("Added major exam %s on %s", exam.name, exam.date)
    return exam


def get_major_exam(db_path: str, exam_id: str) -> MajorExam:
    conn = get_connection(db_path)
    row = conn.execute("SELECT * FROM major_exams WHERE id = ?", (exam_id,)).fetchone()
    conn.close()
    if not row:
        raise NotFoundError("Major exam", exam_id)
    return _exam_from_row(row)


def edit_major_exam(
    db_path: str, exam_id: str, name: str = None, exam_date: str = None, color: str = None,
) -> MajorExam:
    """Update the given fields and return the stored exam."""
    exam = get_major_exam(db_path, exam_id)
    if name is not None:
        exam.name = name
    if exam_date is not None:
        exam.date = _checked_date(exam_date)
    if color is not None:
        exam.color = color
    conn = get_connection(db_path)
    conn.execute(
        "UPDATE major_exams SET name = ?, date = ?, color = ? WHERE id = ?",
        (exam.name, exam.date, exam.color, exam_id),
    )
    conn.commit()
    conn.close()
    return exam


def delete_major_exam(db_path: str, exam_id: str) -> None:
    conn = get_connection(db_path)
    found = conn.execute("DELETE FROM major_exams WHERE id = ?", (exam_id,)).rowcount
    conn.commit()
    conn.close()
    if not found:
        raise NotFoundError("Major exam", exam_id)
    logger.info("Deleted major exam %s", exam_id)


def list_major_exams(db_path: str) -> list[MajorExam]:
    """All major exams, soonest first."""
    conn = get_connection(db_path)
    rows = conn.execute("SELECT * FROM major_exams ORDER BY date, name").fetchall()
    conn.close()
    return [_exam_from_row(r) for r in rows]
