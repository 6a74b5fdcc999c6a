"""Data classes for the curriculum and schedule domain model."""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Topic:
    id: str
    name: str
    is_completed: bool = False
    completed_at: Optional[str] = None


@dataclass
class Chapter:
    id: str
    name: str
    is_completed: bool = False
    completed_at: Optional[str] = None
    topics: list[Topic] = field(default_factory=list)  # order = study order


@dataclass
class Subject:
    id: str
    name: str
    color: str = ""
    chapters: list[Chapter] = field(default_factory=list)
    exam_date: Optional[str] = None  # ISO date
    icon: Optional[str] = None


@dataclass
class StudyPriority:
    subject_id: str
    chapter_id: str
    topic_id: str
    score: float
    reason: str

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.subject_id, self.chapter_id, self.topic_id)


@dataclass
class ScheduledSession:
    id: str
    subject_id: str
    date: str  # YYYY-MM-DD
    duration_minutes: int = 60
    time: Optional[str] = None  # HH:MM
    chapter_id: Optional[str] = None
    topic_id: Optional[str] = None
    notes: Optional[str] = None
    is_completed: bool = False
    reminder_sent: bool = False


@dataclass
class StudyLogEntry:
    id: int
    seconds: int
    logged_at: str  # ISO timestamp, UTC
    subject_id: Optional[str] = None


@dataclass
class MajorExam:
    id: str
    name: str
    date: str  # YYYY-MM-DD
    color: str = ""


def is_chapter_complete(chapter: Chapter) -> bool:
    """Single source of truth for chapter completion.

    A chapter is complete when it has been marked complete, or when it has
    topics and every one of them is complete.
    """
    if chapter.is_completed:
        return True
    topics = chapter.topics or []
    return bool(topics) and all(t.is_completed for t in topics)


def chapter_progress(chapter: Chapter) -> float:
    """Completed fraction in [0, 1]. Topic-less chapters count as all or nothing."""
    topics = chapter.topics or []
    if not topics:
        return 1.0 if chapter.is_completed else 0.0
    return sum(1 for t in topics if t.is_completed) / len(topics)


def subject_progress(subject: Subject) -> float:
    """Mean chapter progress as a percentage (0 when there are no chapters)."""
    chapters = subject.chapters or []
    if not chapters:
        return 0.0
    return sum(chapter_progress(c) for c in chapters) / len(chapters) * 100


# Loose document parsing. Exports and legacy documents use camelCase keys
# and may omit arrays entirely. Topics may also be plain name strings.

def _pick(data: dict, *keys, default=None):
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return default


def _entries(data: dict, key: str) -> list:
    value = _pick(data, key, default=[])
    return value if isinstance(value, list) else []


def topic_from_dict(data) -> Optional[Topic]:
    """Build a Topic from a dict or a bare name. Returns None for anything else."""
    if isinstance(data, str):
        return Topic(id="", name=data)
    if not isinstance(data, dict):
        return None
    return Topic(
        id=str(_pick(data, "id", default="")),
        name=_pick(data, "name", default=""),
        is_completed=bool(_pick(data, "isCompleted", "is_completed", default=False)),
        completed_at=_pick(data, "completedAt", "completed_at"),
    )


def chapter_from_dict(data: dict) -> Chapter:
    topics = [topic_from_dict(t) for t in _entries(data, "topics")]
    return Chapter(
        id=str(_pick(data, "id", default="")),
        name=_pick(data, "name", default=""),
        is_completed=bool(_pick(data, "isCompleted", "is_completed", default=False)),
        completed_at=_pick(data, "completedAt", "completed_at"),
        topics=[t for t in topics if t is not None],
    )


def subject_from_dict(data: dict) -> Subject:
    return Subject(
        id=str(_pick(data, "id", default="")),
        name=_pick(data, "name", default=""),
        color=_pick(data, "color", default=""),
        chapters=[chapter_from_dict(c) for c in _entries(data, "chapters") if isinstance(c, dict)],
        exam_date=_pick(data, "examDate", "exam_date"),
        icon=_pick(data, "icon"),
    )


def session_from_dict(data: dict) -> ScheduledSession:
    return ScheduledSession(
        id=str(_pick(data, "id", default="")),
        subject_id=str(_pick(data, "subjectId", "subject_id", default="")),
        date=_pick(data, "date", default=""),
        duration_minutes=int(_pick(data, "durationMinutes", "duration_minutes", default=60)),
        time=_pick(data, "time"),
        chapter_id=_pick(data, "chapterId", "chapter_id"),
        topic_id=_pick(data, "topicId", "topic_id"),
        notes=_pick(data, "notes"),
        is_completed=bool(_pick(data, "isCompleted", "is_completed", default=False)),
        reminder_sent=bool(_pick(data, "reminderSent", "reminder_sent", default=False)),
    )


def subject_to_dict(subject: Subject) -> dict:
    return {
        "id": subject.id,
        "name": subject.name,
        "color": subject.color,
        "icon": subject.icon,
        "examDate": subject.exam_date,
        "chapters": [
            {
                "id": c.id,
                "name": c.name,
                "isCompleted": c.is_completed,
                "completedAt": c.completed_at,
                "topics": [
                    {"id": t.id, "name": t.name, "isCompleted": t.is_completed, "completedAt": t.completed_at}
                    for t in c.topics
                ],
            }
            for c in subject.chapters
        ],
    }


def session_to_dict(session: ScheduledSession) -> dict:
    return {
        "id": session.id,
        "subjectId": session.subject_id,
        "date": session.date,
        "time": session.time,
        "durationMinutes": session.duration_minutes,
        "chapterId": session.chapter_id,
        "topicId": session.topic_id,
        "notes": session.notes,
        "isCompleted": session.is_completed,
        "reminderSent": session.reminder_sent,
    }
