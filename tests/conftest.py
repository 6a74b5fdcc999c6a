import pytest

from study_path.models import Chapter, Subject, Topic


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_study.db")
    return db_path


@pytest.fixture
def make_subject():
    """Build a Subject from a compact description.

    chapters maps chapter id -> list of topic completion flags, e.g.
    {"ch1": [True, False, False]} gives topics ch1-t0 (done), ch1-t1, ch1-t2.
    """
    def _make(subject_id="s1", chapters=None, exam_date=None, completed_chapters=()):
        built = []
        for chapter_id, flags in (chapters or {}).items():
            built.append(Chapter(
                id=chapter_id,
                name=chapter_id.title(),
                is_completed=chapter_id in completed_chapters,
                topics=[
                    Topic(id=f"{chapter_id}-t{i}", name=f"Topic {i}", is_completed=done)
                    for i, done in enumerate(flags)
                ],
            ))
        return Subject(id=subject_id, name=subject_id.upper(), chapters=built, exam_date=exam_date)
    return _make
