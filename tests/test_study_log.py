# tests/test_study_log.py
from datetime import datetime, timezone

import pytest

from study_path.curriculum import add_subject, delete_subject
from study_path.db import init_db
from study_path.errors import NotFoundError, StudyPathError
from study_path.study_log import last_logged_at, list_study_log, log_study_session, study_time_totals

# A Sunday, so the week started on Monday 2026-10-12
NOW = datetime(2026, 10, 18, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def db(tmp_db):
    init_db(tmp_db)
    return tmp_db


def test_log_study_session(db):
    subject_id = add_subject(db, "Physics")
    entry = log_study_session(db, 1500, subject_id=subject_id, now=NOW)
    assert entry.seconds == 1500
    assert entry.subject_id == subject_id
    assert list_study_log(db) == [entry]


def test_short_sessions_are_rejected(db):
    with pytest.raises(StudyPathError):
        log_study_session(db, 59, now=NOW)
    assert list_study_log(db) == []


def test_unknown_subject_is_rejected(db):
    with pytest.raises(NotFoundError):
        log_study_session(db, 600, subject_id="missing", now=NOW)


def test_entries_survive_subject_deletion(db):
    subject_id = add_subject(db, "Physics")
    log_study_session(db, 600, subject_id=subject_id, now=NOW)
    delete_subject(db, subject_id)
    assert [(e.seconds, e.subject_id) for e in list_study_log(db)] == [(600, None)]


def test_totals(db):
    log_study_session(db, 600, now=datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc))    # today
    log_study_session(db, 1200, now=datetime(2026, 10, 12, 8, 0, tzinfo=timezone.utc))   # Monday
    log_study_session(db, 1800, now=datetime(2026, 10, 2, 8, 0, tzinfo=timezone.utc))    # this month
    log_study_session(db, 3600, now=datetime(2026, 9, 30, 8, 0, tzinfo=timezone.utc))    # last month
    assert study_time_totals(db, NOW) == {
        "total": 7200,
        "today": 600,
        "week": 1800,
        "month": 3600,
    }


def test_totals_empty(db):
    assert study_time_totals(db, NOW) == {"total": 0, "today": 0, "week": 0, "month": 0}


def test_last_logged_at(db):
    assert last_logged_at(db) is None
    log_study_session(db, 600, now=datetime(2026, 10, 12, 8, 0, tzinfo=timezone.utc))
    log_study_session(db, 600, now=datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc))
    assert last_logged_at(db) == datetime(2026, 10, 17, 8, 0, tzinfo=timezone.utc)
