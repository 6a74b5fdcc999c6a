# tests/test_integration.py
"""End-to-end test of the planning workflow."""
from datetime import date, datetime, timezone

from study_path.analytics import calculate_overall_stats
from study_path.curriculum import load_subjects, set_exam_date, toggle_chapter, toggle_topic
from study_path.db import init_db
from study_path.priorities import compute_priorities
from study_path.schedule import generate_ai_path, list_sessions, resolve_session, toggle_session
from study_path.templates import import_template

TODAY = date(2026, 10, 18)
NOW = datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)


def test_full_planning_workflow(tmp_db):
    init_db(tmp_db)
    import_template(tmp_db, "hsc-science-2026")
    subjects = load_subjects(tmp_db)
    physics = subjects[0]

    # Exam next week pushes physics to the top
    set_exam_date(tmp_db, physics.id, "2026-10-23")
    ranked = compute_priorities(load_subjects(tmp_db), NOW)
    assert ranked[0].subject_id == physics.id
    assert ranked[0].reason == "Exam approaching soon"
    assert len(ranked) == sum(len(c.topics) for s in subjects for c in s.chapters)

    # Finishing a chapter removes it from the ranking
    units_chapter = physics.chapters[0]
    toggle_chapter(tmp_db, units_chapter.id)
    ranked = compute_priorities(load_subjects(tmp_db), NOW)
    assert all(p.chapter_id != units_chapter.id for p in ranked)

    # A week of sessions, two a day
    sessions = generate_ai_path(tmp_db, days=7, today=TODAY)
    assert len(sessions) == 14
    assert {s.date for s in sessions} == {f"2026-10-{d}" for d in range(18, 25)}

    # Completing a planned topic and session
    first = sessions[0]
    toggle_topic(tmp_db, first.topic_id)
    toggle_session(tmp_db, first.id)
    subjects = load_subjects(tmp_db)
    assert calculate_overall_stats(subjects)["completed_topics"] == len(units_chapter.topics) + 1
    info = resolve_session(list_sessions(tmp_db)[0], subjects)
    assert info["session"].is_completed
    assert info["dangling"] is False

    # Planning again fills the following days without repeating open topics
    more = generate_ai_path(tmp_db, days=10, today=TODAY)
    assert {s.date for s in more} == {"2026-10-25", "2026-10-26", "2026-10-27"}
    open_topics = [s.topic_id for s in list_sessions(tmp_db) if not s.is_completed]
    assert len(open_topics) == len(set(open_topics))
