# tests/test_analytics.py
from datetime import date, datetime, timezone

from study_path.analytics import (
    calculate_activity, calculate_overall_stats, calculate_streak, daily_insight, upcoming_exams,
    upcoming_major_exams,
)
from study_path.models import Chapter, MajorExam, Subject, Topic

TODAY = date(2026, 10, 18)
NOW = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


def subject_with_completions(*stamps, subject_id="s1"):
    topics = [Topic(id=f"t{i}", name=f"T{i}", is_completed=True, completed_at=s) for i, s in enumerate(stamps)]
    topics.append(Topic(id="open", name="Open"))
    return Subject(id=subject_id, name=subject_id, chapters=[Chapter(id="c", name="C", topics=topics)])


def test_overall_stats():
    subjects = [
        Subject(id="a", name="A", chapters=[
            Chapter(id="c1", name="C1", topics=[Topic(id="1", name="1", is_completed=True)]),
            Chapter(id="c2", name="C2", topics=[Topic(id="2", name="2"), Topic(id="3", name="3")]),
        ]),
        Subject(id="b", name="B", chapters=[Chapter(id="c3", name="C3", is_completed=True)]),
    ]
    assert calculate_overall_stats(subjects) == {
        "total_chapters": 3,
        "completed_chapters": 2,
        "total_topics": 3,
        "completed_topics": 1,
    }


def test_activity_window():
    subject = subject_with_completions("2026-10-18T08:00:00", "2026-10-18T09:00:00", "2026-10-15T20:00:00",
                                       "2026-10-01T10:00:00")
    result = calculate_activity([subject], TODAY)
    assert [a["date"] for a in result["activity"]][0] == "2026-10-12"
    assert [a["date"] for a in result["activity"]][-1] == "2026-10-18"
    counts = {a["date"]: a["count"] for a in result["activity"]}
    assert counts["2026-10-18"] == 2
    assert counts["2026-10-15"] == 1
    assert result["max_count"] == 2


def test_activity_max_count_floor():
    assert calculate_activity([], TODAY)["max_count"] == 1


def test_streak_counts_back_from_today():
    subject = subject_with_completions("2026-10-18T08:00:00", "2026-10-17T08:00:00", "2026-10-16T08:00:00",
                                       "2026-10-14T08:00:00")
    assert calculate_streak([subject], TODAY) == 3


def test_streak_can_start_yesterday():
    subject = subject_with_completions("2026-10-17T08:00:00", "2026-10-16T08:00:00")
    assert calculate_streak([subject], TODAY) == 2


def test_streak_broken():
    subject = subject_with_completions("2026-10-15T08:00:00")
    assert calculate_streak([subject], TODAY) == 0
    assert calculate_streak([], TODAY) == 0


def test_upcoming_exams_sorted_and_filtered():
    subjects = [
        Subject(id="a", name="Later", exam_date="2026-12-01"),
        Subject(id="b", name="Soon", exam_date="2026-10-20"),
        Subject(id="c", name="None"),
        Subject(id="d", name="Broken", exam_date="someday"),
    ]
    exams = upcoming_exams(subjects, NOW)
    assert [e["name"] for e in exams] == ["Soon", "Later"]
    assert exams[0]["days_left"] == 2


def test_insight_urgent_exam():
    subjects = [Subject(id="a", name="Math", exam_date="2026-10-21")]
    insight = daily_insight(subjects, NOW)
    assert insight["title"] == "Urgent Focus: Math"
    assert "3 days" in insight["message"]


def test_insight_finishing_strong():
    chapters = [Chapter(id=str(i), name=str(i), is_completed=i < 9) for i in range(10)]
    insight = daily_insight([Subject(id="a", name="A", chapters=chapters)], NOW)
    assert insight["title"] == "Finishing Strong"


def test_insight_streak_then_default():
    assert daily_insight([], NOW, streak=5)["title"] == "Momentum King"
    assert daily_insight([], NOW, streak=2)["title"] == "Strategic Session"


def test_completion_days_use_utc():
    # 01:00 at +06:00 is still the previous day in UTC
    subject = subject_with_completions("2026-10-18T01:00:00+06:00", "2026-10-18T10:00:00+00:00")
    counts = {a["date"]: a["count"] for a in calculate_activity([subject], TODAY)["activity"]}
    assert counts["2026-10-17"] == 1
    assert counts["2026-10-18"] == 1


def test_upcoming_major_exams():
    exams = [
        MajorExam(id="m1", name="Finals", date="2026-12-01"),
        MajorExam(id="m2", name="Mock", date="2026-10-20"),
        MajorExam(id="m3", name="Broken", date="someday"),
    ]
    result = upcoming_major_exams(exams, NOW)
    assert [(e["exam_id"], e["days_left"]) for e in result] == [("m2", 2), ("m1", 44)]
