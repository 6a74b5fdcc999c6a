# tests/test_priorities.py
from datetime import datetime, timezone

import pytest

from study_path.models import Chapter, Subject, Topic
from study_path.priorities import (
    MAX_PRIORITIES, choose_reason, compute_priorities, days_until, exam_proximity_score,
    parse_timestamp,
)

NOW = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


def no_jitter():
    return 0.0


def test_exam_score_without_exam_date():
    assert exam_proximity_score(None, NOW) == 10
    assert exam_proximity_score("", NOW) == 10


@pytest.mark.parametrize("exam_date, expected", [
    ("2026-10-17", 0),   # passed
    ("2026-10-18", 0),   # today
    ("2026-10-19", 45),  # 15 hours away rounds up to 1 day
    ("2026-10-25", 45),  # 6.6 days rounds up to 7
    ("2026-10-26", 30),
    ("2026-11-17", 30),  # 30 days
    ("2026-11-18", 15),
    ("2027-01-16", 15),  # 90 days
    ("2027-01-17", 5),
])
def test_exam_score_buckets(exam_date, expected):
    assert exam_proximity_score(exam_date, NOW) == expected


def test_exam_score_exactly_seven_days():
    now = datetime(2026, 10, 18, 0, 0, tzinfo=timezone.utc)
    assert exam_proximity_score("2026-10-25", now) == 45
    assert exam_proximity_score("2026-10-26", now) == 30


def test_unparseable_exam_date_counts_as_no_exam():
    assert exam_proximity_score("next tuesday", NOW) == 10


def test_days_until_rounds_partial_days_up():
    exam = parse_timestamp("2026-10-20")
    assert days_until(exam, NOW) == 2
    assert days_until(NOW, NOW) == 0


def test_parse_timestamp_variants():
    assert parse_timestamp("2026-10-20").tzinfo is not None
    assert parse_timestamp("2026-10-20T08:30:00Z") == datetime(2026, 10, 20, 8, 30, tzinfo=timezone.utc)
    assert parse_timestamp(None) is None
    assert parse_timestamp("garbage") is None


def test_naive_now_is_treated_as_utc(make_subject):
    subject = make_subject(chapters={"ch1": [False]}, exam_date="2026-10-23")
    aware = compute_priorities([subject], NOW, jitter=no_jitter)
    naive = compute_priorities([subject], NOW.replace(tzinfo=None), jitter=no_jitter)
    assert aware[0].score == naive[0].score


def test_reason_thresholds_first_match_wins():
    assert choose_reason(45, 30, 15) == "Exam approaching soon"
    assert choose_reason(15, 20, 15) == "High chapter workload"
    assert choose_reason(15, 10, 10) == "Foundational topic"
    assert choose_reason(10, 10, 5) == "Routine study"


def test_physics_scenario(make_subject):
    """Exam in 5 days, one chapter with 4 topics of which 1 is done."""
    physics = make_subject("physics", {"mechanics": [True, False, False, False]}, exam_date="2026-10-23")
    result = compute_priorities([physics], NOW, jitter=no_jitter)

    assert [p.topic_id for p in result] == ["mechanics-t1", "mechanics-t2", "mechanics-t3"]
    assert result[0].score == pytest.approx(82.5)
    assert result[1].score == pytest.approx(77.5)
    assert result[2].score == pytest.approx(72.5)
    assert all(p.reason == "Exam approaching soon" for p in result)
    assert result[0].subject_id == "physics"
    assert result[0].chapter_id == "mechanics"


def test_no_exam_workload_reason(make_subject):
    subject = make_subject(chapters={"ch1": [False, False]})
    result = compute_priorities([subject], NOW, jitter=no_jitter)
    # 10 + 30 + 15 and 10 + 30 + 7.5
    assert result[0].score == pytest.approx(55)
    assert result[1].score == pytest.approx(47.5)
    assert result[0].reason == "High chapter workload"


def test_foundational_and_routine_reasons(make_subject):
    # 3 of 4 done -> chapter term 7.5; single open topic -> order term 15
    subject = make_subject(chapters={"ch1": [True, True, True, False]})
    assert compute_priorities([subject], NOW, jitter=no_jitter)[0].reason == "Foundational topic"

    # 4 of 8 done -> chapter term 15; 4 open topics, last one has order term 3.75
    subject = make_subject(chapters={"ch1": [True] * 4 + [False] * 4})
    result = compute_priorities([subject], NOW, jitter=no_jitter)
    assert result[-1].reason == "Routine study"


def test_completed_chapter_is_skipped(make_subject):
    subject = make_subject(
        chapters={"done": [False, False], "open": [False]},
        completed_chapters=("done",),
    )
    result = compute_priorities([subject], NOW, jitter=no_jitter)
    assert {p.chapter_id for p in result} == {"open"}


def test_all_topics_complete_contributes_nothing(make_subject):
    subject = make_subject(chapters={"ch1": [True, True]})
    assert compute_priorities([subject], NOW) == []


def test_topicless_chapter_contributes_nothing(make_subject):
    subject = make_subject(chapters={"empty": []})
    assert compute_priorities([subject], NOW) == []


def test_subject_without_chapters():
    assert compute_priorities([Subject(id="s", name="Empty")], NOW) == []
    assert compute_priorities([], NOW) == []


def test_missing_lists_are_treated_as_empty():
    subject = Subject(id="s", name="Loose", chapters=None)
    chapter = Chapter(id="c", name="Loose", topics=None)
    assert compute_priorities([subject], NOW) == []
    assert compute_priorities([Subject(id="s2", name="X", chapters=[chapter])], NOW) == []


def test_one_entry_per_incomplete_topic(make_subject):
    subject = make_subject(chapters={"a": [True, False, False], "b": [False] * 5})
    result = compute_priorities([subject], NOW)
    assert sum(1 for p in result if p.chapter_id == "a") == 2
    assert sum(1 for p in result if p.chapter_id == "b") == 5


def test_sorted_and_bounded_with_real_jitter(make_subject):
    subjects = [
        make_subject("s1", {"a": [False] * 6, "b": [True, False]}, exam_date="2026-10-20"),
        make_subject("s2", {"c": [False] * 4}),
        make_subject("s3", {"d": [True, False, False]}, exam_date="2027-06-01"),
    ]
    result = compute_priorities(subjects, NOW)
    scores = [p.score for p in result]
    assert scores == sorted(scores, reverse=True)
    assert all(0 <= s < 100 for s in scores)


def test_truncates_to_fifty(make_subject):
    subject = make_subject(chapters={"big": [False] * 80})
    result = compute_priorities([subject], NOW)
    assert len(result) == MAX_PRIORITIES == 50


def test_exam_subject_outranks_no_exam_subject(make_subject):
    urgent = make_subject("urgent", {"a": [False, False]}, exam_date="2026-10-21")
    relaxed = make_subject("relaxed", {"b": [False, False]})
    result = compute_priorities([relaxed, urgent], NOW, jitter=no_jitter)
    assert [p.subject_id for p in result[:2]] == ["urgent", "urgent"]


def test_fixed_jitter_is_repeatable(make_subject):
    subjects = [make_subject("s1", {"a": [False] * 3}), make_subject("s2", {"b": [True, False]})]
    first = compute_priorities(subjects, NOW, jitter=lambda: 0.5)
    second = compute_priorities(subjects, NOW, jitter=lambda: 0.5)
    assert first == second


def test_jitter_is_scaled_to_ten(make_subject):
    subject = make_subject(chapters={"ch1": [False]})
    base = compute_priorities([subject], NOW, jitter=no_jitter)[0].score
    bumped = compute_priorities([subject], NOW, jitter=lambda: 0.99)[0].score
    assert bumped - base == pytest.approx(9.9)


def test_ties_keep_curriculum_order():
    subjects = [
        Subject(id=sid, name=sid, chapters=[Chapter(id=f"{sid}-c", name="c", topics=[Topic(id=f"{sid}-t", name="t")])])
        for sid in ("first", "second", "third")
    ]
    result = compute_priorities(subjects, NOW, jitter=no_jitter)
    assert [p.subject_id for p in result] == ["first", "second", "third"]


def test_does_not_mutate_input(make_subject):
    subject = make_subject(chapters={"ch1": [True, False]}, exam_date="2026-10-23")
    before = repr(subject)
    compute_priorities([subject], NOW)
    assert repr(subject) == before
