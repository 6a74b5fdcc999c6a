"""Progress statistics, streaks and dashboard insights."""
from datetime import date, datetime, timedelta, timezone

from study_path.models import MajorExam, Subject, is_chapter_complete
from study_path.priorities import as_utc, days_until, parse_timestamp


def _completion_days(subjects: list[Subject]) -> list[str]:
    """UTC calendar day of every completed topic."""
    days = []
    for subject in subjects:
        for chapter in subject.chapters or []:
            for topic in chapter.topics or []:
                if not (topic.is_completed and topic.completed_at):
                    continue
                stamp = parse_timestamp(topic.completed_at)
                if stamp is not None:
                    days.append(stamp.astimezone(timezone.utc).date().isoformat())
    return days


def calculate_overall_stats(subjects: list[Subject]) -> dict:
    total_chapters = completed_chapters = total_topics = completed_topics = 0
    for subject in subjects:
        chapters = subject.chapters or []
        total_chapters += len(chapters)
        for chapter in chapters:
            if is_chapter_complete(chapter):
                completed_chapters += 1
            topics = chapter.topics or []
            total_topics += len(topics)
            completed_topics += sum(1 for t in topics if t.is_completed)
    return {
        "total_chapters": total_chapters,
        "completed_chapters": completed_chapters,
        "total_topics": total_topics,
        "completed_topics": completed_topics,
    }


def calculate_activity(subjects: list[Subject], today: date, days: int = 7) -> dict:
    """Completed-topic counts for each of the last `days` days (oldest first)."""
    completions = _completion_days(subjects)
    window = [(today - timedelta(days=days - 1 - i)).isoformat() for i in range(days)]
    activity = [{"date": d, "count": completions.count(d)} for d in window]
    return {
        "activity": activity,
        "max_count": max([a["count"] for a in activity] + [1]),
    }


def calculate_streak(subjects: list[Subject], today: date) -> int:
    """Consecutive active days, counting back from today or yesterday."""
    active = set(_completion_days(subjects))
    if today.isoformat() in active:
        day = today
    elif (today - timedelta(days=1)).isoformat() in active:
        day = today - timedelta(days=1)
    else:
        return 0
    streak = 0
    while day.isoformat() in active:
        streak += 1
        day -= timedelta(days=1)
    return streak


def upcoming_exams(subjects: list[Subject], now: datetime = None) -> list[dict]:
    """Subjects with a readable exam date, soonest first."""
    now = as_utc(now)
    exams = []
    for subject in subjects:
        exam = parse_timestamp(subject.exam_date)
        if exam is None:
            continue
        exams.append({
            "subject_id": subject.id,
            "name": subject.name,
            "exam_date": subject.exam_date,
            "days_left": days_until(exam, now),
        })
    return sorted(exams, key=lambda e: e["days_left"])


def upcoming_major_exams(exams: list[MajorExam], now: datetime = None) -> list[dict]:
    """Major exams with days remaining, soonest first."""
    now = as_utc(now)
    upcoming = []
    for exam in exams:
        exam_day = parse_timestamp(exam.date)
        if exam_day is None:
            continue
        upcoming.append({
            "exam_id": exam.id,
            "name": exam.name,
            "exam_date": exam.date,
            "days_left": days_until(exam_day, now),
        })
    return sorted(upcoming, key=lambda e: e["days_left"])


def daily_insight(subjects: list[Subject], now: datetime = None, streak: int = 0) -> dict:
    urgent = [e for e in upcoming_exams(subjects, now) if 0 < e["days_left"] <= 7]
    if urgent:
        exam = urgent[0]
        return {
            "title": f"Urgent Focus: {exam['name']}",
            "message": f"{exam['name']} exam is in {exam['days_left']} days! "
                       "Focus on incomplete chapters today to maximize your score.",
        }

    stats = calculate_overall_stats(subjects)
    if stats["total_chapters"]:
        rate = stats["completed_chapters"] / stats["total_chapters"] * 100
        if rate > 80:
            return {
                "title": "Finishing Strong",
                "message": "You've covered over 80% of your syllabus! "
                           "Focus on revision and practice questions to solidify your knowledge.",
            }

    if streak > 3:
        return {
            "title": "Momentum King",
            "message": f"You're on a {streak}-day streak! Keep the consistency up.",
        }

    return {
        "title": "Strategic Session",
        "message": "Analyze your weakest subjects today. "
                   "Twenty focused minutes on a difficult topic goes a long way.",
    }
