"""Interactive CLI application."""
from datetime import date, datetime, timezone
from pathlib import Path
from time import monotonic

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from study_path.analytics import (
    calculate_activity, calculate_overall_stats, calculate_streak, daily_insight, upcoming_exams,
    upcoming_major_exams,
)
from study_path.curriculum import (
    add_chapter, add_subject, add_topic, load_subjects, set_exam_date, toggle_chapter, toggle_topic,
)
from study_path.db import (
    DEFAULT_DB_PATH, get_daily_goal, get_horizon_days, get_setting, init_db, set_daily_goal,
    set_horizon_days, set_setting,
)
from study_path.errors import StudyPathError
from study_path.exams import add_major_exam, delete_major_exam, edit_major_exam, list_major_exams
from study_path.importer import export_data, import_data
from study_path.models import chapter_progress, subject_progress
from study_path.priorities import compute_priorities
from study_path.reminders import (
    GOAL_REMINDER_KEY, GOAL_REMINDER_MINUTES, INACTIVITY_REMINDER_KEY, inactivity_days, needs_goal_reminder,
    needs_inactivity_reminder, sessions_due_for_reminder,
)
from study_path.schedule import (
    delete_session, generate_ai_path, list_sessions, mark_reminder_sent, resolve_session, toggle_session,
)
from study_path.study_log import last_logged_at, log_study_session, study_time_totals
from study_path.templates import get_template, import_template, is_seeded, list_templates

console = Console()

NEXT_UP_LIMIT = 10


class BackToMenu(Exception):
    """Raised when the user types 'q' or 'menu' inside a command."""


def menu_prompt(text: str, **kwargs) -> str:
    """Prompt.ask wrapper that lets the user bail out to the main menu."""
    answer = Prompt.ask(text, **kwargs)
    if answer is not None and answer.strip().lower() in ("q", "menu"):
        raise BackToMenu()
    return answer


def choose(items: list, label, title: str):
    """Show a numbered list and return the picked item (None if empty)."""
    if not items:
        console.print(f"[yellow]No {title.lower()} yet.[/yellow]")
        return None
    for i, item in enumerate(items, 1):
        console.print(f"  [cyan]{i}[/cyan]) {label(item)}")
    choice = menu_prompt(f"Select {title.lower()}", choices=[str(i) for i in range(1, len(items) + 1)])
    return items[int(choice) - 1]


def show_welcome():
    console.print(Panel(
        "[bold]Study Path[/bold]\n[dim]Track your syllabus, plan your week[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("subjects", "Subjects and progress"),
        ("add", "Add a subject, chapter or topic"),
        ("toggle", "Mark a topic or chapter done"),
        ("exam", "Set or clear an exam date"),
        ("next", "What to study next"),
        ("path", "Generate a smart study path"),
        ("schedule", "Upcoming sessions"),
        ("done", "Toggle a session complete"),
        ("remove", "Remove a session"),
        ("timer", "Time a study session"),
        ("log", "Log study minutes by hand"),
        ("dashboard", "Progress, streak and exams"),
        ("exams", "Major exams"),
        ("settings", "Daily goal and planning horizon"),
        ("templates", "Load a syllabus template"),
        ("import", "Import a backup"),
        ("export", "Export a backup"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_reminders(db_path: str):
    now = datetime.now()
    subjects = load_subjects(db_path)
    for session in sessions_due_for_reminder(list_sessions(db_path, start=now.date().isoformat()), now):
        info = resolve_session(session, subjects)
        console.print(f"[magenta]Coming up at {session.time}: {info['subject_name']} · {info['label']}[/magenta]")
        mark_reminder_sent(db_path, session.id)

    utc_now = datetime.now(timezone.utc)
    logged_at = last_logged_at(db_path)
    if needs_inactivity_reminder(subjects, utc_now, logged_at, get_setting(db_path, INACTIVITY_REMINDER_KEY)):
        days = inactivity_days(subjects, utc_now, logged_at)
        console.print(
            f"[yellow]It's been {days} days since your last study session. Keep your streak alive![/yellow]"
        )
        set_setting(db_path, INACTIVITY_REMINDER_KEY, utc_now.isoformat())

    today = utc_now.date()
    studied = study_time_totals(db_path, utc_now)["today"]
    if needs_goal_reminder(studied, get_daily_goal(db_path), today, get_setting(db_path, GOAL_REMINDER_KEY)):
        console.print(
            f"[cyan]Almost there! You're less than {GOAL_REMINDER_MINUTES} minutes from your daily goal.[/cyan]"
        )
        set_setting(db_path, GOAL_REMINDER_KEY, today.isoformat())


def cmd_subjects(db_path: str):
    subjects = load_subjects(db_path)
    if not subjects:
        console.print("[yellow]No subjects yet. Use 'add' or 'templates' to get started.[/yellow]")
        return
    table = Table(title="Subjects")
    table.add_column("Subject", style="cyan")
    table.add_column("Chapters", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Exam")
    for s in subjects:
        done = sum(1 for c in s.chapters if chapter_progress(c) == 1.0)
        table.add_row(s.name, f"{done}/{len(s.chapters)}", f"{subject_progress(s):.0f}%", s.exam_date or "-")
    console.print(table)


def cmd_add(db_path: str):
    kind = menu_prompt("Add what", choices=["subject", "chapter", "topic"], default="topic")
    if kind == "subject":
        name = menu_prompt("Subject name")
        exam = menu_prompt("Exam date (YYYY-MM-DD, blank for none)", default="")
        add_subject(db_path, name, exam_date=_parse_date(exam))
        console.print(f"[green]Subject added: {name}[/green]")
        return
    subject = choose(load_subjects(db_path), lambda s: s.name, "Subject")
    if subject is None:
        return
    if kind == "chapter":
        name = menu_prompt("Chapter name")
        add_chapter(db_path, subject.id, name)
        console.print(f"[green]Chapter added: {name}[/green]")
        return
    chapter = choose(subject.chapters, lambda c: c.name, "Chapter")
    if chapter is None:
        return
    name = menu_prompt("Topic name")
    add_topic(db_path, chapter.id, name)
    console.print(f"[green]Topic added: {name}[/green]")


def cmd_toggle(db_path: str):
    subject = choose(load_subjects(db_path), lambda s: f"{s.name} ({subject_progress(s):.0f}%)", "Subject")
    if subject is None:
        return
    chapter = choose(
        subject.chapters, lambda c: f"{c.name} ({chapter_progress(c) * 100:.0f}%)", "Chapter",
    )
    if chapter is None:
        return
    if not chapter.topics:
        state = toggle_chapter(db_path, chapter.id)
        console.print(f"[green]{chapter.name}: {'done' if state else 'reopened'}[/green]")
        return
    topic = choose(chapter.topics, lambda t: f"{'✓' if t.is_completed else '·'} {t.name}", "Topic")
    if topic is None:
        return
    state = toggle_topic(db_path, topic.id)
    console.print(f"[green]{topic.name}: {'done' if state else 'reopened'}[/green]")


def _parse_date(text: str) -> str | None:
    text = (text or "").strip()
    if not text:
        return None
    return date.fromisoformat(text).isoformat()


def cmd_exam(db_path: str):
    subject = choose(load_subjects(db_path), lambda s: f"{s.name} [dim]{s.exam_date or ''}[/dim]", "Subject")
    if subject is None:
        return
    exam = menu_prompt("Exam date (YYYY-MM-DD, blank to clear)", default="")
    set_exam_date(db_path, subject.id, _parse_date(exam))
    console.print(f"[green]Exam date for {subject.name}: {_parse_date(exam) or 'cleared'}[/green]")


def cmd_next(db_path: str):
    subjects = load_subjects(db_path)
    priorities = compute_priorities(subjects, datetime.now(timezone.utc))
    if not priorities:
        console.print("[green]All caught up! Nothing left to study.[/green]")
        return
    names = {}
    for s in subjects:
        for c in s.chapters:
            for t in c.topics:
                names[(s.id, c.id, t.id)] = (s.name, c.name, t.name)
    table = Table(title="Study Next")
    table.add_column("#", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Chapter")
    table.add_column("Topic")
    table.add_column("Score", justify="right")
    table.add_column("Why")
    for i, p in enumerate(priorities[:NEXT_UP_LIMIT], 1):
        subject_name, chapter_name, topic_name = names[p.key]
        table.add_row(str(i), subject_name, chapter_name, topic_name, f"{p.score:.0f}", p.reason)
    console.print(table)


def _sessions_table(title: str, resolved: list[dict]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Date")
    table.add_column("Time")
    table.add_column("Subject", style="cyan")
    table.add_column("Focus")
    table.add_column("Min", justify="right")
    table.add_column("Notes", style="dim")
    for i, info in enumerate(resolved, 1):
        s = info["session"]
        focus = f"[green]✓[/green] {info['label']}" if s.is_completed else info["label"]
        table.add_row(str(i), s.date, s.time or "-", info["subject_name"], focus,
                      str(s.duration_minutes), s.notes or "")
    return table


def cmd_path(db_path: str):
    days = get_horizon_days(db_path)
    sessions = generate_ai_path(db_path, days=days, today=date.today())
    if not sessions:
        console.print("[yellow]No new topics could be scheduled. Add chapters with topics first.[/yellow]")
        return
    subjects = load_subjects(db_path)
    console.print(_sessions_table(
        f"Smart Path: {len(sessions)} sessions added", [resolve_session(s, subjects) for s in sessions],
    ))


def _upcoming(db_path: str) -> list[dict]:
    subjects = load_subjects(db_path)
    return [resolve_session(s, subjects) for s in list_sessions(db_path, start=date.today().isoformat())]


def cmd_schedule(db_path: str):
    upcoming = _upcoming(db_path)
    if not upcoming:
        console.print("[yellow]Nothing scheduled. Try 'path'.[/yellow]")
        return
    console.print(_sessions_table("Upcoming Sessions", upcoming))


def _pick_session(db_path: str):
    upcoming = _upcoming(db_path)
    if not upcoming:
        console.print("[yellow]Nothing scheduled.[/yellow]")
        return None
    console.print(_sessions_table("Upcoming Sessions", upcoming))
    number = menu_prompt("Session #", choices=[str(i) for i in range(1, len(upcoming) + 1)])
    return upcoming[int(number) - 1]["session"]


def cmd_done(db_path: str):
    session = _pick_session(db_path)
    if session is None:
        return
    state = toggle_session(db_path, session.id)
    console.print("[green]Session completed![/green]" if state else "[cyan]Session reopened.[/cyan]")


def cmd_remove(db_path: str):
    session = _pick_session(db_path)
    if session is None:
        return
    delete_session(db_path, session.id)
    console.print("[dim]Session removed.[/dim]")


def _format_minutes(seconds: int) -> str:
    hours, minutes = divmod(seconds // 60, 60)
    return f"{hours}h {minutes}m" if hours else f"{minutes}m"


def _choose_subject_or_none(db_path: str) -> str | None:
    subjects = load_subjects(db_path)
    if not subjects:
        return None
    for i, s in enumerate(subjects, 1):
        console.print(f"  [cyan]{i}[/cyan]) {s.name}")
    choice = menu_prompt(
        "Subject (blank for none)", choices=[""] + [str(i) for i in range(1, len(subjects) + 1)], default="",
    )
    return subjects[int(choice) - 1].id if choice else None


def _save_study_time(db_path: str, seconds: int, subject_id: str | None):
    entry = log_study_session(db_path, seconds, subject_id=subject_id)
    today = study_time_totals(db_path)["today"]
    console.print(
        f"[green]Session saved: {_format_minutes(entry.seconds)}. "
        f"Today: {_format_minutes(today)} of {get_daily_goal(db_path)}m goal[/green]"
    )


def cmd_timer(db_path: str):
    subject_id = _choose_subject_or_none(db_path)
    menu_prompt("Press Enter to start the timer", default="")
    started = monotonic()
    console.print("[dim]Timer running...[/dim]")
    menu_prompt("Press Enter to stop", default="")
    seconds = int(monotonic() - started)
    console.print(f"Studied for {_format_minutes(seconds)}")
    _save_study_time(db_path, seconds, subject_id)


def cmd_log(db_path: str):
    subject_id = _choose_subject_or_none(db_path)
    minutes = int(menu_prompt("Minutes studied"))
    _save_study_time(db_path, minutes * 60, subject_id)


def _exams_table(title: str, exams: list[dict]) -> Table:
    table = Table(title=title)
    table.add_column("Exam", style="cyan")
    table.add_column("Date")
    table.add_column("Days left", justify="right")
    for e in exams:
        color = "red" if e["days_left"] <= 7 else "yellow" if e["days_left"] <= 30 else "green"
        table.add_row(e["name"], e["exam_date"], f"[{color}]{e['days_left']}[/{color}]")
    return table


def cmd_dashboard(db_path: str):
    subjects = load_subjects(db_path)
    now = datetime.now(timezone.utc)
    today = now.date()
    stats = calculate_overall_stats(subjects)
    streak = calculate_streak(subjects, today)
    insight = daily_insight(subjects, now, streak)

    console.print(Panel(insight["message"], title=insight["title"], border_style="blue"))
    console.print(
        f"\n  Chapters: [bold]{stats['completed_chapters']}/{stats['total_chapters']}[/bold]  |  "
        f"Topics: [bold]{stats['completed_topics']}/{stats['total_topics']}[/bold]  |  "
        f"Streak: [bold]{streak}[/bold] days"
    )

    totals = study_time_totals(db_path, now)
    console.print(
        f"  Today: [bold]{totals['today'] // 60}/{get_daily_goal(db_path)}[/bold] min studied  |  "
        f"Week: {_format_minutes(totals['week'])}  |  Month: {_format_minutes(totals['month'])}  |  "
        f"Total: {_format_minutes(totals['total'])}"
    )

    activity = calculate_activity(subjects, today)
    console.print("\n[bold]Last 7 days:[/bold]")
    for point in activity["activity"]:
        bar = "█" * round(point["count"] / activity["max_count"] * 20)
        console.print(f"  {point['date']} [green]{bar}[/green] {point['count']}")

    exams = [e for e in upcoming_exams(subjects, now) if e["days_left"] > 0]
    if exams:
        console.print(_exams_table("Upcoming Exams", exams))
    major = [e for e in upcoming_major_exams(list_major_exams(db_path), now) if e["days_left"] > 0]
    if major:
        console.print(_exams_table("Major Exams", major))


def cmd_exams(db_path: str):
    action = menu_prompt("Major exams", choices=["list", "add", "edit", "delete"], default="list")
    if action == "add":
        name = menu_prompt("Exam name")
        exam_date = _parse_date(menu_prompt("Exam date (YYYY-MM-DD)"))
        if exam_date is None:
            raise ValueError("an exam date is required")
        add_major_exam(db_path, name, exam_date)
        console.print(f"[green]Major exam added: {name}[/green]")
        return

    exams = list_major_exams(db_path)
    if action == "list":
        if not exams:
            console.print("[yellow]No major exams yet.[/yellow]")
            return
        console.print(_exams_table("Major Exams", upcoming_major_exams(exams, datetime.now(timezone.utc))))
        return

    exam = choose(exams, lambda e: f"{e.name} ({e.date})", "Exam")
    if exam is None:
        return
    if action == "edit":
        name = menu_prompt("Exam name", default=exam.name)
        exam_date = _parse_date(menu_prompt("Exam date (YYYY-MM-DD)", default=exam.date)) or exam.date
        edit_major_exam(db_path, exam.id, name=name, exam_date=exam_date)
        console.print(f"[green]Updated {name}[/green]")
    else:
        delete_major_exam(db_path, exam.id)
        console.print(f"[dim]Removed {exam.name}.[/dim]")


def cmd_settings(db_path: str):
    goal = menu_prompt("Daily goal (minutes)", default=str(get_daily_goal(db_path)))
    horizon = menu_prompt("Days to plan ahead", default=str(get_horizon_days(db_path)))
    goal = set_daily_goal(db_path, goal)
    horizon = set_horizon_days(db_path, horizon)
    console.print(f"[green]Daily goal {goal} min, planning {horizon} days ahead[/green]")


def _parse_selection(text: str, count: int) -> list[int]:
    """Parse '1,3' into zero-based indexes. Blank selects everything."""
    text = (text or "").strip()
    if not text:
        return list(range(count))
    picked = []
    for part in text.split(","):
        number = int(part)
        if not 1 <= number <= count:
            raise ValueError(f"no item {number}")
        if number - 1 not in picked:
            picked.append(number - 1)
    return picked


def cmd_templates(db_path: str):
    template = choose(list_templates(), lambda t: t["name"], "Template")
    if template is None:
        return
    names = [s["name"] for s in get_template(template["id"])["subjects"]]
    for i, name in enumerate(names, 1):
        console.print(f"  [cyan]{i}[/cyan]) {name}")
    picked = _parse_selection(menu_prompt("Subjects to load (e.g. 1,3; blank for all)", default=""), len(names))
    exam = menu_prompt("Exam date for these subjects (YYYY-MM-DD, blank for none)", default="")
    count = import_template(
        db_path, template["id"], exam_date=_parse_date(exam), subjects=[names[i] for i in picked],
    )
    console.print(f"[green]Loaded {count} subjects from {template['name']}[/green]")


def cmd_import(db_path: str):
    file_path = menu_prompt("Backup file path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    result = import_data(db_path, file_path)
    console.print(f"[green]Imported {result['subjects']} subjects from {result['filename']}[/green]")


def cmd_export(db_path: str):
    default = str(Path.home() / f"study-path-backup-{date.today().isoformat()}.json")
    out_path = menu_prompt("Export to", default=default)
    result = export_data(db_path, out_path)
    console.print(f"[green]Exported {result['subjects']} subjects and {result['sessions']} sessions → {out_path}[/green]")


COMMANDS = {
    "subjects": cmd_subjects,
    "add": cmd_add,
    "toggle": cmd_toggle,
    "exam": cmd_exam,
    "next": cmd_next,
    "path": cmd_path,
    "schedule": cmd_schedule,
    "done": cmd_done,
    "remove": cmd_remove,
    "timer": cmd_timer,
    "log": cmd_log,
    "dashboard": cmd_dashboard,
    "exams": cmd_exams,
    "settings": cmd_settings,
    "templates": cmd_templates,
    "import": cmd_import,
    "export": cmd_export,
}


def main():
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    show_welcome()
    if not is_seeded(db_path):
        console.print("[dim]No subjects yet. Load a syllabus with 'templates' or 'add' your own.[/dim]")

    while True:
        show_reminders(db_path)
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="next").strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Good luck with your studies![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(db_path)
        except BackToMenu:
            continue
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except ValueError as e:
            console.print(f"[red]Invalid input: {e}[/red]")
        except StudyPathError as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
