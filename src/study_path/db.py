"""Database initialization, connection management and user settings."""
import sqlite3
from pathlib import Path

from study_path.config import DEFAULT_DB_PATH, DEFAULT_DAILY_GOAL_MINUTES, DEFAULT_HORIZON_DAYS

SCHEMA = """
CREATE TABLE IF NOT EXISTS subjects (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    color TEXT DEFAULT '',
    icon TEXT,
    exam_date TEXT,
    created_at TEXT
);

CREATE TABLE IF NOT EXISTS chapters (
    id TEXT PRIMARY KEY,
    subject_id TEXT NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    position INTEGER NOT NULL,
    is_completed INTEGER DEFAULT 0,
    completed_at TEXT
);

CREATE TABLE IF NOT EXISTS topics (
    id TEXT PRIMARY KEY,
    chapter_id TEXT NOT NULL REFERENCES chapters(id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    position INTEGER NOT NULL,
    is_completed INTEGER DEFAULT 0,
    completed_at TEXT
);

CREATE TABLE IF NOT EXISTS scheduled_sessions (
    id TEXT PRIMARY KEY,
    subject_id TEXT NOT NULL,
    date TEXT NOT NULL,
    time TEXT,
    duration_minutes INTEGER NOT NULL DEFAULT 60,
    chapter_id TEXT,
    topic_id TEXT,
    notes TEXT,
    is_completed INTEGER DEFAULT 0,
    reminder_sent INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS user_settings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT NOT NULL UNIQUE,
    value TEXT
);

CREATE TABLE IF NOT EXISTS study_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    subject_id TEXT REFERENCES subjects(id) ON DELETE SET NULL,
    seconds INTEGER NOT NULL,
    logged_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS major_exams (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    date TEXT NOT NULL,
    color TEXT DEFAULT ''
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def get_setting(db_path: str, key: str, default: str = None) -> str | None:
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM user_settings WHERE key = ?", (key,)).fetchone()
    conn.close()
    return row["value"] if row else default


def set_setting(db_path: str, key: str, value: str) -> None:
    conn = get_connection(db_path)
    conn.execute(
        "INSERT INTO user_settings (key, value) VALUES (?, ?) ON CONFLICT(key) DO UPDATE SET value=?",
        (key, value, value),
    )
    conn.commit()
    conn.close()


def get_horizon_days(db_path: str) -> int:
    return int(get_setting(db_path, "horizon_days", str(DEFAULT_HORIZON_DAYS)))


def get_daily_goal(db_path: str) -> int:
    """Daily study goal in minutes."""
    return int(get_setting(db_path, "daily_goal", str(DEFAULT_DAILY_GOAL_MINUTES)))


def _positive_int(value, label: str) -> int:
    number = int(value)
    if number <= 0:
        raise ValueError(f"{label} must be a positive number")
    return number


def set_daily_goal(db_path: str, minutes) -> int:
    minutes = _positive_int(minutes, "Daily goal")
    set_setting(db_path, "daily_goal", str(minutes))
    return minutes


def set_horizon_days(db_path: str, days) -> int:
    days = _positive_int(days, "Planning horizon")
    set_setting(db_path, "horizon_days", str(days))
    return days
