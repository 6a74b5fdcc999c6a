"""Configuration and path helpers.

Provides canonical locations for the local database and the bundled
syllabus content. Defaults for the settings kept in the database live here too.
"""
import os
from pathlib import Path

CONTENT_DIR = Path(__file__).parent / "content"


def get_data_dir() -> Path:
    """Get the data directory.

    Uses STUDY_PATH_HOME if set, otherwise ~/.study_path/
    """
    env_dir = os.environ.get("STUDY_PATH_HOME")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".study_path"


def get_db_path() -> str:
    """Get the SQLite database path (STUDY_PATH_DB overrides)."""
    env_path = os.environ.get("STUDY_PATH_DB")
    if env_path:
        return env_path
    return str(get_data_dir() / "study.db")


def get_templates_path() -> Path:
    """Get the path to the bundled syllabus templates."""
    return CONTENT_DIR / "templates.json"


DEFAULT_DB_PATH = get_db_path()
DEFAULT_HORIZON_DAYS = 7
DEFAULT_DAILY_GOAL_MINUTES = 120
