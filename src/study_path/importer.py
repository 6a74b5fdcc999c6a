"""Backup export and import for the curriculum and schedule."""
import json
from datetime import datetime, timezone
from pathlib import Path

import yaml

from study_path.curriculum import insert_subject, load_subjects
from study_path.errors import ImportFormatError
from study_path.logging import get_logger
from study_path.models import session_to_dict, subject_from_dict, subject_to_dict
from study_path.schedule import list_sessions

logger = get_logger("importer")


def export_data(db_path: str, out_path: str) -> dict:
    """Write subjects and scheduled sessions to a JSON backup file."""
    data = {
        "subjects": [subject_to_dict(s) for s in load_subjects(db_path)],
        "scheduledSessions": [session_to_dict(s) for s in list_sessions(db_path)],
        "exportedAt": datetime.now(timezone.utc).isoformat(),
    }
    path = Path(out_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return {"filename": path.name, "subjects": len(data["subjects"]), "sessions": len(data["scheduledSessions"])}


def read_backup(file_path: str) -> dict:
    path = Path(file_path)
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ImportFormatError(f"Cannot read {file_path}: {e}") from e

    try:
        if suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (ValueError, yaml.YAMLError) as e:
        raise ImportFormatError(f"Invalid backup file {path.name}: {e}") from e

    if isinstance(data, list):
        data = {"subjects": data}
    if not isinstance(data, dict):
        raise ImportFormatError(f"Unexpected backup layout in {path.name}")
    return data


def import_data(db_path: str, file_path: str) -> dict:
    """Add every subject in a backup as new entries with fresh ids.

    Scheduled sessions are not imported since their references point at
    the ids of the exporting database.
    """
    data = read_backup(file_path)
    imported = 0
    for raw in data.get("subjects") or []:
        if not isinstance(raw, dict):
            logger.warning("Skipping malformed subject entry in %s", file_path)
            continue
        insert_subject(db_path, subject_from_dict(raw))
        imported += 1
    logger.info("Imported %d subjects from %s", imported, file_path)
    return {"filename": Path(file_path).name, "subjects": imported}
