"""Bundled syllabus templates that can be loaded into the curriculum."""
import json
from typing import Iterable

from study_path.config import get_templates_path
from study_path.curriculum import insert_subject
from study_path.db import get_connection
from study_path.errors import NotFoundError
from study_path.logging import get_logger
from study_path.models import Chapter, Subject, Topic

logger = get_logger("templates")


def list_templates() -> list[dict]:
    """All templates as loaded from templates.json."""
    data = json.loads(get_templates_path().read_text(encoding="utf-8"))
    return data["templates"]


def get_template(template_id: str) -> dict:
    for template in list_templates():
        if template["id"] == template_id:
            return template
    raise NotFoundError("Template", template_id)


def template_subjects(template: dict, exam_date: str = None) -> list[Subject]:
    return [
        Subject(
            id="",
            name=s["name"],
            color=s.get("color", ""),
            icon=s.get("icon"),
            exam_date=exam_date,
            chapters=[
                Chapter(id="", name=c["name"], topics=[Topic(id="", name=t) for t in c.get("topics", [])])
                for c in s.get("chapters", [])
            ],
        )
        for s in template["subjects"]
    ]


def is_seeded(db_path: str) -> bool:
    """Check whether the curriculum has any subjects yet."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM subjects").fetchone()[0]
    conn.close()
    return count > 0


def import_template(
    db_path: str, template_id: str, exam_date: str = None, subjects: Iterable[str] = None,
) -> int:
    """Add a template's subjects to the curriculum.

    Args:
        db_path: Database to add to.
        template_id: Id of a bundled template.
        exam_date: Exam date given to every added subject.
        subjects: Names of the subjects to add. None adds all of them.

    Returns:
        Number of subjects added.
    """
    chosen = template_subjects(get_template(template_id), exam_date=exam_date)
    if subjects is not None:
        wanted = set(subjects)
        unknown = wanted - {s.name for s in chosen}
        if unknown:
            logger.warning("Template %s has no subjects named %s", template_id, sorted(unknown))
        chosen = [s for s in chosen if s.name in wanted]
    for subject in chosen:
        insert_subject(db_path, subject)
    logger.info("Imported %d subjects from template %s", len(chosen), template_id)
    return len(chosen)
