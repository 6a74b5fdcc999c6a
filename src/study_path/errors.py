"""Exceptions raised by the stores and importers."""


class StudyPathError(Exception):
    """Base class for study_path errors shown to the user."""


class NotFoundError(StudyPathError):
    """A subject, chapter, topic or session id does not exist."""

    def __init__(self, kind: str, item_id: str):
        super().__init__(f"{kind} not found: {item_id}")
        self.kind = kind
        self.item_id = item_id


class ImportFormatError(StudyPathError):
    """A backup or template file could not be parsed."""
