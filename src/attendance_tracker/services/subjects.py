"""Subject catalog lookups."""

import logging
from dataclasses import dataclass
from typing import Protocol

from attendance_tracker.domain.schedule import CatalogSubject
from attendance_tracker.services.identity import require_user

_logger = logging.getLogger(__name__)


class SubjectRepository(Protocol):
    """Persistence interface for a user's subject catalog."""

    def list_subjects(self, user_id: str) -> list[CatalogSubject]:
        """Return the user's subjects in display order."""


@dataclass
class SubjectCatalogService:
    """Read-only access to the subject catalog."""

    repository: SubjectRepository

    def list_subjects(self, user_id: str | None) -> list[CatalogSubject]:
        """Return the catalog, or an empty list when it cannot be read."""
        owner = require_user(user_id)
        try:
            return self.repository.list_subjects(owner)
        except Exception:
            _logger.exception("Failed to load subject catalog", extra={"user": owner})
            return []

    def subject_names(self, user_id: str | None) -> list[str]:
        """Return catalog subject names in order."""
        return [subject.name for subject in self.list_subjects(user_id)]
