"""Day schedules from the routine provider, with a catalog fallback."""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from attendance_tracker.domain.attendance import parse_day
from attendance_tracker.domain.errors import ProviderUnavailableError
from attendance_tracker.domain.schedule import (
    DAILY_SLOT,
    CatalogSubject,
    ClassRoutine,
    ScheduleSlot,
    normalize_subject,
)
from attendance_tracker.services.cache import Cache
from attendance_tracker.services.subjects import SubjectCatalogService

_logger = logging.getLogger(__name__)

# Cached routines outlive the version check window; stale ones are replaced
# only when the provider's version counter moves.
_ROUTINE_TTL_SECONDS = 30 * 24 * 3600


class ScheduleProvider(Protocol):
    """Source of class routines."""

    async def get_version(self, class_id: str, college_id: str | None = None) -> int:
        """Return the current routine version for a class."""

    async def fetch_routine(
        self, class_id: str, college_id: str | None = None
    ) -> ClassRoutine:
        """Return all routine rows for a class."""


@dataclass
class ScheduleService:
    """Resolves which subjects run on a given day."""

    catalog: SubjectCatalogService
    cache: Cache
    provider: ScheduleProvider | None = None
    check_ttl_seconds: int = 3600

    async def get_day_schedule(  # noqa: PLR0913
        self,
        user_id: str | None,
        day: str | date,
        section: str | None = None,
        college_id: str | None = None,
        class_id: str | None = None,
    ) -> list[ScheduleSlot]:
        """Return the user's subjects that run on the day.

        Routine subjects the user does not take are left out, and each
        subject gets at most one slot. Without a usable routine every
        subject is scheduled daily.
        """
        target = parse_day(day)
        subjects = self.catalog.list_subjects(user_id)
        fallback = [ScheduleSlot(subject_name=subject.name) for subject in subjects]
        if self.provider is None or not class_id:
            return fallback

        try:
            routine = await self._load_routine(self.provider, class_id, college_id)
        except ProviderUnavailableError:
            _logger.exception(
                "Routine provider unavailable, scheduling every subject",
                extra={"class_id": class_id},
            )
            return fallback

        if not routine.rows:
            return fallback
        return _slots_for_day(routine, target, section, subjects)

    async def _load_routine(
        self, provider: ScheduleProvider, class_id: str, college_id: str | None
    ) -> ClassRoutine:
        scope = f"{(college_id or '').strip().lower()}:{class_id.strip().lower()}"
        routine_key = f"routine:{scope}"
        checked_key = f"routine:checked:{scope}"
        cached = self.cache.get(routine_key)
        if isinstance(cached, ClassRoutine) and self.cache.get(checked_key):
            return cached

        try:
            version = await provider.get_version(class_id, college_id)
        except ProviderUnavailableError:
            if isinstance(cached, ClassRoutine):
                _logger.warning("Version check failed, using cached routine")
                return cached
            raise

        if isinstance(cached, ClassRoutine) and cached.version == version:
            self.cache.set(checked_key, True, ttl_seconds=self.check_ttl_seconds)
            return cached

        try:
            routine = await provider.fetch_routine(class_id, college_id)
        except ProviderUnavailableError:
            if isinstance(cached, ClassRoutine):
                _logger.warning("Routine refresh failed, using cached routine")
                return cached
            raise
        self.cache.set(routine_key, routine, ttl_seconds=_ROUTINE_TTL_SECONDS)
        self.cache.set(checked_key, True, ttl_seconds=self.check_ttl_seconds)
        return routine


def _slots_for_day(
    routine: ClassRoutine,
    day: date,
    section: str | None,
    subjects: list[CatalogSubject],
) -> list[ScheduleSlot]:
    weekday = day.strftime("%A").lower()
    wanted_section = (section or "").strip().lower()
    todays_rows = []
    for row in routine.rows:
        if row.get("day", "").strip().lower() != weekday:
            continue
        # A row without a section applies to every section.
        row_section = row.get("section", "").strip().lower()
        if row_section and row_section != wanted_section:
            continue
        todays_rows.append(row)

    slots = []
    for subject in subjects:
        name = normalize_subject(subject.name)
        match = next(
            (
                row
                for row in todays_rows
                if normalize_subject(row.get("subject", "")) == name
            ),
            None,
        )
        if match is not None:
            slots.append(
                ScheduleSlot(
                    subject_name=subject.name,
                    start_time=match.get("start_time", "").strip() or DAILY_SLOT,
                    room=match.get("room", "").strip() or None,
                    faculty=match.get("teacher", "").strip() or None,
                )
            )
        elif subject.is_custom:
            slots.append(ScheduleSlot(subject_name=subject.name))
    return slots
