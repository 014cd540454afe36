"""Domain models for daily attendance records."""

import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum

from attendance_tracker.domain.errors import (
    InvalidDateError,
    InvalidDateRangeError,
    InvalidStatusError,
    InvalidSubjectError,
)

_DAY_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_LEGACY_STATUSES = {"not-held": "not_held"}


class AttendanceStatus(str, Enum):
    """Status of one subject on one day."""

    PRESENT = "present"
    ABSENT = "absent"
    NOT_HELD = "not_held"

    @property
    def counts_toward_total(self) -> bool:
        """Whether the status enters the attendance denominator."""
        return self is not AttendanceStatus.NOT_HELD

    @property
    def counts_as_present(self) -> bool:
        """Whether the status enters the attended count."""
        return self is AttendanceStatus.PRESENT


def parse_status(raw: str | AttendanceStatus) -> AttendanceStatus:
    """Parse a status value, accepting the legacy `not-held` spelling."""
    if isinstance(raw, AttendanceStatus):
        return raw
    if not isinstance(raw, str):
        raise InvalidStatusError(f"Unsupported attendance status: {raw!r}")
    value = raw.strip().lower()
    value = _LEGACY_STATUSES.get(value, value)
    try:
        return AttendanceStatus(value)
    except ValueError as exc:
        raise InvalidStatusError(f"Unsupported attendance status: {raw!r}") from exc


def parse_day(raw: str | date) -> date:
    """Parse a `YYYY-MM-DD` day key."""
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not _DAY_KEY.match(raw.strip()):
        raise InvalidDateError(f"Invalid date key: {raw!r}")
    try:
        return date.fromisoformat(raw.strip())
    except ValueError as exc:
        raise InvalidDateError(f"Invalid date key: {raw!r}") from exc


def parse_range(start: str | date, end: str | date) -> tuple[date, date]:
    """Parse an inclusive date range and check its ordering."""
    start_day = parse_day(start)
    end_day = parse_day(end)
    if start_day > end_day:
        raise InvalidDateRangeError(
            f"Range start {start_day.isoformat()} is after end {end_day.isoformat()}"
        )
    return start_day, end_day


def day_key(day: date) -> str:
    """Return the storage key for a day."""
    return day.isoformat()


def require_subject(subject: str | None) -> str:
    """Return the subject name, rejecting empty names."""
    if subject is None or not subject.strip():
        raise InvalidSubjectError("Subject name must not be empty")
    return subject


@dataclass(frozen=True)
class AttendanceEntry:
    """Status of a subject on a given day."""

    status: AttendanceStatus
    remark: str = ""
    recorded_at: datetime | None = None


@dataclass(frozen=True)
class DailyRecord:
    """All subject entries recorded by a user on one calendar day."""

    day: date
    entries: dict[str, AttendanceEntry] = field(default_factory=dict)

    @classmethod
    def empty(cls, day: date) -> "DailyRecord":
        """Return a record with no entries."""
        return cls(day=day, entries={})

    def status_of(self, subject: str) -> AttendanceStatus | None:
        """Return the recorded status for a subject, if any."""
        entry = self.entries.get(subject)
        return entry.status if entry else None

    def with_entry(self, subject: str, entry: AttendanceEntry) -> "DailyRecord":
        """Return a copy with the subject's entry replaced."""
        entries = dict(self.entries)
        entries[subject] = entry
        return replace(self, entries=entries)


def merge_remark(previous: AttendanceEntry | None, remark: str | None) -> str:
    """Keep the prior remark unless a new one is given explicitly."""
    if remark is not None:
        return remark
    if previous is None:
        return ""
    return previous.remark
