"""Domain models for attendance statistics."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

from attendance_tracker.domain.attendance import AttendanceStatus, DailyRecord
from attendance_tracker.domain.summary import percentage


@dataclass(frozen=True)
class SubjectTally:
    """Total and attended class counts."""

    total: int = 0
    attended: int = 0

    @property
    def percentage(self) -> int:
        """Attended share of total as a whole percentage."""
        return percentage(self.total, self.attended)

    def plus(self, other: "SubjectTally") -> "SubjectTally":
        """Return the element-wise sum of two tallies."""
        return SubjectTally(
            total=self.total + other.total,
            attended=self.attended + other.attended,
        )


@dataclass(frozen=True)
class PeriodStats:
    """Attendance recomputed from raw daily records over a date range."""

    start: date
    end: date
    overall_total: int
    overall_present: int
    per_subject: dict[str, SubjectTally]

    @property
    def percentage(self) -> int:
        """Overall percentage for the period."""
        return percentage(self.overall_total, self.overall_present)


@dataclass(frozen=True)
class SubjectCard:
    """Overall (baseline plus tracked) figures for one subject."""

    name: str
    past: SubjectTally
    tracked: SubjectTally

    @property
    def combined(self) -> SubjectTally:
        """Baseline and tracked counts together."""
        return self.past.plus(self.tracked)


@dataclass(frozen=True)
class AttendanceOverview:
    """Overall attendance for a user."""

    past: SubjectTally
    tracked: SubjectTally
    subjects: list[SubjectCard]

    @property
    def combined(self) -> SubjectTally:
        """Baseline and tracked counts together."""
        return self.past.plus(self.tracked)


@dataclass(frozen=True)
class MajorStats:
    """Combined figures for a selected group of subjects."""

    subjects: list[str]
    tally: SubjectTally
    period: tuple[date, date] | None = None


@dataclass(frozen=True)
class SubjectMismatch:
    """Difference between the running summary and recomputed records."""

    subject: str
    summary: SubjectTally
    records: SubjectTally


@dataclass(frozen=True)
class ReconciliationReport:
    """Result of comparing the running summary with the full record history."""

    user_id: str
    summary: SubjectTally
    records: SubjectTally
    mismatches: list[SubjectMismatch] = field(default_factory=list)

    @property
    def consistent(self) -> bool:
        """Whether the summary matches the records everywhere."""
        return self.summary == self.records and not self.mismatches


def aggregate_records(
    records: Iterable[DailyRecord], subjects: Sequence[str] | None = None
) -> tuple[int, int, dict[str, SubjectTally]]:
    """Count totals over raw daily records.

    Every subject that appears in a record gets a tally, even when all of its
    entries are `not_held`. Subjects listed in `subjects` are always present.
    """
    counts: dict[str, list[int]] = {name: [0, 0] for name in subjects or []}
    overall_total = 0
    overall_present = 0
    for record in records:
        for subject, entry in record.entries.items():
            bucket = counts.setdefault(subject, [0, 0])
            if entry.status is AttendanceStatus.PRESENT:
                overall_total += 1
                overall_present += 1
                bucket[0] += 1
                bucket[1] += 1
            elif entry.status is AttendanceStatus.ABSENT:
                overall_total += 1
                bucket[0] += 1
    per_subject = {
        name: SubjectTally(total=total, attended=attended)
        for name, (total, attended) in counts.items()
    }
    return overall_total, overall_present, per_subject
