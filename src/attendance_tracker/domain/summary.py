"""Running attendance summary and the pure counter adjustment."""

from dataclasses import dataclass, field, replace

from attendance_tracker.domain.attendance import AttendanceStatus


@dataclass(frozen=True)
class SubjectSummary:
    """Tracked counters for one subject."""

    tracked_total: int = 0
    tracked_present: int = 0

    def add(self, status: AttendanceStatus | None, sign: int) -> "SubjectSummary":
        """Return counters with a status contribution added (sign=1) or removed."""
        if status is None or not status.counts_toward_total:
            return self
        present_step = 1 if status.counts_as_present else 0
        total = max(self.tracked_total + sign, 0)
        present = min(max(self.tracked_present + sign * present_step, 0), total)
        return SubjectSummary(tracked_total=total, tracked_present=present)


@dataclass(frozen=True)
class UserSummary:
    """Per-user aggregate of tracked attendance plus the imported baseline."""

    subjects: dict[str, SubjectSummary] = field(default_factory=dict)
    past_total_classes: int = 0
    past_attended_classes: int = 0

    @property
    def tracked_total(self) -> int:
        """Sum of tracked totals across subjects."""
        return sum(item.tracked_total for item in self.subjects.values())

    @property
    def tracked_present(self) -> int:
        """Sum of tracked present counts across subjects."""
        return sum(item.tracked_present for item in self.subjects.values())

    def subject(self, name: str) -> SubjectSummary:
        """Return a subject's counters, zero when untracked."""
        return self.subjects.get(name, SubjectSummary())


def apply_delta(
    summary: UserSummary,
    old_status: AttendanceStatus | None,
    new_status: AttendanceStatus,
    subject: str,
) -> UserSummary:
    """Revert the old status contribution for a subject and apply the new one.

    Global totals are derived from the subject counters, so only the subject
    entry changes. Counters never go below zero; a revert against an
    untracked subject is a no-op.
    """
    updated = summary.subject(subject).add(old_status, -1).add(new_status, 1)
    subjects = dict(summary.subjects)
    subjects[subject] = updated
    return replace(summary, subjects=subjects)


def revert_would_clamp(
    summary: UserSummary, old_status: AttendanceStatus | None, subject: str
) -> bool:
    """Whether reverting old_status leaves counters that need clamping.

    That is a counter below zero, or more present classes than held ones.
    """
    if old_status is None or not old_status.counts_toward_total:
        return False
    counters = summary.subject(subject)
    total = counters.tracked_total - 1
    present = counters.tracked_present - (1 if old_status.counts_as_present else 0)
    return total < 0 or present < 0 or present > total


def percentage(total: int, present: int) -> int:
    """Return present/total as a whole percentage, rounding halves up."""
    if total <= 0:
        return 0
    return (200 * present + total) // (2 * total)
