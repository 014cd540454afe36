"""Domain models for subjects and day schedules."""

from dataclasses import dataclass

from attendance_tracker.domain.stats import SubjectTally

DAILY_SLOT = "Daily"


@dataclass(frozen=True)
class CatalogSubject:
    """A subject the user tracks, with its pre-tracking baseline.

    Custom subjects are ones the user added outside the class routine.
    """

    name: str
    past_total: int = 0
    past_attended: int = 0
    is_custom: bool = False

    @property
    def past(self) -> SubjectTally:
        """Baseline counts as a tally."""
        return SubjectTally(total=self.past_total, attended=self.past_attended)


@dataclass(frozen=True)
class ScheduleSlot:
    """One class in a day's routine."""

    subject_name: str
    start_time: str = DAILY_SLOT
    room: str | None = None
    faculty: str | None = None


@dataclass(frozen=True)
class ClassRoutine:
    """Routine rows for a class together with the provider's version stamp."""

    class_id: str
    version: int
    rows: list[dict[str, str]]


def normalize_subject(name: str) -> str:
    """Normalize a subject name for schedule matching."""
    return " ".join(name.split()).lower()
