"""Overall attendance views combining the baseline with tracked counts."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date

from attendance_tracker.domain.errors import InvalidDateRangeError
from attendance_tracker.domain.stats import (
    AttendanceOverview,
    MajorStats,
    SubjectCard,
    SubjectTally,
)
from attendance_tracker.domain.summary import UserSummary
from attendance_tracker.services.identity import require_user
from attendance_tracker.services.stats import PeriodStatsService, RecordRepository
from attendance_tracker.services.subjects import SubjectCatalogService


@dataclass
class OverviewService:
    """Builds overall and major-subject views for display."""

    repository: RecordRepository
    catalog: SubjectCatalogService
    stats_service: PeriodStatsService

    def get_overview(self, user_id: str | None) -> AttendanceOverview:
        """Return baseline plus tracked totals overall and per subject."""
        owner = require_user(user_id)
        summary = self.repository.get_summary(owner) or UserSummary()
        subjects = self.catalog.list_subjects(owner)

        cards = []
        seen = set()
        for subject in subjects:
            seen.add(subject.name)
            cards.append(
                SubjectCard(
                    name=subject.name,
                    past=subject.past,
                    tracked=_tracked(summary, subject.name),
                )
            )
        for name in summary.subjects:
            if name not in seen:
                cards.append(
                    SubjectCard(
                        name=name, past=SubjectTally(), tracked=_tracked(summary, name)
                    )
                )

        return AttendanceOverview(
            past=SubjectTally(
                total=summary.past_total_classes,
                attended=summary.past_attended_classes,
            ),
            tracked=SubjectTally(
                total=summary.tracked_total, attended=summary.tracked_present
            ),
            subjects=cards,
        )

    def major_subjects(
        self,
        user_id: str | None,
        majors: Sequence[str],
        start: str | date | None = None,
        end: str | date | None = None,
    ) -> MajorStats:
        """Combine figures for selected subjects, overall or over a range."""
        owner = require_user(user_id)
        selected = list(dict.fromkeys(majors))
        if (start is None) != (end is None):
            raise InvalidDateRangeError("A period needs both a start and an end")
        if start is not None and end is not None:
            stats = self.stats_service.compute_period_stats(owner, start, end)
            tally = _sum(
                stats.per_subject.get(name, SubjectTally()) for name in selected
            )
            return MajorStats(
                subjects=selected, tally=tally, period=(stats.start, stats.end)
            )

        cards = {card.name: card for card in self.get_overview(owner).subjects}
        tally = _sum(
            cards[name].combined if name in cards else SubjectTally()
            for name in selected
        )
        return MajorStats(subjects=selected, tally=tally)


def _tracked(summary: UserSummary, name: str) -> SubjectTally:
    counters = summary.subject(name)
    return SubjectTally(total=counters.tracked_total, attended=counters.tracked_present)


def _sum(tallies: Iterable[SubjectTally]) -> SubjectTally:
    total = SubjectTally()
    for tally in tallies:
        total = total.plus(tally)
    return total
