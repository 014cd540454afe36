"""Period statistics recomputed from raw daily records."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Protocol

from attendance_tracker.domain.attendance import DailyRecord, parse_day, parse_range
from attendance_tracker.domain.stats import (
    PeriodStats,
    ReconciliationReport,
    SubjectMismatch,
    SubjectTally,
    aggregate_records,
)
from attendance_tracker.domain.summary import UserSummary
from attendance_tracker.services.identity import require_user


class RecordRepository(Protocol):
    """Read interface over stored daily records and summaries."""

    def get_daily_record(self, user_id: str, day: date) -> DailyRecord | None:
        """Return the record for a day, if present."""

    def list_daily_records(
        self, user_id: str, start: date, end: date
    ) -> list[DailyRecord]:
        """Return records for days in [start, end], ordered by day."""

    def get_history_bounds(self, user_id: str) -> tuple[date, date] | None:
        """Return the earliest and latest stored day, if any."""

    def get_summary(self, user_id: str) -> UserSummary | None:
        """Return the stored summary, if present."""


@dataclass
class PeriodStatsService:
    """Range aggregator; never reads or writes the running summary."""

    repository: RecordRepository

    def compute_period_stats(
        self,
        user_id: str | None,
        start: str | date,
        end: str | date,
        subjects: Sequence[str] | None = None,
    ) -> PeriodStats:
        """Recompute totals for an inclusive date range.

        Passing the full subject list keeps idle subjects in the result with
        zero counts.
        """
        owner = require_user(user_id)
        start_day, end_day = parse_range(start, end)
        records = self.repository.list_daily_records(owner, start_day, end_day)
        in_range = [r for r in records if start_day <= r.day <= end_day]
        overall_total, overall_present, per_subject = aggregate_records(
            in_range, subjects
        )
        return PeriodStats(
            start=start_day,
            end=end_day,
            overall_total=overall_total,
            overall_present=overall_present,
            per_subject=per_subject,
        )

    def get_daily_record(self, user_id: str | None, day: str | date) -> DailyRecord:
        """Return a day's record, empty when nothing was marked."""
        owner = require_user(user_id)
        target = parse_day(day)
        return self.repository.get_daily_record(owner, target) or DailyRecord.empty(
            target
        )


@dataclass
class ReconciliationService:
    """Checks the running summary against the full record history."""

    repository: RecordRepository
    stats_service: PeriodStatsService

    def check(self, user_id: str | None) -> ReconciliationReport:
        """Compare tracked totals with a recomputation over every stored day."""
        owner = require_user(user_id)
        summary = self.repository.get_summary(owner) or UserSummary()
        bounds = self.repository.get_history_bounds(owner)
        if bounds is None:
            per_subject: dict[str, SubjectTally] = {}
            records = SubjectTally()
        else:
            stats = self.stats_service.compute_period_stats(owner, *bounds)
            per_subject = stats.per_subject
            records = SubjectTally(
                total=stats.overall_total, attended=stats.overall_present
            )

        mismatches = []
        for name in sorted(set(summary.subjects) | set(per_subject)):
            counters = summary.subject(name)
            tracked = SubjectTally(
                total=counters.tracked_total, attended=counters.tracked_present
            )
            recomputed = per_subject.get(name, SubjectTally())
            if tracked != recomputed:
                mismatches.append(
                    SubjectMismatch(subject=name, summary=tracked, records=recomputed)
                )
        return ReconciliationReport(
            user_id=owner,
            summary=SubjectTally(
                total=summary.tracked_total, attended=summary.tracked_present
            ),
            records=records,
            mismatches=mismatches,
        )
