"""Request models and response serializers for the HTTP API."""

from pydantic import BaseModel, Field

from attendance_tracker.domain.attendance import DailyRecord
from attendance_tracker.domain.schedule import ScheduleSlot
from attendance_tracker.domain.stats import (
    AttendanceOverview,
    MajorStats,
    PeriodStats,
    ReconciliationReport,
    SubjectTally,
)
from attendance_tracker.domain.summary import UserSummary, percentage
from attendance_tracker.services.ledger import AttendanceChange


class MarkAttendanceRequest(BaseModel):
    """Body for marking or editing one subject on one day."""

    subject: str = Field(min_length=1)
    status: str
    remark: str | None = None


def serialize_record(record: DailyRecord) -> dict[str, object]:
    """Serialize a daily record."""
    return {
        "date": record.day.isoformat(),
        "entries": {
            subject: {
                "status": entry.status.value,
                "remark": entry.remark,
                "recorded_at": entry.recorded_at.isoformat()
                if entry.recorded_at
                else None,
            }
            for subject, entry in record.entries.items()
        },
    }


def serialize_summary(summary: UserSummary) -> dict[str, object]:
    """Serialize a running summary."""
    return {
        "past_total_classes": summary.past_total_classes,
        "past_attended_classes": summary.past_attended_classes,
        "tracked_total": summary.tracked_total,
        "tracked_present": summary.tracked_present,
        "subjects": {
            name: {
                "tracked_total": item.tracked_total,
                "tracked_present": item.tracked_present,
                "percentage": percentage(item.tracked_total, item.tracked_present),
            }
            for name, item in summary.subjects.items()
        },
    }


def serialize_change(change: AttendanceChange) -> dict[str, object]:
    """Serialize the outcome of a ledger write."""
    return {
        "subject": change.subject,
        "old_status": change.old_status.value if change.old_status else None,
        "new_status": change.new_status.value,
        "written": change.written,
        "record": serialize_record(change.record),
        "summary": serialize_summary(change.summary),
    }


def serialize_tally(tally: SubjectTally) -> dict[str, int]:
    """Serialize a total/attended pair with its percentage."""
    return {
        "total": tally.total,
        "attended": tally.attended,
        "percentage": tally.percentage,
    }


def serialize_period(stats: PeriodStats) -> dict[str, object]:
    """Serialize range statistics."""
    return {
        "start": stats.start.isoformat(),
        "end": stats.end.isoformat(),
        "overall_total": stats.overall_total,
        "overall_present": stats.overall_present,
        "percentage": stats.percentage,
        "per_subject": {
            name: serialize_tally(tally) for name, tally in stats.per_subject.items()
        },
    }


def serialize_overview(overview: AttendanceOverview) -> dict[str, object]:
    """Serialize the overall view."""
    return {
        "overall": serialize_tally(overview.combined),
        "past": serialize_tally(overview.past),
        "tracked": serialize_tally(overview.tracked),
        "subjects": [
            {
                "name": card.name,
                "overall": serialize_tally(card.combined),
                "past": serialize_tally(card.past),
                "tracked": serialize_tally(card.tracked),
            }
            for card in overview.subjects
        ],
    }


def serialize_majors(stats: MajorStats) -> dict[str, object]:
    """Serialize combined major-subject figures."""
    return {
        "subjects": stats.subjects,
        "period": [day.isoformat() for day in stats.period] if stats.period else None,
        **serialize_tally(stats.tally),
    }


def serialize_slot(slot: ScheduleSlot) -> dict[str, str | None]:
    """Serialize a schedule slot."""
    return {
        "subject_name": slot.subject_name,
        "start_time": slot.start_time,
        "room": slot.room,
        "faculty": slot.faculty,
    }


def serialize_reconciliation(report: ReconciliationReport) -> dict[str, object]:
    """Serialize a reconciliation report."""
    return {
        "user_id": report.user_id,
        "consistent": report.consistent,
        "summary": serialize_tally(report.summary),
        "records": serialize_tally(report.records),
        "mismatches": [
            {
                "subject": item.subject,
                "summary": serialize_tally(item.summary),
                "records": serialize_tally(item.records),
            }
            for item in report.mismatches
        ],
    }
