"""Row conversions shared by the Supabase adapters."""

from datetime import date, datetime

from attendance_tracker.domain.attendance import (
    AttendanceEntry,
    DailyRecord,
    parse_status,
)
from attendance_tracker.domain.summary import SubjectSummary, UserSummary

RECORD_COLUMNS = "day, entries, version"
SUMMARY_COLUMNS = (
    "past_total_classes, past_attended_classes, tracked_total, tracked_present, "
    "subjects, version"
)


def record_from_row(row: dict[str, object]) -> DailyRecord:
    """Build a DailyRecord from an `attendance_days` row."""
    raw_entries = row.get("entries") or {}
    entries = {}
    if isinstance(raw_entries, dict):
        for subject, raw in raw_entries.items():
            if isinstance(raw, dict):
                entries[subject] = _entry_from_json(raw)
    return DailyRecord(day=date.fromisoformat(str(row["day"])), entries=entries)


def record_to_entries(record: DailyRecord) -> dict[str, dict[str, object]]:
    """Serialize record entries to the stored JSON shape."""
    return {
        subject: {
            "status": entry.status.value,
            "remark": entry.remark,
            "recorded_at": entry.recorded_at.isoformat()
            if entry.recorded_at
            else None,
        }
        for subject, entry in record.entries.items()
    }


def summary_from_row(row: dict[str, object]) -> UserSummary:
    """Build a UserSummary from an `attendance_summaries` row."""
    raw_subjects = row.get("subjects") or {}
    subjects = {}
    if isinstance(raw_subjects, dict):
        for name, raw in raw_subjects.items():
            if isinstance(raw, dict):
                subjects[name] = SubjectSummary(
                    tracked_total=_int(raw.get("tracked_total")),
                    tracked_present=_int(raw.get("tracked_present")),
                )
    return UserSummary(
        subjects=subjects,
        past_total_classes=_int(row.get("past_total_classes")),
        past_attended_classes=_int(row.get("past_attended_classes")),
    )


def summary_to_payload(summary: UserSummary) -> dict[str, object]:
    """Serialize the tracked part of a summary; baseline fields are left out."""
    return {
        "tracked_total": summary.tracked_total,
        "tracked_present": summary.tracked_present,
        "subjects": {
            name: {
                "tracked_total": item.tracked_total,
                "tracked_present": item.tracked_present,
            }
            for name, item in summary.subjects.items()
        },
    }


def _entry_from_json(raw: dict[str, object]) -> AttendanceEntry:
    recorded_raw = raw.get("recorded_at")
    recorded_at = (
        datetime.fromisoformat(recorded_raw)
        if isinstance(recorded_raw, str) and recorded_raw
        else None
    )
    remark = raw.get("remark")
    return AttendanceEntry(
        status=parse_status(str(raw.get("status", ""))),
        remark=remark if isinstance(remark, str) else "",
        recorded_at=recorded_at,
    )


def _int(value: object) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int | float):
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    return 0
