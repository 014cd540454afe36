"""Supabase repository for reading daily records and summaries."""

from dataclasses import dataclass
from datetime import date

from supabase import Client

from attendance_tracker.adapters.supabase_rows import (
    RECORD_COLUMNS,
    SUMMARY_COLUMNS,
    record_from_row,
    summary_from_row,
)
from attendance_tracker.domain.attendance import DailyRecord, day_key
from attendance_tracker.domain.summary import UserSummary
from attendance_tracker.services.stats import RecordRepository


@dataclass
class SupabaseRecordRepository(RecordRepository):
    """Supabase implementation for record and summary reads."""

    client: Client

    def get_daily_record(self, user_id: str, day: date) -> DailyRecord | None:
        """Return the record stored for a day."""
        response = (
            self.client.table("attendance_days")
            .select(RECORD_COLUMNS)
            .eq("user_id", user_id)
            .eq("day", day_key(day))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return record_from_row(response.data[0])

    def list_daily_records(
        self, user_id: str, start: date, end: date
    ) -> list[DailyRecord]:
        """Return records for every stored day in the inclusive range."""
        response = (
            self.client.table("attendance_days")
            .select(RECORD_COLUMNS)
            .eq("user_id", user_id)
            .gte("day", day_key(start))
            .lte("day", day_key(end))
            .order("day", desc=False)
            .execute()
        )
        return [record_from_row(row) for row in response.data or []]

    def get_history_bounds(self, user_id: str) -> tuple[date, date] | None:
        """Return the first and last stored day."""
        first = self._edge_day(user_id, desc=False)
        if first is None:
            return None
        last = self._edge_day(user_id, desc=True) or first
        return first, last

    def get_summary(self, user_id: str) -> UserSummary | None:
        """Return the running summary."""
        response = (
            self.client.table("attendance_summaries")
            .select(SUMMARY_COLUMNS)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return summary_from_row(response.data[0])

    def _edge_day(self, user_id: str, desc: bool) -> date | None:
        response = (
            self.client.table("attendance_days")
            .select("day")
            .eq("user_id", user_id)
            .order("day", desc=desc)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return date.fromisoformat(str(response.data[0]["day"]))
