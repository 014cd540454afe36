"""Supabase-backed ledger store with optimistic concurrency."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import TypeVar

from supabase import Client

from attendance_tracker.adapters.supabase_rows import (
    RECORD_COLUMNS,
    SUMMARY_COLUMNS,
    record_from_row,
    record_to_entries,
    summary_from_row,
    summary_to_payload,
)
from attendance_tracker.domain.attendance import DailyRecord, day_key
from attendance_tracker.domain.errors import TransactionConflictError
from attendance_tracker.domain.summary import UserSummary
from attendance_tracker.services.ledger import LedgerStore, LedgerTransaction

T = TypeVar("T")

COMMIT_FUNCTION = "commit_attendance_change"


@dataclass
class _SupabaseTransaction(LedgerTransaction):
    """Records the version of every row read and stages writes until commit."""

    client: Client
    record_versions: dict[tuple[str, date], int] = field(default_factory=dict)
    summary_versions: dict[str, int] = field(default_factory=dict)
    staged_records: dict[tuple[str, date], DailyRecord] = field(default_factory=dict)
    staged_summaries: dict[str, UserSummary] = field(default_factory=dict)

    def get_daily_record(self, user_id: str, day: date) -> DailyRecord | None:
        response = (
            self.client.table("attendance_days")
            .select(RECORD_COLUMNS)
            .eq("user_id", user_id)
            .eq("day", day_key(day))
            .limit(1)
            .execute()
        )
        if not response.data:
            self.record_versions[(user_id, day)] = 0
            return None
        row = response.data[0]
        self.record_versions[(user_id, day)] = int(row.get("version") or 0)
        return record_from_row(row)

    def get_summary(self, user_id: str) -> UserSummary | None:
        response = (
            self.client.table("attendance_summaries")
            .select(SUMMARY_COLUMNS)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            self.summary_versions[user_id] = 0
            return None
        row = response.data[0]
        self.summary_versions[user_id] = int(row.get("version") or 0)
        return summary_from_row(row)

    def set_daily_record(self, user_id: str, record: DailyRecord) -> None:
        if (user_id, record.day) not in self.record_versions:
            raise RuntimeError("A daily record must be read before it is written")
        self.staged_records[(user_id, record.day)] = record

    def set_summary(self, user_id: str, summary: UserSummary) -> None:
        if user_id not in self.summary_versions:
            raise RuntimeError("A summary must be read before it is written")
        self.staged_summaries[user_id] = summary

    def commit(self) -> None:
        """Write the staged record and summary in one database transaction."""
        if not self.staged_records and not self.staged_summaries:
            return
        if len(self.staged_records) != 1 or len(self.staged_summaries) != 1:
            raise RuntimeError("A commit writes exactly one record and one summary")
        (user_id, day), record = next(iter(self.staged_records.items()))
        summary_user, summary = next(iter(self.staged_summaries.items()))
        if summary_user != user_id:
            raise RuntimeError("Record and summary must belong to the same user")

        response = self.client.rpc(
            COMMIT_FUNCTION,
            {
                "p_user_id": user_id,
                "p_day": day_key(day),
                "p_entries": record_to_entries(record),
                "p_record_version": self.record_versions[(user_id, day)],
                "p_summary": summary_to_payload(summary),
                "p_summary_version": self.summary_versions[user_id],
            },
        ).execute()
        if not _committed(response.data):
            raise TransactionConflictError(
                f"Attendance for {day_key(day)} changed concurrently"
            )


@dataclass
class SupabaseLedgerStore(LedgerStore):
    """Runs ledger steps against Supabase and commits through a SQL function."""

    client: Client

    def run_transaction(self, step: Callable[[LedgerTransaction], T]) -> T:
        """Run a ledger step and commit its writes atomically."""
        txn = _SupabaseTransaction(self.client)
        result = step(txn)
        txn.commit()
        return result


def _committed(data: object) -> bool:
    if isinstance(data, list):
        return bool(data) and data[0] is True
    return data is True
