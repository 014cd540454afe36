"""Ledger engine keeping daily records and the running summary consistent."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from functools import partial
from typing import Protocol, TypeVar

from attendance_tracker.domain.attendance import (
    AttendanceEntry,
    AttendanceStatus,
    DailyRecord,
    merge_remark,
    parse_day,
    parse_status,
    require_subject,
)
from attendance_tracker.domain.summary import (
    UserSummary,
    apply_delta,
    revert_would_clamp,
)
from attendance_tracker.services.identity import require_user
from attendance_tracker.services.retry import retry_on_conflict

_logger = logging.getLogger(__name__)

T = TypeVar("T")


class LedgerTransaction(Protocol):
    """Transaction handle over a consistent snapshot of one user's ledger."""

    def get_daily_record(self, user_id: str, day: date) -> DailyRecord | None:
        """Return the stored record for a day, if present."""

    def get_summary(self, user_id: str) -> UserSummary | None:
        """Return the stored summary, if present."""

    def set_daily_record(self, user_id: str, record: DailyRecord) -> None:
        """Stage a record write."""

    def set_summary(self, user_id: str, summary: UserSummary) -> None:
        """Stage a summary write."""


class LedgerStore(Protocol):
    """Backing store with optimistic-concurrency transactions."""

    def run_transaction(self, step: Callable[[LedgerTransaction], T]) -> T:
        """Run `step` and commit its staged writes together.

        Raises TransactionConflictError when a row read by `step` changed
        before commit; nothing is written in that case.
        """


class RecordPublisher(Protocol):
    """Receives committed daily records for live subscribers."""

    def publish(self, user_id: str, record: DailyRecord) -> None:
        """Deliver a full record snapshot."""


@dataclass(frozen=True)
class AttendanceChange:
    """Outcome of a mark or edit."""

    subject: str
    old_status: AttendanceStatus | None
    new_status: AttendanceStatus
    record: DailyRecord
    summary: UserSummary
    written: bool


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class LedgerService:
    """Applies attendance marks and edits as atomic ledger transactions."""

    store: LedgerStore
    publisher: RecordPublisher | None = None
    max_attempts: int = 3
    backoff_seconds: float = 0.2
    clock: Callable[[], datetime] = _utc_now

    async def mark_or_edit_attendance(  # noqa: PLR0913
        self,
        user_id: str | None,
        day: str | date,
        subject: str,
        status: str | AttendanceStatus,
        remark: str | None = None,
    ) -> AttendanceChange:
        """Set a subject's status for a day and adjust the summary.

        A remark of None keeps the stored remark; any string replaces it.
        """
        owner = require_user(user_id)
        target_day = parse_day(day)
        name = require_subject(subject)
        new_status = parse_status(status)
        step = partial(
            self._apply,
            user_id=owner,
            day=target_day,
            subject=name,
            new_status=new_status,
            remark=remark,
        )

        async def attempt() -> AttendanceChange:
            return await asyncio.to_thread(self.store.run_transaction, step)

        change = await retry_on_conflict(
            attempt,
            max_attempts=self.max_attempts,
            backoff_seconds=self.backoff_seconds,
            action=f"attendance {target_day.isoformat()}/{name}",
        )
        if change.written:
            _logger.info(
                "Recorded attendance user=%s day=%s subject=%s %s -> %s",
                owner,
                target_day.isoformat(),
                name,
                change.old_status.value if change.old_status else "none",
                change.new_status.value,
            )
            if self.publisher is not None:
                self.publisher.publish(owner, change.record)
        return change

    def _apply(  # noqa: PLR0913
        self,
        txn: LedgerTransaction,
        *,
        user_id: str,
        day: date,
        subject: str,
        new_status: AttendanceStatus,
        remark: str | None,
    ) -> AttendanceChange:
        record = txn.get_daily_record(user_id, day) or DailyRecord.empty(day)
        previous = record.entries.get(subject)
        old_status = previous.status if previous else None
        summary = txn.get_summary(user_id) or UserSummary()
        new_remark = merge_remark(previous, remark)

        if (
            previous is not None
            and old_status is new_status
            and new_remark == previous.remark
        ):
            return AttendanceChange(
                subject=subject,
                old_status=old_status,
                new_status=new_status,
                record=record,
                summary=summary,
                written=False,
            )

        if revert_would_clamp(summary, old_status, subject):
            _logger.warning(
                "Summary drift for user=%s subject=%s: reverting %s leaves "
                "inconsistent counters, clamping",
                user_id,
                subject,
                old_status.value if old_status else "none",
            )
        updated_summary = apply_delta(summary, old_status, new_status, subject)
        updated_record = record.with_entry(
            subject,
            AttendanceEntry(
                status=new_status, remark=new_remark, recorded_at=self.clock()
            ),
        )
        txn.set_daily_record(user_id, updated_record)
        txn.set_summary(user_id, updated_summary)
        return AttendanceChange(
            subject=subject,
            old_status=old_status,
            new_status=new_status,
            record=updated_record,
            summary=updated_summary,
            written=True,
        )
