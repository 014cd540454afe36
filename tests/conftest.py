"""Shared test fixtures."""

import asyncio
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import TypeVar

import pytest

from attendance_tracker.config import Settings
from attendance_tracker.containers import AppContainer
from attendance_tracker.domain.attendance import DailyRecord
from attendance_tracker.domain.errors import (
    ProviderUnavailableError,
    TransactionConflictError,
)
from attendance_tracker.domain.schedule import CatalogSubject, ClassRoutine
from attendance_tracker.domain.summary import UserSummary
from attendance_tracker.services.cache import InMemoryCache
from attendance_tracker.services.ledger import (
    AttendanceChange,
    LedgerService,
    LedgerStore,
    LedgerTransaction,
)
from attendance_tracker.services.live import DailyRecordBroker, LiveRecordService
from attendance_tracker.services.overview import OverviewService
from attendance_tracker.services.schedule import ScheduleProvider, ScheduleService
from attendance_tracker.services.stats import (
    PeriodStatsService,
    ReconciliationService,
    RecordRepository,
)
from attendance_tracker.services.subjects import (
    SubjectCatalogService,
    SubjectRepository,
)

T = TypeVar("T")

USER_ID = "user-1"


@dataclass
class _MemoryTransaction(LedgerTransaction):
    store: "InMemoryLedgerStore"
    record_versions: dict[tuple[str, date], int] = field(default_factory=dict)
    summary_versions: dict[str, int] = field(default_factory=dict)
    staged_records: dict[tuple[str, date], DailyRecord] = field(default_factory=dict)
    staged_summaries: dict[str, UserSummary] = field(default_factory=dict)

    def get_daily_record(self, user_id: str, day: date) -> DailyRecord | None:
        record, version = self.store.records.get((user_id, day), (None, 0))
        self.record_versions[(user_id, day)] = version
        return record

    def get_summary(self, user_id: str) -> UserSummary | None:
        summary, version = self.store.summaries.get(user_id, (None, 0))
        self.summary_versions[user_id] = version
        return summary

    def set_daily_record(self, user_id: str, record: DailyRecord) -> None:
        self.staged_records[(user_id, record.day)] = record

    def set_summary(self, user_id: str, summary: UserSummary) -> None:
        self.staged_summaries[user_id] = summary


@dataclass
class InMemoryLedgerStore(LedgerStore, RecordRepository):
    """Versioned in-memory store validating read sets at commit."""

    records: dict[tuple[str, date], tuple[DailyRecord, int]] = field(
        default_factory=dict
    )
    summaries: dict[str, tuple[UserSummary, int]] = field(default_factory=dict)
    before_commit: list[Callable[["InMemoryLedgerStore"], None]] = field(
        default_factory=list
    )
    attempts: int = 0
    commits: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def run_transaction(self, step: Callable[[LedgerTransaction], T]) -> T:
        self.attempts += 1
        txn = _MemoryTransaction(self)
        result = step(txn)
        if self.before_commit:
            self.before_commit.pop(0)(self)
        with self._lock:
            for key, expected in txn.record_versions.items():
                if key in txn.staged_records and self._record_version(key) != expected:
                    raise TransactionConflictError("record changed")
            for user_id, expected in txn.summary_versions.items():
                if (
                    user_id in txn.staged_summaries
                    and self._summary_version(user_id) != expected
                ):
                    raise TransactionConflictError("summary changed")
            if not txn.staged_records and not txn.staged_summaries:
                return result
            for key, record in txn.staged_records.items():
                self.records[key] = (record, self._record_version(key) + 1)
            for user_id, summary in txn.staged_summaries.items():
                self.summaries[user_id] = (summary, self._summary_version(user_id) + 1)
            self.commits += 1
        return result

    def bump_summary(self, user_id: str) -> None:
        """Simulate a concurrent writer touching the summary."""
        summary, version = self.summaries.get(user_id, (UserSummary(), 0))
        self.summaries[user_id] = (summary, version + 1)

    def seed_summary(self, user_id: str, summary: UserSummary) -> None:
        self.summaries[user_id] = (summary, self._summary_version(user_id) + 1)

    def get_daily_record(self, user_id: str, day: date) -> DailyRecord | None:
        record, _ = self.records.get((user_id, day), (None, 0))
        return record

    def list_daily_records(
        self, user_id: str, start: date, end: date
    ) -> list[DailyRecord]:
        return sorted(
            (
                record
                for (owner, day), (record, _) in self.records.items()
                if owner == user_id and start <= day <= end
            ),
            key=lambda record: record.day,
        )

    def get_history_bounds(self, user_id: str) -> tuple[date, date] | None:
        days = [day for (owner, day) in self.records if owner == user_id]
        if not days:
            return None
        return min(days), max(days)

    def get_summary(self, user_id: str) -> UserSummary | None:
        summary, _ = self.summaries.get(user_id, (None, 0))
        return summary

    def _record_version(self, key: tuple[str, date]) -> int:
        return self.records.get(key, (None, 0))[1]

    def _summary_version(self, user_id: str) -> int:
        return self.summaries.get(user_id, (None, 0))[1]


@dataclass
class InMemorySubjectRepository(SubjectRepository):
    """In-memory subject catalog."""

    subjects: dict[str, list[CatalogSubject]] = field(default_factory=dict)
    fail: bool = False

    def list_subjects(self, user_id: str) -> list[CatalogSubject]:
        if self.fail:
            raise RuntimeError("catalog unavailable")
        return list(self.subjects.get(user_id, []))


@dataclass
class FakeScheduleProvider(ScheduleProvider):
    """Schedule provider returning a fixed routine."""

    routine: ClassRoutine = field(
        default_factory=lambda: ClassRoutine(class_id="bsc-1", version=1, rows=[])
    )
    fail: bool = False
    version_calls: int = 0
    fetch_calls: int = 0

    async def get_version(self, class_id: str, college_id: str | None = None) -> int:
        self.version_calls += 1
        if self.fail:
            raise ProviderUnavailableError("provider down")
        return self.routine.version

    async def fetch_routine(
        self, class_id: str, college_id: str | None = None
    ) -> ClassRoutine:
        self.fetch_calls += 1
        if self.fail:
            raise ProviderUnavailableError("provider down")
        return self.routine


@dataclass
class FakeChannel:
    """Realtime channel that lets a test emit row changes."""

    topic: str
    bindings: list[dict[str, object]] = field(default_factory=list)
    callbacks: list[Callable[[dict], None]] = field(default_factory=list)
    subscribed: bool = False

    def on_postgres_changes(  # noqa: PLR0913
        self,
        event: str,
        callback: Callable[[dict], None],
        table: str | None = None,
        schema: str | None = None,
        filter: str | None = None,
    ) -> "FakeChannel":
        self.bindings.append({"event": event, "table": table, "schema": schema})
        self.callbacks.append(callback)
        return self

    async def subscribe(self) -> "FakeChannel":
        self.subscribed = True
        return self

    def emit(self, record: dict[str, object] | None, event: str = "UPDATE") -> None:
        data: dict[str, object] = {"type": event, "table": "attendance_days"}
        if record is not None:
            data["record"] = record
        for callback in self.callbacks:
            callback({"data": data, "ids": [1]})


@dataclass
class FakeAsyncSupabaseClient:
    """Async Supabase client exposing only realtime channels."""

    channels: list[FakeChannel] = field(default_factory=list)
    removed: list[FakeChannel] = field(default_factory=list)

    def channel(self, topic: str) -> FakeChannel:
        channel = FakeChannel(topic)
        self.channels.append(channel)
        return channel

    async def remove_channel(self, channel: FakeChannel) -> None:
        self.removed.append(channel)


def mark(
    service: LedgerService,
    day: str,
    subject: str,
    status: str,
    remark: str | None = None,
    user_id: str | None = USER_ID,
) -> AttendanceChange:
    """Run a ledger write to completion."""
    return asyncio.run(
        service.mark_or_edit_attendance(user_id, day, subject, status, remark)
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        ledger_backoff_seconds=0,
    )


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def broker() -> DailyRecordBroker:
    return DailyRecordBroker()


@pytest.fixture
def ledger_service(
    store: InMemoryLedgerStore, broker: DailyRecordBroker
) -> LedgerService:
    return LedgerService(store=store, publisher=broker, backoff_seconds=0)


@pytest.fixture
def subject_repository() -> InMemorySubjectRepository:
    return InMemorySubjectRepository(
        subjects={
            USER_ID: [
                CatalogSubject(name="Physics", past_total=10, past_attended=8),
                CatalogSubject(name="Math", past_total=20, past_attended=15),
                CatalogSubject(name="English"),
            ]
        }
    )


@pytest.fixture
def schedule_provider() -> FakeScheduleProvider:
    return FakeScheduleProvider()


@pytest.fixture
def container(
    settings: Settings,
    store: InMemoryLedgerStore,
    broker: DailyRecordBroker,
    ledger_service: LedgerService,
    subject_repository: InMemorySubjectRepository,
    schedule_provider: FakeScheduleProvider,
) -> AppContainer:
    stats_service = PeriodStatsService(store)
    catalog_service = SubjectCatalogService(subject_repository)

    async def start_resources() -> None:
        return None

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        ledger_service=ledger_service,
        stats_service=stats_service,
        overview_service=OverviewService(
            repository=store, catalog=catalog_service, stats_service=stats_service
        ),
        reconciliation_service=ReconciliationService(
            repository=store, stats_service=stats_service
        ),
        catalog_service=catalog_service,
        schedule_service=ScheduleService(
            catalog=catalog_service,
            cache=InMemoryCache(),
            provider=schedule_provider,
        ),
        live_service=LiveRecordService(broker=broker, stats_service=stats_service),
        start_resources=start_resources,
        close_resources=close_resources,
    )
