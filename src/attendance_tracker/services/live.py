"""Live full-snapshot feeds of daily records."""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import date

from attendance_tracker.domain.attendance import DailyRecord, parse_day
from attendance_tracker.services.identity import require_user
from attendance_tracker.services.ledger import RecordPublisher
from attendance_tracker.services.stats import PeriodStatsService

_FeedKey = tuple[str, date]


@dataclass
class DailyRecordBroker(RecordPublisher):
    """In-process fan-out of committed day records.

    Each subscriber holds at most one pending snapshot; a newer snapshot
    replaces an undelivered older one.
    """

    _subscribers: dict[_FeedKey, set[asyncio.Queue[DailyRecord]]] = field(
        default_factory=dict
    )

    def publish(self, user_id: str, record: DailyRecord) -> None:
        """Deliver a snapshot to every subscriber of that user and day."""
        for queue in list(self._subscribers.get((user_id, record.day), ())):
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(record)

    def open(self, user_id: str, day: date) -> asyncio.Queue[DailyRecord]:
        """Register a subscriber queue."""
        queue: asyncio.Queue[DailyRecord] = asyncio.Queue(maxsize=1)
        self._subscribers.setdefault((user_id, day), set()).add(queue)
        return queue

    def close(self, user_id: str, day: date, queue: asyncio.Queue[DailyRecord]) -> None:
        """Unregister a subscriber queue."""
        subscribers = self._subscribers.get((user_id, day))
        if subscribers is None:
            return
        subscribers.discard(queue)
        if not subscribers:
            self._subscribers.pop((user_id, day), None)


@dataclass
class LiveRecordService:
    """Subscriptions yielding authoritative snapshots of a day's record."""

    broker: DailyRecordBroker
    stats_service: PeriodStatsService

    async def watch(
        self, user_id: str | None, day: str | date
    ) -> AsyncIterator[DailyRecord]:
        """Yield the current record, then every committed change to it."""
        owner = require_user(user_id)
        target = parse_day(day)
        queue = self.broker.open(owner, target)
        try:
            yield self.stats_service.get_daily_record(owner, target)
            while True:
                yield await queue.get()
        finally:
            self.broker.close(owner, target, queue)
