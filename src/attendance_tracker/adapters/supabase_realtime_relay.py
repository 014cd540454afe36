"""Feeds committed `attendance_days` rows from Supabase Realtime to live feeds."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from supabase import acreate_client

from attendance_tracker.adapters.supabase_rows import record_from_row

if TYPE_CHECKING:
    from realtime import AsyncRealtimeChannel
    from supabase import AsyncClient

    from attendance_tracker.services.ledger import RecordPublisher

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseRealtimeRelay:
    """Publishes every committed day row, whichever process wrote it."""

    client: AsyncClient
    publisher: RecordPublisher
    table: str = "attendance_days"
    channel: AsyncRealtimeChannel | None = None

    @classmethod
    async def connect(
        cls, url: str, key: str, publisher: RecordPublisher
    ) -> SupabaseRealtimeRelay:
        """Create an async Supabase client and subscribe to row changes."""
        relay = cls(client=await acreate_client(url, key), publisher=publisher)
        await relay.start()
        return relay

    async def start(self) -> None:
        """Subscribe to changes of the day table."""
        channel = self.client.channel(f"{self.table}-changes")
        channel.on_postgres_changes(
            "*", callback=self.handle_change, table=self.table, schema="public"
        )
        self.channel = await channel.subscribe()
        _logger.info("Listening for %s changes", self.table)

    def handle_change(self, payload: dict) -> None:
        """Publish the row carried by a change event."""
        row = payload.get("data", {}).get("record")
        if not row or not row.get("user_id") or not row.get("day"):
            return
        entries = row.get("entries")
        if isinstance(entries, str):
            row = {**row, "entries": json.loads(entries)}
        self.publisher.publish(str(row["user_id"]), record_from_row(row))

    async def close(self) -> None:
        """Unsubscribe; the socket closes with its last channel."""
        if self.channel is None:
            return
        await self.client.remove_channel(self.channel)
        self.channel = None
