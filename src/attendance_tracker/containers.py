"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from attendance_tracker.adapters.routine_sheet_client import HttpxRoutineSheetClient
from attendance_tracker.adapters.supabase_realtime_relay import SupabaseRealtimeRelay
from attendance_tracker.adapters.supabase_ledger_store import SupabaseLedgerStore
from attendance_tracker.adapters.supabase_record_repository import (
    SupabaseRecordRepository,
)
from attendance_tracker.adapters.supabase_subject_repository import (
    SupabaseSubjectRepository,
)
from attendance_tracker.config import Settings
from attendance_tracker.services.cache import InMemoryCache
from attendance_tracker.services.ledger import LedgerService
from attendance_tracker.services.live import DailyRecordBroker, LiveRecordService
from attendance_tracker.services.overview import OverviewService
from attendance_tracker.services.schedule import ScheduleService
from attendance_tracker.services.stats import (
    PeriodStatsService,
    ReconciliationService,
)
from attendance_tracker.services.subjects import SubjectCatalogService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    ledger_service: LedgerService
    stats_service: PeriodStatsService
    overview_service: OverviewService
    reconciliation_service: ReconciliationService
    catalog_service: SubjectCatalogService
    schedule_service: ScheduleService
    live_service: LiveRecordService
    start_resources: Callable[[], Awaitable[None]]
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    record_repository = SupabaseRecordRepository(supabase_client)
    broker = DailyRecordBroker()
    ledger_service = LedgerService(
        store=SupabaseLedgerStore(supabase_client),
        # With realtime on, the relay publishes every commit, local ones included.
        publisher=None if resolved_settings.realtime_enabled else broker,
        max_attempts=resolved_settings.ledger_max_attempts,
        backoff_seconds=resolved_settings.ledger_backoff_seconds,
    )
    stats_service = PeriodStatsService(record_repository)
    catalog_service = SubjectCatalogService(SupabaseSubjectRepository(supabase_client))
    routine_client = (
        HttpxRoutineSheetClient.create(
            resolved_settings.routine_master_url,
            timeout=resolved_settings.provider_timeout_seconds,
        )
        if resolved_settings.routine_master_url
        else None
    )
    schedule_service = ScheduleService(
        catalog=catalog_service,
        cache=InMemoryCache(),
        provider=routine_client,
        check_ttl_seconds=resolved_settings.routine_cache_ttl_seconds,
    )

    relays: list[SupabaseRealtimeRelay] = []

    async def start_resources() -> None:
        if resolved_settings.realtime_enabled and not relays:
            relay = await SupabaseRealtimeRelay.connect(
                resolved_settings.supabase_url,
                resolved_settings.supabase_service_key,
                broker,
            )
            relays.append(relay)

    async def close_resources() -> None:
        while relays:
            await relays.pop().close()
        if routine_client is not None:
            await routine_client.close()

    return AppContainer(
        settings=resolved_settings,
        ledger_service=ledger_service,
        stats_service=stats_service,
        overview_service=OverviewService(
            repository=record_repository,
            catalog=catalog_service,
            stats_service=stats_service,
        ),
        reconciliation_service=ReconciliationService(
            repository=record_repository, stats_service=stats_service
        ),
        catalog_service=catalog_service,
        schedule_service=schedule_service,
        live_service=LiveRecordService(broker=broker, stats_service=stats_service),
        start_resources=start_resources,
        close_resources=close_resources,
    )
