"""Tests for overall and major-subject views."""

from datetime import date

import pytest

from attendance_tracker.domain.errors import InvalidDateRangeError
from attendance_tracker.domain.stats import SubjectTally
from attendance_tracker.domain.summary import UserSummary
from attendance_tracker.services.ledger import LedgerService
from attendance_tracker.services.overview import OverviewService
from attendance_tracker.services.stats import PeriodStatsService
from attendance_tracker.services.subjects import SubjectCatalogService
from tests.conftest import (
    USER_ID,
    InMemoryLedgerStore,
    InMemorySubjectRepository,
    mark,
)


@pytest.fixture
def overview_service(
    store: InMemoryLedgerStore, subject_repository: InMemorySubjectRepository
) -> OverviewService:
    return OverviewService(
        repository=store,
        catalog=SubjectCatalogService(subject_repository),
        stats_service=PeriodStatsService(store),
    )


def test_overview_combines_baseline_and_tracked(
    overview_service: OverviewService,
    ledger_service: LedgerService,
    store: InMemoryLedgerStore,
) -> None:
    store.seed_summary(
        USER_ID, UserSummary(past_total_classes=30, past_attended_classes=23)
    )
    mark(ledger_service, "2026-01-02", "Physics", "present")
    mark(ledger_service, "2026-01-02", "Chemistry", "absent")

    overview = overview_service.get_overview(USER_ID)

    assert overview.past == SubjectTally(30, 23)
    assert overview.tracked == SubjectTally(2, 1)
    assert overview.combined == SubjectTally(32, 24)
    assert [card.name for card in overview.subjects] == [
        "Physics",
        "Math",
        "English",
        "Chemistry",
    ]
    physics = overview.subjects[0]
    assert physics.past == SubjectTally(10, 8)
    assert physics.combined == SubjectTally(11, 9)
    assert overview.subjects[3].past == SubjectTally()


def test_overview_without_catalog_still_lists_tracked(
    store: InMemoryLedgerStore, ledger_service: LedgerService
) -> None:
    service = OverviewService(
        repository=store,
        catalog=SubjectCatalogService(InMemorySubjectRepository(fail=True)),
        stats_service=PeriodStatsService(store),
    )
    mark(ledger_service, "2026-01-02", "Math", "present")

    overview = service.get_overview(USER_ID)

    assert [card.name for card in overview.subjects] == ["Math"]
    assert overview.tracked == SubjectTally(1, 1)


def test_majors_overall_use_combined_cards(
    overview_service: OverviewService, ledger_service: LedgerService
) -> None:
    mark(ledger_service, "2026-01-02", "Physics", "absent")
    mark(ledger_service, "2026-01-02", "Math", "present")

    majors = overview_service.major_subjects(
        USER_ID, ["Physics", "Math", "Physics", "Latin"]
    )

    assert majors.subjects == ["Physics", "Math", "Latin"]
    assert majors.tally == SubjectTally(32, 24)
    assert majors.period is None
    assert majors.tally.percentage == 75


def test_majors_over_period_use_records_only(
    overview_service: OverviewService, ledger_service: LedgerService
) -> None:
    mark(ledger_service, "2026-01-02", "Physics", "absent")
    mark(ledger_service, "2026-01-03", "Math", "present")
    mark(ledger_service, "2026-02-03", "Math", "absent")

    majors = overview_service.major_subjects(
        USER_ID, ["Physics", "Math"], start="2026-01-01", end="2026-01-31"
    )

    assert majors.tally == SubjectTally(2, 1)
    assert majors.period == (date(2026, 1, 1), date(2026, 1, 31))


def test_majors_need_both_bounds(overview_service: OverviewService) -> None:
    with pytest.raises(InvalidDateRangeError):
        overview_service.major_subjects(USER_ID, ["Math"], start="2026-01-01")
