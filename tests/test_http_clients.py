"""Tests for HTTP-based adapters."""

import asyncio

import httpx
import pytest

from attendance_tracker.adapters.routine_sheet_client import (
    HttpxRoutineSheetClient,
    parse_csv,
)
from attendance_tracker.domain.errors import ProviderUnavailableError

MASTER_URL = "https://sheets.test/master.csv"

MASTER_CSV = """class_id,version,routine_sheet_id
BSC-1,4,sheet-abc
bsc-2,,
"""

ROUTINE_CSV = """Day,Section,Subject,Start_Time,Room,Teacher
Monday,A,Physics,09:00,101,Dr. Rao
Tuesday,,Math,10:00,,
"""


def _client(handler) -> HttpxRoutineSheetClient:  # type: ignore[no-untyped-def]
    return HttpxRoutineSheetClient(
        master_url=MASTER_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        routine_url_template="https://sheets.test/{sheet_id}.csv",
    )


def test_routine_client_reads_version_and_routine() -> None:
    seen_paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_paths.append(request.url.path)
        if request.url.path == "/master.csv":
            return httpx.Response(200, text=MASTER_CSV)
        return httpx.Response(200, text=ROUTINE_CSV)

    client = _client(handler)

    version = asyncio.run(client.get_version("bsc-1"))
    routine = asyncio.run(client.fetch_routine("bsc-1"))

    assert version == 4
    assert routine.version == 4
    assert routine.class_id == "bsc-1"
    assert routine.rows[0] == {
        "day": "Monday",
        "section": "A",
        "subject": "Physics",
        "start_time": "09:00",
        "room": "101",
        "teacher": "Dr. Rao",
    }
    assert "/sheet-abc.csv" in seen_paths


def test_routine_client_missing_version_is_zero() -> None:
    client = _client(lambda _request: httpx.Response(200, text=MASTER_CSV))

    assert asyncio.run(client.get_version("bsc-2")) == 0
    with pytest.raises(ProviderUnavailableError):
        asyncio.run(client.fetch_routine("bsc-2"))


def test_routine_client_unknown_class() -> None:
    client = _client(lambda _request: httpx.Response(200, text=MASTER_CSV))

    with pytest.raises(ProviderUnavailableError):
        asyncio.run(client.get_version("msc-9"))


def test_routine_client_http_failure_is_provider_error() -> None:
    client = _client(lambda _request: httpx.Response(503))

    with pytest.raises(ProviderUnavailableError):
        asyncio.run(client.get_version("bsc-1"))


def test_routine_client_close() -> None:
    client = _client(lambda _request: httpx.Response(200, text=MASTER_CSV))

    asyncio.run(client.close())

    assert client.http_client.is_closed


def test_parse_csv_pads_short_rows_and_skips_blank_lines() -> None:
    rows = parse_csv("A, B \n1\n,\n2,3,4\n")

    assert rows == [{"a": "1", "b": ""}, {"a": "2", "b": "3"}]
    assert parse_csv("") == []


def test_routine_client_picks_master_row_for_college() -> None:
    master = """college_id,class_id,version,routine_sheet_id
main,bsc-1,4,sheet-main
annex,bsc-1,7,sheet-annex
"""
    seen_paths: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_paths.append(request.url.path)
        if request.url.path == "/master.csv":
            return httpx.Response(200, text=master)
        return httpx.Response(200, text=ROUTINE_CSV)

    client = _client(handler)

    assert asyncio.run(client.get_version("bsc-1", college_id="ANNEX")) == 7
    routine = asyncio.run(client.fetch_routine("bsc-1", college_id="annex"))
    assert routine.version == 7
    assert "/sheet-annex.csv" in seen_paths
    assert asyncio.run(client.get_version("bsc-1")) == 4
    with pytest.raises(ProviderUnavailableError):
        asyncio.run(client.get_version("bsc-1", college_id="north"))
