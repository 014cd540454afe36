"""Routine provider backed by published spreadsheet CSV exports."""

import csv
import io
from dataclasses import dataclass

import httpx

from attendance_tracker.domain.errors import ProviderUnavailableError
from attendance_tracker.domain.schedule import ClassRoutine
from attendance_tracker.services.schedule import ScheduleProvider

ROUTINE_SHEET_URL = (
    "https://docs.google.com/spreadsheets/d/e/{sheet_id}/pub"
    "?gid=0&single=true&output=csv"
)


@dataclass
class HttpxRoutineSheetClient(ScheduleProvider):
    """Reads the master sheet for versions and per-class routine sheets."""

    master_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10
    routine_url_template: str = ROUTINE_SHEET_URL

    @classmethod
    def create(
        cls, master_url: str, timeout: float = 10
    ) -> "HttpxRoutineSheetClient":
        """Create a routine client with a managed httpx session."""
        return cls(
            master_url=master_url, http_client=httpx.AsyncClient(), timeout=timeout
        )

    async def get_version(self, class_id: str, college_id: str | None = None) -> int:
        """Return the routine version listed for the class."""
        row = await self._master_row(class_id, college_id)
        version = row.get("version", "").strip()
        return int(version) if version.isdigit() else 0

    async def fetch_routine(
        self, class_id: str, college_id: str | None = None
    ) -> ClassRoutine:
        """Download the class routine sheet."""
        row = await self._master_row(class_id, college_id)
        sheet_id = row.get("routine_sheet_id", "").strip()
        if not sheet_id:
            raise ProviderUnavailableError(f"No routine sheet for class {class_id}")
        version = row.get("version", "").strip()
        url = self.routine_url_template.format(sheet_id=sheet_id)
        rows = await self._fetch_csv(url)
        return ClassRoutine(
            class_id=class_id,
            version=int(version) if version.isdigit() else 0,
            rows=rows,
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _master_row(
        self, class_id: str, college_id: str | None
    ) -> dict[str, str]:
        wanted = class_id.strip().lower()
        college = (college_id or "").strip().lower()
        for row in await self._fetch_csv(self.master_url):
            if row.get("class_id", "").strip().lower() != wanted:
                continue
            row_college = row.get("college_id", "").strip().lower()
            if college and row_college and row_college != college:
                continue
            return row
        raise ProviderUnavailableError(f"Class {class_id} is not in the master sheet")

    async def _fetch_csv(self, url: str) -> list[dict[str, str]]:
        try:
            response = await self.http_client.get(url, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(f"Routine fetch failed: {exc}") from exc
        return parse_csv(response.text)


def parse_csv(text: str) -> list[dict[str, str]]:
    """Parse CSV text into rows keyed by lower-case header names."""
    reader = csv.reader(io.StringIO(text.strip()))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if not rows:
        return []
    headers = [header.strip().lower() for header in rows[0]]
    return [
        {
            header: (values[index].strip() if index < len(values) else "")
            for index, header in enumerate(headers)
        }
        for values in rows[1:]
    ]
