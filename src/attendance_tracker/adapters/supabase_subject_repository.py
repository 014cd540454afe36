"""Supabase repository for the subject catalog."""

from dataclasses import dataclass

from supabase import Client

from attendance_tracker.domain.schedule import CatalogSubject
from attendance_tracker.services.subjects import SubjectRepository


@dataclass
class SupabaseSubjectRepository(SubjectRepository):
    """Supabase implementation for subject catalog reads."""

    client: Client

    def list_subjects(self, user_id: str) -> list[CatalogSubject]:
        """Return the user's subjects ordered by position."""
        response = (
            self.client.table("subjects")
            .select("name, past_total, past_attended, is_custom")
            .eq("user_id", user_id)
            .order("position", desc=False)
            .execute()
        )
        return [
            CatalogSubject(
                name=str(row["name"]),
                past_total=int(row.get("past_total") or 0),
                past_attended=int(row.get("past_attended") or 0),
                is_custom=bool(row.get("is_custom")),
            )
            for row in response.data or []
            if row.get("name")
        ]
