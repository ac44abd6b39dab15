"""Supabase-backed profile and health preference repository."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from nutriscan.domain.profiles import UserProfile
from nutriscan.services.profiles import ProfileRepository


@dataclass
class SupabaseProfileRepository(ProfileRepository):
    """Supabase implementation for onboarding data."""

    client: Client

    def update_profile(self, user_id: UUID, age: int | None, gender: str | None) -> None:
        """Update age and gender on the profile row."""
        self.client.table("profiles").update({"age": age, "gender": gender}).eq(
            "id", str(user_id)
        ).execute()

    def save_health_preferences(self, user_id: UUID, profile: UserProfile) -> None:
        """Upsert the health preferences row for a user."""
        self.client.table("health_preferences").upsert(
            {
                "user_id": str(user_id),
                "health_issues": sorted(profile.health_issues),
                "sensitivities": sorted(profile.sensitivities),
                "intolerances": sorted(profile.intolerances),
                "dietary_preferences": sorted(profile.dietary_preferences),
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id",
        ).execute()

    def get_health_preferences(self, user_id: UUID) -> UserProfile | None:
        """Return the user's preferences, if present."""
        response = (
            self.client.table("health_preferences")
            .select("health_issues, sensitivities, intolerances, dietary_preferences")
            .eq("user_id", str(user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return UserProfile.from_row(response.data[0])
