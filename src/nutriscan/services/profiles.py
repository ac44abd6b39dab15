"""Onboarding and health profile business logic."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from nutriscan.domain.profiles import UserProfile

_logger = logging.getLogger(__name__)


class ProfileRepository(Protocol):
    """Persistence interface for profiles and health preferences."""

    def update_profile(self, user_id: UUID, age: int | None, gender: str | None) -> None:
        """Update basic profile fields."""

    def save_health_preferences(self, user_id: UUID, profile: UserProfile) -> None:
        """Insert or replace the user's health preferences."""

    def get_health_preferences(self, user_id: UUID) -> UserProfile | None:
        """Return the stored health preferences, if present."""


@dataclass
class ProfileService:
    """Application service for onboarding."""

    repository: ProfileRepository

    def save_onboarding(
        self,
        user_id: UUID,
        profile: UserProfile,
        age: int | None = None,
        gender: str | None = None,
    ) -> None:
        """Persist onboarding answers."""
        cleaned_gender = gender.strip() if gender and gender.strip() else None
        self.repository.update_profile(user_id, age=age, gender=cleaned_gender)
        self.repository.save_health_preferences(user_id, profile)
        _logger.info("Saved onboarding for user %s", user_id)

    def get_profile(self, user_id: UUID | None) -> UserProfile | None:
        """Return the user's health profile, if any."""
        if user_id is None:
            return None
        return self.repository.get_health_preferences(user_id)
