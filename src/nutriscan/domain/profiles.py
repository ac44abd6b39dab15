"""User health profile models."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class UserProfile:
    """Health preferences captured during onboarding."""

    health_issues: frozenset[str] = field(default_factory=frozenset)
    sensitivities: frozenset[str] = field(default_factory=frozenset)
    intolerances: frozenset[str] = field(default_factory=frozenset)
    dietary_preferences: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "UserProfile":
        """Build a profile from a snake_case row or request payload."""
        return cls(
            health_issues=_clean(row.get("health_issues")),
            sensitivities=_clean(row.get("sensitivities")),
            intolerances=_clean(row.get("intolerances")),
            dietary_preferences=_clean(row.get("dietary_preferences")),
        )

    def is_empty(self) -> bool:
        return not (
            self.health_issues
            or self.sensitivities
            or self.intolerances
            or self.dietary_preferences
        )


def _clean(values: object) -> frozenset[str]:
    """Drop blanks and the "None" placeholder option."""
    if not isinstance(values, (list, tuple, set, frozenset)):
        return frozenset()
    return frozenset(
        str(value).strip()
        for value in values
        if str(value).strip() and str(value).strip().lower() != "none"
    )


def format_values(values: frozenset[str]) -> str:
    """Render a preference set for prompts in a stable order."""
    return ", ".join(sorted(values)) or "None"
