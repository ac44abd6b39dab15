"""Models for LLM analysis results."""

import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_HEALTH_SCORE = 5
FALLBACK_EXPLANATION = "Analysis completed successfully."


class HealthCategory(str, Enum):
    HEALTHY = "healthy"
    MODERATE = "moderate"
    UNHEALTHY = "unhealthy"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RiskIngredient(_CamelModel):
    """Ingredient flagged by the model."""

    name: str
    risk: RiskLevel = RiskLevel.MEDIUM
    explanation: str = ""

    @field_validator("risk", mode="before")
    @classmethod
    def _lower_risk(cls, value: object) -> object:
        return _enum_or_default(RiskLevel, value, RiskLevel.MEDIUM)

    @field_validator("explanation", mode="before")
    @classmethod
    def _default_explanation(cls, value: object) -> object:
        return value if isinstance(value, str) else ""


class HealthierAlternative(_CamelModel):
    """Alternative product suggested by the model."""

    name: str
    brand: str = ""
    reason: str = ""
    estimated_score: int = Field(default=DEFAULT_HEALTH_SCORE, ge=1, le=10)

    @field_validator("estimated_score", mode="before")
    @classmethod
    def _coerce_score(cls, value: object) -> object:
        return _coerce_score(value)

    @field_validator("brand", "reason", mode="before")
    @classmethod
    def _default_text(cls, value: object) -> object:
        return value if isinstance(value, str) else ""


class AnalysisResult(_CamelModel):
    """Structured health scoring for one product.

    Unknown enum values fall back to their defaults and list items without
    the required shape are dropped, so one bad entry never voids the result.
    """

    health_score: int = Field(default=DEFAULT_HEALTH_SCORE, ge=1, le=10)
    category: HealthCategory = HealthCategory.MODERATE
    risk_ingredients: list[RiskIngredient] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    ai_explanation: str = FALLBACK_EXPLANATION
    healthier_alternatives: list[HealthierAlternative] = Field(default_factory=list)

    @field_validator("health_score", mode="before")
    @classmethod
    def _coerce_health_score(cls, value: object) -> object:
        return _coerce_score(value)

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: object) -> object:
        return _enum_or_default(HealthCategory, value, HealthCategory.MODERATE)

    @field_validator("risk_ingredients", "healthier_alternatives", mode="before")
    @classmethod
    def _named_items(cls, value: object) -> object:
        if not isinstance(value, list):
            return []
        return [item for item in value if _has_name(item)]

    @field_validator("recommendations", mode="before")
    @classmethod
    def _text_items(cls, value: object) -> object:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, str) and item.strip()]

    @field_validator("ai_explanation", mode="before")
    @classmethod
    def _default_explanation(cls, value: object) -> object:
        if not isinstance(value, str) or not value.strip():
            return FALLBACK_EXPLANATION
        return value


class Highlight(_CamelModel):
    type: str = "neutral"
    nutrient: str = ""
    message: str = ""
    recommendation: str = ""


class GoalAlignment(_CamelModel):
    score: int = Field(default=DEFAULT_HEALTH_SCORE, ge=1, le=10)
    explanation: str = ""
    suggestions: list[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _coerce(cls, value: object) -> object:
        return _coerce_score(value)


class MealContext(_CamelModel):
    best_time_to_eat: str = "anytime"
    pairings: list[str] = Field(default_factory=list)
    portion_advice: str = ""


class NutritionContext(_CamelModel):
    """Personalized narrative around a product's nutrition data."""

    summary: str
    highlights: list[Highlight] = Field(default_factory=list)
    goal_alignment: GoalAlignment = Field(default_factory=GoalAlignment)
    meal_context: MealContext = Field(default_factory=MealContext)
    motivational_note: str = ""


def _coerce_score(value: object) -> object:
    """Round numeric scores into the 1-10 band; absent or unparseable scores use the default."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return DEFAULT_HEALTH_SCORE
    if value is None or value == 0:
        return DEFAULT_HEALTH_SCORE
    if isinstance(value, float) and not math.isfinite(value):
        return DEFAULT_HEALTH_SCORE
    if isinstance(value, (int, float)):
        return min(10, max(1, round(value)))
    return value


def _enum_or_default(enum_type: type[Enum], value: object, default: Enum) -> Enum:
    if isinstance(value, enum_type):
        return value
    if isinstance(value, str):
        try:
            return enum_type(value.strip().lower())
        except ValueError:
            pass
    return default


def _has_name(item: object) -> bool:
    if isinstance(item, BaseModel):
        return True
    if not isinstance(item, dict):
        return False
    name = item.get("name")
    return isinstance(name, str) and bool(name.strip())
