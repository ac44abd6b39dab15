"""Pydantic models for API payloads."""

from dataclasses import asdict
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from nutriscan.domain.analysis import AnalysisResult
from nutriscan.domain.chat import ChatMessage, ChatRole
from nutriscan.domain.nutrition import NutritionRecord
from nutriscan.domain.profiles import UserProfile


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PreferencesPayload(BaseModel):
    """Health preferences as sent by clients (snake_case keys)."""

    health_issues: list[str] = Field(default_factory=list)
    sensitivities: list[str] = Field(default_factory=list)
    intolerances: list[str] = Field(default_factory=list)
    dietary_preferences: list[str] = Field(default_factory=list)

    def to_profile(self) -> UserProfile:
        return UserProfile.from_row(self.model_dump())

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "PreferencesPayload":
        return cls(
            health_issues=sorted(profile.health_issues),
            sensitivities=sorted(profile.sensitivities),
            intolerances=sorted(profile.intolerances),
            dietary_preferences=sorted(profile.dietary_preferences),
        )


class AnalyzeRequest(_CamelModel):
    """Scan request with a barcode and/or a label image data URL."""

    barcode: str | None = None
    image: str | None = None
    user_preferences: PreferencesPayload | None = None
    user_id: UUID | None = None


class NutrientsPayload(BaseModel):
    calories: float
    protein: float
    carbs: float
    fat: float
    sugar: float
    sodium: float
    fiber: float


class AnalysisPayload(AnalysisResult):
    """Analysis response combining the record and the model's scoring."""

    product_name: str
    barcode: str | None = None
    data_source: str
    nutrients: NutrientsPayload
    ingredients: list[str]

    @classmethod
    def build(
        cls, record: NutritionRecord, analysis: AnalysisResult
    ) -> "AnalysisPayload":
        return cls(
            product_name=record.product_name,
            barcode=record.barcode,
            data_source=record.data_source,
            nutrients=NutrientsPayload(**asdict(record.nutrients)),
            ingredients=list(record.ingredients),
            **analysis.model_dump(),
        )


class ContextualizeRequest(_CamelModel):
    nutrition_data: dict[str, object]
    product_name: str | None = None
    user_preferences: PreferencesPayload | None = None


class ChatMessagePayload(BaseModel):
    role: ChatRole
    content: str

    def to_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content)


class CoachRequest(_CamelModel):
    messages: list[ChatMessagePayload]
    user_preferences: PreferencesPayload | None = None
    conversation_id: UUID | None = None
    user_id: UUID | None = None


class OnboardingRequest(_CamelModel):
    """Onboarding answers from the health questionnaire."""

    user_id: UUID
    age: int | None = Field(default=None, ge=0, le=130)
    gender: str | None = None
    health_issues: list[str] = Field(default_factory=list)
    sensitivities: list[str] = Field(default_factory=list)
    intolerances: list[str] = Field(default_factory=list)
    dietary_preferences: list[str] = Field(default_factory=list)

    def to_profile(self) -> UserProfile:
        return UserProfile.from_row(
            self.model_dump(
                include={
                    "health_issues",
                    "sensitivities",
                    "intolerances",
                    "dietary_preferences",
                }
            )
        )
