"""Tests for the nutrition contextualizer."""

import asyncio

import pytest

from nutriscan.domain.errors import AIContractError
from nutriscan.domain.profiles import UserProfile
from nutriscan.services.contextualizer import NutritionContextualizer, build_context_prompt
from tests.conftest import FakeChatClient

CONTEXT_REPLY = """{
  "summary": "A filling breakfast option.",
  "highlights": [
    {"type": "positive", "nutrient": "fiber", "message": "High fiber", "recommendation": "Keep it"}
  ],
  "goalAlignment": {"score": 8, "explanation": "Fits your goals", "suggestions": ["Add berries"]},
  "mealContext": {"bestTimeToEat": "morning", "pairings": ["yogurt"], "portionAdvice": "40g"},
  "motivationalNote": "Nice pick!"
}"""


def test_contextualize_parses_reply() -> None:
    chat_client = FakeChatClient(replies=[CONTEXT_REPLY])
    contextualizer = NutritionContextualizer(client=chat_client, model="m")

    context = asyncio.run(
        contextualizer.contextualize("Oatmeal", {"fiber": 10}, UserProfile())
    )

    assert context.summary == "A filling breakfast option."
    assert context.goal_alignment.score == 8
    assert context.meal_context.best_time_to_eat == "morning"
    assert context.highlights[0].nutrient == "fiber"
    assert context.model_dump(by_alias=True)["motivationalNote"] == "Nice pick!"


def test_contextualize_invalid_reply() -> None:
    chat_client = FakeChatClient(replies=['{"highlights": []}'])
    contextualizer = NutritionContextualizer(client=chat_client, model="m")

    with pytest.raises(AIContractError) as exc_info:
        asyncio.run(contextualizer.contextualize("Oatmeal", {}))

    assert exc_info.value.message == "Invalid JSON response from AI"


def test_context_prompt_mentions_profile_and_data() -> None:
    profile = UserProfile(
        health_issues=frozenset({"Diabetes"}),
        sensitivities=frozenset({"Nuts"}),
    )

    prompt = build_context_prompt(None, {"sugar": 12}, profile)

    assert "## Product: Unknown Product" in prompt
    assert "User's Health Conditions: Diabetes" in prompt
    assert "User's Allergies/Sensitivities: Nuts" in prompt
    assert '"sugar": 12' in prompt
