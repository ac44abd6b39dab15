"""Turn raw nutrition data into a personalized narrative."""

import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from nutriscan.adapters.openai_chat_client import ChatCompletionClient
from nutriscan.domain.analysis import NutritionContext
from nutriscan.domain.errors import AIContractError
from nutriscan.domain.profiles import UserProfile
from nutriscan.services.json_extraction import extract_json_object

_logger = logging.getLogger(__name__)

CONTEXTUALIZER_SYSTEM_PROMPT = """You are a highly skilled, empathetic, and \
detail-oriented Nutritional Contextualizer. Your task is to transform raw \
nutritional data into a personalized, goal-oriented narrative.

You MUST respond with a valid JSON object with this structure:

{
  "summary": "A 2-3 sentence personalized summary of the food's impact on the user's health goals",
  "highlights": [
    {
      "type": "positive" | "warning" | "neutral",
      "nutrient": "string",
      "message": "Personalized insight about this nutrient",
      "recommendation": "Specific actionable tip"
    }
  ],
  "goalAlignment": {
    "score": 1-10,
    "explanation": "How this food aligns with user's stated goals",
    "suggestions": ["Array of personalized suggestions"]
  },
  "mealContext": {
    "bestTimeToEat": "morning" | "afternoon" | "evening" | "anytime",
    "pairings": ["Suggested food pairings to balance nutrition"],
    "portionAdvice": "Personalized portion guidance"
  },
  "motivationalNote": "A brief, encouraging message tailored to the user's journey"
}

Guidelines:
1. Always personalize based on user's health conditions, allergies, and dietary preferences
2. Use empathetic, non-judgmental language
3. Focus on practical, achievable recommendations
4. Celebrate positive aspects while gently noting concerns
5. Make complex nutritional science accessible and relatable"""

_NO_PROFILE = "No specific preferences provided - give general healthy eating guidance."


def build_context_prompt(
    product_name: str | None,
    nutrition_data: dict[str, object],
    profile: UserProfile | None,
) -> str:
    user_context = ""
    if profile is not None:
        if profile.health_issues:
            user_context += (
                f"User's Health Conditions: {', '.join(sorted(profile.health_issues))}\n"
            )
        allergies = profile.sensitivities | profile.intolerances
        if allergies:
            user_context += (
                f"User's Allergies/Sensitivities: {', '.join(sorted(allergies))}\n"
            )
        if profile.dietary_preferences:
            user_context += (
                "User's Dietary Preferences: "
                f"{', '.join(sorted(profile.dietary_preferences))}\n"
            )
    return f"""
## User Profile:
{user_context or _NO_PROFILE}

## Product: {product_name or "Unknown Product"}

## Raw Nutrition Data:
{json.dumps(nutrition_data, indent=2, default=str)}

Transform this raw nutritional data into a personalized, goal-oriented narrative \
following the exact JSON structure specified. Focus on what matters most to THIS \
specific user based on their profile."""


@dataclass
class NutritionContextualizer:
    client: ChatCompletionClient
    model: str

    async def contextualize(
        self,
        product_name: str | None,
        nutrition_data: dict[str, object],
        profile: UserProfile | None = None,
    ) -> NutritionContext:
        _logger.info("Contextualizing nutrition for: %s", product_name)
        content = await self.client.complete(
            model=self.model,
            messages=[
                {"role": "system", "content": CONTEXTUALIZER_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": build_context_prompt(product_name, nutrition_data, profile),
                },
            ],
        )
        try:
            return NutritionContext.model_validate(extract_json_object(content))
        except (AIContractError, ValidationError) as exc:
            _logger.error("Failed to parse AI response as JSON: %r", content)
            raise AIContractError("Invalid JSON response from AI", raw=content) from exc
