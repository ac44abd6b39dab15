"""LLM-backed health analysis of nutrition records."""

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from nutriscan.adapters.openai_chat_client import ChatCompletionClient
from nutriscan.domain.analysis import AnalysisResult
from nutriscan.domain.errors import AIContractError
from nutriscan.domain.nutrition import NutritionRecord
from nutriscan.domain.profiles import UserProfile, format_values
from nutriscan.services.json_extraction import extract_json_object

_logger = logging.getLogger(__name__)

ANALYSIS_SYSTEM_PROMPT = "You are a nutrition analysis AI that returns only valid JSON."


def build_analysis_prompt(
    record: NutritionRecord, profile: UserProfile | None = None
) -> str:
    """Build the analysis prompt for a record and optional profile."""
    personalized = profile is not None
    nutrients = record.nutrients
    user_context = ""
    if profile is not None:
        user_context = f"""

User Health Profile:
- Health Issues: {format_values(profile.health_issues)}
- Sensitivities: {format_values(profile.sensitivities)}
- Allergies/Intolerances: {format_values(profile.intolerances)}
- Dietary Preferences: {format_values(profile.dietary_preferences)}

IMPORTANT: Provide personalized warnings and recommendations based on the user's \
health profile. Flag any ingredients that conflict with their health issues, \
sensitivities, or allergies."""

    profile_note = " AND user's health profile" if personalized else ""
    tailored = " tailored to user's needs" if personalized else ""
    conflict = " (mention if it conflicts with user profile)" if personalized else ""
    summary = " personalized to user's health profile" if personalized else ""
    critical = (
        "\n- CRITICAL: Lower score if ingredients conflict with user's health "
        "issues, sensitivities, or allergies"
        if personalized
        else ""
    )
    ingredients = record.ingredients_text or "No ingredients listed"

    return f"""You are a nutrition expert AI conducting a multi-agent analysis.

Product: {record.product_name}
Barcode: {record.barcode or "N/A"}
Data Source: {record.data_source}

Nutrients (per 100g):
- Calories: {nutrients.calories:g} kcal
- Protein: {nutrients.protein:g}g
- Carbs: {nutrients.carbs:g}g
- Fat: {nutrients.fat:g}g
- Sugar: {nutrients.sugar:g}g
- Sodium: {nutrients.sodium:g}mg
- Fiber: {nutrients.fiber:g}g

Ingredients: {ingredients}{user_context}

Perform a comprehensive analysis following this multi-agent approach:

Agent 1 - Ingredient Parser: Parse and categorize all ingredients
Agent 2 - Risk Detector: Identify harmful additives, preservatives, excessive sugar/sodium
Agent 3 - Health Score Calculator: Calculate a score from 1-10 based on WHO \
guidelines{profile_note}
Agent 4 - Recommendation Engine: Suggest healthier alternatives or improvements{tailored}
Agent 5 - Alternatives Finder: Suggest 3 healthier alternative products in the same category

Return ONLY valid JSON with this structure:
{{
  "healthScore": number (1-10),
  "category": "healthy" | "moderate" | "unhealthy",
  "riskIngredients": [
    {{
      "name": "ingredient name",
      "risk": "high" | "medium" | "low",
      "explanation": "why it's concerning{conflict}"
    }}
  ],
  "recommendations": ["rec1", "rec2", "rec3"],
  "aiExplanation": "2-3 sentence summary of overall assessment{summary}",
  "healthierAlternatives": [
    {{
      "name": "Product Name",
      "brand": "Brand Name",
      "reason": "Why this is healthier (1 sentence)",
      "estimatedScore": number (1-10)
    }}
  ]
}}

Guidelines:
- Score >=7: healthy (low sugar <10g, sodium <400mg, high fiber >5g)
- Score 4-6: moderate (moderate sugar 10-20g, sodium 400-800mg)
- Score <=3: unhealthy (high sugar >20g, sodium >800mg, many additives)
- Flag: E-numbers, palm oil, high fructose corn syrup, trans fats, artificial sweeteners
- Consider nutrient density and ingredient quality{critical}"""


@dataclass
class AnalysisOrchestrator:
    """Score a nutrition record with the text model."""

    client: ChatCompletionClient
    model: str

    async def analyze(
        self, record: NutritionRecord, profile: UserProfile | None = None
    ) -> AnalysisResult:
        """Return the model's analysis, filling documented defaults."""
        content = await self.client.complete(
            model=self.model,
            messages=[
                {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
                {"role": "user", "content": build_analysis_prompt(record, profile)},
            ],
        )
        try:
            payload = extract_json_object(content)
            return AnalysisResult.model_validate(payload)
        except (AIContractError, ValidationError) as exc:
            _logger.error("Failed to parse AI analysis: %s; raw=%r", exc, content)
            raise AIContractError("Failed to parse AI analysis", raw=content) from exc
