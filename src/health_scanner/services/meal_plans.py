"""Weekly meal plan generation."""

import logging
from dataclasses import dataclass

from health_scanner.domain.analysis import ProductAnalysis
from health_scanner.domain.meal_plans import Weekday, WeeklyPlan
from health_scanner.errors import MealPlanGenerationError
from health_scanner.services.analysis import AnalysisClient

_MEAL_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "recipe": {
            "type": "string",
            "description": "A brief recipe or preparation steps.",
        },
        "nutrition": {
            "type": "object",
            "properties": {
                "calories": {"type": "string"},
                "protein": {"type": "string"},
                "fat": {"type": "string"},
                "carbohydrates": {"type": "string"},
            },
            "required": ["calories", "protein", "fat", "carbohydrates"],
            "additionalProperties": False,
        },
    },
    "required": ["name", "recipe", "nutrition"],
    "additionalProperties": False,
}

WEEKLY_PLAN_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "weeklyPlan": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "day": {"type": "string", "enum": [day.value for day in Weekday]},
                    "meals": {
                        "type": "object",
                        "properties": {
                            "breakfast": _MEAL_SCHEMA,
                            "lunch": _MEAL_SCHEMA,
                            "dinner": _MEAL_SCHEMA,
                        },
                        "required": ["breakfast", "lunch", "dinner"],
                        "additionalProperties": False,
                    },
                },
                "required": ["day", "meals"],
                "additionalProperties": False,
            },
        },
        "shoppingList": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "item": {"type": "string"},
                    "quantity": {"type": "string"},
                    "category": {
                        "type": "string",
                        "description": "e.g., Produce, Dairy, Protein, Pantry",
                    },
                },
                "required": ["item", "quantity", "category"],
                "additionalProperties": False,
            },
        },
    },
    "required": ["weeklyPlan", "shoppingList"],
    "additionalProperties": False,
}

_logger = logging.getLogger(__name__)


@dataclass
class MealPlanService:
    """Generates a seven-day plan from user preferences and scan history."""

    client: AnalysisClient
    model: str

    async def generate(
        self,
        history: list[ProductAnalysis],
        goals: str,
        favorite_foods: str,
        restrictions: str,
    ) -> WeeklyPlan:
        """Generate a weekly meal plan and shopping list."""
        prompt = build_meal_plan_prompt(history, goals, favorite_foods, restrictions)
        try:
            raw = await self.client.generate_structured(
                model=self.model,
                prompt=prompt,
                schema=WEEKLY_PLAN_SCHEMA,
                schema_name="weekly_meal_plan",
            )
            plan = WeeklyPlan.model_validate(raw)
        except Exception as exc:
            raise MealPlanGenerationError("Meal plan generation failed") from exc

        _logger.info(
            "Meal plan generated: history_items=%s shopping_items=%s",
            len(history),
            len(plan.shopping_list),
        )
        return plan


def build_meal_plan_prompt(
    history: list[ProductAnalysis],
    goals: str,
    favorite_foods: str,
    restrictions: str,
) -> str:
    """Build the meal planning instruction."""
    if history:
        names = ", ".join(item.product_name for item in history)
        history_line = (
            "The user has recently scanned these items, which can indicate their "
            f"preferences: {names}."
        )
    else:
        history_line = "The user has not scanned any items yet."

    return "\n".join(
        [
            "You are an expert nutritionist and meal planner. Create a balanced "
            "and healthy 7-day meal plan based on the user's preferences.",
            "",
            f'User\'s Health Goals: "{goals}"',
            f'User\'s Favorite Foods: "{favorite_foods}"',
            f'User\'s Dietary Restrictions/Preferences: "{restrictions}"',
            history_line,
            "",
            "Your task is to generate a complete 7-day meal plan (Breakfast, Lunch, "
            "Dinner) for Monday through Sunday, one entry per day, and a "
            "corresponding shopping list.",
            "- The meal plan should be varied and aligned with the user's goals.",
            "- Provide simple recipe ideas for each meal.",
            "- Estimate nutritional information for each meal.",
            "- The shopping list should be categorized and include quantities.",
            "",
            "Your response must be a single JSON object that adheres to the "
            "provided schema.",
        ]
    )
