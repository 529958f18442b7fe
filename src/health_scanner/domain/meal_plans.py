"""Weekly meal plan models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Weekday(str, Enum):
    """Days covered by a weekly plan."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


class MealNutrition(BaseModel):
    """Estimated nutrition for one meal, as display strings."""

    calories: str
    protein: str
    fat: str
    carbohydrates: str


class Meal(BaseModel):
    """A single planned meal."""

    name: str
    recipe: str
    nutrition: MealNutrition


class DayMeals(BaseModel):
    """The three meals planned for a day."""

    breakfast: Meal
    lunch: Meal
    dinner: Meal


class DailyPlan(BaseModel):
    """Meals for one day of the week."""

    day: Weekday
    meals: DayMeals


class ShoppingListItem(BaseModel):
    """Shopping list entry."""

    item: str
    quantity: str
    category: str


class WeeklyPlan(BaseModel):
    """Seven-day meal plan with its shopping list."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    weekly_plan: list[DailyPlan] = Field(min_length=7, max_length=7)
    shopping_list: list[ShoppingListItem]

    @field_validator("weekly_plan")
    @classmethod
    def _one_entry_per_day(cls, days: list[DailyPlan]) -> list[DailyPlan]:
        seen = {entry.day for entry in days}
        if len(seen) != len(days) or seen != set(Weekday):
            raise ValueError("weekly plan must cover each day of the week once")
        return days
