"""User profile models."""

from pydantic import BaseModel, Field


class HealthGoals(BaseModel):
    """Daily nutrition targets."""

    calories: float = Field(default=2000, ge=0)
    protein: float = Field(default=150, ge=0)
    carbs: float = Field(default=200, ge=0)
    fat: float = Field(default=70, ge=0)


class UserProfile(BaseModel):
    """Per-client profile holding health goals."""

    goals: HealthGoals = Field(default_factory=HealthGoals)
