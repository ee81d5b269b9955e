"""
Repositories package - Data access layer.
"""

from repositories.base import BaseRepository
from repositories.meal_plan_repository import MealPlanRepository
from repositories.usage_repository import (
    MealPlanGenerationRepository,
    UserAnalyticsRepository,
)

__all__ = [
    "BaseRepository",
    "MealPlanRepository",
    "MealPlanGenerationRepository",
    "UserAnalyticsRepository",
]
