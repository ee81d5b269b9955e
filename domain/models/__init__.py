"""
Domain models package - SQLAlchemy ORM models.
"""

from domain.models.database import (
    Base,
    engine,
    SessionLocal,
    build_engine,
    init_database,
    get_db_session,
)
from domain.models.meal_plan import MealPlan, Day, Meal
from domain.models.usage import MealPlanGeneration, UserAnalytics

__all__ = [
    # Database
    "Base",
    "engine",
    "SessionLocal",
    "build_engine",
    "init_database",
    "get_db_session",
    # Meal plan graph
    "MealPlan",
    "Day",
    "Meal",
    # Usage counters
    "MealPlanGeneration",
    "UserAnalytics",
]
