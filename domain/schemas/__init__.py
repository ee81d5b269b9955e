"""
Domain schemas package - Pydantic models for validation and serialization.
"""

from domain.schemas.meal_plan_schemas import (
    parse_iso_timestamp,
    MealSubmission,
    DaySubmission,
    MealPlanSubmission,
    MealResponse,
    DayResponse,
    MealPlanResponse,
    MealPlanSummary,
    GenerationCountResponse,
)

__all__ = [
    "parse_iso_timestamp",
    # Submission schemas
    "MealSubmission",
    "DaySubmission",
    "MealPlanSubmission",
    # Response schemas
    "MealResponse",
    "DayResponse",
    "MealPlanResponse",
    "MealPlanSummary",
    "GenerationCountResponse",
]
