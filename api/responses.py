"""
Standardized API response models and utilities.
Provides consistent response formatting across all endpoints.
"""

from typing import Optional, Any
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from domain.models import MealPlan
from domain.schemas.meal_plan_schemas import MealPlanResponse, MealPlanSummary


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthResponse(BaseModel):
    """Health check response"""

    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: Optional[str] = Field(None, description="Service version")
    timestamp: datetime = Field(default_factory=_utcnow, description="Check timestamp")


def serialize_meal_plan(plan: MealPlan) -> dict:
    """Full plan graph as camelCase JSON-ready dict"""
    return MealPlanResponse.model_validate(plan).model_dump(by_alias=True, mode="json")


def serialize_meal_plan_summary(plan: MealPlan) -> dict:
    return MealPlanSummary.model_validate(plan).model_dump(by_alias=True, mode="json")


def success_response(**data: Any) -> dict:
    """Create a standardized success response"""
    return {"success": True, **data}


def error_response(code: str, message: str) -> dict:
    """Create a standardized save failure response"""
    return {"success": False, "error": message, "code": code}
