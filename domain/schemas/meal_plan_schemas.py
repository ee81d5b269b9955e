from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from domain.enums import MealType


def parse_iso_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp string; returns None when it cannot be parsed."""
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


# ---------- submission (input) ----------


class MealSubmission(_CamelModel):
    name: str
    description: str
    ingredients: List[str] = Field(default_factory=list)
    instructions: str
    image_url: Optional[str] = None
    calories: Optional[float] = None
    meal_type: Optional[MealType] = None


class DaySubmission(_CamelModel):
    day: int
    meals: List[MealSubmission]


class MealPlanSubmission(_CamelModel):
    """Typed view of a submission that already passed validate_meal_plan_input."""

    title: str
    duration: int
    meals_per_day: int
    created_at: datetime
    days: List[DaySubmission]

    @field_validator("created_at", mode="before")
    @classmethod
    def _parse_created_at(cls, v):
        if isinstance(v, datetime):
            return v
        parsed = parse_iso_timestamp(v)
        if parsed is None:
            raise ValueError("createdAt must be a valid ISO date string")
        return parsed


# ---------- persisted graph (output) ----------


class MealResponse(_CamelModel):
    id: UUID
    name: str
    type: MealType
    description: str
    calories: float
    ingredients: List[str]
    instructions: str
    image_url: Optional[str] = None
    day_id: UUID


class DayResponse(_CamelModel):
    id: UUID
    date: datetime
    meal_plan_id: UUID
    meals: List[MealResponse]


class MealPlanResponse(_CamelModel):
    id: UUID
    user_id: str
    title: str
    duration: int
    meals_per_day: int
    cover_image_url: Optional[str] = None
    created_at: datetime
    days: List[DayResponse]


class MealPlanSummary(_CamelModel):
    id: UUID
    title: str
    duration: int
    meals_per_day: int
    cover_image_url: Optional[str] = None
    created_at: datetime


class GenerationCountResponse(_CamelModel):
    user_id: str
    generation_count: int
    week_start: Optional[str] = None
