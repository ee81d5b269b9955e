from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Response, status

from api.dependencies import get_current_user_id, get_meal_plan_service, rate_limited
from api.responses import (
    error_response,
    serialize_meal_plan,
    serialize_meal_plan_summary,
    success_response,
)
from app.config import settings
from app.deadline import Deadline
from domain.schemas.meal_plan_schemas import GenerationCountResponse
from services.meal_plan_service import MealPlanService

router = APIRouter(prefix="/meal-plans", tags=["Meal Plans"])
logger = logging.getLogger("mealforge.api.meal_plans")


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited())],
)
def save_meal_plan(
    response: Response,
    submission: Any = Body(..., description="Meal plan as produced by the generator"),
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    """
    Save a generated meal plan for the calling user.

    - 201 with the stored plan when it was created
    - 200 with the previously stored plan when title, duration and meals per
      day match an existing plan of this user (the new content is discarded)
    - 400 VALIDATION_ERROR listing every problem in the submission
    - 409 DUPLICATE_ERROR, 404 NOT_FOUND, 500 UNKNOWN_ERROR otherwise
    """
    deadline = Deadline(settings.transaction_timeout_sec)
    result = service.save_meal_plan(submission, user_id, deadline=deadline)

    if not result.success:
        response.status_code = result.code.http_status
        return error_response(result.code.value, result.error)

    if not result.created:
        response.status_code = status.HTTP_200_OK
    return success_response(mealPlan=serialize_meal_plan(result.meal_plan))


@router.get("", dependencies=[Depends(rate_limited())])
def list_meal_plans(
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    """All meal plans of the calling user, newest first (days not included)."""
    plans = service.list_meal_plans(user_id)
    logger.info("Found %d meal plans for user %s", len(plans), user_id)
    return success_response(mealPlans=[serialize_meal_plan_summary(p) for p in plans])


@router.get("/generations", dependencies=[Depends(rate_limited())])
def get_generation_count(
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    """How many plans the calling user generated this week."""
    record = service.get_generation_count(user_id)
    payload = GenerationCountResponse(
        user_id=user_id,
        generation_count=record.generation_count if record else 0,
        week_start=record.week_start.isoformat() if record else None,
    )
    return payload.model_dump(by_alias=True)


@router.get("/{plan_id}", dependencies=[Depends(rate_limited())])
def get_meal_plan(
    plan_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: MealPlanService = Depends(get_meal_plan_service),
):
    """One meal plan of the calling user with its days and meals."""
    plan = service.get_meal_plan(plan_id, user_id)
    return success_response(mealPlan=serialize_meal_plan(plan))
