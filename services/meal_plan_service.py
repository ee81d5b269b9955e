"""
Meal Plan Service - saves AI-generated meal plans.

Flow of save_meal_plan:
1. Validate the raw submission (no I/O on failure)
2. Return an existing plan with the same natural key, untouched
3. Write plan, days and meals in one transaction
4. Publish MealPlanCreated for the best-effort counters
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, List, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from sqlalchemy.orm import Session

from app.deadline import Deadline
from app.exceptions import NotFoundError, OperationCancelledError
from domain.enums import MealPlanErrorCode
from domain.models import MealPlan, MealPlanGeneration
from domain.schemas.meal_plan_schemas import MealPlanSubmission
from repositories import MealPlanGenerationRepository, MealPlanRepository
from services.meal_plan_validator import validate_meal_plan_input
from services.side_effects import SideEffectDispatcher

logger = logging.getLogger("mealforge.meal_plans")


def _describe_error(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg', 'invalid value')}"


@dataclass
class SaveMealPlanResult:
    success: bool
    meal_plan: Optional[MealPlan] = None
    error: Optional[str] = None
    code: Optional[MealPlanErrorCode] = None
    created: bool = False

    @classmethod
    def ok(cls, meal_plan: MealPlan, created: bool) -> "SaveMealPlanResult":
        return cls(success=True, meal_plan=meal_plan, created=created)

    @classmethod
    def fail(cls, code: MealPlanErrorCode, error: str) -> "SaveMealPlanResult":
        return cls(success=False, error=error, code=code)


class MealPlanService:
    def __init__(
        self,
        db: Session,
        side_effects: Optional[SideEffectDispatcher] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.side_effects = side_effects
        self.clock = clock
        self.plans = MealPlanRepository(db)

    def save_meal_plan(
        self,
        submission: Any,
        user_id: str,
        deadline: Optional[Deadline] = None,
    ) -> SaveMealPlanResult:
        """
        Save a meal plan submission for a user.

        Args:
            submission: decoded JSON object (camelCase keys)
            user_id: owner of the plan, resolved by the caller
            deadline: optional; once it expires the open transaction is rolled back

        Returns:
            SaveMealPlanResult with the persisted graph, or a failure code
            (VALIDATION_ERROR, DUPLICATE_ERROR, NOT_FOUND, UNKNOWN_ERROR)
        """
        validation = validate_meal_plan_input(submission)
        if not validation.valid:
            logger.warning(
                "Meal plan validation failed for user %s: %s", user_id, validation.errors
            )
            return SaveMealPlanResult.fail(
                MealPlanErrorCode.VALIDATION_ERROR, "; ".join(validation.errors)
            )

        try:
            data = MealPlanSubmission.model_validate(submission)
        except ValidationError as e:
            logger.warning("Meal plan for user %s failed typed parsing: %s", user_id, e)
            return SaveMealPlanResult.fail(
                MealPlanErrorCode.VALIDATION_ERROR,
                "; ".join(_describe_error(err) for err in e.errors()),
            )

        try:
            if deadline is not None:
                deadline.check("duplicate check")

            existing = self.plans.find_existing(
                user_id, data.title, data.duration, data.meals_per_day
            )
            if existing is not None:
                logger.info(
                    "Found existing meal plan %s for user %s, returning it",
                    existing.id,
                    user_id,
                )
                return SaveMealPlanResult.ok(existing, created=False)

            meal_plan = self.plans.create_meal_plan(
                data, user_id, today=self.clock().date(), deadline=deadline
            )
            if meal_plan is None:
                raise NotFoundError("Failed to retrieve saved meal plan")

        except IntegrityError:
            return self._resolve_conflict(data, user_id)
        except (NotFoundError, NoResultFound) as e:
            logger.warning("Related record not found while saving meal plan: %s", e)
            return SaveMealPlanResult.fail(
                MealPlanErrorCode.NOT_FOUND, "Related record not found"
            )
        except OperationCancelledError as e:
            logger.warning("Meal plan save for user %s cancelled: %s", user_id, e.details)
            return SaveMealPlanResult.fail(MealPlanErrorCode.UNKNOWN_ERROR, e.message)
        except Exception:
            logger.exception("Unexpected error while saving meal plan for user %s", user_id)
            return SaveMealPlanResult.fail(
                MealPlanErrorCode.UNKNOWN_ERROR,
                "An unknown error occurred while saving the meal plan",
            )

        self._dispatch_side_effects(meal_plan, user_id)
        return SaveMealPlanResult.ok(meal_plan, created=True)

    def _resolve_conflict(self, data: MealPlanSubmission, user_id: str) -> SaveMealPlanResult:
        """A concurrent save won the natural key; hand back its plan."""
        try:
            self.db.rollback()
            winner = self.plans.find_existing(
                user_id, data.title, data.duration, data.meals_per_day
            )
        except SQLAlchemyError:
            logger.exception("Re-query after conflict failed for user %s", user_id)
            return SaveMealPlanResult.fail(
                MealPlanErrorCode.UNKNOWN_ERROR,
                "An unknown error occurred while saving the meal plan",
            )
        if winner is not None:
            logger.info(
                "Concurrent save for user %s resolved to existing plan %s",
                user_id,
                winner.id,
            )
            return SaveMealPlanResult.ok(winner, created=False)

        logger.warning("Unique constraint violated saving meal plan for user %s", user_id)
        return SaveMealPlanResult.fail(
            MealPlanErrorCode.DUPLICATE_ERROR,
            "A meal plan with this title already exists",
        )

    def _dispatch_side_effects(self, meal_plan: MealPlan, user_id: str) -> None:
        if self.side_effects is None:
            return
        try:
            self.side_effects.after_commit(meal_plan, user_id)
        except Exception:
            logger.exception(
                "Post-commit side effects failed for meal plan %s", meal_plan.id
            )

    # ---------- queries for API ----------

    def get_meal_plan(self, plan_id: UUID, user_id: str) -> MealPlan:
        plan = self.plans.get_by_id_and_user(plan_id, user_id)
        if plan is None:
            raise NotFoundError(f"Meal plan with ID {plan_id} not found")
        return plan

    def list_meal_plans(self, user_id: str) -> List[MealPlan]:
        return self.plans.list_by_user(user_id)

    def get_generation_count(self, user_id: str) -> Optional[MealPlanGeneration]:
        return MealPlanGenerationRepository(self.db).get_by_id(user_id)
