"""
Meal Plan Repository - Data access layer for the meal plan graph
(plan -> days -> meals).
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional
from urllib.parse import urlparse
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from app.deadline import Deadline
from domain.enums import MealType
from domain.models import MealPlan, Day, Meal
from domain.schemas.meal_plan_schemas import MealPlanSubmission, MealSubmission
from repositories.base import BaseRepository

logger = logging.getLogger("mealforge.repositories.meal_plan")

CALORIES_PER_INGREDIENT = 100


def estimate_calories(ingredients: List[str]) -> int:
    """Placeholder estimate used when the generator gave no calorie count.

    Downstream dashboards read this exact value; keep it at 100 per ingredient.
    """
    return len(ingredients) * CALORIES_PER_INGREDIENT


def is_valid_image_url(url: Optional[str]) -> bool:
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def day_date(today: date, day_number: int) -> datetime:
    """Calendar date of plan day ``day_number`` (1-based), at midnight."""
    return datetime.combine(today + timedelta(days=day_number - 1), time.min)


class MealPlanRepository(BaseRepository[MealPlan]):
    """Repository for meal plan data access"""

    def __init__(self, db: Session):
        super().__init__(db, MealPlan)

    def _graph_query(self):
        return self.db.query(MealPlan).options(
            selectinload(MealPlan.days).selectinload(Day.meals)
        )

    def get_by_id(self, plan_id: UUID) -> Optional[MealPlan]:
        """Get meal plan by ID with days and meals loaded"""
        return (
            self._graph_query()
            .filter(MealPlan.id == plan_id)
            .populate_existing()
            .first()
        )

    def get_by_id_and_user(self, plan_id: UUID, user_id: str) -> Optional[MealPlan]:
        """Get meal plan by ID for specific user"""
        return (
            self._graph_query()
            .filter(MealPlan.id == plan_id, MealPlan.user_id == user_id)
            .first()
        )

    def list_by_user(self, user_id: str) -> List[MealPlan]:
        """All plans of a user, newest first"""
        return (
            self.db.query(MealPlan)
            .filter(MealPlan.user_id == user_id)
            .order_by(MealPlan.created_at.desc())
            .all()
        )

    def find_existing(
        self, user_id: str, title: str, duration: int, meals_per_day: int
    ) -> Optional[MealPlan]:
        """
        Look up a plan by its natural key, graph included.

        Title match is exact and case-sensitive after trimming. This is a plain
        read: a concurrent insert of the same key can land between this call
        and create_meal_plan, in which case the unique constraint rejects the
        later insert.
        """
        return (
            self._graph_query()
            .filter(
                MealPlan.user_id == user_id,
                MealPlan.title == title.strip(),
                MealPlan.duration == duration,
                MealPlan.meals_per_day == meals_per_day,
            )
            .populate_existing()
            .first()
        )

    # ---------- transactional create ----------

    def create_meal_plan(
        self,
        submission: MealPlanSubmission,
        user_id: str,
        today: date,
        deadline: Optional[Deadline] = None,
    ) -> MealPlan:
        """
        Write the whole plan graph in one transaction and return it re-read.

        Every row is flushed inside the same transaction; any exception rolls
        the session back so no plan, day or meal of this submission survives.

        Raises:
            sqlalchemy.exc.IntegrityError: natural key already taken
            OperationCancelledError: deadline passed before commit
        """
        try:
            plan = self._insert_plan(submission, user_id)
            for day in submission.days:
                if deadline is not None:
                    deadline.check(f"day {day.day}")
                day_row = self._insert_day(plan, day.day, today)
                for index, meal in enumerate(day.meals):
                    self._insert_meal(day_row, index, meal)
            if deadline is not None:
                deadline.check("commit")
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.warning(
                "Rolled back meal plan '%s' for user %s", submission.title, user_id
            )
            raise

        plan_id = plan.id
        logger.info(
            "Created meal plan %s for user %s (%d days)",
            plan_id,
            user_id,
            len(submission.days),
        )
        return self.get_by_id(plan_id)

    def _insert_plan(self, submission: MealPlanSubmission, user_id: str) -> MealPlan:
        first_image = None
        if submission.days and submission.days[0].meals:
            first_image = submission.days[0].meals[0].image_url
        cover = first_image.strip() if is_valid_image_url(first_image) else None

        plan = MealPlan(
            title=submission.title.strip(),
            user_id=user_id,
            duration=submission.duration,
            meals_per_day=submission.meals_per_day,
            cover_image_url=cover,
            created_at=submission.created_at,
        )
        return self.add(plan)

    def _insert_day(self, plan: MealPlan, day_number: int, today: date) -> Day:
        return self.add(Day(date=day_date(today, day_number), meal_plan_id=plan.id))

    def _insert_meal(self, day: Day, index: int, meal: MealSubmission) -> Meal:
        ingredients = [i.strip() for i in meal.ingredients if i and i.strip()]
        if not ingredients:
            logger.warning("Meal '%s' has no ingredients", meal.name)

        meal_type = meal.meal_type or MealType.for_position(index)
        if meal.calories is not None and meal.calories > 0:
            calories = meal.calories
        else:
            calories = estimate_calories(ingredients)
        image_url = meal.image_url.strip() if is_valid_image_url(meal.image_url) else None

        row = Meal(
            name=meal.name.strip(),
            type=meal_type.value,
            description=meal.description.strip(),
            calories=calories,
            ingredients=ingredients,
            instructions=meal.instructions.strip(),
            image_url=image_url,
            day_id=day.id,
        )
        return self.add(row)
