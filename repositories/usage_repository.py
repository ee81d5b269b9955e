"""
Usage Repository - generation counters and analytics aggregates
"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from domain.models import MealPlanGeneration, UserAnalytics
from repositories.base import BaseRepository


class MealPlanGenerationRepository(BaseRepository[MealPlanGeneration]):
    """Repository for the weekly generation counter"""

    def __init__(self, db: Session):
        super().__init__(db, MealPlanGeneration)

    def get_by_id(self, user_id: str) -> Optional[MealPlanGeneration]:
        return (
            self.db.query(MealPlanGeneration)
            .filter(MealPlanGeneration.user_id == user_id)
            .first()
        )

    def increment(self, user_id: str, week_start: date) -> MealPlanGeneration:
        """Add one generation; a record from an earlier week restarts at 1"""
        record = self.get_by_id(user_id)
        if record is None:
            record = MealPlanGeneration(
                user_id=user_id, generation_count=1, week_start=week_start
            )
            return self.add(record)

        if record.week_start < week_start:
            record.generation_count = 1
            record.week_start = week_start
        else:
            record.generation_count = max(record.generation_count, 0) + 1
        self.db.flush()
        return record


class UserAnalyticsRepository(BaseRepository[UserAnalytics]):
    """Repository for per-user analytics aggregates"""

    def __init__(self, db: Session):
        super().__init__(db, UserAnalytics)

    def get_by_id(self, user_id: str) -> Optional[UserAnalytics]:
        return (
            self.db.query(UserAnalytics).filter(UserAnalytics.user_id == user_id).first()
        )

    def upsert_increment(
        self, user_id: str, meals_cooked: int, recipes_tried: int
    ) -> UserAnalytics:
        """Create the aggregate row or add to its running totals"""
        record = self.get_by_id(user_id)
        if record is None:
            record = UserAnalytics(
                user_id=user_id,
                total_meals_cooked=meals_cooked,
                total_recipes_tried=recipes_tried,
            )
            return self.add(record)

        record.total_meals_cooked = UserAnalytics.total_meals_cooked + meals_cooked
        record.total_recipes_tried = UserAnalytics.total_recipes_tried + recipes_tried
        self.db.flush()
        return record
