"""
Domain events emitted after a primary write has committed.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True)
class MealPlanCreated:
    """A new meal plan graph is durable.

    Carries the aggregates consumers need so they never touch the ORM objects
    of the session that produced them.
    """

    user_id: str
    meal_plan_id: uuid.UUID
    total_meals: int
    unique_recipes: int
    event_id: uuid.UUID = field(default_factory=uuid.uuid4)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_meal_plan(cls, meal_plan, user_id: str) -> "MealPlanCreated":
        meals = [meal for day in meal_plan.days for meal in day.meals]
        return cls(
            user_id=user_id,
            meal_plan_id=meal_plan.id,
            total_meals=len(meals),
            unique_recipes=len({meal.name for meal in meals}),
        )
