"""
Side-Effect Dispatcher - best-effort updates that follow a saved meal plan.

The plan is already committed when these run. Each update works in its own
session so a failure rolls back only that update, and the event bus logs and
discards the exception.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from domain.events import MealPlanCreated
from domain.models import MealPlan
from repositories import MealPlanGenerationRepository, UserAnalyticsRepository
from services.event_bus import EventBus

logger = logging.getLogger("mealforge.side_effects")


def week_start_of(day: date) -> date:
    """Monday of the week containing ``day``"""
    return day - timedelta(days=day.weekday())


class SideEffectDispatcher:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        bus: EventBus,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session_factory = session_factory
        self.bus = bus
        self.clock = clock

    def register(self) -> "SideEffectDispatcher":
        self.bus.subscribe(MealPlanCreated, self.increment_generation_count)
        self.bus.subscribe(MealPlanCreated, self.record_plan_analytics)
        return self

    def after_commit(self, meal_plan: MealPlan, user_id: str) -> int:
        """Publish MealPlanCreated for a committed plan; returns failed handler count."""
        event = MealPlanCreated.from_meal_plan(meal_plan, user_id)
        failures = self.bus.publish(event)
        if failures:
            logger.warning(
                "%d side effect(s) failed for meal plan %s", failures, event.meal_plan_id
            )
        return failures

    def increment_generation_count(self, event: MealPlanCreated) -> None:
        with self.session_factory() as db:
            try:
                record = MealPlanGenerationRepository(db).increment(
                    event.user_id, week_start_of(self.clock().date())
                )
                db.commit()
                logger.info(
                    "Generation count for user %s is now %d",
                    event.user_id,
                    record.generation_count,
                )
            except Exception:
                db.rollback()
                raise

    def record_plan_analytics(self, event: MealPlanCreated) -> None:
        with self.session_factory() as db:
            try:
                UserAnalyticsRepository(db).upsert_increment(
                    event.user_id, event.total_meals, event.unique_recipes
                )
                db.commit()
                logger.debug(
                    "Analytics updated for user %s: +%d meals, +%d recipes",
                    event.user_id,
                    event.total_meals,
                    event.unique_recipes,
                )
            except Exception:
                db.rollback()
                raise


def build_dispatcher(
    session_factory: Callable[[], Session],
    clock: Callable[[], datetime] = datetime.now,
) -> SideEffectDispatcher:
    """Create a dispatcher on a fresh bus with the standard handlers subscribed"""
    return SideEffectDispatcher(session_factory, EventBus(), clock=clock).register()
