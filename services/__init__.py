"""Services package - Business logic layer"""

from services.meal_plan_service import MealPlanService, SaveMealPlanResult
from services.meal_plan_validator import ValidationResult, validate_meal_plan_input
from services.event_bus import EventBus
from services.side_effects import SideEffectDispatcher, build_dispatcher
from services.rate_limiter import (
    RateLimiter,
    RateLimitResult,
    resolve_identifier,
)

__all__ = [
    "MealPlanService",
    "SaveMealPlanResult",
    "ValidationResult",
    "validate_meal_plan_input",
    "EventBus",
    "SideEffectDispatcher",
    "build_dispatcher",
    "RateLimiter",
    "RateLimitResult",
    "resolve_identifier",
]
