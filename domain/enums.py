"""
Domain enums for MealForge.
Contains all enumeration types used across the domain models.
"""

import enum


class MealType(str, enum.Enum):
    """Meal slot within a day"""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"

    @classmethod
    def for_position(cls, index: int) -> "MealType":
        """Slot used when the generator did not label the meal: 0, 1, 2, then snacks."""
        positional = (cls.BREAKFAST, cls.LUNCH, cls.DINNER)
        if 0 <= index < len(positional):
            return positional[index]
        return cls.SNACK


class MealPlanErrorCode(str, enum.Enum):
    """Failure codes returned by a meal plan save"""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_ERROR = "DUPLICATE_ERROR"
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"

    @property
    def http_status(self) -> int:
        return {
            MealPlanErrorCode.VALIDATION_ERROR: 400,
            MealPlanErrorCode.DUPLICATE_ERROR: 409,
            MealPlanErrorCode.NOT_FOUND: 404,
            MealPlanErrorCode.UNKNOWN_ERROR: 500,
        }[self]
