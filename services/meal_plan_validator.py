"""
Structural and semantic validation of a meal plan submission.

Works on the decoded JSON mapping rather than a typed model so that wrong
types are reported as violations alongside everything else. Never raises and
never stops at the first problem.
"""

import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping

from domain.enums import MealType
from domain.schemas.meal_plan_schemas import parse_iso_timestamp

MAX_TITLE_LENGTH = 200
MIN_DURATION, MAX_DURATION = 1, 30
MIN_MEALS_PER_DAY, MAX_MEALS_PER_DAY = 1, 5
MAX_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_INSTRUCTIONS_LENGTH = 5000
MAX_IMAGE_URL_LENGTH = 500

_MEAL_TYPES = {t.value for t in MealType}


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    if not _is_number(value):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        return False


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _check_text(
    errors: List[str], prefix: str, field_name: str, value: Any, max_length: int
) -> None:
    if _is_blank(value):
        errors.append(f"{prefix}: {field_name} is required and must be a non-empty string")
    elif len(value) > max_length:
        errors.append(f"{prefix}: {field_name} must be {max_length} characters or less")


def _validate_meal(errors: List[str], prefix: str, meal: Any) -> None:
    if not isinstance(meal, Mapping):
        errors.append(f"{prefix}: meal must be an object")
        return

    _check_text(errors, prefix, "name", meal.get("name"), MAX_NAME_LENGTH)
    _check_text(errors, prefix, "description", meal.get("description"), MAX_DESCRIPTION_LENGTH)

    ingredients = meal.get("ingredients")
    if not isinstance(ingredients, list):
        errors.append(f"{prefix}: ingredients must be an array")
    else:
        for ing_index, ingredient in enumerate(ingredients, start=1):
            if _is_blank(ingredient):
                errors.append(f"{prefix}, Ingredient {ing_index}: must be a non-empty string")

    _check_text(
        errors, prefix, "instructions", meal.get("instructions"), MAX_INSTRUCTIONS_LENGTH
    )

    image_url = meal.get("imageUrl")
    if image_url is not None:
        if not isinstance(image_url, str):
            errors.append(f"{prefix}: imageUrl must be a string or null")
        elif len(image_url) > MAX_IMAGE_URL_LENGTH:
            errors.append(f"{prefix}: imageUrl must be {MAX_IMAGE_URL_LENGTH} characters or less")

    calories = meal.get("calories")
    if calories is not None and (not _is_finite_number(calories) or calories < 0):
        errors.append(f"{prefix}: calories must be a non-negative number")

    meal_type = meal.get("mealType")
    if meal_type is not None and (
        not isinstance(meal_type, str) or meal_type not in _MEAL_TYPES
    ):
        errors.append(
            f"{prefix}: mealType must be one of {', '.join(sorted(_MEAL_TYPES))}"
        )


def _validate_days(errors: List[str], days: Any, duration: Any) -> None:
    if not isinstance(days, list):
        errors.append("Days must be an array")
        return
    if not days:
        errors.append("Days array must not be empty")
        return
    if len(days) != duration:
        errors.append(f"Days array length ({len(days)}) must match duration ({duration})")
        return

    seen_numbers = set()
    for day_index, day in enumerate(days, start=1):
        label = f"Day {day_index}"
        if not isinstance(day, Mapping):
            errors.append(f"{label}: day must be an object")
            continue

        number = day.get("day")
        if not _is_int(number):
            errors.append(f"{label}: day number must be an integer")
        elif number < 1 or number > duration:
            errors.append(f"{label}: day number must be between 1 and {duration}")
        elif number in seen_numbers:
            errors.append(f"{label}: day number {number} is used more than once")
        else:
            seen_numbers.add(number)

        meals = day.get("meals")
        if not isinstance(meals, list):
            errors.append(f"{label}: meals must be an array")
        elif not meals:
            errors.append(f"{label}: meals array must not be empty")
        else:
            for meal_index, meal in enumerate(meals, start=1):
                _validate_meal(errors, f"{label}, Meal {meal_index}", meal)


def validate_meal_plan_input(submission: Any) -> ValidationResult:
    """
    Check a raw submission against every meal plan rule.

    Args:
        submission: decoded JSON object with camelCase keys

    Returns:
        ValidationResult listing every violation; day and meal messages are
        prefixed with their 1-based position ("Day 2, Meal 1: ...").
    """
    if not isinstance(submission, Mapping):
        return ValidationResult(valid=False, errors=["Meal plan must be an object"])

    errors: List[str] = []

    title = submission.get("title")
    if _is_blank(title):
        errors.append("Title is required and must be a non-empty string")
    elif len(title) > MAX_TITLE_LENGTH:
        errors.append(f"Title must be {MAX_TITLE_LENGTH} characters or less")

    duration = submission.get("duration")
    if not _is_int(duration):
        errors.append("Duration must be an integer")
    elif duration < MIN_DURATION:
        errors.append("Duration must be at least 1 day")
    elif duration > MAX_DURATION:
        errors.append(f"Duration must not exceed {MAX_DURATION} days")

    meals_per_day = submission.get("mealsPerDay")
    if not _is_int(meals_per_day):
        errors.append("Meals per day must be an integer")
    elif meals_per_day < MIN_MEALS_PER_DAY:
        errors.append("Meals per day must be at least 1")
    elif meals_per_day > MAX_MEALS_PER_DAY:
        errors.append(f"Meals per day must not exceed {MAX_MEALS_PER_DAY}")

    created_at = submission.get("createdAt")
    if not isinstance(created_at, str) or not created_at:
        errors.append("CreatedAt must be a valid ISO date string")
    elif parse_iso_timestamp(created_at) is None:
        errors.append("CreatedAt must be a valid date")

    _validate_days(errors, submission.get("days"), duration)

    return ValidationResult(valid=not errors, errors=errors)
