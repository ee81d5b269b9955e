"""
Tests for MealPlanService with real database operations (SQLite).

Covers:
- Persisting the plan -> days -> meals graph with calorie and meal type defaults
- Idempotent resubmission on the natural key
- All-or-nothing writes when a mid-graph insert fails or the deadline passes
- Conflict resolution when a concurrent save wins the unique constraint
- Best-effort side effects that never fail a committed save
"""

import itertools
from datetime import datetime
from unittest.mock import patch

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.deadline import Deadline
from app.exceptions import NotFoundError
from domain.enums import MealPlanErrorCode
from domain.models import Day, Meal, MealPlan, MealPlanGeneration, UserAnalytics
from repositories import MealPlanRepository, UserAnalyticsRepository
from services.meal_plan_validator import ValidationResult
from test_fixtures import keto_week_submission, make_submission, unique_user_id


def _row_counts(session_factory):
    with session_factory() as db:
        return (
            db.query(MealPlan).count(),
            db.query(Day).count(),
            db.query(Meal).count(),
        )


# =============================================================================
# CREATE
# =============================================================================


def test_save_keto_week_scenario(service, session_factory):
    """
    Two days with one meal each and no AI calories or meal types.

    Verifies:
    - 1 plan, 2 days, 2 meals persisted
    - calories estimated at 100 per ingredient
    - meal type defaults by position (breakfast first)
    - day dates start today at midnight
    """
    user_id = unique_user_id()

    result = service.save_meal_plan(keto_week_submission(), user_id)

    assert result.success is True
    assert result.created is True
    plan = result.meal_plan
    assert plan.title == "Keto Week"
    assert plan.user_id == user_id
    assert [d.date for d in plan.days] == [
        datetime(2026, 3, 4, 0, 0),
        datetime(2026, 3, 5, 0, 0),
    ]
    eggs = plan.days[0].meals[0]
    assert eggs.name == "Eggs"
    assert eggs.calories == 200
    assert eggs.type == "breakfast"
    assert eggs.ingredients == ["egg", "salt"]
    assert plan.days[1].meals[0].calories == 100
    assert plan.cover_image_url is None
    assert _row_counts(session_factory) == (1, 2, 2)


def test_save_normalizes_fields(service):
    sub = make_submission(title="  Spring Reset  ", duration=1, meals_per_day=2)
    first, second = sub["days"][0]["meals"]
    first.update(
        {
            "name": "  Oats  ",
            "ingredients": [" oats ", "milk "],
            "imageUrl": "https://cdn.example.com/oats.png",
            "calories": 350,
            "mealType": "snack",
        }
    )
    second.update({"imageUrl": "ftp://files.example.com/wrap.png", "calories": 0})

    result = service.save_meal_plan(sub, unique_user_id())

    plan = result.meal_plan
    assert plan.title == "Spring Reset"
    assert plan.cover_image_url == "https://cdn.example.com/oats.png"
    meals = {m.name: m for m in plan.days[0].meals}
    assert meals["Oats"].ingredients == ["oats", "milk"]
    assert meals["Oats"].calories == 350
    assert meals["Oats"].type == "snack"
    assert meals["Oats"].image_url == "https://cdn.example.com/oats.png"
    wrap = meals["Chicken Caesar Wrap"]
    assert wrap.image_url is None
    assert wrap.calories == 400
    assert wrap.type == "lunch"


def test_validation_failure_writes_nothing(service, session_factory):
    sub = make_submission(duration=2, meals_per_day=1)
    sub["title"] = ""
    sub["days"][1]["meals"][0]["name"] = ""

    result = service.save_meal_plan(sub, unique_user_id())

    assert result.success is False
    assert result.code == MealPlanErrorCode.VALIDATION_ERROR
    assert result.error == (
        "Title is required and must be a non-empty string; "
        "Day 2, Meal 1: name is required and must be a non-empty string"
    )
    assert _row_counts(session_factory) == (0, 0, 0)


@pytest.mark.parametrize("meal_type", [["dinner"], {"x": 1}])
def test_unhashable_meal_type_is_validation_error(service, session_factory, meal_type):
    sub = make_submission(duration=1, meals_per_day=1)
    sub["days"][0]["meals"][0]["mealType"] = meal_type

    result = service.save_meal_plan(sub, unique_user_id())

    assert result.code == MealPlanErrorCode.VALIDATION_ERROR
    assert result.error.startswith("Day 1, Meal 1: mealType must be one of")
    assert _row_counts(session_factory) == (0, 0, 0)


@pytest.mark.parametrize("calories", [10**400, float("inf")])
def test_out_of_range_calories_are_validation_error(service, session_factory, calories):
    sub = make_submission(duration=1, meals_per_day=1)
    sub["days"][0]["meals"][0]["calories"] = calories

    result = service.save_meal_plan(sub, unique_user_id())

    assert result.code == MealPlanErrorCode.VALIDATION_ERROR
    assert result.error == "Day 1, Meal 1: calories must be a non-negative number"
    assert _row_counts(session_factory) == (0, 0, 0)


def test_typed_parsing_failure_is_validation_error(service, session_factory):
    """Anything the typed model still rejects comes back as VALIDATION_ERROR."""
    sub = make_submission(duration=1, meals_per_day=1)
    sub["days"][0]["meals"][0]["calories"] = "plenty"

    with patch(
        "services.meal_plan_service.validate_meal_plan_input",
        return_value=ValidationResult(valid=True),
    ):
        result = service.save_meal_plan(sub, unique_user_id())

    assert result.success is False
    assert result.code == MealPlanErrorCode.VALIDATION_ERROR
    assert "calories" in result.error
    assert _row_counts(session_factory) == (0, 0, 0)


# =============================================================================
# IDEMPOTENCE
# =============================================================================


def test_resubmission_returns_existing_plan(service, session_factory):
    user_id = unique_user_id()
    first = service.save_meal_plan(make_submission(title="Week A"), user_id)

    changed = make_submission(title="Week A")
    changed["days"][0]["meals"][0]["name"] = "Completely Different Dish"
    second = service.save_meal_plan(changed, user_id)

    assert second.success is True
    assert second.created is False
    assert second.meal_plan.id == first.meal_plan.id
    names = [m.name for d in second.meal_plan.days for m in d.meals]
    assert "Completely Different Dish" not in names
    assert _row_counts(session_factory) == (1, 3, 9)


def test_natural_key_includes_shape_and_user(service, session_factory):
    user_id = unique_user_id()
    service.save_meal_plan(make_submission(title="Week A", duration=2), user_id)
    service.save_meal_plan(make_submission(title="Week A", duration=3), user_id)
    service.save_meal_plan(make_submission(title="Week A", duration=2), unique_user_id())

    assert _row_counts(session_factory)[0] == 3


# =============================================================================
# ATOMICITY
# =============================================================================


def test_failure_mid_graph_rolls_back_everything(service, session_factory):
    """A meal insert failing on day 2 of 3 leaves no plan, day or meal rows."""
    original = MealPlanRepository._insert_meal
    calls = {"n": 0}

    def flaky_insert(self, day, index, meal):
        calls["n"] += 1
        if calls["n"] == 4:
            raise SQLAlchemyError("disk I/O error")
        return original(self, day, index, meal)

    with patch.object(MealPlanRepository, "_insert_meal", flaky_insert):
        result = service.save_meal_plan(
            make_submission(duration=3, meals_per_day=2), unique_user_id()
        )

    assert result.success is False
    assert result.code == MealPlanErrorCode.UNKNOWN_ERROR
    assert result.error == "An unknown error occurred while saving the meal plan"
    assert _row_counts(session_factory) == (0, 0, 0)


def test_cancelled_deadline_aborts_before_writing(service, session_factory):
    deadline = Deadline()
    deadline.cancel()

    result = service.save_meal_plan(make_submission(), unique_user_id(), deadline=deadline)

    assert result.code == MealPlanErrorCode.UNKNOWN_ERROR
    assert result.error == "Operation cancelled"
    assert _row_counts(session_factory) == (0, 0, 0)


def test_deadline_expiring_mid_transaction_rolls_back(service, session_factory):
    ticks = itertools.count()
    deadline = Deadline(timeout_sec=2, clock=lambda: next(ticks))

    result = service.save_meal_plan(make_submission(duration=2), unique_user_id(), deadline=deadline)

    assert result.success is False
    assert result.error == "Operation cancelled"
    assert _row_counts(session_factory) == (0, 0, 0)


# =============================================================================
# CONFLICTS
# =============================================================================


def test_concurrent_winner_is_returned(service, session_factory):
    """The duplicate check misses a plan saved in between; the insert conflicts."""
    user_id = unique_user_id()
    winner = service.save_meal_plan(make_submission(title="Race Week"), user_id)

    real_find = MealPlanRepository.find_existing
    calls = []

    def stale_then_real(self, *args):
        calls.append(args)
        if len(calls) == 1:
            return None
        return real_find(self, *args)

    with patch.object(MealPlanRepository, "find_existing", stale_then_real):
        result = service.save_meal_plan(make_submission(title="Race Week"), user_id)

    assert result.success is True
    assert result.created is False
    assert result.meal_plan.id == winner.meal_plan.id
    assert len(calls) == 2
    assert _row_counts(session_factory)[0] == 1
    with session_factory() as db:
        counter = db.query(MealPlanGeneration).filter_by(user_id=user_id).one()
        assert counter.generation_count == 1


def test_conflict_without_winner_is_duplicate_error(service):
    user_id = unique_user_id()
    service.save_meal_plan(make_submission(title="Race Week"), user_id)

    with patch.object(MealPlanRepository, "find_existing", return_value=None):
        result = service.save_meal_plan(make_submission(title="Race Week"), user_id)

    assert result.success is False
    assert result.code == MealPlanErrorCode.DUPLICATE_ERROR
    assert result.error == "A meal plan with this title already exists"


def test_conflict_requery_failure_is_unknown_error(service):
    user_id = unique_user_id()
    service.save_meal_plan(make_submission(title="Race Week"), user_id)
    responses = iter([None, SQLAlchemyError("connection dropped")])

    def stale_then_broken(self, *args):
        outcome = next(responses)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    with patch.object(MealPlanRepository, "find_existing", stale_then_broken):
        result = service.save_meal_plan(make_submission(title="Race Week"), user_id)

    assert result.success is False
    assert result.code == MealPlanErrorCode.UNKNOWN_ERROR
    assert result.error == "An unknown error occurred while saving the meal plan"


def test_missing_reread_maps_to_not_found(service):
    with patch.object(MealPlanRepository, "get_by_id", return_value=None):
        result = service.save_meal_plan(make_submission(), unique_user_id())

    assert result.code == MealPlanErrorCode.NOT_FOUND
    assert result.error == "Related record not found"


# =============================================================================
# SIDE EFFECTS
# =============================================================================


def test_side_effects_update_counters(service, session_factory):
    user_id = unique_user_id()

    service.save_meal_plan(make_submission(title="Week A", duration=2, meals_per_day=3), user_id)
    service.save_meal_plan(make_submission(title="Week B", duration=1, meals_per_day=2), user_id)

    with session_factory() as db:
        counter = db.query(MealPlanGeneration).filter_by(user_id=user_id).one()
        analytics = db.query(UserAnalytics).filter_by(user_id=user_id).one()
    assert counter.generation_count == 2
    assert counter.week_start.isoformat() == "2026-03-02"
    assert analytics.total_meals_cooked == 8
    assert analytics.total_recipes_tried == 5


def test_idempotent_resubmission_skips_side_effects(service, session_factory):
    user_id = unique_user_id()
    service.save_meal_plan(make_submission(title="Week A"), user_id)
    service.save_meal_plan(make_submission(title="Week A"), user_id)

    assert service.get_generation_count(user_id).generation_count == 1


def test_side_effect_failure_does_not_fail_save(service, session_factory):
    user_id = unique_user_id()

    with patch.object(
        UserAnalyticsRepository, "upsert_increment", side_effect=SQLAlchemyError("locked")
    ):
        result = service.save_meal_plan(make_submission(), user_id)

    assert result.success is True
    assert result.created is True
    with session_factory() as db:
        assert db.query(MealPlan).count() == 1
        assert db.query(UserAnalytics).filter_by(user_id=user_id).first() is None
        counter = db.query(MealPlanGeneration).filter_by(user_id=user_id).one()
        assert counter.generation_count == 1


# =============================================================================
# QUERIES
# =============================================================================


def test_get_meal_plan_scoped_to_owner(service):
    owner = unique_user_id()
    saved = service.save_meal_plan(make_submission(), owner).meal_plan

    assert service.get_meal_plan(saved.id, owner).id == saved.id
    with pytest.raises(NotFoundError):
        service.get_meal_plan(saved.id, unique_user_id())


def test_list_meal_plans_newest_first(service):
    user_id = unique_user_id()
    service.save_meal_plan(make_submission(title="Older", created_at="2026-03-01T09:00:00Z"), user_id)
    service.save_meal_plan(make_submission(title="Newer", created_at="2026-03-03T09:00:00Z"), user_id)

    assert [p.title for p in service.list_meal_plans(user_id)] == ["Newer", "Older"]
