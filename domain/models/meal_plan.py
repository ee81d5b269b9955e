"""
Meal plan graph models: a plan owns its days, a day owns its meals.
"""

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship
import uuid

from domain.models.database import Base


class MealPlan(Base):
    """A saved multi-day meal plan.

    (user_id, title, duration, meals_per_day) is the natural key; a second
    submission with the same key resolves to the stored plan.
    """

    __tablename__ = "meal_plan"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "title",
            "duration",
            "meals_per_day",
            name="uq_meal_plan_natural_key",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, nullable=False, index=True)
    title = Column(String(200), nullable=False)
    duration = Column(Integer, nullable=False)
    meals_per_day = Column(Integer, nullable=False)
    cover_image_url = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)

    days = relationship(
        "Day",
        back_populates="meal_plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Day.date",
    )


class Day(Base):
    """One calendar day of a plan"""

    __tablename__ = "day_meal"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(DateTime, nullable=False)
    meal_plan_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("meal_plan.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    meal_plan = relationship("MealPlan", back_populates="days")
    meals = relationship(
        "Meal",
        back_populates="day",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Meal.type",
    )


class Meal(Base):
    """A single meal within a day"""

    __tablename__ = "meal"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(200), nullable=False)
    type = Column(Text, nullable=False)  # breakfast, lunch, dinner, snack
    description = Column(Text, nullable=False)
    calories = Column(Float, nullable=False)
    ingredients = Column(JSON, nullable=False, default=list)
    instructions = Column(Text, nullable=False)
    image_url = Column(Text)
    day_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("day_meal.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    day = relationship("Day", back_populates="meals")
