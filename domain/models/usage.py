"""
Per-user usage counters updated after a meal plan is saved.
"""

from sqlalchemy import Column, Date, Integer, Text, TIMESTAMP, Uuid
from sqlalchemy.sql import func
import uuid

from domain.models.database import Base


class MealPlanGeneration(Base):
    """Number of plans a user generated during the week starting at week_start"""

    __tablename__ = "meal_plan_generation"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, unique=True, nullable=False)
    generation_count = Column(Integer, nullable=False, default=0)
    week_start = Column(Date, nullable=False)
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class UserAnalytics(Base):
    """Lifetime aggregates shown on the analytics dashboard"""

    __tablename__ = "user_analytics"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Text, unique=True, nullable=False)
    total_meals_cooked = Column(Integer, nullable=False, default=0)
    total_recipes_tried = Column(Integer, nullable=False, default=0)
    updated_at = Column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )
