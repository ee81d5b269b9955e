"""API routes package"""

from . import health, meal_plans

__all__ = ["health", "meal_plans"]
