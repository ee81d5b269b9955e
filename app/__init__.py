"""
App package - Application configuration and core utilities.
Contains settings, exceptions, and foundational application code.
"""

from app.config import settings
from app.exceptions import (
    MealForgeError,
    NotFoundError,
    UnauthorizedError,
    OperationCancelledError,
    RateLimitExceededError,
)

__all__ = [
    "settings",
    "MealForgeError",
    "NotFoundError",
    "UnauthorizedError",
    "OperationCancelledError",
    "RateLimitExceededError",
]
