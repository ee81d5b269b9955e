"""
Domain layer - Business entities, models, schemas, events, and enums.
"""

from domain import enums, events, models, schemas

__all__ = ["enums", "events", "models", "schemas"]
