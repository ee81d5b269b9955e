"""Health check routes"""

from fastapi import APIRouter, Depends, Request
import logging

from api.dependencies import client_address, get_current_user_id
from api.responses import HealthResponse
from app.config import settings
from services.rate_limiter import resolve_identifier

router = APIRouter(tags=["Health"])
logger = logging.getLogger("mealforge.api.health")


@router.get("/health-check", response_model=HealthResponse)
def health_check():
    """Basic health check endpoint"""
    return HealthResponse(status="ok", service=settings.app_name, version=settings.app_version)


@router.get("/rate-limit/status")
def rate_limit_status(request: Request, user_id: str = Depends(get_current_user_id)):
    """The caller's own rate limit state, without counting a request."""
    identifier = resolve_identifier(user_id=user_id, address=client_address(request))
    result = request.app.state.rate_limiter.status(identifier)
    if result is None:
        return {"identifier": identifier, "active": False}
    logger.debug("Rate limit status requested for %s", identifier)
    return {
        "identifier": identifier,
        "active": True,
        "limit": result.limit,
        "remaining": result.remaining,
        "resetAt": result.reset_at,
    }
