"""
API dependencies for dependency injection
"""

from typing import Callable, Generator, Optional

from fastapi import Depends, Header, Request, Response
from sqlalchemy.orm import Session

from app.exceptions import UnauthorizedError
from domain.models import get_db_session
from services.meal_plan_service import MealPlanService
from services.rate_limiter import RateLimiter, RateLimitResult, resolve_identifier
from services.side_effects import SideEffectDispatcher


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency for FastAPI routes.

    Usage:
        @router.get("/example")
        def example(db: Session = Depends(get_db)):
            # Use db session here
            pass
    """
    yield from get_db_session()


def get_rate_limiter(request: Request) -> RateLimiter:
    """The process-wide limiter created in main and stored on app.state"""
    return request.app.state.rate_limiter


def get_side_effects(request: Request) -> Optional[SideEffectDispatcher]:
    return getattr(request.app.state, "side_effects", None)


def get_meal_plan_service(
    db: Session = Depends(get_db),
    side_effects: Optional[SideEffectDispatcher] = Depends(get_side_effects),
) -> MealPlanService:
    return MealPlanService(db, side_effects=side_effects)


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity set by the upstream auth layer"""
    if not x_user_id or not x_user_id.strip():
        raise UnauthorizedError("User not authenticated")
    return x_user_id.strip()


def client_address(request: Request) -> Optional[str]:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None


def rate_limited(
    max_requests: Optional[int] = None,
    window_ms: Optional[int] = None,
    identifier: Optional[Callable[[Request], Optional[str]]] = None,
):
    """
    Build a dependency that admits a request through the shared rate limiter.

    Usage:
        @router.post("", dependencies=[Depends(rate_limited(max_requests=5))])

    Allowed requests get X-RateLimit-* headers; rejected ones raise
    RateLimitExceededError, rendered as 429 by the exception handler.
    """

    def dependency(
        request: Request,
        response: Response,
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> RateLimitResult:
        key = resolve_identifier(
            explicit=identifier(request) if identifier else None,
            user_id=request.headers.get("x-user-id"),
            address=client_address(request),
        )
        result = limiter.enforce(key, max_requests=max_requests, window_ms=window_ms)
        response.headers.update(result.headers())
        return result

    return dependency
