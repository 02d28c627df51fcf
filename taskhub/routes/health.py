"""
TaskHub Backend — Health Check Route
======================================

What:  Liveness endpoint for load balancers and container health checks.
How:   Answers without touching the database or the rate limiter store, so
       it stays cheap and is never rate limited. It also reports which rate
       limiter backend this instance was started with.
"""

from fastapi import APIRouter, Request

from taskhub.schemas.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(request: Request) -> HealthResponse:
    limiter = request.app.state.rate_limiter
    return HealthResponse(
        status="OK",
        message="TaskHub API running",
        rate_limiter=limiter.store.name,
    )
