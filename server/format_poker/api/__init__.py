from fastapi import APIRouter

from format_poker.api import formats, live, votes

api_router = APIRouter()


@api_router.get("/health", tags=["health"])
def api_health_check():
    """Health check endpoint for monitoring and load balancers."""
    return {"status": "ok", "service": "api"}


api_router.include_router(formats.router, prefix="/formats", tags=["formats"])
api_router.include_router(votes.router, tags=["votes"])
api_router.include_router(live.router, tags=["live"])
