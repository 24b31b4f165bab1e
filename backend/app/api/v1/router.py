"""
API v1 router that aggregates all endpoint routers.
All routes require authentication except health.
"""

from fastapi import APIRouter, Depends
from app.api.v1.middleware import require_authentication

from app.api.v1.endpoints import (
    health,
    proposals,
    bills,
)

api_router = APIRouter()

# Public routes (no authentication required)
api_router.include_router(health.router, tags=["health"])

# Protected routes (authentication required for all endpoints)
api_router.include_router(
    proposals.router,
    prefix="/proposals",
    tags=["proposals"],
    dependencies=[Depends(require_authentication)],
)
api_router.include_router(
    bills.router,
    prefix="/bills",
    tags=["bills"],
    dependencies=[Depends(require_authentication)],
)
