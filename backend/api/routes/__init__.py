"""API Routes."""

from fastapi import APIRouter

from .account import router as account_router
from .auth import router as auth_router
from .health import router as health_router
from .team import router as team_router

# Create main API router
api_router = APIRouter()

# Include route modules
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(auth_router)
api_router.include_router(account_router)
api_router.include_router(team_router)
