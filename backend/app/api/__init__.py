"""API router aggregator."""
from fastapi import APIRouter

from app.api.routes import auth, health, profile, uploads

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(profile.router)
api_router.include_router(uploads.router)
api_router.include_router(health.router)

__all__ = ["api_router"]
