"""API Routers package."""

from studyhub.routers import activities as activities_router
from studyhub.routers import health as health_router
from studyhub.routers import ml_activity as ml_activity_router

__all__ = ["activities_router", "health_router", "ml_activity_router"]
