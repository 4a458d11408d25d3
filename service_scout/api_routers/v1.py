from fastapi import APIRouter

from service_scout.features.discovery.routes.discovery import router as discovery_router
from service_scout.features.health.routes.health import router as health_router


api_router = APIRouter()

# Register all feature routes
api_router.include_router(health_router)
api_router.include_router(discovery_router)
