import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from service_scout.api_routers.v1 import api_router
from service_scout.features.health.routes.health import router as health_router
from service_scout.platform.config import settings
from service_scout.platform.exceptions import add_exception_handlers

# Configure logging to show INFO level messages
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

app = FastAPI(
    title="Service Scout API",
    description="Discovers the other online services a company operates",
    version="1.0.0",
    debug=settings.DEBUG,
)


# Root endpoint for basic info
@app.get("/", tags=["Info"])
def root():
    return {
        "app_name": "Service Scout API",
        "description": "Crawls a company website to find its dashboards, consoles, docs and sibling apps.",
        "version": "1.0.0",
        "docs_url": "/docs",
        "api_base": "/api/v1",
    }


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

app.include_router(health_router)
app.include_router(api_router, prefix="/api/v1")
