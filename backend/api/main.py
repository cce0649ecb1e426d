"""
SmartMatch API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("SmartMatch API starting up", version=settings.app_version, enabled=settings.smartmatch_enabled)
    yield
    logger.info("SmartMatch API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Buyer–vendor match and trust scoring for the marketplace",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and register routers
from api.v1.routers import admin_smartmatch, smartmatch, vendor_insights

app.include_router(smartmatch.router)
app.include_router(vendor_insights.router)
app.include_router(admin_smartmatch.router)


@app.get("/health")
async def health_check():
    """Health check endpoint for Cloud Run / load balancers."""
    return {"status": "healthy", "version": settings.app_version}
