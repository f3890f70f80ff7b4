"""
FastAPI application entry point for the Startup Idea Generator
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import get_settings
from app.database import db_manager
from app.logging_config import setup_logging
from app.routes import dashboard, ideas, leads, library


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Startup Idea Generator starting up")
    await db_manager.initialize()

    yield

    # Shutdown
    await db_manager.close()
    logger.info("Startup Idea Generator shutting down")


# Initialize FastAPI app
app = FastAPI(
    title="Startup Idea Generator",
    description="Generate validated startup ideas from live market research",
    version="1.0.0",
    lifespan=lifespan
)

# Get settings
settings = get_settings()

app.include_router(ideas.router)
app.include_router(library.router)
app.include_router(dashboard.router)
app.include_router(leads.router)


@app.get("/")
async def root():
    """Service banner"""
    return {"message": "Startup Idea Generator is running", "status": "healthy"}


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring"""
    database_ok = await db_manager.health_check()
    return {
        "status": "healthy" if database_ok else "degraded",
        "service": "idea-generator",
        "environment": settings.environment,
        "database": "connected" if database_ok else "unavailable"
    }
