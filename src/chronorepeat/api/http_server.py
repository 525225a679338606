"""FastAPI HTTP server setup."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from chronorepeat import __version__
from chronorepeat.database import db_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    # Startup
    logger.info("Starting ChronoRepeat server...")
    db_manager.initialize()
    logger.info("ChronoRepeat server started successfully")

    yield

    # Shutdown
    logger.info("Shutting down ChronoRepeat server...")
    db_manager.close()
    logger.info("ChronoRepeat server shut down")


# Create FastAPI app
app = FastAPI(
    title="ChronoRepeat",
    description="Recurring job scheduling with a durable repeat registry",
    version=__version__,
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and include routers
from .endpoints import router

app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "ChronoRepeat",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "database": "connected" if db_manager.engine is not None else "not initialized"
    }
