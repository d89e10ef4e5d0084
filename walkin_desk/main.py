"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import structlog

from walkin_desk.config import get_settings
from walkin_desk.log import configure_logging
from walkin_desk.routers import walkin

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan events for the application.
    Handles startup and shutdown events.
    """
    # Startup
    configure_logging(settings.log_level, settings.log_json)
    logger.info(
        "starting",
        app=settings.app_name,
        version=settings.app_version,
        backend_url=settings.backend_url,
        api_prefix=settings.api_v1_prefix,
    )

    yield

    # Shutdown
    walkin.get_registry().close_all()
    logger.info("shutting_down", app=settings.app_name)


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    ## Walk-In Order Desk API

    Staff-side workflow for creating walk-in orders against the workshop backend.

    ### Flow:
    * **Open a session**: loads the service menu and mechanic availability
    * **Customer & vehicle**: search or register the customer, pick or add a vehicle
    * **Compose**: choose a service, an inspection or both, and a mechanic
    * **Submit**: the order is validated, priced and sent once; the bill comes back

    The caller's bearer token is forwarded to the workshop backend.
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(walkin.router, prefix=settings.api_v1_prefix)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Welcome to the Walk-In Order Desk API",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "walkin_desk.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
