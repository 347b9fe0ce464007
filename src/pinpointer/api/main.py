"""
FastAPI application for the website audit API.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import time
from contextlib import asynccontextmanager

from ..collectors.browser import get_browser_resource
from ..core.config import settings
from ..core.logging import logger
from ..skills.registry import get_skill_registry
from .exceptions import exception_handlers
from .middleware import add_process_time_header
from .routes import audit, health


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    registry = get_skill_registry()
    logger.info(f"AI: Gemini {settings.GEMINI_MODEL} (user-provided key)")
    logger.info(f"PSI: {'key set' if settings.PSI_KEY else 'no key'}")
    logger.info(f"Visual capture: {'enabled' if settings.VISUAL_CAPTURE_ENABLED else 'disabled'}")
    logger.info(f"Skills: {len(registry)} loaded")
    yield
    await get_browser_resource().close()
    logger.info(f"Shutting down {settings.APP_NAME}")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Website audit engine: data-first checks fused with AI review",
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add custom middleware
app.middleware("http")(add_process_time_header)

for exc_class, handler in exception_handlers.items():
    app.add_exception_handler(exc_class, handler)


# Include routers
app.include_router(
    audit.router,
    prefix=settings.API_PREFIX,
    tags=["audit"]
)

app.include_router(
    health.router,
    prefix=settings.API_PREFIX,
    tags=["health"]
)


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": time.time(),
        "version": settings.APP_VERSION,
        "visual_capture": settings.VISUAL_CAPTURE_ENABLED,
    }


# Root endpoint
@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health"
    }
