"""
Main FastAPI application entry point for the Secrets Manager.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import uvicorn

from secrets_manager.api.routes import api_router
from secrets_manager.core.config import settings
from secrets_manager.core.database import AsyncSessionLocal, create_tables
from secrets_manager.core.exceptions import (
    secrets_manager_exception_handler,
    validation_exception_handler,
    generic_exception_handler,
)
from secrets_manager.core.middleware import LoggingMiddleware, SecurityHeadersMiddleware
from secrets_manager.core.rate_limit import limiter
from secrets_manager.services.auth_service import auth_service
from secrets_manager.utils.exceptions import SecretsManagerException


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info("Starting Secrets Manager")

    await create_tables()

    async with AsyncSessionLocal() as db:
        await auth_service.ensure_bootstrap_admin(db)

    logger.info(
        f"Application startup complete (credential store: {settings.CREDENTIAL_STORE_BACKEND}, "
        f"namespace: /{settings.SSM_NAMESPACE})"
    )

    yield

    # Shutdown
    logger.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title="Secrets Manager API",
    description="Project-scoped secrets backed by AWS SSM Parameter Store",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add rate limiter to app
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add custom middleware (order matters - first added is outermost)
app.add_middleware(LoggingMiddleware)
app.add_middleware(SecurityHeadersMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add exception handlers
app.add_exception_handler(SecretsManagerException, secrets_manager_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Include API routes
app.include_router(api_router, prefix="/api")


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Secrets Manager API",
        "docs": "/docs",
        "health": "/health"
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS
    )
