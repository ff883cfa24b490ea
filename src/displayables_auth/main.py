"""Displayables Auth Service

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from displayables_auth.api.routes import auth, users
from displayables_auth.config.settings import get_settings
from displayables_auth.core.errors import AuthenticationError, AuthServiceError, InternalError
from displayables_auth.core.messages import MessageKey, describe
from displayables_auth.infrastructure.persistence.database import close_db, init_db

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info(f"Starting {settings.service_name} v{settings.service_version}")
    logger.info(f"Environment: {settings.environment}")

    try:
        await init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down Displayables Auth")
    await close_db()
    logger.info("Database connection closed")


# Create FastAPI application
app = FastAPI(
    title="Displayables Auth Service",
    version=settings.service_version,
    description="Authentication and identity federation for the Displayables dashboard",
    lifespan=lifespan
)

# CORS configuration (clients read the refreshed session from Authorization)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
    expose_headers=settings.cors_expose_headers,
)


# Health check endpoint
@app.get("/health")
async def root_health_check():
    """Root health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "version": settings.service_version,
        "environment": settings.environment
    }


@app.get("/")
async def root():
    """Root endpoint with service information"""
    return {
        "service": settings.service_name,
        "version": settings.service_version,
        "description": "Displayables Authentication Service",
        "docs": "/docs",
        "health": "/health"
    }


app.include_router(auth.router)
app.include_router(users.router)


@app.exception_handler(AuthServiceError)
async def auth_service_exception_handler(request: Request, exc: AuthServiceError):
    """Render core errors as {error, description} with a localized description"""
    locale = request.headers.get("lang") or settings.default_locale
    content = {
        "error": exc.category,
        "description": describe(exc.key, locale, **exc.params),
    }

    headers = None
    if isinstance(exc, InternalError):
        content["detail"] = exc.detail
    elif isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}

    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal",
            "description": describe(MessageKey.SOMETHING_WRONG, request.headers.get("lang")),
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "displayables_auth.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
