from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.api.v1.router import api_router
from app.core.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    DocumentError,
    DocumentLockedError,
    DocumentNotFoundError,
    IllegalTransitionError,
    PersistenceError,
    ValidationError,
)
from app.database import init_db, async_session_factory
from app.jobs.scheduler import start_scheduler, shutdown_scheduler


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
    - Create tables that do not exist yet
    - Start background scheduler (overdue sweep)
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    await init_db()

    start_scheduler()

    yield

    # Shutdown
    shutdown_scheduler()
    logger.info("Shutting down...")


# OpenAPI Tags with detailed descriptions
OPENAPI_TAGS = [
    {"name": "Authentication", "description": "Signup, login and logout with JWT access tokens"},
    {"name": "Invoices", "description": "GST invoices: pricing, editing, status changes and payment recording"},
    {"name": "Quotations", "description": "Quotations and their conversion into invoices"},
    {"name": "Transactions", "description": "Paid invoices as transactions and daily received/due totals"},
]

FULL_API_DESCRIPTION = """
## Invoicing API

Invoices and quotations with GST (IGST/CGST/SGST) and volume discounts.

### Authentication

All document endpoints require JWT authentication.
Include token in Authorization header: `Bearer <token>`

### Error Codes

| Code | Description |
|------|-------------|
| 400 | Bad Request - Validation failed (`error.field` names the field) |
| 401 | Unauthorized - Invalid, expired or revoked token |
| 403 | Forbidden - Document belongs to another user |
| 404 | Not Found - Document doesn't exist |
| 409 | Conflict - Illegal status change or locked document |
| 422 | Unprocessable Entity - Request body does not match the schema |
| 503 | Service Unavailable - Storage failure |
"""

# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=FULL_API_DESCRIPTION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=OPENAPI_TAGS,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router)


ERROR_STATUS_CODES = {
    ValidationError: 400,
    AuthenticationError: 401,
    AccessDeniedError: 403,
    DocumentNotFoundError: 404,
    IllegalTransitionError: 409,
    DocumentLockedError: 409,
    PersistenceError: 503,
}


def error_status_code(exc: DocumentError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_class):
            return status_code
    return 400


@app.exception_handler(DocumentError)
async def document_error_handler(request: Request, exc: DocumentError):
    """Translate domain errors into JSON responses."""
    status_code = error_status_code(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{request.method} {request.url.path}: {exc.code} {exc.message}")

    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.to_dict()},
        headers=headers,
    )


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint with database validation."""
    health_status = {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {
            "database": "unknown"
        }
    }

    # Check database connectivity
    try:
        async with async_session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            health_status["checks"]["database"] = "connected"
    except SQLAlchemyError as e:
        health_status["status"] = "unhealthy"
        health_status["checks"]["database"] = f"error: {str(e)}"

    # Return 503 if unhealthy
    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
    }
