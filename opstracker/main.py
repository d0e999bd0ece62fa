from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import uvicorn
import time
from sqlalchemy import text

# Import application components
from opstracker.database import engine, Base, SessionLocal
from opstracker.utils.logger import logger
from opstracker.utils.exceptions import OpsTrackerError
from opstracker.utils.helpers import format_error
from opstracker.routers import operations, taxonomy, techniques
from opstracker.services.bootstrap import ensure_initialized

# Import models to ensure they're registered with SQLAlchemy
from opstracker import models  # noqa: F401

# Import settings
from opstracker.config import settings

# Environment configuration
ENVIRONMENT = settings.environment
DEBUG_MODE = settings.debug
API_PREFIX = settings.api_prefix
HOST = settings.api_host
PORT = settings.api_port

# CORS configuration
ALLOWED_ORIGINS = settings.allowed_origins.split(",")
ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
ALLOWED_HEADERS = ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown events
    """
    logger.info("Starting Operations Tracker API...")

    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")

        logger.info("Ensuring initial data (admin + MITRE)...")
        db = SessionLocal()
        try:
            ensure_initialized(db)
        finally:
            db.close()

        logger.info("Application startup completed successfully")

    except Exception as e:
        logger.error(f"Startup failed: {str(e)}")
        raise

    yield

    logger.info("Shutting down Operations Tracker API...")


# Create FastAPI application
app = FastAPI(
    title="Operations Tracker API",
    description="Record red and purple team operations: the MITRE ATT&CK techniques executed, tools used, targets engaged and outcomes",
    version="1.0.0",
    docs_url="/docs" if DEBUG_MODE else None,
    redoc_url="/redoc" if DEBUG_MODE else None,
    openapi_url="/openapi.json" if DEBUG_MODE else None,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=ALLOWED_METHODS,
    allow_headers=ALLOWED_HEADERS,
)

# Add trusted host middleware for production
if ENVIRONMENT == "production":
    trusted_hosts = settings.trusted_hosts.split(",")
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=trusted_hosts
    )


# Global exception handlers
@app.exception_handler(OpsTrackerError)
async def ops_tracker_exception_handler(request: Request, exc: OpsTrackerError):
    logger.warning(f"{exc.code} on {request.method} {request.url}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=format_error(exc.message, exc.code, exc.status_code)
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    logger.warning(f"Invalid request on {request.method} {request.url}: {errors}")
    return JSONResponse(
        status_code=400,
        content=format_error(errors or "Invalid request", "BAD_REQUEST", 400)
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.error(f"HTTP {exc.status_code} error on {request.method} {request.url}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content=format_error(str(exc.detail), "HTTP_ERROR", exc.status_code)
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.method} {request.url}: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content=format_error("Internal server error", "INTERNAL_SERVER_ERROR", 500)
    )


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()

    logger.info(f"Incoming request: {request.method} {request.url}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(f"Request completed: {request.method} {request.url} - {response.status_code} in {process_time:.4f}s")

    return response


# Health check endpoint
@app.get("/health")
async def health_check():
    """Application health check"""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        db_status = "connected"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        db_status = "disconnected"
    finally:
        db.close()

    return {
        "status": "healthy",
        "service": "operations-tracker",
        "version": "1.0.0",
        "environment": ENVIRONMENT,
        "components": {
            "database": db_status,
        }
    }


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Operations Tracker API",
        "version": "1.0.0",
        "docs": "/docs" if DEBUG_MODE else "Documentation disabled in production",
        "health": "/health"
    }


# Include routers
for module in (techniques, operations, taxonomy):
    app.include_router(module.router, prefix=API_PREFIX)
    app.include_router(module.mutations, prefix=API_PREFIX)


def run():
    logger.info(f"Starting server in {ENVIRONMENT} mode...")
    logger.info(f"Debug mode: {DEBUG_MODE}")
    logger.info(f"CORS origins: {ALLOWED_ORIGINS}")

    uvicorn.run(
        "opstracker.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG_MODE,
        log_level="info" if DEBUG_MODE else "warning",
        access_log=DEBUG_MODE,
    )


if __name__ == "__main__":
    run()
