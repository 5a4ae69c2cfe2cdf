from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
from sqlalchemy.exc import SQLAlchemyError
import logging

from app.config import get_settings
from app.database import engine, Base
from app.api import products, users, health
from app.services.errors import ServiceError, StorageFailureError

# Register all models with the metadata before create_all
from app.models import product, user, comment  # noqa: F401

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")

    # Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    # Create the uploads directory
    Path(settings.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
    logger.info(f"Serving uploads from {settings.UPLOAD_DIR}")

    yield

    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI application
app = FastAPI(
    title="Product Sharing API",
    description="""
    Backend API for a product sharing app: users upload products with a
    title, description and image, and comment on each other's products.

    - **Products**: Public listing and detail, owner-only updates and deletes
    - **Uploads**: Image upload returning a public URL for the product form
    - **Users**: Profile sync from the external auth provider

    ## Authentication
    Protected endpoints expect a bearer token issued by the auth provider.
    The token subject is the user id; only a product's owner can change it.

    ## Enrichment
    Product reads include the owner profile and a comment summary. The
    summary is best-effort and is `null` when it cannot be computed.
    """,
    version="1.0.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL] if settings.FRONTEND_URL else ["*"],
    allow_credentials=bool(settings.FRONTEND_URL),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    """Map service errors to their status code and a structured payload."""
    if isinstance(exc, StorageFailureError):
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    """Report database errors that escaped the repositories as storage failures."""
    logger.error(f"{request.method} {request.url.path} failed with a database error: {exc}")
    error = StorageFailureError("Storage operation failed")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Return a structured 500 for anything unexpected, without internal detail."""
    logger.exception(f"{request.method} {request.url.path} failed: {exc}")
    error = ServiceError("Internal server error")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as INVALID_INPUT, naming the fields."""
    fields = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ())[1:]]
        if loc and ".".join(loc) not in fields:
            fields.append(".".join(loc))
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Invalid request payload",
            "code": "INVALID_INPUT",
            "fields": fields,
        },
    )


# Include API routers
app.include_router(health.router, prefix="/api")
app.include_router(products.router, prefix="/api")
app.include_router(users.router, prefix="/api")

# Uploaded images; the directory is created during startup
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": "Product Sharing API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/health"
    }
