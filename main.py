"""
Main FastAPI application entry point.
"""
import sys
import time
import logging
import warnings
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError as PydanticValidationError
from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.exc import OperationalError

# Add project root to path
ROOT_DIR = Path(__file__).resolve().parent
sys.path.insert(0, str(ROOT_DIR))

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S',
    force=True
)

logger = logging.getLogger(__name__)

# Database and migrations
from config import settings
from database import Base, engine
from alembic_runner import run_migrations
from exceptions import AppError

# Import models to register with SQLAlchemy Base
from Animal_module.Animal_model import Animal
from Location_module.Location_model import AnimalLocation, CurrentLocation
from Command_module.Command_model import DeviceCommand
from Alert_module.Alert_model import Alert
from Fence_module.Fence_model import VirtualFence
from DeviceControl_module.DeviceControl_model import DeviceControl

# Routers
from Location_module.Location_router import router as gps_router
from Command_module.Command_router import router as command_router
from Alert_module.Alert_router import router as alert_router, device_router as device_alert_router
from DeviceControl_module.DeviceControl_router import router as device_control_router
from Animal_module.Animal_router import router as animal_router
from Fence_module.Fence_router import router as fence_router
from Dashboard_module.Dashboard_router import router as dashboard_router


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses with status codes."""

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"
        start_time = time.time()

        logger.info(f"→ {request.method} {request.url.path} | IP: {client_ip}")

        try:
            response = await call_next(request)
            duration = time.time() - start_time
            status_code = getattr(response, 'status_code', 200)

            if 200 <= status_code < 300:
                status_category = "SUCCESS"
            elif 300 <= status_code < 400:
                status_category = "REDIRECT"
            elif 400 <= status_code < 500:
                status_category = "CLIENT_ERROR"
            else:
                status_category = "SERVER_ERROR"

            logger.info(
                f"{request.method} {request.url.path} | "
                f"Status: {status_code} ({status_category}) | "
                f"Duration: {duration:.3f}s | "
                f"IP: {client_ip}"
            )
            return response
        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"{request.method} {request.url.path} | "
                f"Status: 500 (SERVER_ERROR) | "
                f"Error: {str(e)} | "
                f"Duration: {duration:.3f}s | "
                f"IP: {client_ip}"
            )
            raise


def initialize_database():
    """
    Bring the schema up to date with Alembic.
    If migrations cannot run, fall back to create_all so a fresh SQLite
    development database still works.
    """
    try:
        logger.info("Running database migrations...")
        run_migrations()
        logger.info("Database migrations completed successfully")
        return
    except OperationalError as e:
        logger.error(f"Failed to connect to database during migrations: {e}")
        logger.warning("Migrations will be retried on next startup")
    except Exception as e:
        logger.error(f"Unexpected error during migrations: {e}", exc_info=True)

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Tables created with metadata.create_all")
    except OperationalError as e:
        logger.error(f"Failed to create tables: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown."""
    logger.info("Starting application...")
    initialize_database()
    logger.info("Application started successfully")
    yield
    logger.info("Application shutdown complete")


# Initialize FastAPI app
app = FastAPI(
    title="Herdtrack API",
    version="1.0.0",
    lifespan=lifespan
)


def _format_validation_errors(exc):
    """Return consistent error structure for 422 responses."""
    detail_list = []
    errors = exc.errors() if hasattr(exc, "errors") else []

    for err in errors:
        loc = err.get("loc", [])
        source = loc[0] if loc else "body"
        field = loc[-1] if len(loc) > 1 else loc[0] if loc else None
        detail_list.append({
            "source": source,
            "field": field,
            "message": err.get("msg"),
            "type": err.get("type")
        })
    return detail_list


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    """Render domain errors as {success: false, message}; internal detail only outside production."""
    content = {"success": False, "message": exc.message}
    if exc.detail and not settings.is_production:
        content["error"] = exc.detail
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message} | {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    detail_list = _format_validation_errors(exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "message": "Request validation failed.",
            "details": detail_list
        }
    )


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(request: Request, exc: PydanticValidationError):
    """Handle Pydantic validation errors."""
    detail_list = _format_validation_errors(exc)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "success": False,
            "message": "Validation failed.",
            "details": detail_list
        }
    )


# CORS configuration
ALLOWED_ORIGINS = [origin.strip() for origin in settings.ALLOWED_ORIGINS.split(",")]
if ALLOWED_ORIGINS == ["*"]:
    warnings.warn("CORS is set to allow all origins. This is not recommended for production.")

# Middleware
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=ALLOWED_ORIGINS != ["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
)

# Include routers
app.include_router(gps_router)
app.include_router(command_router)
app.include_router(device_alert_router)
app.include_router(device_control_router)
app.include_router(dashboard_router)
app.include_router(animal_router)
app.include_router(fence_router)
app.include_router(alert_router)


# API Endpoints
@app.get("/")
def root():
    """Root endpoint with API information."""
    return {
        "status": "success",
        "message": "Herdtrack API",
        "version": "1.0.0",
        "endpoints": {
            "gps": "/gps",
            "live": "/gps/ws",
            "commands": "/commands",
            "remote_config": "/settings/remote-config",
            "device": "/device",
            "dashboard": "/dashboard"
        },
        "docs": "/docs",
        "redoc": "/redoc"
    }


@app.get("/health")
def health_check():
    """Health check endpoint for container orchestration."""
    return {
        "status": "healthy",
        "service": "Herdtrack API"
    }


# Run application
if __name__ == "__main__":
    import uvicorn

    uvicorn_access_logger = logging.getLogger("uvicorn.access")
    uvicorn_access_logger.setLevel(logging.INFO)
    uvicorn_logger = logging.getLogger("uvicorn")
    uvicorn_logger.setLevel(logging.INFO)

    port = settings.PORT
    logger.info(f"Starting Herdtrack API on http://0.0.0.0:{port} (docs at /docs)")

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=False,
        log_level="info",
        access_log=True
    )
