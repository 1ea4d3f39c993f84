import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from datetime import datetime

from .config import settings
from .api.routes import router, get_session_manager, SERVICE_NAME, SERVICE_VERSION
from .api.middleware import setup_middleware
from .utils.validation import ValidationError

def setup_logging():
    """Configure application logging"""
    log_level = settings.LOG_LEVEL.upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured at {log_level} level")
    return logger

logger = setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting {SERVICE_NAME}...")
    logger.info(f"Configuration: DEBUG={settings.DEBUG}, PORT={settings.PORT}, "
                f"MIN_CHOICES_REQUIRED={settings.MIN_CHOICES_REQUIRED}")

    try:
        manager = get_session_manager()
        logger.info(f"{len(manager.designs)} designs ready for pairing")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    # Shutdown
    logger.info("Shutting down...")

app = FastAPI(
    title=SERVICE_NAME,
    description="Pick between pairs of website designs and get a design preference profile",
    version=SERVICE_VERSION,
    lifespan=lifespan
)

setup_middleware(app)

app.include_router(router, prefix="/api/v1", tags=["Quiz"])

@app.get("/")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "health": "/api/v1/health",
    }

@app.exception_handler(ValidationError)
async def validation_exception_handler(request: Request, exc: ValidationError):
    """Handle validation errors globally"""
    logger.warning(f"Validation error on {request.url}: {exc}")
    return JSONResponse(
        status_code=400,
        content={
            "error_type": "validation_error",
            "message": str(exc),
            "details": exc.errors
        }
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors globally"""
    logger.error(f"Unexpected error on {request.url}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error_type": "internal_error",
            "message": "An unexpected error occurred",
            "request_id": getattr(request.state, "request_id", "unknown"),
            "timestamp": datetime.now().isoformat()
        }
    )
