"""
API module for the basis compression service.
"""
import os
import time
import shutil
import logging
import platform
from contextlib import asynccontextmanager
from typing import Optional

import psutil
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from basis_api.api.compress import router as compress_router
from basis_api.config import Settings, get_settings
from basis_api.core.basisu import check_basisu
from basis_api.utils.file_handling import clear_directory
from basis_api.utils.metrics import get_cpu_mem

# Set up logging
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


def _directory_status(directory) -> dict:
    status = {"path": str(directory), "exists": os.path.isdir(directory)}
    if status["exists"]:
        status["writable"] = os.access(directory, os.W_OK)
        try:
            status["free_space_mb"] = shutil.disk_usage(directory).free / (1024 * 1024)
        except OSError as e:
            status["space_error"] = str(e)
    return status


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Service settings, read from the environment when omitted

    Returns:
        Configured application with routes and static mounts
    """
    settings = settings or get_settings()
    settings.ensure_directories()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        basisu = check_basisu(settings.basisu_path)
        if basisu["status"] == "ok":
            logger.info(f"basisu is installed and working: {basisu['version']}")
        else:
            logger.warning(
                f"basisu is not available at {settings.basisu_path}. Compression will not function."
            )
        yield
        # Scratch files do not survive the process
        logger.info("Cleaning up scratch directories")
        clear_directory(settings.upload_dir)
        clear_directory(settings.preview_dir)

    app = FastAPI(
        title="Basis Texture Compression API",
        description="""
        API for converting images into GPU texture formats with basisu:
        - ETC1S and UASTC LDR (.basis / .ktx2)
        - UASTC HDR 4x4, 6x6 and 6x6 intermediate

        Outputs are identified by magic number and served for preview and download.
        """,
        version=VERSION,
        lifespan=lifespan
    )
    app.state.settings = settings

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Errors are always reported as {"error": message}
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        fields = ", ".join(str(err["loc"][-1]) for err in exc.errors() if err.get("loc"))
        return JSONResponse(status_code=400, content={"error": f"Invalid request fields: {fields}"})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler for unexpected errors."""
        logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": str(exc)})

    app.include_router(compress_router)

    @app.get("/health")
    async def health_check():
        """Check if the API is running."""
        return {"status": "healthy", "version": VERSION}

    @app.get("/health/detailed")
    async def detailed_health_check():
        """
        Provides detailed health information including system metrics and component status.
        """
        system_info = {
            **get_cpu_mem(),
            "disk_usage": psutil.disk_usage(str(settings.public_dir)).percent,
            "python_version": platform.python_version(),
            "platform": platform.platform()
        }

        return {
            "status": "healthy",
            "version": VERSION,
            "system": system_info,
            "basisu": check_basisu(settings.basisu_path),
            "directories": {
                "uploads": _directory_status(settings.upload_dir),
                "preview": _directory_status(settings.preview_dir),
            },
            "timestamp": time.time()
        }

    # Static files; the catch-all client bundle mount must come last
    app.mount("/preview", StaticFiles(directory=str(settings.preview_dir)), name="preview")
    app.mount("/uploads", StaticFiles(directory=str(settings.upload_dir)), name="uploads")
    app.mount("/", StaticFiles(directory=str(settings.public_dir), html=True), name="client")

    return app
