"""Entry point for the package server."""

import time
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from pkgserver import config
from pkgserver.cleanup_task import OrphanedBlobCleaner
from pkgserver.database import get_db_connection, init_database
from pkgserver.exceptions import (
    InvalidVersionError,
    PackageNotFoundError,
    PackageServiceException,
    StorageIntegrityError,
    StreamFailureError,
    VersionConflictError,
)
from pkgserver.routes.package_routes import router as package_router

logger = setup_logging('pkgserver')
setup_logging('blobstore')


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Initialize database and cleanup task on startup, stop the task on shutdown.
    """
    logger.info("Package server starting up...")

    init_database()
    logger.info("Database initialized")

    cleanup_task = OrphanedBlobCleaner()
    cleanup_task.blob_storage.ensure_directory()
    await cleanup_task.start()
    app.state.cleanup_task = cleanup_task

    yield

    logger.info("Package server shutting down...")
    await cleanup_task.stop()
    logger.info("Cleanup task stopped")


app = FastAPI(
    title="Package Store",
    description="Versioned package storage with per-user unique versions",
    version="1.0.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


def _error_response(status_code: int, exc: Exception, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": code}
    )


@app.exception_handler(InvalidVersionError)
async def invalid_version_handler(request: Request, exc: InvalidVersionError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Invalid version error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, exc, "INVALID_VERSION")


@app.exception_handler(VersionConflictError)
async def version_conflict_handler(request: Request, exc: VersionConflictError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Version conflict error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_409_CONFLICT, exc, "VERSION_CONFLICT")


@app.exception_handler(StreamFailureError)
async def stream_failure_handler(request: Request, exc: StreamFailureError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Stream failure error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, exc, "STREAM_FAILURE")


@app.exception_handler(PackageNotFoundError)
async def package_not_found_handler(request: Request, exc: PackageNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(
        f"Package not found error: {exc} [request_id={request_id}] path={request.url.path}"
    )
    return _error_response(status.HTTP_404_NOT_FOUND, exc, "PACKAGE_NOT_FOUND")


@app.exception_handler(StorageIntegrityError)
async def storage_integrity_handler(request: Request, exc: StorageIntegrityError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Storage integrity error: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "STORAGE_INTEGRITY")


@app.exception_handler(PackageServiceException)
async def package_service_exception_handler(request: Request, exc: PackageServiceException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Package service exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INTERNAL_ERROR")


app.include_router(package_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "Package Store API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Health check endpoint for Docker healthcheck.
    Returns 200 if service is alive.
    """
    return {"status": "healthy", "service": "pkgserver"}


@app.get("/ready")
def ready_check():
    """
    Readiness check endpoint.
    Verifies database connectivity and that the blob directory is usable.
    """
    from pathlib import Path
    import os

    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1 FROM packages LIMIT 1")
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    blob_root = Path(config.BLOB_STORAGE_PATH)
    if blob_root.is_dir() and os.access(blob_root, os.W_OK):
        storage_status = "ok"
    else:
        storage_status = f"error: {blob_root} is not a writable directory"

    ready = db_status == "ok" and storage_status == "ok"
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "database": db_status,
            "storage": storage_status
        }
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "pkgserver.main:app",
        host=config.SERVER_HOST,
        port=config.SERVER_PORT,
    )


if __name__ == "__main__":
    main()
