"""Entry point for the NoteShare API server."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from server import service_locator
from server.config import SERVER_HOST, SERVER_PORT
from server.database import get_db_connection, init_database
from server.exceptions import (
    NoteShareError,
    UnauthorizedError,
    InvalidCredentialsError,
    InvalidAPIKeyError,
    UserAlreadyExistsError,
    NotFoundError,
    UserNotFoundError,
    FileNotFoundError,
    InvalidInputError,
    RemoteTransientError,
    PersistenceError,
)
from server.routes import (
    auth_router,
    dashboard_router,
    file_router,
    shared_router,
    subject_router,
)

logger = setup_logging('server')

app = FastAPI(
    title="NoteShare API",
    description="Note sharing for students, backed by Telegram channels",
    version="1.0.0"
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time
    user_id = getattr(request.state, 'user_id', None)

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s "
        f"[request_id={request_id}] [user_id={user_id or 'anonymous'}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Initialize database and shared components on application startup.
    """
    logger.info("NoteShare server starting up...")

    init_database()
    logger.info("Database initialized")

    service_locator.install_defaults()


@app.on_event("shutdown")
async def shutdown_event():
    """
    Close the blob-store connection and the stats cache backend.
    """
    logger.info("NoteShare server shutting down...")
    await service_locator.shutdown()


def _error_response(request: Request, exc: Exception, status_code: int, code: str, level: str = "warning"):
    request_id = getattr(request.state, 'request_id', 'unknown')
    user_id = getattr(request.state, 'user_id', 'unknown')
    message = (
        f"{type(exc).__name__}: {exc} [request_id={request_id}] [user_id={user_id}] "
        f"path={request.url.path}"
    )
    if level == "error":
        logger.error(message, exc_info=True)
    else:
        logger.warning(message)

    return JSONResponse(status_code=status_code, content={"detail": str(exc), "code": code})


@app.exception_handler(UserAlreadyExistsError)
async def user_already_exists_handler(request: Request, exc: UserAlreadyExistsError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "USER_ALREADY_EXISTS")


@app.exception_handler(InvalidCredentialsError)
async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, "INVALID_CREDENTIALS")


@app.exception_handler(InvalidAPIKeyError)
async def invalid_api_key_handler(request: Request, exc: InvalidAPIKeyError):
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, "INVALID_API_KEY")


@app.exception_handler(UnauthorizedError)
async def unauthorized_handler(request: Request, exc: UnauthorizedError):
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED")


@app.exception_handler(UserNotFoundError)
async def user_not_found_handler(request: Request, exc: UserNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "USER_NOT_FOUND")


@app.exception_handler(FileNotFoundError)
async def file_not_found_handler(request: Request, exc: FileNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "FILE_NOT_FOUND")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "NOT_FOUND")


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_INPUT")


@app.exception_handler(RemoteTransientError)
async def remote_transient_handler(request: Request, exc: RemoteTransientError):
    return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "REMOTE_UNAVAILABLE", "error")


@app.exception_handler(PersistenceError)
async def persistence_handler(request: Request, exc: PersistenceError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "PERSISTENCE_ERROR", "error")


@app.exception_handler(NoteShareError)
async def noteshare_exception_handler(request: Request, exc: NoteShareError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "error")


app.include_router(auth_router)
app.include_router(dashboard_router)
app.include_router(file_router)
app.include_router(subject_router)
app.include_router(shared_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "NoteShare API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Liveness probe. Returns 200 if the process is serving requests.
    """
    return {"status": "healthy", "service": "server"}


@app.get("/ready")
async def ready_check():
    """
    Readiness check endpoint.
    Verifies database and blob-store connectivity.
    """
    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1")
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {str(e)}"

    connections = service_locator.get_blob_connections()
    if connections is None:
        blob_status = "error: not configured"
    else:
        try:
            async with connections.connection():
                pass
            blob_status = "ok"
        except Exception as e:
            blob_status = f"error: {str(e)}"

    ready = db_status == "ok" and blob_status == "ok"
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "database": db_status,
            "blob_store": blob_status
        }
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "server.main:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
    )


if __name__ == "__main__":
    main()
