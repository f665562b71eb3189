import logging
import traceback
from contextlib import asynccontextmanager
from datetime import datetime, UTC
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from tasktracker import config
from tasktracker.database import Database
from tasktracker.errors import TaskTrackerError
from tasktracker.routers import auth, tasks

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
}


def _error_response(status_code: int, message, exc: Optional[Exception] = None, errors=None):
    content = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    # stack traces only outside production-like environments
    if exc is not None and config.ENVIRONMENT == "development":
        content["stack"] = "".join(traceback.format_exception(exc))
    # set here so responses built outside the middleware stack carry them too
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content), headers=SECURITY_HEADERS)


class BodySizeLimitMiddleware:
    """Count request body bytes as they arrive and stop at MAX_BODY_BYTES.

    Covers chunked uploads, which carry no Content-Length header.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > config.MAX_BODY_BYTES:
                    logger.warning("Rejected %s %s: body over %s bytes", scope["method"], scope["path"], config.MAX_BODY_BYTES)
                    raise HTTPException(status_code=413, detail="Request body too large")
            return message

        await self.app(scope, limited_receive, send)


def _rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning("Rate limit hit by %s on %s %s", get_remote_address(request), request.method, request.url.path)
    return _error_response(429, "Too many requests from this IP, please try again later.")


def _format_validation_errors(exc: RequestValidationError) -> dict:
    """Group pydantic errors by field: {"title": ["..."], "limit": ["..."]}."""
    errors = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        field = str(loc[1]) if len(loc) > 1 else str(loc[0] if loc else "request")
        msg = err.get("msg", "Invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        errors.setdefault(field, []).append(msg)
    return errors


def create_app(database: Optional[Database] = None) -> FastAPI:
    db = database or Database(config.DATABASE_URL)
    db.create_all()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Environment: %s", config.ENVIRONMENT)
        yield
        logger.info("Shutting down, closing database connections")
        db.dispose()

    app = FastAPI(title="Task Tracker API", lifespan=lifespan)
    app.state.db = db

    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[f"{config.RATE_LIMIT_MAX_REQUESTS} per {config.RATE_LIMIT_WINDOW_SECONDS} seconds"],
        enabled=config.ENVIRONMENT != "test",
    )
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def guard_and_log(request: Request, call_next):
        client = request.client.host if request.client else "-"
        logger.info("%s %s ip=%s", request.method, request.url.path, client)

        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > config.MAX_BODY_BYTES:
            logger.warning("Rejected %s %s: body of %s bytes", request.method, request.url.path, length)
            response = _error_response(413, "Request body too large")
        else:
            response = await call_next(request)

        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    # added last so it wraps the other middleware and they all read the counted body
    app.add_middleware(BodySizeLimitMiddleware)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, "Validation failed", errors=_format_validation_errors(exc))

    @app.exception_handler(TaskTrackerError)
    async def task_tracker_error_handler(request: Request, exc: TaskTrackerError):
        if exc.status_code >= 500:
            logger.error("Error: %s %s %s", request.method, request.url.path, exc.__cause__ or exc)
        return _error_response(exc.status_code, exc.message, exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error_response(404, "Route not found")
        return _error_response(exc.status_code, exc.detail)

    # Generic error handler to return JSON errors for unexpected exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "Internal Server Error", exc)

    @app.get("/healthz")
    def healthz():
        return {
            "status": "ok",
            "timestamp": datetime.now(UTC).isoformat(),
            "environment": config.ENVIRONMENT,
        }

    # API routers
    app.include_router(auth.router)
    app.include_router(tasks.router)
    return app
