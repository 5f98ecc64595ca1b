"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Process-wide collaborators (the notifier) are built here once
and hung on app.state, never reached for as module globals. Lifespan only
logs and releases the database pool on shutdown.

Error handling is layered:
- routes translate service exceptions into HTTPException (4xx / 500)
- every error body carries the text twice, as "detail" and as "message"
- request body validation errors become 400 "Validation Error"
- anything that escapes a route lands in the fallback handler → 500,
  with the traceback included outside production
"""

import traceback
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taskmaster import __version__
from taskmaster.api import api_router
from taskmaster.config import settings
from taskmaster.services.notifications import build_notifier

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "taskmaster.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        notifier=type(app.state.notifier).__name__,
    )

    yield

    logger.info("taskmaster.shutdown")
    from taskmaster.db.engine import engine
    await engine.dispose()


def _validation_messages(exc: RequestValidationError) -> list[str]:
    messages = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        prefix = f"{'.'.join(loc)}: " if loc else ""
        messages.append(f"{prefix}{err.get('msg', 'invalid value')}")
    return messages


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing input is a 400, not FastAPI's default 422."""
    errors = _validation_messages(exc)
    logger.info("http.validation_error", path=request.url.path, errors=errors)
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Validation Error",
            "message": "Validation Error",
            "errors": errors,
        },
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTPException with the detail mirrored into "message"."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "message": message},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last-resort 500. Stack traces are only exposed outside production."""
    logger.error(
        "http.unhandled_error",
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    content = {
        "detail": "Something went wrong on the server!",
        "message": "Something went wrong on the server!",
    }
    if not settings.is_production:
        content["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
    return JSONResponse(status_code=500, content=content)


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="TaskMaster API",
        description="Task and team management backend for the TaskMaster app",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.notifier = build_notifier(settings)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from taskmaster.middleware.request_id import RequestIdMiddleware
    from taskmaster.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def root():
        return "Task Manager API is running!"

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: taskmaster.main:app)
app = create_app()
