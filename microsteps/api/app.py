from __future__ import annotations

from dataclasses import replace
import logging
from pathlib import Path
import random
import time
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .. import __version__
from ..breakdown import BreakdownService
from ..chat import ChatTurnProcessor
from ..clock import Clock, RealClock
from ..completion import Completer, build_completer
from ..config import Settings
from ..db import StateDB
from ..errors import MicrostepsError
from ..rate_limit import RateLimiter
from ..session_table import SessionTable
from ..utils import IdFactory
from ..workspace import Workspace
from .routes.breakdown import router as breakdown_router
from .routes.chat import router as chat_router
from .routes.export import router as export_router
from .routes.focus import router as focus_router
from .routes.health import router as health_router
from .routes.meta import router as meta_router
from .routes.sessions import router as sessions_router
from .routes.stats import router as stats_router
from .routes.tasks import router as tasks_router


logger = logging.getLogger("microsteps.api")

_UNSET = object()


def create_app(
    db_path: Path | None = None,
    settings: Settings | None = None,
    chat_completer: Completer | None | object = _UNSET,
    breakdown_completer: Completer | None | object = _UNSET,
    clock: Clock | None = None,
    rng: random.Random | None = None,
) -> FastAPI:
    resolved = settings or Settings.from_env(db_path=db_path)
    if db_path is not None:
        resolved = replace(resolved, db_path=Path(db_path))
    clock = clock or RealClock()
    rng = rng or random.Random()
    ids = IdFactory(clock, rng)

    if chat_completer is _UNSET:
        chat_completer = build_completer(resolved, max_tokens=800)
    if breakdown_completer is _UNSET:
        breakdown_completer = build_completer(resolved, max_tokens=500, json_mode=True)

    app = FastAPI(title="Microsteps API", version=__version__)
    app.state.settings = resolved
    app.state.db_path = str(resolved.db_path)
    app.state.workspace = Workspace(db=StateDB(resolved.db_path), clock=clock, ids=ids)
    app.state.chat = ChatTurnProcessor(
        sessions=SessionTable(clock=clock),
        limiter=RateLimiter(resolved.chat_rate_limit, resolved.rate_limit_window_seconds, clock=clock),
        completer=chat_completer,  # type: ignore[arg-type]
        clock=clock,
        rng=rng,
        ids=ids,
    )
    app.state.breakdown = BreakdownService(
        limiter=RateLimiter(resolved.breakdown_rate_limit, resolved.rate_limit_window_seconds, clock=clock),
        completer=breakdown_completer,  # type: ignore[arg-type]
    )

    _install_error_handlers(app)
    if resolved.verbose_api_logging:
        _install_request_logging(app)

    app.include_router(health_router)
    app.include_router(meta_router)
    app.include_router(breakdown_router)
    app.include_router(chat_router)
    app.include_router(tasks_router)
    app.include_router(focus_router)
    app.include_router(sessions_router)
    app.include_router(stats_router)
    app.include_router(export_router)
    return app


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(MicrostepsError)
    async def handle_domain_error(request: Request, exc: MicrostepsError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("API_ERROR path=%s error=%s", request.url.path, exc.message)
            return JSONResponse({"error": "Internal server error"}, status_code=500)
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse({"error": _describe_validation(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("API_UNHANDLED path=%s", request.url.path)
        return JSONResponse({"error": "Internal server error"}, status_code=500)


def _describe_validation(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else str(message)


def _install_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_api_requests(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        started = time.monotonic()
        logger.info(
            "API_REQUEST method=%s path=%s query=%s",
            request.method,
            request.url.path,
            request.url.query,
        )
        response = await call_next(request)
        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "API_RESPONSE method=%s path=%s status=%s duration_ms=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response


def create_default_app() -> FastAPI:
    settings = Settings.from_env()
    return create_app(settings=settings)
