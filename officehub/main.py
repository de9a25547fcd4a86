import asyncio
from contextlib import suppress
from datetime import date, datetime, timezone
import logging
import time
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from officehub.db import engine
from officehub.errors import ApiError, error_response
from officehub.logging_utils import setup_json_logging
from officehub.routers import attendance, jobs, office, performance
from officehub.routers.crud import RESOURCES, build_crud_router
from officehub.services.schema_guard import SchemaGuardResult, verify_runtime_schema
from officehub.services.sweeps import run_due_sweeps
from officehub.settings import get_cors_origins, get_settings

settings = get_settings()
setup_json_logging(settings.log_level, service=settings.app_name)
logger = logging.getLogger("officehub.request")
sweep_worker_logger = logging.getLogger("officehub.sweep_worker")


app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid4())
    request.state.request_id = request_id

    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers["X-Request-Id"] = request_id
        return response
    finally:
        latency_ms = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            "request_complete",
            extra={
                "request_id": request_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": status_code,
                "latency_ms": latency_ms,
            },
        )


@app.exception_handler(ApiError)
async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    return error_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
    )


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    status_code = exc.status_code
    code_map = {
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
    }
    code = code_map.get(status_code, "HTTP_ERROR")
    message = str(exc.detail) if exc.detail else "Request failed."
    return error_response(
        request,
        status_code=status_code,
        code=code,
        message=message,
    )


def _validation_message(errors: list[dict[str, Any]]) -> str:
    missing = [
        ".".join(str(part) for part in error.get("loc", ())[1:]) or str(error.get("loc", ("",))[0])
        for error in errors
        if error.get("type") == "missing"
    ]
    if missing:
        return f"Required fields missing: {', '.join(missing)}"
    details = [
        f"{'.'.join(str(part) for part in error.get('loc', ())[1:])}: {error.get('msg', 'invalid value')}"
        for error in errors
    ]
    return f"Invalid request: {'; '.join(details)}"


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        request,
        status_code=400,
        code="VALIDATION_ERROR",
        message=_validation_message(list(exc.errors())),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_error",
        extra={
            "request_id": getattr(request.state, "request_id", "unknown"),
            "path": request.url.path,
            "method": request.method,
        },
    )
    return error_response(
        request,
        status_code=500,
        code="INTERNAL_ERROR",
        message=str(exc) or "Unexpected server error.",
    )


app.include_router(attendance.router)
app.include_router(performance.router)
app.include_router(office.router)
app.include_router(jobs.router)
for resource in RESOURCES:
    app.include_router(build_crud_router(resource))


def _default_schema_guard_result() -> SchemaGuardResult:
    return SchemaGuardResult(
        ok=False,
        checked_at_utc=datetime.now(timezone.utc),
        issues=["SCHEMA_GUARD_NOT_RUN"],
        warnings=[],
    )


async def _sweep_worker_loop(stop_event: asyncio.Event) -> None:
    interval_seconds = max(15, int(settings.sweep_worker_interval_seconds))
    last_runs: dict[str, date] = {}
    while not stop_event.is_set():
        try:
            outcomes = await asyncio.to_thread(run_due_sweeps, datetime.now(timezone.utc), last_runs)
        except Exception:
            sweep_worker_logger.exception("sweep_worker_tick_failed")
        else:
            if outcomes:
                sweep_worker_logger.info("sweep_worker_tick", extra={"outcomes": outcomes})

        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            continue


@app.on_event("startup")
async def run_schema_guard() -> None:
    result = await asyncio.to_thread(verify_runtime_schema, engine)
    app.state.schema_guard_result = result
    if result.ok:
        sweep_worker_logger.info(
            "schema_guard_ok",
            extra=result.to_dict(),
        )
        return

    sweep_worker_logger.error(
        "schema_guard_failed",
        extra=result.to_dict(),
    )
    if settings.schema_guard_strict:
        joined_issues = "; ".join(result.issues)
        raise RuntimeError(f"Runtime schema guard failed: {joined_issues}")


@app.on_event("startup")
async def start_sweep_worker() -> None:
    if not settings.sweep_worker_enabled:
        return
    if getattr(app.state, "sweep_worker_task", None) is not None:
        return

    stop_event = asyncio.Event()
    task = asyncio.create_task(_sweep_worker_loop(stop_event))
    app.state.sweep_worker_stop_event = stop_event
    app.state.sweep_worker_task = task
    sweep_worker_logger.info(
        "sweep_worker_started",
        extra={"interval_seconds": max(15, int(settings.sweep_worker_interval_seconds))},
    )


@app.on_event("shutdown")
async def stop_sweep_worker() -> None:
    stop_event: asyncio.Event | None = getattr(app.state, "sweep_worker_stop_event", None)
    task: asyncio.Task[None] | None = getattr(app.state, "sweep_worker_task", None)
    if stop_event is not None:
        stop_event.set()
    if task is not None:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
    app.state.sweep_worker_stop_event = None
    app.state.sweep_worker_task = None


@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "Office Management is cooking"


@app.get("/health")
def health() -> dict[str, Any]:
    schema_guard_result: SchemaGuardResult = getattr(app.state, "schema_guard_result", _default_schema_guard_result())
    return {
        "status": "ok",
        "schema_guard": schema_guard_result.to_dict(),
        "sweep_worker_running": getattr(app.state, "sweep_worker_task", None) is not None,
    }
