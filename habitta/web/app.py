"""FastAPI application for Habitta's prediction and planning operations."""

from __future__ import annotations

import time
from uuid import uuid4

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.middleware.base import BaseHTTPMiddleware

from habitta import __version__
from habitta.core.logging import configure_logging
from habitta.web.routes import maintenance, predictions

configure_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="Habitta",
    description="Home system predictions and seasonal maintenance planning",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id for every log line and echo it on the response."""

    async def dispatch(self, request: Request, call_next):
        structlog.contextvars.clear_contextvars()
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error("request_failed", error=str(exc))
            raise

        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        response.headers["X-Request-ID"] = request_id
        return response


app.add_middleware(RequestLoggingMiddleware)

Instrumentator().instrument(app).expose(app)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(predictions.router)
app.include_router(maintenance.router)
