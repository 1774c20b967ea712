"""Logging for the catalog service.

Every record carries the id of the request it was emitted under, so a
line from the service or a storage engine can be matched to the
``-->``/``<--`` lines the middleware writes for that request.  Outside a
request the id is ``-``.
"""

import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from autoab_catalog.config import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(request_id)s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Catalog query parameters worth echoing on the request line
LOGGED_PARAMS = (
    "search",
    "q",
    "field",
    "disease",
    "autoantibody",
    "autoantigen",
    "epitope",
    "sortBy",
    "sortOrder",
    "page",
    "limit",
    "includeStats",
    "format",
)
MAX_PARAM_LENGTH = 60

request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIdFilter(logging.Filter):
    """Stamp each record with the current request id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def setup_logging() -> logging.Logger:
    """Configure application logging."""
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(RequestIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.addHandler(console_handler)

    logger = logging.getLogger("autoab_catalog")
    logger.setLevel(log_level)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("duckdb").setLevel(logging.WARNING)

    return logger


logger = setup_logging()


def describe_query(request: Request) -> str:
    """Catalog parameters of *request* as ``name=value`` pairs, long values cut."""
    parts = []
    for name in LOGGED_PARAMS:
        value = request.query_params.get(name)
        if value is None:
            continue
        if len(value) > MAX_PARAM_LENGTH:
            value = value[:MAX_PARAM_LENGTH] + "..."
        parts.append(f"{name}={value!r}" if " " in value else f"{name}={value}")
    return " ".join(parts)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log catalog requests with their query, outcome and timing.

    The request id is generated here, exposed as ``X-Request-ID`` and held
    in :data:`request_id_var` while the request is handled.  Liveness
    checks are passed straight through.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path.endswith("/health/live"):
            return await call_next(request)

        request_id = uuid.uuid4().hex[:8]
        token = request_id_var.set(request_id)
        method = request.method
        query = describe_query(request)
        client_ip = request.client.host if request.client else "unknown"

        try:
            logger.info(
                f"--> {method} {path}" + (f" | {query}" if query else "") + f" | client={client_ip}"
            )

            start_time = time.perf_counter()
            try:
                response = await call_next(request)
            except Exception as e:
                elapsed = (time.perf_counter() - start_time) * 1000
                logger.error(
                    f"<-- {method} {path} | "
                    f"error={type(e).__name__}: {str(e)[:100]} | time={elapsed:.1f}ms"
                )
                raise

            elapsed = (time.perf_counter() - start_time) * 1000
            status = response.status_code
            log_func = logger.info if status < 400 else logger.warning
            log_func(f"<-- {method} {path} | status={status} | time={elapsed:.1f}ms")
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.1f}ms"
        return response
