"""HTTP middleware: request tracing and last-resort error responses."""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .exceptions import WorkflowEngineError, create_error_response, get_status_code_for_error
from .logging import get_logger, logging_context

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an ID and turns escaped errors into JSON responses.

    Endpoints translate expected errors themselves; this only catches what
    slips through, such as failures inside dependencies.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        with logging_context(request_id=request_id, path=request.url.path):
            try:
                response = await call_next(request)
            except WorkflowEngineError as e:
                logger.warning(
                    f"{request.method} {request.url.path} failed with {e.error_code}: {e.message}",
                    extra={"extra_fields": {"error_details": e.to_dict()}}
                )
                response = JSONResponse(
                    status_code=get_status_code_for_error(e),
                    content=create_error_response(e)
                )
            except Exception as e:
                logger.error(f"Unhandled error on {request.method} {request.url.path}: {e}", exc_info=True)
                response = JSONResponse(
                    status_code=500,
                    content={
                        "error": "InternalServerError",
                        "message": "An unexpected error occurred",
                        "details": {
                            "error_type": type(e).__name__,
                            "timestamp": datetime.now(timezone.utc).isoformat()
                        },
                        "request_id": request_id
                    }
                )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its status and timing."""

    def __init__(self, app, slow_request_threshold: float = 5.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - started

        message = f"{request.method} {request.url.path} -> {response.status_code} in {duration:.3f}s"
        if duration > self.slow_request_threshold:
            logger.warning(f"Slow request: {message} (threshold {self.slow_request_threshold}s)")
        else:
            logger.info(message)

        response.headers["X-Response-Time"] = f"{duration:.3f}s"
        return response
