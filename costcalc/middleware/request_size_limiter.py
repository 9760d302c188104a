"""
Request size limiting middleware for FastAPI.
Protects the calculation endpoints from oversized payloads.
"""
import logging
from typing import Set

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp

from costcalc.core.config import config


logger = logging.getLogger(__name__)


# Endpoints that require size limiting
PROTECTED_ENDPOINTS: Set[str] = {
    "/api/calculator/calculate",
    "/api/calculator/batch",
}


def _too_large_response(limit: int) -> JSONResponse:
    return JSONResponse(
        status_code=413,
        content={
            "success": False,
            "error": "request_too_large",
            "message": f"Request body size exceeds allowed limit of {limit} bytes.",
        },
    )


class RequestSizeLimiterMiddleware(BaseHTTPMiddleware):
    """
    FastAPI middleware for request size limiting.

    Applies the limit to POST requests on the configured endpoints only.
    Other routes pass through untouched.
    """

    def __init__(self, app: ASGIApp, max_bytes: int = config.MAX_REQUEST_BYTES):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next):
        """
        Process request and apply the size limit if applicable.

        Args:
            request: FastAPI request object
            call_next: Next middleware or route handler

        Returns:
            Response object
        """
        path = request.url.path
        if request.method != "POST" or path not in PROTECTED_ENDPOINTS:
            return await call_next(request)

        # Check Content-Length header if present
        content_length = request.headers.get("Content-Length")
        if content_length:
            try:
                declared_size = int(content_length)
            except ValueError:
                # Invalid header, the body is measured below
                declared_size = None
            if declared_size is not None and declared_size > self.max_bytes:
                logger.info(
                    f"Request body size exceeded for {path}: "
                    f"{declared_size} bytes (limit: {self.max_bytes})"
                )
                return _too_large_response(self.max_bytes)

        body_bytes = await request.body()
        if len(body_bytes) > self.max_bytes:
            logger.info(
                f"Request body size exceeded for {path}: "
                f"{len(body_bytes)} bytes (limit: {self.max_bytes})"
            )
            return _too_large_response(self.max_bytes)

        # Restore the body so the route handler can read it again
        async def receive():
            return {"type": "http.request", "body": body_bytes, "more_body": False}

        request._receive = receive
        return await call_next(request)
