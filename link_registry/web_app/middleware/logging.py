"""Request logging middleware."""

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ...lib.common.logging_config import get_logger


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its outcome.

    Server errors are logged at ERROR and rejected requests at WARNING.
    Redirects and registrations also log their Location target.
    """

    def __init__(self, app, logger: logging.Logger = None):
        super().__init__(app)
        self.logger = logger or get_logger("web")

    async def dispatch(self, request: Request, call_next: Callable):
        started = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        response = await call_next(request)

        duration_ms = (time.perf_counter() - started) * 1000
        message = (
            f"{client_ip} {request.method} {request.url.path} -> "
            f"{response.status_code} ({duration_ms:.2f}ms)"
        )
        location = response.headers.get("location")
        if location:
            message += f" Location: {location}"

        if response.status_code >= 500:
            self.logger.error(message)
        elif response.status_code >= 400:
            self.logger.warning(message)
        else:
            self.logger.info(message)

        return response
