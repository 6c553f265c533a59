"""Request logging middleware."""

import time
import uuid
from typing import Optional, Set

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from .logger import get_logger


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one structured line per request and tags the response with a request id.

    Example:
        ```python
        app.add_middleware(
            RequestLoggingMiddleware,
            service_name="todokeeper",
            add_request_id_header=True,
            logger=logger,
        )
        ```
    """

    default_ignored_paths = {"/favicon.ico", "/docs", "/openapi.json"}

    def __init__(
        self,
        app,
        service_name: str = "todokeeper",
        add_request_id_header: bool = True,
        ignored_paths: Optional[Set[str]] = None,
        logger=None,
    ):
        super().__init__(app)
        self.service_name = service_name
        self.add_request_id_header = add_request_id_header
        self.ignored_paths = ignored_paths if ignored_paths is not None else self.default_ignored_paths
        self.logger = logger or get_logger("requests")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(
                "Request failed",
                service=self.service_name,
                method=request.method,
                path=request.url.path,
                request_id=request_id,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise

        if request.url.path not in self.ignored_paths:
            self.logger.info(
                "Request handled",
                service=self.service_name,
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                request_id=request_id,
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )

        if self.add_request_id_header:
            response.headers["X-Request-ID"] = request_id
        return response
