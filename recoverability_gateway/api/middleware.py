"""FastAPI middleware for request tracing and metrics"""

import uuid
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from recoverability_gateway.infrastructure.observability.metrics import request_duration_histogram

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagate the caller's request ID, or mint one, for log correlation"""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class MetricsMiddleware(BaseHTTPMiddleware):
    """Record HTTP request latency labelled by route template"""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        request_duration_histogram.labels(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
        ).observe(time.perf_counter() - start_time)

        return response
