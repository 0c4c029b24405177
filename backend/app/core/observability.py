r"""backend\app\core\observability.py"""

from __future__ import annotations

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Callable

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

LOGGER = logging.getLogger("bookstore.access")

_REQUEST_COUNTER = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "path", "status"]
)
_LATENCY_HISTOGRAM = Histogram(
    "http_request_latency_seconds", "Request latency", ["method", "path"]
)

RECONCILIATION_ISSUES = Counter(
    "timeline_reconciliation_issues_total",
    "Timeline points that could not be placed in date order",
    ["code"],
)
APPROVALS_DISPATCHED = Counter(
    "order_approvals_dispatched_total",
    "Order suggestions approved through the dashboard",
    ["mode"],
)
PROFITABILITY_DEGENERATE = Counter(
    "profitability_degenerate_ranges_total",
    "Profitability requests whose margins were all equal",
)


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging once; uvicorn's own handlers are left alone."""

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """Middleware emitting a JSON access log line and Prometheus metrics."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        method = request.method
        client_ip = request.client.host if request.client else "unknown"
        request_id = (
            request.headers.get("x-request-id")
            or request.headers.get("request-id")
            or str(uuid.uuid4())
        )
        start_perf = time.perf_counter()
        start_wall = time.time()

        def _finalize(response: Response) -> Response:
            latency = time.perf_counter() - start_perf
            status_code = getattr(response, "status_code", 500)

            try:
                _REQUEST_COUNTER.labels(method, path, str(status_code)).inc()
                _LATENCY_HISTOGRAM.labels(method, path).observe(latency)
            except Exception:
                # Metrics errors should never break request handling.
                LOGGER.debug("Failed to record request metrics", exc_info=True)

            log_payload = {
                "timestamp": datetime.fromtimestamp(start_wall, tz=timezone.utc).isoformat(),
                "path": path,
                "method": method,
                "status": status_code,
                "latency_ms": int(latency * 1000),
                "request_id": request_id,
                "client_ip": client_ip,
            }
            LOGGER.info(json.dumps(log_payload))
            response.headers.setdefault("x-request-id", request_id)
            return response

        try:
            response = await call_next(request)
        except Exception:
            # Even if downstream fails we still want metrics/logs; re-raise after logging.
            _finalize(PlainTextResponse("Internal Server Error", status_code=500))
            raise

        return _finalize(response)


def metrics_endpoint() -> Response:
    """Return Prometheus metrics payload."""

    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
