import time

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

router = APIRouter()

# Prefixed so they sit next to the reminder_* sweep counters
HTTP_REQUESTS = Counter(
    "reminderbot_http_requests_total",
    "HTTP requests served",
    ["method", "endpoint", "http_status"],
)
HTTP_LATENCY = Histogram(
    "reminderbot_http_request_duration_seconds",
    "Time spent serving HTTP requests",
    ["endpoint"],
)
HTTP_EXCEPTIONS = Counter(
    "reminderbot_http_exceptions_total",
    "Requests that ended in an unhandled exception",
    ["endpoint"],
)


@router.get("")
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def _endpoint_label(request: Request) -> str:
    # Route template, so /internals/reminders/{phone} is one series, not one per number
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


async def metrics_middleware(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        HTTP_EXCEPTIONS.labels(endpoint=_endpoint_label(request)).inc()
        raise

    endpoint = _endpoint_label(request)
    HTTP_LATENCY.labels(endpoint=endpoint).observe(time.perf_counter() - started)
    HTTP_REQUESTS.labels(request.method, endpoint, response.status_code).inc()
    return response
