"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP et métier (écritures de script, conflits, échecs de génération)
ainsi que l'endpoint `/metrics` et le middleware de mesure des requêtes.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Script versioning metrics
SCRIPT_WRITES = Counter(
    "script_writes_total",
    "Accepted script mutations (new versions committed)",
    ["op", "source"],
)
SCRIPT_CONFLICTS = Counter(
    "script_conflicts_total",
    "Writes rejected by the optimistic concurrency check",
    ["op"],
)
SCRIPT_GENERATION_FAILURES = Counter(
    "script_generation_failures_total",
    "AI rewrites rejected before commit",
    ["op", "reason"],
)
LLM_LATENCY = Histogram(
    "llm_latency_seconds",
    "Latency of text generation calls",
    ["op"],
)


@metrics_router.get("/metrics")
def metrics():
    """Exposition texte Prometheus (compteurs HTTP et métier)."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Compte les requêtes et mesure leur latence par route. Le label de route
    utilise le gabarit FastAPI (`/presenters/{presenter_id}/script`) pour borner la cardinalité.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        route_obj = request.scope.get("route")
        route = getattr(route_obj, "path", None) or "unmatched"
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
