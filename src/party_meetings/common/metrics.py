"""
Метрики Prometheus для сервиса.

Назначение:
- Экспорт /metrics
- Счётчики жизненного цикла сессий и гистограммы шагов пайплайна end
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# =============================================================================
# СЧЁТЧИКИ И МЕТРИКИ
# =============================================================================

REQUESTS_TOTAL = Counter(
    "party_meetings_requests_total",
    "Общее количество HTTP запросов",
    ["service", "route", "method", "status"],
)

HTTP_REQUEST_LATENCY_MS = Histogram(
    "party_meetings_http_request_latency_ms",
    "Задержка HTTP запроса (мс)",
    ["service", "route", "method"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)

PIPELINE_STEP_LATENCY_MS = Histogram(
    "party_meetings_pipeline_step_latency_ms",
    "Задержка шагов пайплайна завершения встречи (мс)",
    ["step"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)

SESSIONS_CREATED_TOTAL = Counter(
    "party_meetings_sessions_created_total",
    "Созданные сессии встреч",
    ["trigger"],  # manual|successor
)

SESSIONS_ENDED_TOTAL = Counter(
    "party_meetings_sessions_ended_total",
    "Попытки завершения сессий встреч",
    ["result"],  # ok|finalize_failed|error|conflict|cancelled
)

PARTICIPANTS_DROPPED_TOTAL = Counter(
    "party_meetings_participants_dropped_total",
    "Участники провайдера без сопоставления с party",
)

ARTIFACTS_COLLECTED_TOTAL = Counter(
    "party_meetings_artifacts_collected_total",
    "Собранные артефакты встреч",
    ["artifact_type"],
)


@contextmanager
def track_step_latency(step: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - started) * 1000
        PIPELINE_STEP_LATENCY_MS.labels(step=step).observe(elapsed_ms)


def record_session_end(result: str) -> None:
    SESSIONS_ENDED_TOTAL.labels(result=result).inc()


def setup_metrics_endpoint(app: FastAPI, *, service: str = "api-gateway") -> None:
    """
    Регистрирует endpoint /metrics для Prometheus.
    """

    @app.middleware("http")
    async def http_metrics(request: Request, call_next):
        route = request.url.path
        method = request.method
        started = time.perf_counter()

        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        status_code = str(response.status_code)

        REQUESTS_TOTAL.labels(
            service=service,
            route=route,
            method=method,
            status=status_code,
        ).inc()
        HTTP_REQUEST_LATENCY_MS.labels(
            service=service,
            route=route,
            method=method,
        ).observe(elapsed_ms)
        return response

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
