"""
API Gateway (FastAPI).

Функции:
- /health
- /metrics
- HTTP API жизненного цикла встреч party (/v1)
"""

from __future__ import annotations

from typing import Any

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from apps.api_gateway.routers.meetings import router as meetings_router
from party_meetings import __version__
from party_meetings.common.config import get_settings
from party_meetings.common.logging import get_project_logger, setup_logging
from party_meetings.common.metrics import setup_metrics_endpoint

log = get_project_logger()


def _parse_origins(raw: str) -> list[str]:
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return origins or ["*"]


def _is_prod_env(app_env: str | None) -> bool:
    env = (app_env or "").strip().lower()
    return env in {"prod", "production"}


def _cors_params() -> tuple[list[str], bool]:
    settings = get_settings()
    allow_origins = _parse_origins(settings.cors_allowed_origins)
    allow_credentials = bool(settings.cors_allow_credentials)

    if _is_prod_env(settings.app_env) and "*" in allow_origins:
        raise RuntimeError("CORS wildcard '*' запрещён в APP_ENV=prod")

    # '*' нельзя использовать вместе с credentials=true
    if "*" in allow_origins:
        allow_credentials = False

    return allow_origins, allow_credentials


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Party Meetings", version=__version__)
    allow_origins, allow_credentials = _cors_params()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=allow_credentials,
    )

    setup_metrics_endpoint(app, service=settings.service_name)

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"ok": True, "service": settings.service_name}

    app.include_router(meetings_router, prefix="/v1")
    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=int(settings.api_port), log_config=None)


setup_logging()
log.info("api_gateway_boot", extra={"payload": {"version": __version__}})

app = create_app()
