"""
FastAPI Depends.

Сюда выносим:
- проверку авторизации (X-API-Key)
- сборку MeetingSessionController (один на процесс)
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Header, HTTPException, Request, status

from party_meetings.common.errors import UnauthorizedError
from party_meetings.common.logging import get_project_logger
from party_meetings.common.security import AuthContext, require_auth
from party_meetings.services.meeting_session_service import (
    MeetingSessionController,
    build_meeting_controller,
)

log = get_project_logger()


def _request_meta(request: Request | None) -> tuple[str, str, str | None]:
    if request is None:
        return "unknown", "UNKNOWN", None
    client_ip = request.client.host if request.client else None
    return request.url.path, request.method, client_ip


def auth_dep(
    request: Request,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
) -> AuthContext:
    """
    Проверка авторизации для HTTP.
    """
    endpoint, method, client_ip = _request_meta(request)
    try:
        ctx = require_auth(x_api_key=x_api_key)
    except UnauthorizedError as e:
        log.warning(
            "security_audit_deny",
            extra={
                "payload": {
                    "endpoint": endpoint,
                    "method": method,
                    "reason": e.message,
                    "error_code": e.code,
                    "client_ip": client_ip,
                }
            },
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": e.code, "message": e.message},
        ) from e
    log.info(
        "security_audit_allow",
        extra={
            "payload": {
                "endpoint": endpoint,
                "method": method,
                "subject": ctx.subject,
                "auth_type": ctx.auth_type,
            }
        },
    )
    return ctx


@lru_cache(maxsize=1)
def get_controller() -> MeetingSessionController:
    return build_meeting_controller()
