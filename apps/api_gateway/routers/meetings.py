"""
HTTP роуты встреч party.

- GET  /v1/parties/{party_id}/meetings
- GET  /v1/parties/{party_id}/meetings/active
- POST /v1/parties/{party_id}/meetings
- POST /v1/parties/{party_id}/meetings/{meeting_id}/end
- POST /v1/parties/{party_id}/meetings/{meeting_id}/sync-recordings
- GET  /v1/meetings/{meeting_id}

Авторизация: Depends(auth_dep)
"""

from __future__ import annotations

from typing import NoReturn

from fastapi import APIRouter, Depends, HTTPException, status

from apps.api_gateway.deps import auth_dep, get_controller
from party_meetings.common.errors import AppError, ErrCode
from party_meetings.common.logging import get_project_logger
from party_meetings.common.security import AuthContext
from party_meetings.contracts.http_api import (
    ActiveMeetingResponse,
    MeetingCreateRequest,
    MeetingCreateResponse,
    MeetingDetailsResponse,
    MeetingEndRequest,
    MeetingEndResponse,
    MeetingListResponse,
    MeetingSessionOut,
)
from party_meetings.domain.models import MeetingSession, TimeWindow
from party_meetings.services.meeting_session_service import MeetingSessionController

log = get_project_logger()

router = APIRouter()

_STATUS_BY_CODE = {
    ErrCode.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrCode.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrCode.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrCode.CANCELLED: status.HTTP_409_CONFLICT,
    ErrCode.SESSION_FINALIZE_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrCode.CONNECTOR_PROVIDER_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrCode.TOKEN_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrCode.PERSISTENCE_ERROR: status.HTTP_502_BAD_GATEWAY,
}


def _raise_http(e: AppError) -> NoReturn:
    code = _STATUS_BY_CODE.get(e.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    raise HTTPException(
        status_code=code,
        detail={"code": e.code, "message": e.message, "details": e.details or {}},
    ) from e


def _find_session(
    controller: MeetingSessionController, party_id: str, meeting_id: str
) -> MeetingSession:
    for s in controller.list_party_meetings(party_id):
        if s.id == meeting_id:
            return s
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={
            "code": ErrCode.NOT_FOUND,
            "message": "Встреча не найдена",
            "details": {"party_id": party_id, "meeting_id": meeting_id},
        },
    )


@router.get("/parties/{party_id}/meetings", response_model=MeetingListResponse)
def list_meetings(
    party_id: str,
    ctx: AuthContext = Depends(auth_dep),
    controller: MeetingSessionController = Depends(get_controller),
) -> MeetingListResponse:
    _ = ctx
    try:
        sessions = controller.list_party_meetings(party_id)
    except AppError as e:
        _raise_http(e)
    return MeetingListResponse(
        party_id=party_id, meetings=[MeetingSessionOut.from_domain(s) for s in sessions]
    )


@router.get("/parties/{party_id}/meetings/active", response_model=ActiveMeetingResponse)
def active_meeting(
    party_id: str,
    ctx: AuthContext = Depends(auth_dep),
    controller: MeetingSessionController = Depends(get_controller),
) -> ActiveMeetingResponse:
    _ = ctx
    try:
        active = controller.active_for_party(party_id)
    except AppError as e:
        _raise_http(e)
    return ActiveMeetingResponse(
        party_id=party_id, active=MeetingSessionOut.from_domain(active) if active else None
    )


@router.post("/parties/{party_id}/meetings", response_model=MeetingCreateResponse)
def create_meeting(
    party_id: str,
    req: MeetingCreateRequest,
    ctx: AuthContext = Depends(auth_dep),
    controller: MeetingSessionController = Depends(get_controller),
) -> MeetingCreateResponse:
    window = None
    if req.scheduled_start and req.scheduled_end:
        window = TimeWindow(start=req.scheduled_start, end=req.scheduled_end)
    try:
        session = controller.create(
            party_id, organizer_id=req.organizer_id, title=req.title, window=window
        )
    except AppError as e:
        _raise_http(e)
    log.info(
        "meeting_created_via_api",
        extra={"payload": {"party_id": party_id, "meeting_id": session.id, "subject": ctx.subject}},
    )
    return MeetingCreateResponse(meeting=MeetingSessionOut.from_domain(session))


@router.post("/parties/{party_id}/meetings/{meeting_id}/end", response_model=MeetingEndResponse)
def end_meeting(
    party_id: str,
    meeting_id: str,
    req: MeetingEndRequest | None = None,
    ctx: AuthContext = Depends(auth_dep),
    controller: MeetingSessionController = Depends(get_controller),
) -> MeetingEndResponse:
    try:
        session = _find_session(controller, party_id, meeting_id)
        if req is not None and req.organizer_id and req.organizer_id != session.organizer_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "code": ErrCode.FORBIDDEN,
                    "message": "Завершить встречу может только организатор",
                    "details": {"meeting_id": meeting_id},
                },
            )
        report = controller.end(session)
    except AppError as e:
        _raise_http(e)
    log.info(
        "meeting_ended_via_api",
        extra={"payload": {"party_id": party_id, "meeting_id": meeting_id, "subject": ctx.subject}},
    )
    return MeetingEndResponse.from_report(report)


@router.post(
    "/parties/{party_id}/meetings/{meeting_id}/sync-recordings",
    response_model=MeetingCreateResponse,
)
def sync_recordings(
    party_id: str,
    meeting_id: str,
    ctx: AuthContext = Depends(auth_dep),
    controller: MeetingSessionController = Depends(get_controller),
) -> MeetingCreateResponse:
    _ = ctx
    try:
        session = controller.sync_recordings(_find_session(controller, party_id, meeting_id))
    except AppError as e:
        _raise_http(e)
    return MeetingCreateResponse(meeting=MeetingSessionOut.from_domain(session))


@router.get("/meetings/{meeting_id}", response_model=MeetingDetailsResponse)
def get_meeting(
    meeting_id: str,
    ctx: AuthContext = Depends(auth_dep),
    controller: MeetingSessionController = Depends(get_controller),
) -> MeetingDetailsResponse:
    _ = ctx
    try:
        details = controller.meeting_details(meeting_id)
    except AppError as e:
        _raise_http(e)
    return MeetingDetailsResponse.from_domain(details)
