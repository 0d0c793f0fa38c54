"""
Маппинг доменных моделей <-> camelCase JSON backend API.
"""

from __future__ import annotations

from typing import Any

from party_meetings.common.time import parse_iso, to_iso
from party_meetings.domain.enums import ArtifactType, AttendeeType, MeetingStatus
from party_meetings.domain.models import (
    ArtifactInput,
    InternalIdentity,
    MeetingDetails,
    MeetingSession,
    ReconciledParticipant,
)


def _enum_or_none(enum_cls, raw: Any):
    if raw is None or raw == "":
        return None
    try:
        return enum_cls(raw)
    except ValueError:
        return None


def session_to_dto(session: MeetingSession) -> dict[str, Any]:
    dto: dict[str, Any] = {
        "organizerId": session.organizer_id,
        "partyId": session.party_id,
        "title": session.title,
        "scheduledStartTime": to_iso(session.scheduled_start),
        "scheduledEndTime": to_iso(session.scheduled_end),
        "meetingLink": session.join_link,
        "actualStartTime": to_iso(session.actual_start),
        "actualEndTime": to_iso(session.actual_end),
    }
    if session.id:
        dto["meetingId"] = session.id
    if session.meeting_code:
        dto["meetingCode"] = session.meeting_code
    if session.space_name:
        dto["spaceName"] = session.space_name
    if session.status is not None:
        dto["status"] = session.status.value
    return dto


def session_from_dto(dto: dict[str, Any]) -> MeetingSession:
    start = parse_iso(dto.get("scheduledStartTime"))
    end = parse_iso(dto.get("scheduledEndTime"))
    actual_start = parse_iso(dto.get("actualStartTime"))
    if start is None:
        start = actual_start
    if start is None:
        raise ValueError("scheduledStartTime is required")
    return MeetingSession(
        id=str(dto["meetingId"]) if dto.get("meetingId") else None,
        party_id=str(dto.get("partyId") or ""),
        organizer_id=str(dto.get("organizerId") or ""),
        title=str(dto.get("title") or ""),
        scheduled_start=start,
        scheduled_end=end or start,
        join_link=str(dto.get("meetingLink") or ""),
        actual_start=actual_start,
        actual_end=parse_iso(dto.get("actualEndTime")),
        meeting_code=dto.get("meetingCode") or None,
        space_name=dto.get("spaceName") or None,
        status=_enum_or_none(MeetingStatus, dto.get("status")),
    )


def participant_to_dto(p: ReconciledParticipant) -> dict[str, Any]:
    return {
        "meetingId": p.session_id,
        "userId": p.user_id,
        "roleInMeeting": p.role_in_meeting,
        "joinTime": to_iso(p.join_time),
        "leaveTime": to_iso(p.leave_time),
        "type": p.type.value if p.type else None,
        "displayName": p.display_name,
    }


def participant_from_dto(dto: dict[str, Any]) -> ReconciledParticipant:
    return ReconciledParticipant(
        user_id=str(dto.get("userId") or ""),
        role_in_meeting=str(dto.get("roleInMeeting") or "participant"),
        join_time=parse_iso(dto.get("joinTime")),
        leave_time=parse_iso(dto.get("leaveTime")),
        type=_enum_or_none(AttendeeType, dto.get("type")),
        display_name=dto.get("displayName") or None,
        session_id=str(dto["meetingId"]) if dto.get("meetingId") else None,
    )


def artifact_to_dto(a: ArtifactInput) -> dict[str, Any]:
    dto: dict[str, Any] = {
        "artifactType": a.artifact_type.value,
        "url": a.url,
        "state": a.state,
        "exportUri": a.export_uri,
    }
    if a.provider_document_id:
        key = "driveFileId" if a.artifact_type == ArtifactType.recording else "docsDocumentId"
        dto[key] = a.provider_document_id
    return dto


def details_from_dto(dto: dict[str, Any]) -> MeetingDetails:
    raw_participants = dto.get("participants")
    participants = [
        participant_from_dto(p) for p in (raw_participants or []) if isinstance(p, dict)
    ]
    return MeetingDetails(
        session=session_from_dto(dto.get("meeting") or {}),
        participants=participants,
        summary_text=dto.get("summaryText") or None,
    )


def identity_from_member_dto(dto: dict[str, Any]) -> InternalIdentity | None:
    member_id = dto.get("authUserId") or dto.get("userId")
    if not member_id:
        return None
    return InternalIdentity(
        party_member_id=str(member_id),
        username=dto.get("username") or None,
        first_name=dto.get("firstName") or None,
        last_name=dto.get("lastName") or None,
        email=dto.get("email") or None,
    )
