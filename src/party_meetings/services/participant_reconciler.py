"""
ParticipantReconciler.

Сопоставляет участников по данным провайдера с участниками party:
- три ключа поиска: username, "first last", email (trim + lower)
- display name сверяется с username, затем с полным именем; затем email
- несопоставленные участники отбрасываются (не ошибка: иначе невалидный FK в backend)
- организатор добавляется, если его нет среди сопоставленных
- дедупликация по user_id, последняя запись побеждает
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from party_meetings.common.logging import get_project_logger
from party_meetings.common.metrics import PARTICIPANTS_DROPPED_TOTAL
from party_meetings.common.time import parse_iso, utc_now
from party_meetings.connectors.base import ConferencingProvider
from party_meetings.connectors.meet.payloads import list_items, nested
from party_meetings.domain.enums import AttendeeType
from party_meetings.domain.models import (
    ExternalAttendeeRecord,
    InternalIdentity,
    ReconciledParticipant,
)

log = get_project_logger()

ORGANIZER_ROLE = "organizer"
DEFAULT_ROLE = "participant"


def normalize(value: str | None) -> str:
    return (value or "").strip().lower()


def _attendee_type(item: dict) -> AttendeeType | None:
    if isinstance(item.get("signedinUser"), dict):
        return AttendeeType.signed_in
    if isinstance(item.get("anonymousUser"), dict):
        return AttendeeType.anonymous
    if isinstance(item.get("phoneUser"), dict):
        return AttendeeType.phone
    raw = normalize(item.get("type") or item.get("participantType"))
    try:
        return AttendeeType(raw) if raw else None
    except ValueError:
        return None


def attendee_from_payload(item: dict) -> ExternalAttendeeRecord:
    display_name = (
        nested(item, "signedinUser", "displayName")
        or nested(item, "anonymousUser", "displayName")
        or nested(item, "phoneUser", "displayName")
        or item.get("displayName")
    )
    email = nested(item, "signedinUser", "email") or item.get("email")
    return ExternalAttendeeRecord(
        role=str(item.get("role") or item.get("participantRole") or DEFAULT_ROLE),
        type=_attendee_type(item),
        display_name=str(display_name) if display_name else None,
        email=str(email) if email else None,
        earliest_join_time=parse_iso(item.get("earliestStartTime") or item.get("joinTime")),
        end_time=parse_iso(
            item.get("latestEndTime") or item.get("endTime") or item.get("leaveTime")
        ),
    )


def fetch_attendees(
    provider: ConferencingProvider, token: str, conference_id: str
) -> list[ExternalAttendeeRecord]:
    payload = provider.list_participants(token, conference_id)
    return [attendee_from_payload(p) for p in list_items(payload, "participants")]


class _RosterIndex:
    def __init__(self, roster: Iterable[InternalIdentity]) -> None:
        self.by_username: dict[str, InternalIdentity] = {}
        self.by_full_name: dict[str, InternalIdentity] = {}
        self.by_email: dict[str, InternalIdentity] = {}
        for identity in roster:
            if normalize(identity.username):
                self.by_username[normalize(identity.username)] = identity
            if normalize(identity.full_name):
                self.by_full_name[normalize(identity.full_name)] = identity
            if normalize(identity.email):
                self.by_email[normalize(identity.email)] = identity

    def match(self, attendee: ExternalAttendeeRecord) -> InternalIdentity | None:
        name = normalize(attendee.display_name)
        if name:
            found = self.by_username.get(name) or self.by_full_name.get(name)
            if found is not None:
                return found
        email = normalize(attendee.email)
        if email:
            return self.by_email.get(email)
        return None


def reconcile(
    attendees: Iterable[ExternalAttendeeRecord],
    roster: Iterable[InternalIdentity],
    *,
    organizer_id: str,
    session_start: datetime | None,
    session_id: str | None = None,
    now: datetime | None = None,
) -> list[ReconciledParticipant]:
    roster = list(roster)
    index = _RosterIndex(roster)
    matched: list[ReconciledParticipant] = []
    dropped = 0

    for attendee in attendees:
        identity = index.match(attendee)
        if identity is None:
            dropped += 1
            log.info(
                "reconcile_attendee_unmatched",
                extra={
                    "payload": {
                        "role": attendee.role,
                        "type": getattr(attendee.type, "value", None),
                    }
                },
            )
            continue
        matched.append(
            ReconciledParticipant(
                user_id=identity.party_member_id,
                role_in_meeting=attendee.role,
                join_time=attendee.earliest_join_time,
                leave_time=attendee.end_time,
                type=attendee.type,
                display_name=attendee.display_name,
                session_id=session_id,
            )
        )

    if organizer_id and not any(p.user_id == organizer_id for p in matched):
        organizer = next((i for i in roster if i.party_member_id == organizer_id), None)
        matched.append(
            ReconciledParticipant(
                user_id=organizer_id,
                role_in_meeting=ORGANIZER_ROLE,
                join_time=session_start,
                leave_time=now or utc_now(),
                type=AttendeeType.signed_in,
                display_name=organizer.display_name if organizer else None,
                session_id=session_id,
            )
        )

    deduped: dict[str, ReconciledParticipant] = {}
    for p in matched:
        deduped[p.user_id] = p

    if dropped:
        PARTICIPANTS_DROPPED_TOTAL.inc(dropped)
    log.info(
        "reconcile_participants_done",
        extra={
            "payload": {
                "session_id": session_id,
                "matched": len(matched),
                "dropped": dropped,
                "result": len(deduped),
            }
        },
    )
    return list(deduped.values())
