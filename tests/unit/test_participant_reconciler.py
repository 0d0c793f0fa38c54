from __future__ import annotations

from datetime import UTC, datetime, timedelta

from party_meetings.domain.enums import AttendeeType
from party_meetings.domain.models import ExternalAttendeeRecord, InternalIdentity
from party_meetings.services.participant_reconciler import (
    ORGANIZER_ROLE,
    attendee_from_payload,
    reconcile,
)

T0 = datetime(2026, 3, 2, 17, 0, tzinfo=UTC)
NOW = T0 + timedelta(minutes=45)

ROSTER = [
    InternalIdentity(party_member_id="org", username="captain", first_name="Olga", last_name="Orlova"),
    InternalIdentity(party_member_id="u-a", username="alice", first_name="Alice", last_name="Smith"),
    InternalIdentity(
        party_member_id="u-b",
        username="bobby",
        first_name="Bob",
        last_name="Brown",
        email="bob@example.com",
    ),
]


def _attendee(name: str | None, *, email: str | None = None, joined_min: int = 0) -> ExternalAttendeeRecord:
    return ExternalAttendeeRecord(
        role="participant",
        type=AttendeeType.signed_in,
        display_name=name,
        email=email,
        earliest_join_time=T0 + timedelta(minutes=joined_min),
        end_time=T0 + timedelta(minutes=joined_min + 20),
    )


def test_two_matched_one_unmatched_plus_synthesized_organizer() -> None:
    attendees = [
        _attendee("  ALICE "),
        _attendee("Unknown Person", email="bob@example.com"),
        _attendee("Mallory Stranger", email="mallory@example.com"),
    ]
    out = reconcile(attendees, ROSTER, organizer_id="org", session_start=T0, session_id="m-1", now=NOW)

    by_user = {p.user_id: p for p in out}
    assert set(by_user) == {"org", "u-a", "u-b"}
    organizer = by_user["org"]
    assert organizer.role_in_meeting == ORGANIZER_ROLE
    assert organizer.join_time == T0
    assert organizer.leave_time == NOW
    assert organizer.type == AttendeeType.signed_in
    assert all(p.session_id == "m-1" for p in out)


def test_full_name_match() -> None:
    out = reconcile([_attendee("alice smith")], ROSTER, organizer_id="org", session_start=T0, now=NOW)
    assert {p.user_id for p in out} == {"u-a", "org"}


def test_duplicate_attendees_collapse_to_one_row() -> None:
    attendees = [_attendee("alice", joined_min=0), _attendee("Alice Smith", joined_min=25)]
    out = reconcile(attendees, ROSTER, organizer_id="org", session_start=T0, now=NOW)

    alice_rows = [p for p in out if p.user_id == "u-a"]
    assert len(alice_rows) == 1
    assert alice_rows[0].join_time == T0 + timedelta(minutes=25)
    assert len({p.user_id for p in out}) == len(out)


def test_organizer_present_is_not_duplicated() -> None:
    out = reconcile([_attendee("captain")], ROSTER, organizer_id="org", session_start=T0, now=NOW)
    assert len(out) == 1
    assert out[0].role_in_meeting == "participant"


def test_attendee_payload_shapes() -> None:
    signed = attendee_from_payload(
        {
            "name": "conferenceRecords/c/participants/1",
            "signedinUser": {"displayName": "Alice", "email": "alice@example.com"},
            "earliestStartTime": "2026-03-02T17:00:00.123456789Z",
            "latestEndTime": "2026-03-02T17:30:00Z",
        }
    )
    assert signed.type == AttendeeType.signed_in
    assert signed.display_name == "Alice"
    assert signed.email == "alice@example.com"
    assert signed.earliest_join_time == T0.replace(microsecond=123456)

    anon = attendee_from_payload({"anonymousUser": {"displayName": "Guest"}})
    assert anon.type == AttendeeType.anonymous
    assert anon.email is None
    assert anon.role == "participant"
