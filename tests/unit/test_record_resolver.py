from __future__ import annotations

from party_meetings.connectors.meet.mock import MockMeetConnector
from party_meetings.services.record_resolver import (
    record_from_payload,
    resolve_for_space,
    resolve_latest,
)


def test_record_id_from_resource_name_or_id_field() -> None:
    assert record_from_payload({"name": "conferenceRecords/abc-123"}).conference_id == "abc-123"
    assert record_from_payload({"id": "xyz"}).conference_id == "xyz"
    assert record_from_payload({"conferenceId": "c-9", "space": "spaces/s1"}).space == "spaces/s1"
    assert record_from_payload({"space": "spaces/s1"}) is None


def test_resolve_latest_takes_newest_record() -> None:
    provider = MockMeetConnector()
    provider.add_conference_record("spaces/old")
    newest = provider.add_conference_record("spaces/new")

    record = resolve_latest(provider, "t", page_size=10)
    assert record is not None
    assert record.conference_id == newest
    assert record.space == "spaces/new"


def test_resolve_latest_empty_list_is_none() -> None:
    assert resolve_latest(MockMeetConnector(), "t") is None


def test_resolve_for_space_skips_other_spaces() -> None:
    provider = MockMeetConnector()
    mine = provider.add_conference_record("spaces/mine")
    provider.add_conference_record("spaces/other")

    record = resolve_for_space(provider, "t", space="mine")
    assert record is not None and record.conference_id == mine
    assert resolve_for_space(provider, "t", space="spaces/missing") is None


def test_resolve_for_space_follows_page_tokens() -> None:
    provider = MockMeetConnector()
    mine = provider.add_conference_record("spaces/mine")
    for _ in range(3):
        provider.add_conference_record("spaces/other")

    record = resolve_for_space(provider, "t", space="spaces/mine", page_size=1, candidates=5)
    assert record is not None and record.conference_id == mine
    # за пределами окна кандидатов не ищем
    assert resolve_for_space(provider, "t", space="spaces/mine", page_size=1, candidates=3) is None
