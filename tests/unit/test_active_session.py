from __future__ import annotations

from datetime import UTC, datetime, timedelta

from party_meetings.domain.active_session import detect_active
from party_meetings.domain.models import MeetingSession

NOW = datetime(2026, 3, 2, 18, 0, tzinfo=UTC)


def _session(
    sid: str,
    *,
    start_offset_min: int,
    duration_min: int = 30,
    actual_start: datetime | None = None,
    actual_end: datetime | None = None,
) -> MeetingSession:
    start = NOW + timedelta(minutes=start_offset_min)
    return MeetingSession(
        id=sid,
        party_id="p-1",
        organizer_id="u-1",
        title="Study Sprint",
        scheduled_start=start,
        scheduled_end=start + timedelta(minutes=duration_min),
        actual_start=actual_start,
        actual_end=actual_end,
    )


def test_prefers_most_recently_started() -> None:
    older = _session("a", start_offset_min=-90, actual_start=NOW - timedelta(minutes=90))
    newer = _session("b", start_offset_min=-120, actual_start=NOW - timedelta(minutes=5))
    assert detect_active([older, newer], now=NOW).id == "b"


def test_started_session_wins_over_scheduled_window() -> None:
    scheduled = _session("s", start_offset_min=-10)
    started = _session("r", start_offset_min=-300, actual_start=NOW - timedelta(hours=5))
    assert detect_active([scheduled, started], now=NOW).id == "r"


def test_falls_back_to_earliest_scheduled_window() -> None:
    late = _session("late", start_offset_min=-5)
    early = _session("early", start_offset_min=-20)
    future = _session("future", start_offset_min=60)
    assert detect_active([late, future, early], now=NOW).id == "early"


def test_ended_sessions_are_never_active() -> None:
    ended = _session(
        "e",
        start_offset_min=-10,
        actual_start=NOW - timedelta(minutes=10),
        actual_end=NOW - timedelta(minutes=1),
    )
    assert detect_active([ended], now=NOW) is None
    assert detect_active([], now=NOW) is None


def test_detection_is_idempotent() -> None:
    sessions = [
        _session("a", start_offset_min=-10),
        _session("b", start_offset_min=-40, actual_start=NOW - timedelta(minutes=40)),
    ]
    first = detect_active(sessions, now=NOW)
    second = detect_active(sessions, now=NOW)
    assert first is second
    assert [s.id for s in sessions] == ["a", "b"]


def test_at_most_one_active_for_disjoint_sessions() -> None:
    sessions = [
        _session(
            "old",
            start_offset_min=-120,
            actual_start=NOW - timedelta(minutes=120),
            actual_end=NOW - timedelta(minutes=90),
        ),
        _session(
            "mid",
            start_offset_min=-60,
            actual_start=NOW - timedelta(minutes=60),
            actual_end=NOW - timedelta(minutes=30),
        ),
        _session("cur", start_offset_min=-20, actual_start=NOW - timedelta(minutes=20)),
    ]
    active = detect_active(sessions, now=NOW)
    assert active is not None and active.id == "cur"
