"""
Определение активной сессии party.

Активная сессия:
- actual_start задан и actual_end пуст (берём самую позднюю по actual_start)
- иначе: сейчас внутри [scheduled_start, scheduled_end] и actual_end пуст
  (берём самую раннюю по scheduled_start)

Чистая функция: без побочных эффектов, результат зависит только от списка и now.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from party_meetings.common.time import utc_now
from party_meetings.domain.models import MeetingSession


def detect_active(
    sessions: Iterable[MeetingSession], *, now: datetime | None = None
) -> MeetingSession | None:
    at = now or utc_now()
    items = list(sessions)

    started = [m for m in items if m.actual_start is not None and m.actual_end is None]
    if started:
        started.sort(key=lambda m: m.actual_start, reverse=True)
        return started[0]

    scheduled = [
        m
        for m in items
        if m.actual_end is None and m.window.contains(at)
    ]
    if scheduled:
        scheduled.sort(key=lambda m: m.scheduled_start)
        return scheduled[0]
    return None
