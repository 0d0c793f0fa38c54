"""
ConferenceRecordResolver.

Поиск записи конференции провайдера, соответствующей только что завершённой сессии.
Пустой список возвращается как None, не исключение: решение о фатальности принимает контроллер.
"""

from __future__ import annotations

from collections.abc import Iterator

from party_meetings.common.logging import get_project_logger
from party_meetings.common.time import parse_iso
from party_meetings.connectors.base import ConferencingProvider
from party_meetings.connectors.meet.payloads import last_segment, list_items, resource_id
from party_meetings.domain.models import ConferenceRecord

log = get_project_logger()


def record_from_payload(item: dict) -> ConferenceRecord | None:
    conference_id = resource_id(item, "conferenceId", "id")
    if not conference_id:
        return None
    return ConferenceRecord(
        conference_id=conference_id,
        space=str(item.get("space") or "").strip() or None,
        start_time=parse_iso(item.get("startTime")),
        end_time=parse_iso(item.get("endTime")),
    )


def _list_records(provider: ConferencingProvider, token: str, page_size: int) -> list[dict]:
    payload = provider.list_conference_records(token, page_size=max(1, int(page_size)))
    return list_items(payload, "conferenceRecords", "records")


def _iter_records(
    provider: ConferencingProvider, token: str, *, page_size: int, limit: int
) -> Iterator[dict]:
    """
    Не более limit самых новых записей, с переходом по nextPageToken.
    """
    remaining = max(1, limit)
    page_token: str | None = None
    while remaining > 0:
        payload = provider.list_conference_records(
            token, page_size=max(1, min(int(page_size), remaining)), page_token=page_token
        )
        items = list_items(payload, "conferenceRecords", "records")
        for item in items[:remaining]:
            yield item
        remaining -= len(items)
        page_token = str(payload.get("nextPageToken") or "").strip() or None
        if not items or page_token is None:
            return


def resolve_latest(
    provider: ConferencingProvider, token: str, *, page_size: int = 10
) -> ConferenceRecord | None:
    """
    Первая (самая новая) запись конференции. Запрос глобальный, без привязки к party.
    """
    for item in _list_records(provider, token, page_size):
        record = record_from_payload(item)
        if record is not None:
            return record
        log.warning("conference_record_without_id", extra={"payload": {"keys": sorted(item)}})
    return None


def resolve_for_space(
    provider: ConferencingProvider,
    token: str,
    *,
    space: str,
    page_size: int = 10,
    candidates: int = 5,
) -> ConferenceRecord | None:
    """
    Среди candidates самых новых записей ищет ту, что относится к пространству space.
    """
    expected = last_segment(space)
    if not expected:
        return None
    for item in _iter_records(provider, token, page_size=page_size, limit=candidates):
        record = record_from_payload(item)
        if record is None:
            continue
        space_name = record.space
        if not space_name:
            detailed = provider.get_conference_record(token, record.conference_id)
            space_name = str(detailed.get("space") or "").strip() or None
        if last_segment(space_name) == expected:
            return record
    return None
