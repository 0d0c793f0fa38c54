"""
Разбор payload'ов Google Meet REST с допусками по схеме.
"""

from __future__ import annotations

import re
from typing import Any

from party_meetings.domain.models import SpaceDescriptor

_MEETING_LINK_RE = re.compile(r"meet\.google\.com/(?:lookup/)?([a-z0-9\-]+)", re.IGNORECASE)
_MEETING_CODE_RE = re.compile(r"[a-z0-9]+-[a-z0-9]+-[a-z0-9]+", re.IGNORECASE)


def last_segment(value: Any) -> str | None:
    """
    'conferenceRecords/abc' -> 'abc'. Пустые значения -> None.
    """
    if value is None:
        return None
    s = str(value).strip().rstrip("/")
    if not s:
        return None
    return s.split("/")[-1] or None


def resource_id(item: dict[str, Any], *id_keys: str) -> str | None:
    """
    Идентификатор ресурса: последний сегмент name, иначе первое непустое из id_keys.
    """
    rid = last_segment(item.get("name"))
    if rid:
        return rid
    for key in id_keys:
        raw = item.get(key)
        if raw is not None and str(raw).strip():
            return str(raw).strip()
    return None


def list_items(payload: Any, *keys: str) -> list[dict[str, Any]]:
    """
    Достаёт список ресурсов из ответа: первый найденный ключ из keys, затем 'items'.
    """
    if not isinstance(payload, dict):
        return []
    for key in (*keys, "items"):
        raw = payload.get(key)
        if isinstance(raw, list):
            return [x for x in raw if isinstance(x, dict)]
    return []


def extract_meeting_code(link: str | None) -> str | None:
    if not link:
        return None
    m = _MEETING_LINK_RE.search(link)
    if m:
        return m.group(1)
    m = _MEETING_CODE_RE.search(link)
    return m.group(0) if m else None


def space_from_payload(payload: dict[str, Any]) -> SpaceDescriptor:
    join_uri = str(payload.get("meetingUri") or "").strip()
    name = str(payload.get("name") or "").strip() or None
    code = str(payload.get("meetingCode") or "").strip() or extract_meeting_code(join_uri)
    space_id = str(payload.get("spaceId") or "").strip() or last_segment(name)
    return SpaceDescriptor(space_name=name, space_id=space_id, join_uri=join_uri, meeting_code=code)


def nested(item: dict[str, Any], *path: str) -> Any:
    cur: Any = item
    for key in path:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur
