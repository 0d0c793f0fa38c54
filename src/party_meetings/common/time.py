"""
Утилиты времени.

Назначение:
- единый формат времени (ISO UTC)
- разбор ISO-строк провайдера и backend (в т.ч. с суффиксом Z)
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

# Провайдер отдаёт наносекунды, fromisoformat понимает не больше микросекунд
_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def utc_now() -> datetime:
    """
    Текущее время в UTC (datetime).
    """
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """
    Текущее время в UTC в ISO формате.
    """
    return utc_now().isoformat()


def parse_iso(value: str | datetime | None) -> datetime | None:
    """
    ISO-строка -> aware datetime (UTC, если зона не указана).
    Нераспознанные значения возвращаются как None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    raw = str(value).strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    raw = _FRACTION_RE.sub(r"\1", raw)
    try:
        dt = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=UTC)


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat()
