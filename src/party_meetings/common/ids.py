"""
Генерация идентификаторов.

Назначение:
- meeting_id для in-memory хранилища
- owner-токены для party-локов
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime
from uuid import uuid4


def new_meeting_id(prefix: str = "mtg") -> str:
    """
    Идентификатор встречи.
    Формат: <prefix>_<UTCYYYYMMDDHHMMSS>_<rand>
    """
    ts = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    rnd = secrets.token_hex(5)
    return f"{prefix}_{ts}_{rnd}"


def new_lock_token() -> str:
    """Owner-токен для распределённого лока."""
    return uuid4().hex
