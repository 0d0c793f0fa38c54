"""
Redis для эфемерного состояния party-meetings.

Ключи:
- party_meetings:episode:<party_id>  токен и пространство эпизода (TTL EPISODE_TTL_SEC)
- party_meetings:op_lock:<party_id>  single-flight лок операций (TTL PARTY_LOCK_TTL_SEC)

Строки декодируются клиентом: owner-токен лока сравнивается как str.
"""

from __future__ import annotations

import redis

from party_meetings.common.config import get_settings

_client: redis.Redis | None = None


def redis_client() -> redis.Redis:
    global _client
    if _client is None:
        _client = redis.Redis.from_url(
            get_settings().redis_url,
            decode_responses=True,
            health_check_interval=30,
        )
    return _client
