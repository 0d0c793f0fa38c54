"""
Эфемерное состояние эпизода и single-flight лок по party.

Содержит:
- EpisodeStore: токен и дескриптор пространства на время create -> end (Redis, TTL)
- PartyOperationLock: не более одной операции create/end на party одновременно
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any

import redis

from party_meetings.common.config import get_settings
from party_meetings.common.errors import ConflictError
from party_meetings.common.ids import new_lock_token
from party_meetings.common.logging import get_project_logger
from party_meetings.common.time import parse_iso, to_iso
from party_meetings.domain.enums import Capability
from party_meetings.domain.models import AccessToken, SessionEpisode, SpaceDescriptor
from party_meetings.storage.serializers import session_from_dto, session_to_dto

log = get_project_logger()

_EPISODE_KEY_PREFIX = "party_meetings:episode:"
_LOCK_KEY_PREFIX = "party_meetings:op_lock:"

RedisFactory = Callable[[], redis.Redis]


def _default_redis() -> redis.Redis:
    from party_meetings.storage.redis import redis_client

    return redis_client()


def _token_to_dict(token: AccessToken | None) -> dict[str, Any] | None:
    if token is None:
        return None
    return {
        "value": token.value,
        "capabilities": sorted(c.value for c in token.capabilities),
        "expires_at": to_iso(token.expires_at),
    }


def _token_from_dict(data: Any) -> AccessToken | None:
    if not isinstance(data, dict) or not data.get("value"):
        return None
    caps = frozenset(Capability(c) for c in data.get("capabilities") or [])
    return AccessToken(
        value=str(data["value"]),
        capabilities=caps,
        expires_at=parse_iso(data.get("expires_at")),
    )


class EpisodeStore:
    def __init__(
        self, *, redis_factory: RedisFactory | None = None, ttl_sec: int | None = None
    ) -> None:
        self._redis = redis_factory or _default_redis
        self.ttl_sec = max(60, int(ttl_sec if ttl_sec is not None else get_settings().episode_ttl_sec))

    @staticmethod
    def _key(party_id: str) -> str:
        return f"{_EPISODE_KEY_PREFIX}{party_id}"

    def save(self, episode: SessionEpisode) -> SessionEpisode:
        payload = {
            "party_id": episode.party_id,
            "session": session_to_dto(episode.session),
            "token": _token_to_dict(episode.token),
            "space": asdict(episode.space) if episode.space else None,
            "started_at": to_iso(episode.started_at),
        }
        self._redis().set(
            self._key(episode.party_id), json.dumps(payload, ensure_ascii=False), ex=self.ttl_sec
        )
        return episode

    def load(self, party_id: str) -> SessionEpisode | None:
        raw = self._redis().get(self._key(party_id))
        if not raw:
            return None
        try:
            data = json.loads(raw)
            space = data.get("space")
            return SessionEpisode(
                party_id=str(data["party_id"]),
                session=session_from_dto(data["session"]),
                token=_token_from_dict(data.get("token")),
                space=SpaceDescriptor(**space) if isinstance(space, dict) else None,
                started_at=parse_iso(data.get("started_at")),
            )
        except (KeyError, TypeError, ValueError) as e:
            log.warning(
                "episode_state_invalid",
                extra={"payload": {"party_id": party_id, "error": str(e)[:200]}},
            )
            return None

    def clear(self, party_id: str) -> None:
        self._redis().delete(self._key(party_id))


class PartyLease:
    """
    Владение party-локом внутри hold(). extend() продлевает TTL между шагами
    долгой операции; потерянный лок (истёк и перехвачен) даёт ConflictError.
    """

    def __init__(
        self, lock: PartyOperationLock, party_id: str, token: str, operation: str
    ) -> None:
        self._lock = lock
        self.party_id = party_id
        self.token = token
        self.operation = operation

    def extend(self) -> None:
        key = self._lock._key(self.party_id)
        r = self._lock._redis()
        if r.get(key) != self.token:
            log.error(
                "party_lock_lost",
                extra={"payload": {"party_id": self.party_id, "operation": self.operation}},
            )
            raise ConflictError(
                "Лок party истёк во время операции",
                details={"party_id": self.party_id, "operation": self.operation},
            )
        r.expire(key, self._lock.ttl_sec)


class PartyOperationLock:
    def __init__(
        self, *, redis_factory: RedisFactory | None = None, ttl_sec: int | None = None
    ) -> None:
        self._redis = redis_factory or _default_redis
        self.ttl_sec = max(10, int(ttl_sec if ttl_sec is not None else get_settings().party_lock_ttl_sec))

    @staticmethod
    def _key(party_id: str) -> str:
        return f"{_LOCK_KEY_PREFIX}{party_id}"

    def _acquire(self, party_id: str, token: str) -> bool:
        return bool(self._redis().set(self._key(party_id), token, nx=True, ex=self.ttl_sec))

    def _release(self, party_id: str, token: str) -> None:
        key = self._key(party_id)
        r = self._redis()
        if r.get(key) == token:
            r.delete(key)

    def is_held(self, party_id: str) -> bool:
        return self._redis().get(self._key(party_id)) is not None

    @contextmanager
    def hold(self, party_id: str, *, operation: str) -> Iterator[PartyLease]:
        token = new_lock_token()
        if not self._acquire(party_id, token):
            raise ConflictError(
                "Операция со встречей уже выполняется для party",
                details={"party_id": party_id, "operation": operation},
            )
        try:
            yield PartyLease(self, party_id, token, operation)
        finally:
            try:
                self._release(party_id, token)
            except Exception as e:
                log.warning(
                    "party_lock_release_failed",
                    extra={
                        "payload": {
                            "party_id": party_id,
                            "operation": operation,
                            "error": str(e)[:200],
                        }
                    },
                )
